"""
Standard library source management for SysrootKit.
"""

from sysrootkit.sources.cache import SourceCache, source_urls

__all__ = ["SourceCache", "source_urls"]
