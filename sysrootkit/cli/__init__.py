"""
SysrootKit command-line interface.
"""

from sysrootkit.cli.parser import CLI, main

__all__ = ["CLI", "main"]
