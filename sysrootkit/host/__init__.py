"""
Host runtime mirroring for SysrootKit.
"""

from sysrootkit.host.linker import HostCrateLinker, LinkReport

__all__ = ["HostCrateLinker", "LinkReport"]
