"""
Toolchain introspection for SysrootKit.
"""

from sysrootkit.toolchain.rustc import (
    Channel,
    VersionMeta,
    parse_version_meta,
    print_sysroot,
    require_nightly,
    version_meta,
)

__all__ = [
    "Channel",
    "VersionMeta",
    "parse_version_meta",
    "print_sysroot",
    "require_nightly",
    "version_meta",
]
