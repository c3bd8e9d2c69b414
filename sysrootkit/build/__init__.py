"""
Target crate building for SysrootKit.
"""

from sysrootkit.build.target import (
    BuildReport,
    TargetCrateBuilder,
    crate_source_dir,
    resolve_target,
)

__all__ = [
    "BuildReport",
    "TargetCrateBuilder",
    "crate_source_dir",
    "resolve_target",
]
