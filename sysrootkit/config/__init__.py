"""
Configuration for SysrootKit.

Provides the sysroot.yaml reader and the resolved crate selection.
"""

from sysrootkit.config.parser import (
    BASELINE_CRATE,
    DEFAULT_CONFIG_FILE,
    CrateSelection,
    SysrootConfig,
)

__all__ = [
    "BASELINE_CRATE",
    "DEFAULT_CONFIG_FILE",
    "CrateSelection",
    "SysrootConfig",
]
