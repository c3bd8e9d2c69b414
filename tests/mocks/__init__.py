"""
Mock implementations for testing SysrootKit components.

This package provides stand-ins for the Rust toolchain and for the
source tarballs served by the network, so pipeline stages can be tested
without rustc, cargo or network access.
"""

from .archives import SOURCE_FILES, build_tarball
from .toolchain import COMMIT_HASH, HOST, TARGET, FakeRunner

__all__ = [
    "COMMIT_HASH",
    "HOST",
    "TARGET",
    "FakeRunner",
    "SOURCE_FILES",
    "build_tarball",
]
