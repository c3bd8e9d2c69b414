"""
Centralized exception hierarchy for SysrootKit.

Every fatal condition of the sysroot pipeline is raised as a subclass of
SysrootKitError. Recoverable conditions (missing configuration, hard-link
failures, a fresh source cache) never raise.
"""

from typing import List, Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class SysrootKitError(Exception):
    """Base exception for all SysrootKit errors."""

    pass


# ============================================================================
# Toolchain Exceptions
# ============================================================================


class ToolchainError(SysrootKitError):
    """Raised when the installed toolchain cannot be used."""

    pass


class CommandError(SysrootKitError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, command: List[str], returncode: int, stderr: Optional[str] = None):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        msg = f"`{' '.join(self.command)}` failed with exit code {returncode}"
        if stderr:
            msg += f"\n{stderr.strip()}"
        super().__init__(msg)


# ============================================================================
# Source Cache Exceptions
# ============================================================================


class SourceCacheError(SysrootKitError):
    """Base exception for source cache errors."""

    pass


class SourceFetchError(SourceCacheError):
    """Raised when the source tarball cannot be downloaded."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {reason}")


class ArchiveExtractionError(SourceCacheError):
    """Failed to extract the source archive."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Sysroot Exceptions
# ============================================================================


class HostLinkError(SysrootKitError):
    """Raised when the host runtime libraries cannot be mirrored."""

    pass


class TargetBuildError(SysrootKitError):
    """Raised when the target crates cannot be built."""

    pass


class HarvestError(TargetBuildError):
    """Raised when build artifacts cannot be copied into the sysroot."""

    pass


class SysrootLockError(SysrootKitError):
    """Raised when another process holds the output directory lock."""

    pass
