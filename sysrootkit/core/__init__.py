"""
Core functionality for SysrootKit.

This package contains the foundational modules that the pipeline stages
depend on: the request model, errors, progress events, file system and
network helpers, and subprocess execution.
"""

from .context import (
    BuildContext,
    Profile,
    SourceSnapshot,
    SpecTarget,
    Target,
    TripleTarget,
    parse_target,
)

from .events import (
    EventBus,
    EventKind,
    LoggingObserver,
    ProgressEvent,
    RecordingObserver,
)

from .exceptions import (
    SysrootKitError,
    ToolchainError,
    CommandError,
    SourceCacheError,
    SourceFetchError,
    ArchiveExtractionError,
    InsecureArchiveError,
    HostLinkError,
    TargetBuildError,
    HarvestError,
    SysrootLockError,
)

from .locking import sysroot_lock
from .process import CommandRunner

__all__ = [
    "BuildContext",
    "Profile",
    "SourceSnapshot",
    "SpecTarget",
    "Target",
    "TripleTarget",
    "parse_target",
    "EventBus",
    "EventKind",
    "LoggingObserver",
    "ProgressEvent",
    "RecordingObserver",
    "SysrootKitError",
    "ToolchainError",
    "CommandError",
    "SourceCacheError",
    "SourceFetchError",
    "ArchiveExtractionError",
    "InsecureArchiveError",
    "HostLinkError",
    "TargetBuildError",
    "HarvestError",
    "SysrootLockError",
    "sysroot_lock",
    "CommandRunner",
]
