"""
Introspection of the installed Rust compiler.

Queries `rustc -vV` for the version metadata the sysroot must match (host
triple, commit hash, commit date, channel) and `rustc --print sysroot` for
the toolchain installation root.

Example:
    >>> meta = version_meta()
    >>> meta.host
    'x86_64-unknown-linux-gnu'
    >>> meta.channel
    <Channel.NIGHTLY: 'nightly'>
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from sysrootkit.core.context import SourceSnapshot
from sysrootkit.core.exceptions import ToolchainError
from sysrootkit.core.process import CommandRunner

logger = logging.getLogger(__name__)

RUSTC = "rustc"


class Channel(Enum):
    """Release channel of a rustc build."""

    DEV = "dev"
    NIGHTLY = "nightly"
    BETA = "beta"
    STABLE = "stable"

    @classmethod
    def from_release(cls, release: str) -> "Channel":
        """Derive the channel from a release string such as '1.8.0-nightly'."""
        if "-" not in release:
            return cls.STABLE
        suffix = release.split("-", 1)[1]
        for channel in (cls.NIGHTLY, cls.BETA, cls.DEV):
            if suffix.startswith(channel.value):
                return channel
        return cls.STABLE


@dataclass(frozen=True)
class VersionMeta:
    """
    Parsed `rustc -vV` output.

    Attributes:
        release: Release string (e.g., '1.8.0-nightly')
        host: Host triple
        channel: Release channel
        commit_hash: Commit hash of the compiler build (None for local builds)
        commit_date: Commit date of the compiler build
        llvm_version: LLVM version string, if reported
    """

    release: str
    host: str
    channel: Channel
    commit_hash: Optional[str] = None
    commit_date: Optional[date] = None
    llvm_version: Optional[str] = None

    def snapshot(self) -> SourceSnapshot:
        """
        Source snapshot matching this compiler.

        Raises:
            ToolchainError: If rustc does not report a commit hash
        """
        if not self.commit_hash:
            raise ToolchainError(
                "rustc does not report a commit hash; cannot locate matching sources"
            )
        return SourceSnapshot(self.commit_hash, self.commit_date)


def parse_version_meta(output: str) -> VersionMeta:
    """
    Parse the verbose version output of rustc.

    Args:
        output: Standard output of `rustc -vV`

    Returns:
        VersionMeta

    Raises:
        ToolchainError: If required fields are missing or malformed
    """
    fields: Dict[str, str] = {}
    for line in output.splitlines()[1:]:
        key, sep, value = line.partition(":")
        if sep:
            fields[key.strip()] = value.strip()

    for required in ("host", "release"):
        if required not in fields:
            raise ToolchainError(f"`rustc -vV` output has no '{required}' field")

    commit_hash = fields.get("commit-hash")
    if commit_hash == "unknown":
        commit_hash = None

    commit_date = None
    raw_date = fields.get("commit-date")
    if raw_date and raw_date != "unknown":
        try:
            commit_date = datetime.strptime(raw_date, "%Y-%m-%d").date()
        except ValueError as e:
            raise ToolchainError(f"Invalid commit-date '{raw_date}': {e}") from e

    return VersionMeta(
        release=fields["release"],
        host=fields["host"],
        channel=Channel.from_release(fields["release"]),
        commit_hash=commit_hash,
        commit_date=commit_date,
        llvm_version=fields.get("LLVM version"),
    )


def version_meta(runner: Optional[CommandRunner] = None) -> VersionMeta:
    """Query and parse `rustc -vV`."""
    runner = runner or CommandRunner()
    meta = parse_version_meta(runner.output([RUSTC, "-vV"]))
    logger.debug(f"rustc {meta.release} ({meta.commit_hash} {meta.commit_date})")
    return meta


def require_nightly(meta: VersionMeta) -> None:
    """
    Reject compilers whose standard library sources cannot be built.

    Raises:
        ToolchainError: If the channel is not nightly
    """
    if meta.channel is not Channel.NIGHTLY:
        raise ToolchainError(
            f"only the nightly channel is supported at this time "
            f"(found {meta.channel.value} rustc {meta.release})"
        )


def print_sysroot(runner: Optional[CommandRunner] = None) -> Path:
    """
    Installation root of the active toolchain.

    Raises:
        ToolchainError: If rustc prints nothing
    """
    runner = runner or CommandRunner()
    root = runner.output([RUSTC, "--print", "sysroot"]).strip()
    if not root:
        raise ToolchainError("`rustc --print sysroot` printed nothing")
    return Path(root)
