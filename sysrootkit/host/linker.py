"""
Host runtime mirroring.

A sysroot passed to `rustc --sysroot` must also contain the host's own
runtime libraries (compiler plugins and build scripts run on the host). They
are already built, so HostCrateLinker replicates
`<rustc sysroot>/lib/rustlib/<host>` into the new sysroot, hard linking each
file and silently copying it when a hard link is impossible.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sysrootkit.core.context import BuildContext
from sysrootkit.core.events import EventBus
from sysrootkit.core.exceptions import HostLinkError
from sysrootkit.core.filesystem import FilesystemError, mirror_tree, safe_rmtree
from sysrootkit.core.process import CommandRunner
from sysrootkit.toolchain.rustc import print_sysroot

logger = logging.getLogger(__name__)

STAGE = "host"


@dataclass(frozen=True)
class LinkReport:
    """Result of mirroring the host runtime."""

    source: Path
    destination: Path
    linked: int
    copied: int
    directories: int

    @property
    def files(self) -> int:
        return self.linked + self.copied


class HostCrateLinker:
    """Mirror the installed toolchain's host runtime into a sysroot."""

    def __init__(
        self,
        events: Optional[EventBus] = None,
        runner: Optional[CommandRunner] = None,
    ):
        self.events = events or EventBus()
        self.runner = runner or CommandRunner()

    def host_runtime_dir(self, host: str) -> Path:
        """
        Locate the host runtime directory of the installed toolchain.

        Raises:
            HostLinkError: If the directory does not exist
        """
        source = print_sysroot(self.runner) / "lib" / "rustlib" / host
        if not source.is_dir():
            raise HostLinkError(f"Host runtime directory not found: {source}")
        return source

    def link(self, ctx: BuildContext) -> LinkReport:
        """
        Replace `<out>/<profile>/lib/rustlib/<host>` with a mirror of the host runtime.

        Args:
            ctx: Build context

        Returns:
            LinkReport with hard link and copy counts

        Raises:
            HostLinkError: If the tree cannot be replaced or a file copied
        """
        self.events.info(STAGE, "linking host crates")

        source = self.host_runtime_dir(ctx.host)
        destination = ctx.host_lib_dir

        try:
            ctx.rustlib_dir.mkdir(parents=True, exist_ok=True)
            if destination.exists():
                safe_rmtree(destination, require_prefix=ctx.out_dir)
        except (OSError, FilesystemError) as e:
            raise HostLinkError(f"Failed to prepare {destination}: {e}") from e

        def on_copy_fallback(path: Path, error: OSError) -> None:
            self.events.fallback(
                STAGE, f"hard link failed, copied {path}", path=str(path), error=str(error)
            )

        try:
            stats = mirror_tree(source, destination, on_copy_fallback=on_copy_fallback)
        except FilesystemError as e:
            raise HostLinkError(str(e)) from e

        logger.debug(
            f"Mirrored {source} -> {destination}: {stats.files} files "
            f"({stats.linked} linked, {stats.copied} copied) "
            f"in {stats.directories} directories"
        )
        return LinkReport(
            source, destination, stats.linked, stats.copied, stats.directories
        )
