"""
Standard library source cache.

Keeps `<out_dir>/src` in sync with the sources of the installed compiler.
The directory is tagged with a `.commit-hash` marker file that is written
only after a fully successful extraction, so an interrupted fetch is seen
as stale (never as valid) by the next run.
"""

import logging
from pathlib import Path
from typing import List, Optional

import requests

from sysrootkit.core.context import MARKER_FILE_NAME, SourceSnapshot
from sysrootkit.core.download import DownloadProgress, download_file
from sysrootkit.core.events import EventBus
from sysrootkit.core.exceptions import SourceCacheError, SourceFetchError
from sysrootkit.core.filesystem import (
    FilesystemError,
    atomic_write,
    extract_tar_subtree,
    safe_rmtree,
    temporary_directory,
)

logger = logging.getLogger(__name__)

STAGE = "source"

COMMIT_URL = "https://github.com/rust-lang/rust/archive/{commit_hash}.tar.gz"
NIGHTLY_URL = "https://static.rust-lang.org/dist/{date}/rustc-nightly-src.tar.gz"


def source_urls(snapshot: SourceSnapshot) -> List[str]:
    """
    Candidate tarball URLs for a snapshot, most exact first.

    The commit-hash archive always matches the compiler exactly. The
    nightly tarball is addressed by commit date + 1 day, which is usually
    but not always the right nightly, so it is only a fallback.
    """
    urls = [COMMIT_URL.format(commit_hash=snapshot.commit_hash)]
    if snapshot.nightly_date is not None:
        urls.append(NIGHTLY_URL.format(date=snapshot.nightly_date.strftime("%Y-%m-%d")))
    return urls


class SourceCache:
    """
    Manage the extracted standard library sources of one sysroot.

    Attributes:
        src_dir: Directory holding the extracted `src` subtree
        hash_file: Marker file recording the cached commit hash
    """

    def __init__(
        self,
        src_dir: Path,
        events: Optional[EventBus] = None,
        session: Optional[requests.Session] = None,
        timeout: int = 300,
    ):
        """
        Initialize source cache.

        Args:
            src_dir: Cache directory (typically `<out_dir>/src`)
            events: Event bus for progress notifications
            session: Optional requests session used for the download
            timeout: Download timeout in seconds
        """
        self.src_dir = Path(src_dir)
        self.hash_file = self.src_dir / MARKER_FILE_NAME
        self.events = events or EventBus()
        self.session = session
        self.timeout = timeout

    def cached_hash(self) -> Optional[str]:
        """Commit hash recorded in the marker file, or None."""
        try:
            return self.hash_file.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise SourceCacheError(f"Failed to read {self.hash_file}: {e}") from e

    def is_fresh(self, snapshot: SourceSnapshot) -> bool:
        return self.cached_hash() == snapshot.commit_hash

    def ensure(self, snapshot: SourceSnapshot) -> Path:
        """
        Make sure the sources for a snapshot are extracted.

        Does nothing when the marker already records the requested hash.
        Otherwise the directory is purged, the tarball fetched and the
        `src` subtree extracted; the marker is written last.

        Args:
            snapshot: Source snapshot of the installed compiler

        Returns:
            Path to the source directory

        Raises:
            SourceFetchError: If the tarball cannot be downloaded
            SourceCacheError: If purging, extraction or marking fails
        """
        cached = self.cached_hash()
        if cached == snapshot.commit_hash:
            self.events.cache_hit(STAGE, "source up to date", commit_hash=cached)
            return self.src_dir

        self.events.cache_miss(
            STAGE,
            f"source cache is stale (have {cached or 'nothing'}, "
            f"want {snapshot.commit_hash})",
            cached=cached,
            requested=snapshot.commit_hash,
        )

        self._purge()

        with temporary_directory(prefix="sysroot-src-") as download_dir:
            archive = self._fetch(snapshot, download_dir / "rust-src.tar.gz")

            self.events.info(STAGE, "unpacking source tarball")
            try:
                count = extract_tar_subtree(archive, self.src_dir, subtree="src")
            except SourceCacheError:
                raise
            except FilesystemError as e:
                raise SourceCacheError(str(e)) from e

        if count == 0:
            raise SourceCacheError("source tarball contains no src/ directory")

        self.events.info(STAGE, "creating .commit-hash file")
        try:
            atomic_write(self.hash_file, snapshot.commit_hash)
        except OSError as e:
            raise SourceCacheError(f"Failed to write {self.hash_file}: {e}") from e

        return self.src_dir

    def _purge(self) -> None:
        if self.src_dir.exists():
            self.events.info(STAGE, "purging the src directory")
            try:
                safe_rmtree(self.src_dir)
            except FilesystemError as e:
                raise SourceCacheError(str(e)) from e

        try:
            self.src_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SourceCacheError(f"Failed to create {self.src_dir}: {e}") from e

    def _fetch(self, snapshot: SourceSnapshot, destination: Path) -> Path:
        """Download the first available tarball, falling back only on 404."""
        urls = source_urls(snapshot)
        for index, url in enumerate(urls):
            self.events.info(STAGE, "fetching source tarball", url=url)
            try:
                return download_file(
                    url,
                    destination,
                    session=self.session,
                    progress_callback=self._log_progress,
                    timeout=self.timeout,
                )
            except SourceFetchError as e:
                is_last = index == len(urls) - 1
                if e.status_code != 404 or is_last:
                    raise
                self.events.fallback(
                    STAGE,
                    f"{url} not found, trying {urls[index + 1]}",
                    url=url,
                    fallback_url=urls[index + 1],
                )

        raise SourceFetchError(urls[-1], "no source URL available")

    def _log_progress(self, progress: DownloadProgress) -> None:
        logger.debug(f"source tarball: {progress}")
