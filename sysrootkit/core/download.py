"""
Network download with progress tracking.

This module provides the single HTTP GET the source cache needs:
- HTTP/HTTPS downloads with redirects followed transparently
- Streaming to disk (tarballs are large)
- Progress reporting (bytes, percentage, speed, ETA)
- Timeout handling

Failures are not retried; every non-200 response is reported as a
SourceFetchError carrying the status code.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

from sysrootkit.core.exceptions import SourceFetchError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300
CHUNK_SIZE = 64 * 1024


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second
    eta_seconds: float  # estimated time remaining

    def __str__(self) -> str:
        """Format progress for display."""
        return format_progress(self)


def download_file(
    url: str,
    destination: Path,
    session: Optional[requests.Session] = None,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    timeout: int = DEFAULT_TIMEOUT,
) -> Path:
    """
    Download file from URL to destination.

    Args:
        url: URL to download from
        destination: Local path to save file
        session: Optional requests session (a plain GET is used if None)
        progress_callback: Optional callback for progress updates
        timeout: Request timeout in seconds

    Returns:
        Path to downloaded file

    Raises:
        SourceFetchError: If the request fails or the status is not 200
        ValueError: If URL or destination is invalid

    Example:
        >>> url = "https://github.com/rust-lang/rust/archive/abc123.tar.gz"
        >>> download_file(url, Path("/tmp/rust-src.tar.gz"))
    """
    if not url:
        raise ValueError("URL cannot be empty")

    if not destination:
        raise ValueError("Destination path cannot be empty")

    destination = Path(destination)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise SourceFetchError(url, f"cannot create {destination.parent}: {e}") from e

    logger.info(f"Downloading from {url}")

    get = session.get if session is not None else requests.get
    try:
        response = get(url, stream=True, timeout=timeout, allow_redirects=True)
    except RequestException as e:
        raise SourceFetchError(url, str(e)) from e

    with response:
        if response.status_code != 200:
            raise SourceFetchError(
                url,
                f"unexpected HTTP status {response.status_code}",
                status_code=response.status_code,
            )

        content_length = response.headers.get("content-length")
        total_size = int(content_length) if content_length else 0

        downloaded = 0
        start_time = time.time()
        last_progress_time = start_time

        try:
            with open(destination, "wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if not chunk:
                        continue
                    f.write(chunk)
                    downloaded += len(chunk)

                    # Report progress at most twice a second
                    current_time = time.time()
                    if progress_callback and (
                        current_time - last_progress_time >= 0.5
                        or downloaded == total_size
                    ):
                        progress_callback(
                            _progress(downloaded, total_size, current_time - start_time)
                        )
                        last_progress_time = current_time
        except RequestException as e:
            destination.unlink(missing_ok=True)
            raise SourceFetchError(url, f"connection lost: {e}") from e
        except OSError as e:
            raise SourceFetchError(url, f"failed to write {destination}: {e}") from e

    logger.info(f"Download complete: {destination} ({downloaded} bytes)")
    return destination


def _progress(downloaded: int, total_size: int, elapsed: float) -> DownloadProgress:
    speed = downloaded / elapsed if elapsed > 0 else 0
    remaining = total_size - downloaded if total_size > 0 else 0
    return DownloadProgress(
        bytes_downloaded=downloaded,
        total_bytes=total_size if total_size > 0 else downloaded,
        percentage=(downloaded / total_size * 100) if total_size > 0 else 0,
        speed_bps=speed,
        eta_seconds=remaining / speed if speed > 0 else 0,
    )


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.total_bytes > 0 and progress.percentage > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s "
            f"ETA: {progress.eta_seconds:.0f}s"
        )
    return f"{mb_downloaded:.1f} MB at {speed_mbps:.1f} MB/s"
