"""
Output directory locking for SysrootKit.

Two sysroot builds writing the same output directory would interleave
source purges, host links and harvested artifacts. The pipeline holds an
advisory, cross-process lock on `<out_dir>/.sysroot.lock` for the whole run
so a second invocation fails fast instead.

Usage:
    from sysrootkit.core.locking import sysroot_lock

    with sysroot_lock(Path("sysroot"), timeout=0):
        # Exclusive access to the output directory
        pass
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout

from sysrootkit.core.exceptions import SysrootLockError

logger = logging.getLogger(__name__)

LOCK_FILE_NAME = ".sysroot.lock"


@contextmanager
def sysroot_lock(out_dir: Path, timeout: float = 0):
    """
    Acquire the lock for an output directory.

    Args:
        out_dir: Sysroot output directory (created if missing)
        timeout: Maximum wait time in seconds (0 fails immediately)

    Yields:
        Path to the lock file

    Raises:
        SysrootLockError: If the lock can't be acquired within timeout
    """
    out_dir = Path(out_dir)
    lock_path = out_dir / LOCK_FILE_NAME

    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        lock = FileLock(lock_path, timeout=timeout)
        lock.acquire()
    except Timeout as e:
        raise SysrootLockError(
            f"Could not lock {out_dir} after {timeout}s. "
            "Another sysroot build may be using this output directory."
        ) from e
    except OSError as e:
        raise SysrootLockError(f"Could not create lock file {lock_path}: {e}") from e

    logger.debug(f"Acquired sysroot lock: {lock_path}")
    try:
        yield lock_path
    finally:
        lock.release()
        logger.debug(f"Released sysroot lock: {lock_path}")
