"""
File system utilities for SysrootKit.

This module provides the file operations the sysroot pipeline is built on:
- Selective tarball extraction (one subtree, leading components stripped)
- Tree mirroring with hard links and a silent copy fallback
- Safe file operations (atomic writes, safe deletion)
- Scoped temporary directories
"""

import logging
import os
import shutil
import sys
import tarfile
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional, Union

from sysrootkit.core.exceptions import (
    ArchiveExtractionError,
    InsecureArchiveError,
    SysrootKitError,
)

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"


class FilesystemError(SysrootKitError):
    """Base exception for filesystem operations."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to (under) parent directory.

    Args:
        path: Path to check
        parent: Parent directory

    Returns:
        True if path is under parent directory
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def strip_components(name: str, count: int) -> Optional[PurePosixPath]:
    """
    Drop the leading path components of an archive member name.

    Args:
        name: Member name as stored in the archive
        count: Number of leading components to drop

    Returns:
        Remaining relative path, or None if nothing remains
    """
    parts = PurePosixPath(name).parts
    if len(parts) <= count:
        return None
    return PurePosixPath(*parts[count:])


def _subtree_path(name: str, subtree: str) -> Optional[PurePosixPath]:
    """Map `<top>/<subtree>/<rest>` to `<rest>`; anything else to None."""
    parts = PurePosixPath(name).parts
    if len(parts) < 3 or parts[1] != subtree:
        return None
    return strip_components(name, 2)


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_member_path(rel_path: PurePosixPath, destination: Path) -> None:
    """
    Validate that a stripped member path stays inside the destination.

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    if rel_path.is_absolute() or ".." in rel_path.parts:
        raise InsecureArchiveError(
            f"Archive member '{rel_path}' attempts directory traversal. "
            "Extraction has been blocked."
        )

    member_path = (destination / rel_path).resolve()
    if not is_relative_to(member_path, destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{rel_path}' resolves outside {destination}"
        )


def _validate_symlink_target(
    rel_path: PurePosixPath, linkname: str, destination: Path
) -> None:
    """
    Validate that a symbolic link points inside the destination.

    Raises:
        InsecureArchiveError: If the link is absolute or escapes destination
    """
    if PurePosixPath(linkname).is_absolute():
        raise InsecureArchiveError(
            f"Archive member '{rel_path}' is a symlink to absolute path '{linkname}'"
        )

    link_path = ((destination / rel_path).parent / linkname).resolve()
    if not is_relative_to(link_path, destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{rel_path}' is a symlink to '{linkname}' "
            f"outside {destination}"
        )


def extract_tar_subtree(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    subtree: str = "src",
    progress_callback: Optional[Callable[[int], None]] = None,
) -> int:
    """
    Extract one subtree of a gzip tarball whose top level is a single directory.

    Only members of the form `<top>/<subtree>/<rest>` are extracted, as
    `<destination>/<rest>`. Everything else is skipped without being
    written to disk.

    Args:
        archive_path: Path to the .tar.gz archive
        destination: Directory to extract to (must exist)
        subtree: Name of the second path component to keep
        progress_callback: Optional callback(extracted_count) per member

    Returns:
        Number of extracted members

    Raises:
        ArchiveExtractionError: If the archive cannot be read
        InsecureArchiveError: If a member escapes the destination

    Example:
        >>> extract_tar_subtree('rust-abc123.tar.gz', 'sysroot/src')
        5321
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    extracted = 0
    try:
        with tarfile.open(archive_path, "r:gz") as tar:
            for member in tar:
                rel_path = _subtree_path(member.name, subtree)
                if rel_path is None:
                    continue

                _validate_member_path(rel_path, destination)
                member.name = str(rel_path)

                if member.islnk():
                    # Hard links name another archive member; rebase the target.
                    link_target = _subtree_path(member.linkname, subtree)
                    if link_target is None:
                        logger.debug(f"Skipping hard link outside {subtree}: {member.name}")
                        continue
                    _validate_member_path(link_target, destination)
                    member.linkname = str(link_target)
                elif member.issym():
                    _validate_symlink_target(rel_path, member.linkname, destination)
                elif not (member.isfile() or member.isdir()):
                    logger.debug(f"Skipping special file: {member.name}")
                    continue

                if sys.version_info >= (3, 12):
                    tar.extract(member, destination, filter="data")
                else:
                    tar.extract(member, destination)

                extracted += 1
                if progress_callback:
                    progress_callback(extracted)
    except InsecureArchiveError:
        raise
    except tarfile.TarError as e:
        if isinstance(e, getattr(tarfile, "FilterError", ())):
            raise InsecureArchiveError(f"Blocked unsafe archive member: {e}") from e
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e
    except (OSError, EOFError) as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e

    logger.debug(f"Extracted {extracted} members from {archive_path}")
    return extracted


# ============================================================================
# Tree Mirroring
# ============================================================================


@dataclass
class MirrorStats:
    """Counts of files mirrored by mirror_tree()."""

    linked: int = 0
    copied: int = 0
    directories: int = 0

    @property
    def files(self) -> int:
        return self.linked + self.copied


def mirror_tree(
    source: Union[str, Path],
    destination: Union[str, Path],
    on_copy_fallback: Optional[Callable[[Path, OSError], None]] = None,
    stats: Optional[MirrorStats] = None,
) -> MirrorStats:
    """
    Replicate a directory tree using hard links, copying when linking fails.

    The destination directory must not exist. Each file is hard linked
    (same inode, no extra disk usage); if the link fails, for example
    across file systems, the file is copied instead. Only a failed copy
    raises.

    Args:
        source: Existing directory to replicate
        destination: Directory to create
        on_copy_fallback: Optional callback(path, link_error) per copied file
        stats: Counters to update (a new MirrorStats if None)

    Returns:
        MirrorStats with link/copy counts

    Raises:
        FilesystemError: If a directory cannot be created or a file copied
    """
    source = Path(source)
    destination = Path(destination)
    stats = stats if stats is not None else MirrorStats()

    try:
        destination.mkdir()
    except OSError as e:
        raise FilesystemError(f"Failed to create directory {destination}: {e}") from e
    stats.directories += 1

    for entry in sorted(source.iterdir()):
        target = destination / entry.name
        if entry.is_dir():
            mirror_tree(entry, target, on_copy_fallback, stats)
            continue

        try:
            os.link(entry, target)
            stats.linked += 1
        except OSError as link_error:
            try:
                shutil.copy2(entry, target)
            except OSError as e:
                raise FilesystemError(
                    f"Failed to copy {entry} to {target}: {e}"
                ) from e
            stats.copied += 1
            if on_copy_fallback:
                on_copy_fallback(entry, link_error)

    return stats


def copy_files(
    source: Union[str, Path], destination: Union[str, Path]
) -> List[Path]:
    """
    Copy every regular file directly inside source into destination.

    Args:
        source: Directory to read
        destination: Directory to copy into (created if missing)

    Returns:
        Sorted list of copied destination paths

    Raises:
        FilesystemError: If source is missing or a copy fails
    """
    source = Path(source)
    destination = Path(destination)

    if not source.is_dir():
        raise FilesystemError(f"Source is not a directory: {source}")

    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Failed to create directory {destination}: {e}") from e

    copied = []
    for entry in sorted(source.iterdir()):
        if not entry.is_file():
            continue
        target = destination / entry.name
        try:
            shutil.copy2(entry, target)
        except OSError as e:
            raise FilesystemError(f"Failed to copy {entry} to {target}: {e}") from e
        copied.append(target)

    return copied


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    The file is never observed in a partially-written state.

    Args:
        file_path: Path to write to
        content: Content to write (string or bytes)
        encoding: Text encoding (used only for string content)
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails

    Example:
        >>> safe_rmtree('sysroot/src', require_prefix='sysroot')
        >>> safe_rmtree('/usr/lib', require_prefix='sysroot')  # ValueError
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if IS_WINDOWS:

            def handle_remove_readonly(func, path, exc):
                """Error handler for Windows read-only files."""
                if not os.access(path, os.W_OK):
                    os.chmod(path, 0o777)
                    func(path)
                else:
                    raise

            shutil.rmtree(path, onerror=handle_remove_readonly)
        else:
            shutil.rmtree(path)

    except Exception as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


# ============================================================================
# Temporary File/Directory Management
# ============================================================================


@contextmanager
def temporary_directory(prefix: str = "sysroot", cleanup: bool = True):
    """
    Context manager for temporary directory with automatic cleanup.

    The directory is removed when the block exits, whether it succeeded
    or raised.

    Args:
        prefix: Prefix for temp directory name
        cleanup: If True, remove directory on exit

    Yields:
        Path to temporary directory
    """
    try:
        temp_dir = Path(tempfile.mkdtemp(prefix=prefix))
    except OSError as e:
        raise FilesystemError(f"Failed to create temporary directory: {e}") from e

    try:
        yield temp_dir
    finally:
        if cleanup and temp_dir.exists():
            safe_rmtree(temp_dir)


__all__ = [
    "FilesystemError",
    "MirrorStats",
    "is_relative_to",
    "strip_components",
    "extract_tar_subtree",
    "mirror_tree",
    "copy_files",
    "atomic_write",
    "safe_rmtree",
    "temporary_directory",
]
