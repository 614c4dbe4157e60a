"""
Cross-platform file system utilities for dotnetkit.

This module provides the low-level file operations the acquisition layer
relies on:
- Atomic writes (state files, install scripts)
- Safe recursive deletion (install directories, storage root)
- Directory wiping (installer scratch directory)
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Union

from dotnetkit.core.exceptions import FilesystemError

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to parent.

    Args:
        path: Path to check
        parent: Potential parent path

    Returns:
        True if path is under parent
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    This ensures the file is never in a partially-written state.
    If the write fails, the original file (if any) remains unchanged.

    Args:
        file_path: Path to write to
        content: Content to write (string or bytes)
        encoding: Text encoding (used only for string content)

    Example:
        >>> atomic_write('state.json', '{"installed": []}')
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # Temp file in the same directory keeps the rename on one filesystem
    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding, newline="") as f:
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


def _handle_remove_readonly(func, path, exc):
    """Error handler for Windows read-only files."""
    if not os.access(path, os.W_OK):
        os.chmod(path, 0o777)
        func(path)
    else:
        raise exc[1]


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
        >>> safe_rmtree('~/.dotnetkit/8.0', require_prefix='~/.dotnetkit')
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
            shutil.rmtree(path, onerror=_handle_remove_readonly)
        else:
            shutil.rmtree(path)
    except Exception as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e

    logger.debug(f"Removed directory tree: {path}")


def wipe_directory(directory: Union[str, Path]) -> None:
    """
    Delete every entry inside a directory, keeping the directory itself.

    The directory is created if it does not exist yet.

    Args:
        directory: Directory to empty

    Raises:
        FilesystemError: If an entry cannot be removed
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    for entry in directory.iterdir():
        try:
            if entry.is_dir() and not entry.is_symlink():
                safe_rmtree(entry)
            else:
                entry.unlink()
        except OSError as e:
            raise FilesystemError(f"Failed to remove '{entry}': {e}") from e

    logger.debug(f"Wiped directory: {directory}")


__all__ = [
    "is_relative_to",
    "atomic_write",
    "safe_rmtree",
    "wipe_directory",
]
