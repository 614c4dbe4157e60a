"""
Concurrent access control for dotnetkit.

This module provides file-based locks that keep separate dotnetkit processes
from corrupting shared files: the install script on disk and the web
request cache.

Usage:
    from dotnetkit.core.locking import LockManager

    lock_manager = LockManager(home / "lock")
    with lock_manager.script_lock("dotnet-install.sh", timeout=60):
        # Write the script
        pass
"""

import logging
import re
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout as LockTimeout

logger = logging.getLogger(__name__)


def _safe_name(name: str) -> str:
    """Turn an arbitrary key (URL, file name) into a lock file stem."""
    return re.sub(r"[^A-Za-z0-9._-]+", "-", name).strip("-")


class LockManager:
    """
    Manages locks for dotnetkit resources.

    Uses file-based locking with the `filelock` library for cross-platform
    compatibility and automatic cleanup on process death.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Path):
        """
        Initialize lock manager.

        Args:
            lock_dir: Directory for lock files
        """
        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _acquire(self, lock_path: Path, timeout: float, description: str):
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(lock_path, timeout=timeout)

        try:
            lock.acquire()
        except LockTimeout as e:
            logger.error(
                f"Could not acquire {description} lock {lock_path} after {timeout}s. "
                "Another dotnetkit process may be running."
            )
            raise LockTimeout(str(lock_path)) from e

        logger.debug(f"Acquired {description} lock: {lock_path}")
        try:
            yield
        finally:
            lock.release()
            logger.debug(f"Released {description} lock: {lock_path}")

    def script_lock_path(self, script_name: str) -> Path:
        """Path of the lock file guarding the install script named script_name."""
        return self.lock_dir / f"script-{_safe_name(script_name)}.lock"

    def cache_lock_path(self, key: str) -> Path:
        """Path of the lock file guarding one web request cache entry."""
        return self.lock_dir / f"cache-{_safe_name(key)}.lock"

    @contextmanager
    def script_lock(self, script_name: str, timeout: float = 60):
        """
        Acquire the lock for writing an install script to disk.

        Args:
            script_name: File name of the script (e.g., 'dotnet-install.sh')
            timeout: Maximum wait time in seconds (default: 60)

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        lock_path = self.script_lock_path(script_name)
        with self._acquire(lock_path, timeout, f"script '{script_name}'"):
            yield

    @contextmanager
    def cache_lock(self, key: str, timeout: float = 30):
        """
        Acquire the lock for one web request cache entry.

        Args:
            key: Cache key (usually a digest of the URL)
            timeout: Maximum wait time in seconds (default: 30)

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        with self._acquire(self.cache_lock_path(key), timeout, "cache"):
            yield


__all__ = [
    "LockManager",
    "LockTimeout",
]
