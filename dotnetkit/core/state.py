"""
Durable install state for dotnetkit.

The acquisition worker tracks two ordered sets of version strings:

- ``installing``: installs that started but never completed
- ``installed``: installs that completed and validated

Each install owner (runtimes, local SDKs, global SDKs) persists its sets to
its own ``<dotnetkit home>/state-<owner>.json`` through a StateStore. Every
mutation is a locked read-modify-write round trip, so two dotnetkit
processes sharing a storage root never lose each other's updates.

Example:
    >>> store = JsonStateStore(home / "state-runtime.json")
    >>> sets = InstallStateSets(store)
    >>> sets.add(INSTALLING_KEY, "8.0")
    >>> sets.is_installing("8.0")
    True
"""

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from filelock import FileLock, Timeout

from dotnetkit.core.exceptions import StateError
from dotnetkit.core.filesystem import atomic_write
from dotnetkit.core.interfaces import StateStore

logger = logging.getLogger(__name__)

INSTALLING_KEY = "installing"
INSTALLED_KEY = "installed"


class JsonStateStore(StateStore):
    """
    StateStore backed by a JSON file.

    Attributes:
        state_file: Path to the JSON document
        lock_path: Path to the file lock guarding read-modify-write cycles
    """

    def __init__(self, state_file: Path, lock_timeout: float = 30):
        self.state_file = Path(state_file)
        self.lock_path = self.state_file.parent / "lock" / f"{self.state_file.stem}.lock"
        self.lock_timeout = lock_timeout

    def _load(self) -> Dict[str, Any]:
        if not self.state_file.exists():
            return {}

        try:
            with open(self.state_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid state file {self.state_file}, resetting: {e}")
            return {}
        except OSError as e:
            raise StateError(f"Failed to read state file {self.state_file}: {e}") from e

        if not isinstance(data, dict):
            logger.warning(f"State file {self.state_file} is not an object, resetting")
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def update(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        try:
            atomic_write(self.state_file, json.dumps(data, indent=2))
        except OSError as e:
            raise StateError(f"Failed to write state file {self.state_file}: {e}") from e
        logger.debug(f"Saved state key '{key}' to {self.state_file}")

    @contextmanager
    def lock(self):
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self.lock_path, timeout=self.lock_timeout)
        try:
            lock.acquire()
        except Timeout as e:
            raise StateError(
                f"Could not acquire state lock {self.lock_path} "
                f"within {self.lock_timeout} seconds"
            ) from e

        try:
            yield
        finally:
            lock.release()


class InstallStateSets:
    """
    In-memory view of the installing/installed sets, flushed on every change.

    The sets are loaded when the object is created. Each mutation re-reads
    the stored value under the store lock, applies the change, writes it
    back and refreshes the in-memory copy.
    """

    def __init__(self, store: StateStore):
        self.store = store
        self._sets: Dict[str, List[str]] = {}
        self.reload()

    def reload(self):
        """Refresh both sets from the store."""
        for key in (INSTALLING_KEY, INSTALLED_KEY):
            self._sets[key] = list(self.store.get(key, []) or [])

    @property
    def installing(self) -> List[str]:
        return list(self._sets[INSTALLING_KEY])

    @property
    def installed(self) -> List[str]:
        return list(self._sets[INSTALLED_KEY])

    def is_installing(self, version: str) -> bool:
        return version in self._sets[INSTALLING_KEY]

    def is_installed(self, version: str) -> bool:
        return version in self._sets[INSTALLED_KEY]

    def add(self, key: str, version: str):
        """Append version to a set if it is not already present."""
        with self.store.lock():
            current = list(self.store.get(key, []) or [])
            if version not in current:
                current.append(version)
                self.store.update(key, current)
            self._sets[key] = current

    def remove(self, key: str, version: str):
        """Remove version from a set if present."""
        with self.store.lock():
            current = list(self.store.get(key, []) or [])
            if version in current:
                current.remove(version)
                self.store.update(key, current)
            self._sets[key] = current

    def move(self, version: str, source: str, destination: str):
        """Remove version from one set and append it to another."""
        self.remove(source, version)
        self.add(destination, version)

    def reset(self, keys: Optional[List[str]] = None):
        """Empty the given sets (both by default)."""
        with self.store.lock():
            for key in keys or (INSTALLING_KEY, INSTALLED_KEY):
                self.store.update(key, [])
                self._sets[key] = []


__all__ = [
    "INSTALLING_KEY",
    "INSTALLED_KEY",
    "JsonStateStore",
    "InstallStateSets",
]
