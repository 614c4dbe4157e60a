"""
Core interfaces for dotnetkit.

This module defines the abstract collaborators the acquisition core depends
on. Default implementations live next to their concern (state, command,
web, directory, acquisition.invoker, acquisition.validator); tests and
embedding applications can substitute their own.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a spawned command."""

    stdout: str
    exit_code: int
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class InstallationContext:
    """Everything an AcquisitionInvoker needs to perform one local install."""

    install_dir: Path
    version: str
    executable_path: Path
    timeout: float
    is_runtime: bool


class StateStore(ABC):
    """Durable key-value storage for the installing/installed version sets."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under key, or default."""
        pass

    @abstractmethod
    def update(self, key: str, value: Any) -> None:
        """Persist value under key."""
        pass

    @contextmanager
    def lock(self):
        """
        Hold exclusive access for a read-modify-write cycle.

        Stores that are never shared between processes need not override this.
        """
        yield


class InstallDirectoryProvider(ABC):
    """Maps versions to install directories under one storage root."""

    @abstractmethod
    def get_install_dir(self, version: str) -> Path:
        pass

    @abstractmethod
    def get_storage_path(self) -> Path:
        pass


class AcquisitionInvoker(ABC):
    """Performs the actual local installation of a version."""

    @abstractmethod
    def install(self, context: InstallationContext) -> None:
        """
        Install the requested version into context.install_dir.

        Raises:
            Exception: Any error; the worker wraps it with acquisition context.
        """
        pass


class InstallationValidator(ABC):
    """Confirms an installed executable is usable and reports the right version."""

    @abstractmethod
    def validate(
        self, version: str, executable_path: Path, is_runtime: bool = False
    ) -> None:
        """
        Raises:
            InstallationValidationError: If the install is missing or mismatched
        """
        pass


class CommandExecutor(ABC):
    """Spawns processes on behalf of the acquisition layer."""

    @abstractmethod
    def execute(
        self,
        command: Sequence[str],
        *,
        shell: Optional[str] = None,
        elevated: bool = False,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """
        Run a command to completion.

        Args:
            command: Program and arguments
            shell: Run the command line through this shell (login shell for bash)
            elevated: Run with administrator/root privileges
            timeout: Seconds before the process is killed; None waits forever

        Returns:
            CommandResult with captured output and exit code
        """
        pass


__all__ = [
    "CommandResult",
    "InstallationContext",
    "StateStore",
    "InstallDirectoryProvider",
    "AcquisitionInvoker",
    "InstallationValidator",
    "CommandExecutor",
]
