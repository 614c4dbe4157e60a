"""
Process spawning for dotnetkit.

SubprocessCommandExecutor is the default CommandExecutor. It runs a command to
completion with subprocess.run and returns its captured output. It can wrap
the command line in a shell and request administrator/root rights.

Example:
    >>> executor = SubprocessCommandExecutor()
    >>> result = executor.execute(["dotnet", "--list-sdks"])
    >>> result.succeeded
    True
"""

import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from dotnetkit.core.exceptions import CommandExecutionError
from dotnetkit.core.interfaces import CommandExecutor, CommandResult

logger = logging.getLogger(__name__)


def is_elevated() -> bool:
    """
    Check whether the current process has administrator/root rights.

    Returns:
        True on Unix when the effective uid is 0. On Windows, True when
        `net session` (which needs administrator rights) succeeds.
    """
    if os.name == "nt":
        try:
            result = subprocess.run(
                ["net", "session"], capture_output=True, text=True, timeout=30
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"Could not check elevation with 'net session': {e}")
            return False
        return result.returncode == 0
    return os.geteuid() == 0


def _powershell_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _windows_elevated_command(command: Sequence[str]) -> List[str]:
    """Re-launch command through a UAC prompt and propagate its exit code."""
    script = f"$p = Start-Process -FilePath {_powershell_quote(command[0])}"
    if len(command) > 1:
        arguments = ",".join(_powershell_quote(arg) for arg in command[1:])
        script += f" -ArgumentList {arguments}"
    script += " -Verb RunAs -Wait -PassThru; exit $p.ExitCode"
    return ["powershell.exe", "-NoProfile", "-NonInteractive", "-Command", script]


class SubprocessCommandExecutor(CommandExecutor):
    """CommandExecutor built on subprocess.run."""

    def __init__(self, cwd: Optional[Path] = None, env: Optional[dict] = None):
        self.cwd = cwd
        self.env = env

    def _build_argv(
        self, command: Sequence[str], shell: Optional[str], elevated: bool
    ) -> List[str]:
        argv = [str(part) for part in command]

        if elevated and not is_elevated():
            if os.name == "nt":
                return _windows_elevated_command(argv)
            argv = ["sudo", "-n"] + argv

        if shell:
            cmdline = " ".join(shlex.quote(part) for part in argv)
            if Path(shell).name == "bash":
                return [shell, "-l", "-c", cmdline]
            return [shell, "-c", cmdline]

        return argv

    def execute(
        self,
        command: Sequence[str],
        *,
        shell: Optional[str] = None,
        elevated: bool = False,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        if not command:
            raise ValueError("Command cannot be empty")

        argv = self._build_argv(command, shell, elevated)
        logger.debug(f"Running: {' '.join(argv)}")

        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=self.cwd,
                env=self.env,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandExecutionError(
                list(command), f"timed out after {timeout} seconds"
            ) from e
        except OSError as e:
            raise CommandExecutionError(list(command), str(e)) from e

        if completed.returncode != 0:
            logger.debug(
                f"Command exited with code {completed.returncode}: {completed.stderr.strip()}"
            )

        return CommandResult(
            stdout=completed.stdout or "",
            exit_code=completed.returncode,
            stderr=completed.stderr or "",
        )


__all__ = ["SubprocessCommandExecutor", "is_elevated"]
