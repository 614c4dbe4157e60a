"""
Discovery of an existing dotnet executable on the machine.

Lookup order used by DotnetPathFinder.find_dotnet_path():

1. DOTNET_ROOT_X64, only when x64 is requested on an ARM64 OS
2. DOTNET_ROOT
3. `which dotnet` / `where dotnet`, run through the user's shell so shell
   profile PATH additions are visible
4. Symlink resolution of the PATH hit, guarded by a `--list-runtimes` check

Some PATH entries are polymorphic dispatchers (snap's /snap/bin/dotnet
resolves to /usr/bin/snap, which cannot list runtimes). The check runs
against the unresolved path and, when it works, the executable is derived
from the install layout: runtimes live in <root>/shared/<name>, and the
host is <root>/dotnet.
"""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from dotnetkit.acquisition.validator import parse_list_runtimes
from dotnetkit.core.exceptions import CommandExecutionError
from dotnetkit.core.interfaces import CommandExecutor
from dotnetkit.core.platform import PlatformInfo, detect_platform, get_dotnet_executable, normalize_arch

logger = logging.getLogger(__name__)

DOTNET_ROOT_VAR = "DOTNET_ROOT"
DOTNET_ROOT_X64_VAR = "DOTNET_ROOT_X64"


def get_os_arch(
    executor: CommandExecutor,
    platform_info: Optional[PlatformInfo] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Get the architecture of the operating system.

    The interpreter may run emulated (x64 Python on an ARM64 Mac), so its own
    architecture is not used.

    Returns:
        Normalized architecture ('x64', 'arm64', ...), or '' if it cannot be detected
    """
    platform_info = platform_info or detect_platform()
    environ = os.environ if environ is None else environ

    if platform_info.is_windows:
        raw = environ.get("PROCESSOR_ARCHITEW6432") or environ.get(
            "PROCESSOR_ARCHITECTURE", ""
        )
        return normalize_arch(raw) if raw else ""

    try:
        result = executor.execute(["uname", "-m"])
    except CommandExecutionError as e:
        logger.warning(f"Could not detect OS architecture: {e}")
        return ""
    if not result.succeeded:
        return ""
    return normalize_arch(result.stdout)


class DotnetPathFinder:
    """
    Resolves the dotnet executable the user's environment would run.

    Attributes:
        executor: Runs the PATH lookup and the runtime check
        platform_info: Platform the lookup is performed for
        environ: Environment variables to consult
    """

    def __init__(
        self,
        executor: CommandExecutor,
        platform_info: Optional[PlatformInfo] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.executor = executor
        self.platform_info = platform_info or detect_platform()
        self.environ = os.environ if environ is None else environ
        self.finder_command = "where" if self.platform_info.is_windows else "which"

    def find_dotnet_root_path(self, requested_architecture: str) -> Optional[str]:
        """
        Get the dotnet root from environment variables.

        DOTNET_ROOT_X64 is only honored when x64 is requested on an ARM OS.
        DOTNET_ROOT(x86) and DOTNET_ROOT_X86 are ignored, as is DOTNET_HOST_PATH,
        which belongs to the host.

        Returns:
            Root directory, or None when no variable is set
        """
        if requested_architecture == "x64":
            os_arch = get_os_arch(self.executor, self.platform_info, self.environ)
            if "arm" in os_arch:
                emulation_path = self.environ.get(DOTNET_ROOT_X64_VAR)
                if emulation_path:
                    return emulation_path

        root = self.environ.get(DOTNET_ROOT_VAR)
        return root or None

    def _lookup_shell(self) -> Optional[str]:
        if self.platform_info.is_windows:
            return None
        return "/bin/bash" if self.environ.get("SHELL") == "/bin/bash" else "/bin/sh"

    def _which(self, try_use_true_shell: bool) -> Optional[str]:
        shell = self._lookup_shell() if try_use_true_shell else None
        try:
            result = self.executor.execute([self.finder_command, "dotnet"], shell=shell)
        except CommandExecutionError as e:
            logger.debug(f"PATH lookup for dotnet failed: {e}")
            return None

        lines = result.stdout.strip().splitlines()
        if not result.succeeded or not lines:
            return None
        # `where` prints every match; the first one wins
        return lines[0].strip()

    def _derive_from_runtimes(self, tentative_path: str) -> Optional[str]:
        try:
            result = self.executor.execute([tentative_path, "--list-runtimes"])
        except CommandExecutionError as e:
            logger.debug(f"Runtime check of {tentative_path} failed: {e}")
            return None
        if not result.succeeded:
            return None

        runtimes = parse_list_runtimes(result.stdout)
        if not runtimes:
            return None

        install_root = Path(runtimes[0].directory).parent.parent
        return str(install_root / get_dotnet_executable(self.platform_info))

    def _get_true_path(self, tentative_path: str) -> str:
        return self._derive_from_runtimes(tentative_path) or tentative_path

    def find_raw_path_environment_setting(
        self, try_use_true_shell: bool = True
    ) -> Optional[str]:
        """
        Find dotnet on PATH without resolving symlinks.

        Returns:
            The install-layout executable when the PATH hit can list runtimes,
            otherwise the PATH hit itself; None when dotnet is not on PATH
        """
        path = self._which(try_use_true_shell)
        if path:
            return self._get_true_path(path)
        return None

    def find_real_path_environment_setting(
        self, try_use_true_shell: bool = True
    ) -> Optional[str]:
        """
        Find dotnet on PATH and resolve it to the real executable.

        The runtime check runs against the unresolved path first; raw symlink
        resolution is only used when the check yields nothing.
        """
        path = self._which(try_use_true_shell)
        if not path:
            return None

        derived = self._derive_from_runtimes(path)
        if derived:
            return derived
        return os.path.realpath(path)

    def find_dotnet_path(self, requested_architecture: Optional[str] = None) -> Optional[str]:
        """
        Find the dotnet executable in priority order.

        Args:
            requested_architecture: Architecture the caller wants to run;
                defaults to the interpreter's architecture

        Returns:
            Path to the dotnet executable, or None if nothing was found
        """
        requested_architecture = requested_architecture or self.platform_info.arch

        root = self.find_dotnet_root_path(requested_architecture)
        if root:
            executable = Path(root) / get_dotnet_executable(self.platform_info)
            logger.debug(f"dotnet resolved from environment: {executable}")
            return str(executable)

        return self.find_real_path_environment_setting()


__all__ = [
    "DOTNET_ROOT_VAR",
    "DOTNET_ROOT_X64_VAR",
    "DotnetPathFinder",
    "get_os_arch",
]
