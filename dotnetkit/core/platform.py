"""
Platform detection for dotnetkit.

This module detects the current platform (OS and architecture) so the
acquisition layer can pick the right install script, installer package and
global install layout.

Features:
- Operating system detection (Windows, Linux, macOS)
- CPU architecture detection and normalization (x64, arm64, x86, arm)
- .NET runtime identifier generation (e.g., 'linux-x64', 'osx-arm64')
- Executable naming ('dotnet' vs 'dotnet.exe')

Usage:
    from dotnetkit.core.platform import detect_platform

    platform_info = detect_platform()
    print(f"Runtime identifier: {platform_info.runtime_identifier()}")
"""

import functools
import platform
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PlatformInfo:
    """
    Platform information.

    Attributes:
        os: Operating system ('windows', 'linux', 'macos')
        arch: CPU architecture of the running interpreter ('x64', 'arm64', 'x86', 'arm')
    """

    os: str
    arch: str

    def platform_string(self) -> str:
        """
        Get canonical platform string (e.g., 'linux-x64', 'macos-arm64').

        Example:
            >>> PlatformInfo('linux', 'x64').platform_string()
            'linux-x64'
        """
        return f"{self.os}-{self.arch}"

    def runtime_identifier(self) -> str:
        """
        Get the .NET runtime identifier used in release metadata.

        Example:
            >>> PlatformInfo('macos', 'arm64').runtime_identifier()
            'osx-arm64'
        """
        return f"{rid_os(self.os)}-{self.arch}"

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    @property
    def is_macos(self) -> bool:
        return self.os == "macos"

    @property
    def is_linux(self) -> bool:
        return self.os == "linux"


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.

    Returns:
        PlatformInfo instance with detected platform information
    """
    return PlatformInfo(os=_detect_os(), arch=normalize_arch(platform.machine()))


def _detect_os() -> str:
    """
    Detect operating system.

    Returns:
        Normalized OS name: 'windows', 'linux', 'macos'

    Raises:
        RuntimeError: If OS is not supported
    """
    system = platform.system().lower()

    if system == "windows":
        return "windows"
    elif system == "linux":
        return "linux"
    elif system == "darwin":
        return "macos"
    else:
        raise RuntimeError(f"Unsupported operating system: {system}")


def normalize_arch(machine: str) -> str:
    """
    Normalize an architecture name reported by the OS.

    Args:
        machine: Raw architecture name (e.g., 'x86_64', 'AMD64', 'aarch64')

    Returns:
        Normalized architecture: 'x64', 'arm64', 'x86', 'arm', or the
        lowercased input for unknown architectures
    """
    machine = machine.strip().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    else:
        return machine


def rid_os(os_name: str) -> str:
    """Map an OS name to the prefix .NET uses in runtime identifiers."""
    return {"windows": "win", "macos": "osx", "linux": "linux"}.get(os_name, os_name)


def get_dotnet_executable(info: Optional[PlatformInfo] = None) -> str:
    """
    Get the file name of the dotnet host executable on a platform.

    Args:
        info: Platform to name the executable for. Detects current if None.

    Returns:
        'dotnet.exe' on Windows, 'dotnet' elsewhere
    """
    if info is None:
        info = detect_platform()
    return "dotnet.exe" if info.is_windows else "dotnet"


def clear_platform_cache():
    """
    Clear the platform detection cache.

    This forces the next call to detect_platform() to re-detect.
    """
    detect_platform.cache_clear()


__all__ = [
    "PlatformInfo",
    "detect_platform",
    "normalize_arch",
    "rid_os",
    "get_dotnet_executable",
    "clear_platform_cache",
]
