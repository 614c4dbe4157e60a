"""
Directory layout management for dotnetkit.

Directory Structure:
    dotnetkit home (~/.dotnetkit/ or %USERPROFILE%\\.dotnetkit\\):
        - dotnet/             : Storage root of all managed installs
            - runtime/        : Local runtime installs, <version>/ per version
            - sdk/.dotnet/    : Shared local SDK install (sdk/<version>/ inside)
        - install scripts/    : Downloaded dotnet-install script
        - installers/         : Scratch directory for global installer packages
        - cache/              : Web request cache
        - lock/               : Concurrent access control files
        - state-runtime.json  : Installing/installed sets of local runtimes
        - state-sdk.json      : Installing/installed sets of local SDKs
        - state-global.json   : Installing/installed sets of machine-wide SDKs

An uninstall-all removes only the root of its own kind (runtime/ or sdk/);
bookkeeping files live beside the storage root.
"""

import os
from pathlib import Path
from typing import Optional

from dotnetkit.core.exceptions import DotnetKitError
from dotnetkit.core.interfaces import InstallDirectoryProvider

HOME_ENV_VAR = "DOTNETKIT_HOME"


def get_dotnetkit_home() -> Path:
    """
    Get the platform-specific dotnetkit home directory.

    The DOTNETKIT_HOME environment variable overrides the default.

    Returns:
        Path: The home directory path.
            - Windows: %USERPROFILE%\\.dotnetkit
            - Linux/macOS: ~/.dotnetkit/

    Raises:
        DotnetKitError: If USERPROFILE is not set on Windows
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override)

    if os.name == "nt":
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise DotnetKitError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine dotnetkit home directory."
            )
        return Path(user_profile) / ".dotnetkit"
    return Path.home() / ".dotnetkit"


def get_default_storage_path(home: Optional[Path] = None) -> Path:
    """Get the default storage root for managed installs."""
    return Path(home or get_dotnetkit_home()) / "dotnet"


class RuntimeInstallationDirectoryProvider(InstallDirectoryProvider):
    """Each runtime version gets its own directory under the storage root."""

    def __init__(self, storage_path: Optional[Path] = None):
        self.storage_path = Path(storage_path or get_default_storage_path())

    def get_install_dir(self, version: str) -> Path:
        return self.storage_path / version

    def get_storage_path(self) -> Path:
        return self.storage_path


class SdkInstallationDirectoryProvider(InstallDirectoryProvider):
    """
    All local SDK versions share one install root.

    The dotnet host supports side-by-side SDKs under <root>/sdk/<version>,
    so every SDK request resolves to the same directory.
    """

    def __init__(self, storage_path: Optional[Path] = None):
        self.storage_path = Path(storage_path or get_default_storage_path())

    def get_install_dir(self, version: str) -> Path:
        return self.storage_path / ".dotnet"

    def get_storage_path(self) -> Path:
        return self.storage_path


__all__ = [
    "HOME_ENV_VAR",
    "get_dotnetkit_home",
    "get_default_storage_path",
    "RuntimeInstallationDirectoryProvider",
    "SdkInstallationDirectoryProvider",
]
