"""
Core functionality for dotnetkit.

This package contains the foundational modules the acquisition layer depends
on: platform detection, filesystem helpers, durable state, locking, events,
process spawning and web access.
"""

from .directory import (
    get_dotnetkit_home,
    get_default_storage_path,
    RuntimeInstallationDirectoryProvider,
    SdkInstallationDirectoryProvider,
)

from .events import EventStream

from .exceptions import (
    DotnetKitError,
    ConfigError,
    StateError,
    FilesystemError,
    CommandExecutionError,
    WebRequestError,
    AcquisitionError,
    AcquisitionFailedError,
    AcquisitionInvokerError,
    ScriptAcquisitionError,
    InstallationValidationError,
    GlobalInstallError,
    ConflictingGlobalInstallError,
    GlobalInstallerError,
    VersionResolutionError,
    DistroNotSupportedError,
)

from .locking import (
    LockManager,
    LockTimeout,
)

from .platform import (
    PlatformInfo,
    detect_platform,
    get_dotnet_executable,
    clear_platform_cache,
)

from .state import (
    JsonStateStore,
    InstallStateSets,
)

__all__ = [
    "get_dotnetkit_home",
    "get_default_storage_path",
    "RuntimeInstallationDirectoryProvider",
    "SdkInstallationDirectoryProvider",
    "EventStream",
    "DotnetKitError",
    "ConfigError",
    "StateError",
    "FilesystemError",
    "CommandExecutionError",
    "WebRequestError",
    "AcquisitionError",
    "AcquisitionFailedError",
    "AcquisitionInvokerError",
    "ScriptAcquisitionError",
    "InstallationValidationError",
    "GlobalInstallError",
    "ConflictingGlobalInstallError",
    "GlobalInstallerError",
    "VersionResolutionError",
    "DistroNotSupportedError",
    "LockManager",
    "LockTimeout",
    "PlatformInfo",
    "detect_platform",
    "get_dotnet_executable",
    "clear_platform_cache",
    "JsonStateStore",
    "InstallStateSets",
]
