"""
Centralized exception hierarchy for dotnetkit.

Every error raised by the acquisition core derives from DotnetKitError so
callers can catch the whole family at one seam.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class DotnetKitError(Exception):
    """Base exception for all dotnetkit errors."""

    pass


class ConfigError(DotnetKitError):
    """Configuration parsing or validation error."""

    pass


# ============================================================================
# Infrastructure Exceptions
# ============================================================================


class StateError(DotnetKitError):
    """Raised when the durable install state cannot be read or written."""

    pass


class FilesystemError(DotnetKitError):
    """Base exception for filesystem operations."""

    pass


class CommandExecutionError(DotnetKitError):
    """Raised when a command cannot be spawned at all."""

    def __init__(self, command: list, reason: str):
        self.command = command
        self.reason = reason
        super().__init__(f"Failed to run '{' '.join(command)}': {reason}")


class WebRequestError(DotnetKitError):
    """Raised when a remote payload cannot be fetched."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Request to {url} failed: {reason}")


# ============================================================================
# Acquisition Exceptions
# ============================================================================


class AcquisitionError(DotnetKitError):
    """Base exception for acquisition errors."""

    pass


class AcquisitionFailedError(AcquisitionError):
    """Raised when an install or its validation fails; wraps the cause."""

    def __init__(self, version: str, cause: BaseException):
        self.version = version
        self.cause = cause
        super().__init__(f".NET Acquisition Failed: {cause}")


class AcquisitionInvokerError(AcquisitionError):
    """Raised when the local install script exits unsuccessfully."""

    pass


class ScriptAcquisitionError(AcquisitionError):
    """Raised when no install script (downloaded or fallback) is available."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Failed to Acquire Dotnet Install Script: {cause}")


class InstallationValidationError(AcquisitionError):
    """Raised when an installed executable is missing or reports another version."""

    def __init__(self, version: str, executable_path: str, reason: str):
        self.version = version
        self.executable_path = executable_path
        super().__init__(
            f"Validation of .NET {version} at {executable_path} failed: {reason}"
        )


# ============================================================================
# Global Install Exceptions
# ============================================================================


class GlobalInstallError(AcquisitionError):
    """Base exception for machine-wide SDK installs."""

    pass


class ConflictingGlobalInstallError(GlobalInstallError):
    """Raised when another patch of the same major.minor is installed globally."""

    def __init__(self, requested_version: str, conflicting_version: str):
        self.requested_version = requested_version
        self.conflicting_version = conflicting_version
        super().__init__(
            f"A global install is already on the machine with a version "
            f"({conflicting_version}) that conflicts with the requested version "
            f"({requested_version}). Uninstall it before continuing."
        )


class GlobalInstallerError(GlobalInstallError):
    """Raised when the platform installer fails or cannot run here."""

    pass


class VersionResolutionError(GlobalInstallError):
    """Raised when a version specifier cannot be resolved from the release index."""

    pass


class DistroNotSupportedError(GlobalInstallError):
    """Raised when the running Linux distribution cannot install the SDK."""

    def __init__(self, distro: str, version: str, status: str):
        self.distro = distro
        self.version = version
        self.status = status
        super().__init__(
            f"Installing the .NET SDK on {distro} {version} is not supported "
            f"by this tool (support status: {status})."
        )
