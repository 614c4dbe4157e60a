"""
Version and installer resolution for machine-wide SDK installs.

GlobalInstallerResolver turns a version specifier into a fully-qualified
SDK version and the matching installer package, using the .NET release
metadata (releases-index.json and each channel's releases.json). It also
enumerates SDKs already installed machine-wide to detect conflicts.

Supported specifiers:
    8.0.404   exact version
    8.0       latest SDK of the 8.0 channel
    8.0.1xx   highest SDK in the 8.0.100 feature band (also '8.0.1')
    latest    latest SDK of the newest channel
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from packaging.version import InvalidVersion, Version

from dotnetkit.acquisition.distro import DistroVersionResolver, major_minor
from dotnetkit.acquisition.path_finder import get_os_arch
from dotnetkit.config.parser import DEFAULT_RELEASES_INDEX_URL
from dotnetkit.core.exceptions import GlobalInstallerError, VersionResolutionError
from dotnetkit.core.interfaces import CommandExecutor
from dotnetkit.core.platform import PlatformInfo, detect_platform, get_dotnet_executable
from dotnetkit.core.web import WebRequestWorker

logger = logging.getLogger(__name__)

WINDOWS_SDK_REGISTRY_KEY = r"SOFTWARE\dotnet\Setup\InstalledVersions\{arch}\sdk"

INSTALLER_EXTENSIONS = {"windows": ".exe", "macos": ".pkg"}


@dataclass(frozen=True)
class InstallerFile:
    """An installer package published in the release metadata."""

    name: str
    url: str
    hash: str = ""
    rid: str = ""

    @property
    def file_name(self) -> str:
        return self.url.rstrip("/").rsplit("/", 1)[-1]


def parse_specifier(specifier: str) -> Dict[str, Any]:
    """
    Classify a version specifier.

    Returns:
        Dict with 'kind' ('exact', 'channel', 'band', 'latest'), plus
        'channel' and 'band' where they apply

    Raises:
        VersionResolutionError: If the specifier is not understood
    """
    specifier = specifier.strip()
    if specifier.lower() == "latest":
        return {"kind": "latest"}

    parts = specifier.split(".", 2)
    if len(parts) < 2 or not parts[0].isdigit() or not parts[1].isdigit():
        raise VersionResolutionError(f"Invalid .NET SDK version: '{specifier}'")

    channel = f"{parts[0]}.{parts[1]}"
    if len(parts) == 2:
        return {"kind": "channel", "channel": channel}

    if len(parts) == 3:
        patch = parts[2]
        if patch.endswith("xx") and len(patch) == 3 and patch[0].isdigit():
            return {"kind": "band", "channel": channel, "band": int(patch[0])}
        if len(patch) == 1 and patch.isdigit():
            return {"kind": "band", "channel": channel, "band": int(patch)}
        if patch[:1].isdigit():
            return {"kind": "exact", "channel": channel}

    raise VersionResolutionError(f"Invalid .NET SDK version: '{specifier}'")


def _feature_band(version: str) -> Optional[int]:
    parts = version.split(".")
    if len(parts) < 3:
        return None
    digits = ""
    for char in parts[2]:
        if not char.isdigit():
            break
        digits += char
    return int(digits) // 100 if digits else None


def _sort_key(version: str) -> Version:
    try:
        return Version(version)
    except InvalidVersion:
        return Version("0")


def find_conflicting_version(
    requested_version: str, installed_versions: Iterable[str]
) -> Optional[str]:
    """
    Find an installed SDK that blocks installing requested_version.

    A conflict is any version sharing major.minor but not equal to the request.
    """
    requested = major_minor(requested_version)
    for installed in installed_versions:
        try:
            if major_minor(installed) == requested and installed != requested_version:
                return installed
        except ValueError:
            logger.debug(f"Ignoring unrecognized installed SDK entry: {installed}")
    return None


def get_global_install_root(
    platform_info: Optional[PlatformInfo] = None,
    os_arch: str = "",
    distro_resolver: Optional[DistroVersionResolver] = None,
) -> Path:
    """
    Get where platform installers put a machine-wide dotnet.

    Args:
        platform_info: Platform and requested architecture
        os_arch: Architecture of the OS (for x64 emulation on ARM64 macOS)
        distro_resolver: Source of the package layout on Linux

    Returns:
        Install root holding dotnet(.exe) and sdk/
    """
    platform_info = platform_info or detect_platform()

    if platform_info.is_windows:
        if platform_info.arch == "x86":
            return Path("C:\\Program Files (x86)\\dotnet")
        return Path("C:\\Program Files\\dotnet")

    if platform_info.is_macos:
        if platform_info.arch == "x64" and "arm" in os_arch:
            return Path("/usr/local/share/dotnet/x64/dotnet")
        return Path("/usr/local/share/dotnet")

    return (distro_resolver or DistroVersionResolver()).get_install_root()


class GlobalInstallerResolver:
    """
    Resolves one version specifier for a machine-wide SDK install.

    The release index is fetched lazily and the resolved version is
    remembered, so get_full_version() can be called repeatedly.

    Example:
        >>> resolver = GlobalInstallerResolver("8.0.1xx", web_worker, executor)
        >>> resolver.get_full_version()
        '8.0.110'
        >>> resolver.get_installer().url
        'https://builds.dotnet.microsoft.com/.../dotnet-sdk-8.0.110-win-x64.exe'
    """

    def __init__(
        self,
        version: str,
        web_worker: WebRequestWorker,
        executor: CommandExecutor,
        releases_index_url: str = DEFAULT_RELEASES_INDEX_URL,
        platform_info: Optional[PlatformInfo] = None,
        distro_resolver: Optional[DistroVersionResolver] = None,
    ):
        self.requested_version = version
        self.web_worker = web_worker
        self.executor = executor
        self.releases_index_url = releases_index_url
        self.platform_info = platform_info or detect_platform()
        self.distro_resolver = distro_resolver or DistroVersionResolver()

        self._full_version: Optional[str] = None
        self._channel_releases: Dict[str, dict] = {}

    # ------------------------------------------------------------------
    # Release metadata
    # ------------------------------------------------------------------

    def _get_index(self) -> List[dict]:
        index = self.web_worker.get_cached_json(self.releases_index_url)
        entries = index.get("releases-index") if isinstance(index, dict) else None
        if not entries:
            raise VersionResolutionError(
                f"Release index at {self.releases_index_url} lists no channels"
            )
        return entries

    def _get_channel_entry(self, channel: str) -> dict:
        for entry in self._get_index():
            if entry.get("channel-version") == channel:
                return entry
        raise VersionResolutionError(f"No .NET release channel '{channel}' exists")

    def _get_channel_releases(self, channel: str) -> dict:
        if channel not in self._channel_releases:
            url = self._get_channel_entry(channel).get("releases.json")
            if not url:
                raise VersionResolutionError(f"Channel '{channel}' has no releases.json")
            self._channel_releases[channel] = self.web_worker.get_cached_json(url)
        return self._channel_releases[channel]

    def _iter_sdks(self, channel: str):
        for release in self._get_channel_releases(channel).get("releases", []):
            sdks = release.get("sdks") or []
            if not sdks and release.get("sdk"):
                sdks = [release["sdk"]]
            for sdk in sdks:
                if sdk.get("version"):
                    yield sdk

    # ------------------------------------------------------------------
    # Version resolution
    # ------------------------------------------------------------------

    def get_full_version(self) -> str:
        """
        Resolve the requested specifier to a fully-qualified SDK version.

        Raises:
            VersionResolutionError: If the specifier or the index is unusable
        """
        if self._full_version is None:
            self._full_version = self._resolve(self.requested_version)
            logger.debug(
                f"Resolved SDK version '{self.requested_version}' to {self._full_version}"
            )
        return self._full_version

    def _resolve(self, specifier: str) -> str:
        parsed = parse_specifier(specifier)
        kind = parsed["kind"]

        if kind == "exact":
            return specifier.strip()

        if kind == "latest":
            newest = max(
                self._get_index(), key=lambda entry: _sort_key(entry.get("channel-version", ""))
            )
            latest = newest.get("latest-sdk")
            if not latest:
                raise VersionResolutionError("Newest .NET channel has no latest SDK")
            return latest

        channel = parsed["channel"]
        if kind == "channel":
            latest = self._get_channel_entry(channel).get("latest-sdk")
            if not latest:
                raise VersionResolutionError(f"Channel '{channel}' has no latest SDK")
            return latest

        band = parsed["band"]
        candidates = [
            sdk["version"]
            for sdk in self._iter_sdks(channel)
            if _feature_band(sdk["version"]) == band
        ]
        if not candidates:
            raise VersionResolutionError(
                f"No SDK found in feature band {channel}.{band}xx"
            )
        return max(candidates, key=_sort_key)

    # ------------------------------------------------------------------
    # Installer lookup
    # ------------------------------------------------------------------

    def get_installer(self) -> InstallerFile:
        """
        Find the installer package for the resolved version on this platform.

        Raises:
            GlobalInstallerError: If this platform has no installer packages
            VersionResolutionError: If no matching installer is published
        """
        extension = INSTALLER_EXTENSIONS.get(self.platform_info.os)
        if extension is None:
            raise GlobalInstallerError(
                f"No .NET SDK installer packages exist for {self.platform_info.os}"
            )

        version = self.get_full_version()
        rid = self.platform_info.runtime_identifier()
        channel = major_minor(version)

        for sdk in self._iter_sdks(channel):
            if sdk["version"] != version:
                continue
            for file_info in sdk.get("files", []):
                name = file_info.get("name", "")
                url = file_info.get("url", "")
                if file_info.get("rid") == rid and url.endswith(extension):
                    return InstallerFile(
                        name=name, url=url, hash=file_info.get("hash", ""), rid=rid
                    )

        raise VersionResolutionError(
            f"No {extension} installer for SDK {version} ({rid}) is published"
        )

    def get_installer_url(self) -> str:
        return self.get_installer().url

    # ------------------------------------------------------------------
    # Existing global installs
    # ------------------------------------------------------------------

    def get_install_root(self) -> Path:
        """Install root a global install of this SDK lands in."""
        os_arch = ""
        if self.platform_info.is_macos and self.platform_info.arch == "x64":
            os_arch = get_os_arch(self.executor, self.platform_info)
        return get_global_install_root(self.platform_info, os_arch, self.distro_resolver)

    def get_executable_path(self) -> Path:
        return self.get_install_root() / get_dotnet_executable(self.platform_info)

    def get_installed_global_versions(self) -> List[str]:
        """
        List SDK versions installed machine-wide.

        Windows reads the installer registry. Elsewhere the sdk/ directories
        of the global install root are listed.
        """
        if self.platform_info.is_windows:
            return self._read_registry_versions()

        sdk_dir = self.get_install_root() / "sdk"
        if not sdk_dir.is_dir():
            return []
        return sorted(entry.name for entry in sdk_dir.iterdir() if entry.is_dir())

    def _read_registry_versions(self) -> List[str]:
        import winreg

        key_path = WINDOWS_SDK_REGISTRY_KEY.format(arch=self.platform_info.arch)
        versions = []
        try:
            # 32-bit view: the dotnet installers register there for every arch
            with winreg.OpenKey(
                winreg.HKEY_LOCAL_MACHINE,
                key_path,
                0,
                winreg.KEY_READ | winreg.KEY_WOW64_32KEY,
            ) as key:
                index = 0
                while True:
                    try:
                        name, _, _ = winreg.EnumValue(key, index)
                    except OSError:
                        break
                    versions.append(name)
                    index += 1
        except FileNotFoundError:
            return []
        return versions

    def get_conflicting_version(self) -> Optional[str]:
        """
        Find a global SDK that conflicts with the resolved version.

        Returns:
            The conflicting installed version, or None
        """
        return find_conflicting_version(
            self.get_full_version(), self.get_installed_global_versions()
        )

    def is_installed_globally(self) -> bool:
        return self.get_full_version() in self.get_installed_global_versions()


__all__ = [
    "InstallerFile",
    "GlobalInstallerResolver",
    "find_conflicting_version",
    "get_global_install_root",
    "parse_specifier",
]
