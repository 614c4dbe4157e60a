"""
Linux distribution detection and .NET support policy.

DistroVersionResolver answers three questions for the running Linux host:
which distribution and version it is, which SDK version its feeds are known
to provide, and how well a requested .NET version is supported there.

Example:
    >>> resolver = DistroVersionResolver()
    >>> pair = DistroVersionPair(UBUNTU_DISTRO, "22.04")
    >>> resolver.get_supported_sdk_version(pair)
    '9.0.100'
    >>> resolver.get_support_status("8.0", pair)
    <DistroSupportStatus.DISTRO: 'DISTRO'>
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import distro

from dotnetkit.core.exceptions import DistroNotSupportedError

logger = logging.getLogger(__name__)

UBUNTU_DISTRO = "Ubuntu"
RED_HAT_DISTRO = "Red Hat Enterprise Linux"

LATEST_LINUX_SDK_VERSION = "9.0.100"


class DistroSupportStatus(Enum):
    """
    How a distro supports a requested .NET version.

    DISTRO: the distro's own feed provides the package.
    MICROSOFT: only Microsoft's package feed provides it; not installable here yet.
    PARTIAL: the distro is known but the version pairing is not; behaves as unsupported.
    UNSUPPORTED: neither feed provides it.
    UNKNOWN: reserved, never returned by the resolver.
    """

    UNSUPPORTED = "UNSUPPORTED"
    DISTRO = "DISTRO"
    MICROSOFT = "MICROSOFT"
    PARTIAL = "PARTIAL"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class DistroVersionPair:
    """One snapshot of the running distribution name and version."""

    distro: str
    version: str

    def __str__(self) -> str:
        return f"{self.distro} {self.version}"


@dataclass(frozen=True)
class FeedPolicy:
    """major.minor .NET versions each package feed provides for one distro release."""

    distro_feed: Tuple[str, ...] = ()
    microsoft_feed: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DistroPackaging:
    """How a distro family installs the SDK package and where it lands."""

    install_command: Tuple[str, ...]
    package_prefix: str
    install_root: Path


SUPPORT_POLICY: Dict[str, Dict[str, FeedPolicy]] = {
    UBUNTU_DISTRO: {
        "20.04": FeedPolicy(microsoft_feed=("6.0", "7.0", "8.0")),
        "22.04": FeedPolicy(distro_feed=("6.0", "7.0", "8.0"), microsoft_feed=("9.0",)),
        "24.04": FeedPolicy(distro_feed=("8.0", "9.0")),
    },
    RED_HAT_DISTRO: {
        "7.9": FeedPolicy(microsoft_feed=("6.0", "7.0")),
        "8.9": FeedPolicy(distro_feed=("6.0", "7.0", "8.0")),
        "9.0": FeedPolicy(distro_feed=("6.0", "7.0", "8.0", "9.0")),
    },
}

PACKAGING: Dict[str, DistroPackaging] = {
    UBUNTU_DISTRO: DistroPackaging(
        install_command=("apt-get", "install", "-y"),
        package_prefix="dotnet-sdk-",
        install_root=Path("/usr/lib/dotnet"),
    ),
    RED_HAT_DISTRO: DistroPackaging(
        install_command=("dnf", "install", "-y"),
        package_prefix="dotnet-sdk-",
        install_root=Path("/usr/lib64/dotnet"),
    ),
}


def major_minor(version: str) -> str:
    """Return the 'major.minor' prefix of a .NET version string."""
    parts = version.split(".")
    if len(parts) < 2 or not parts[0].isdigit():
        raise ValueError(f"Not a .NET version: {version!r}")
    return f"{parts[0]}.{parts[1]}"


class DistroVersionResolver:
    """
    Maps the running Linux distribution to .NET versions and support levels.

    The distribution is detected through the `distro` library on every call
    that is not handed an explicit DistroVersionPair.
    """

    def get_running_distro(self) -> DistroVersionPair:
        """
        Read the os-release NAME and VERSION_ID of the running system.

        Returns:
            DistroVersionPair for this host
        """
        pair = DistroVersionPair(distro=distro.name(), version=distro.version())
        logger.debug(f"Detected distro: {pair}")
        return pair

    def get_supported_sdk_version(self, pair: Optional[DistroVersionPair] = None) -> str:
        """
        Get the SDK version the distro is known to provide.

        Versions are compared as plain strings.

        Args:
            pair: Distro to map; detects the running system when None

        Returns:
            A feature band version such as '8.0.100'
        """
        pair = pair or self.get_running_distro()

        if pair.distro == UBUNTU_DISTRO:
            if pair.version < "22.04":
                return "6.0.100"
            if pair.version < "24.04":
                return "9.0.100"
            return "8.0.100"
        elif pair.distro == RED_HAT_DISTRO:
            if pair.version < "8.0":
                return "7.0.100"
            return "9.0.100"

        logger.debug(f"Unrecognized distro {pair.distro}, using latest known SDK version")
        return LATEST_LINUX_SDK_VERSION

    def get_support_status(
        self, version: str, pair: Optional[DistroVersionPair] = None
    ) -> DistroSupportStatus:
        """
        Classify how the distro supports a requested .NET version.

        Args:
            version: Requested version ('8.0', '8.0.100', ...)
            pair: Distro to classify; detects the running system when None

        Returns:
            DISTRO, MICROSOFT, PARTIAL or UNSUPPORTED
        """
        pair = pair or self.get_running_distro()

        releases = SUPPORT_POLICY.get(pair.distro)
        if releases is None:
            return DistroSupportStatus.UNSUPPORTED

        policy = releases.get(pair.version)
        if policy is None:
            return DistroSupportStatus.PARTIAL

        requested = major_minor(version)
        if requested in policy.distro_feed:
            return DistroSupportStatus.DISTRO
        if requested in policy.microsoft_feed:
            return DistroSupportStatus.MICROSOFT
        return DistroSupportStatus.UNSUPPORTED

    def _packaging(self, pair: DistroVersionPair) -> DistroPackaging:
        packaging = PACKAGING.get(pair.distro)
        if packaging is None:
            raise DistroNotSupportedError(
                pair.distro, pair.version, DistroSupportStatus.UNSUPPORTED.value
            )
        return packaging

    def get_install_command(
        self, version: str, pair: Optional[DistroVersionPair] = None
    ) -> List[str]:
        """
        Get the package manager command that installs an SDK version.

        Raises:
            DistroNotSupportedError: If the distro has no known package manager
        """
        pair = pair or self.get_running_distro()
        packaging = self._packaging(pair)
        package = f"{packaging.package_prefix}{major_minor(version)}"
        return list(packaging.install_command) + [package]

    def get_install_root(self, pair: Optional[DistroVersionPair] = None) -> Path:
        """
        Get the directory the distro's dotnet packages install into.

        Raises:
            DistroNotSupportedError: If the distro has no known package layout
        """
        pair = pair or self.get_running_distro()
        return self._packaging(pair).install_root


__all__ = [
    "UBUNTU_DISTRO",
    "RED_HAT_DISTRO",
    "LATEST_LINUX_SDK_VERSION",
    "DistroSupportStatus",
    "DistroVersionPair",
    "DistroVersionResolver",
    "major_minor",
]
