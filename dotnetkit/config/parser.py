"""YAML configuration parser for dotnetkit.

This module loads dotnetkit.yaml into a DotnetKitConfig. Every key is
optional; missing keys take their defaults and environment variables
override the file.

Example dotnetkit.yaml:

    storage_path: ~/tools/dotnet
    timeout_seconds: 900
    script_cache_ttl_hours: 12
    fallback_script_dir: ./vendor/install-scripts
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from dotnetkit.core.directory import get_default_storage_path, get_dotnetkit_home
from dotnetkit.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "dotnetkit.yaml"
HOME_CONFIG_FILE_NAME = "config.yaml"

STORAGE_PATH_ENV_VAR = "DOTNETKIT_STORAGE_PATH"
TIMEOUT_ENV_VAR = "DOTNETKIT_TIMEOUT"

RUNTIME_STATE = "runtime"
SDK_STATE = "sdk"
GLOBAL_STATE = "global"
STATE_OWNERS = (RUNTIME_STATE, SDK_STATE, GLOBAL_STATE)

DEFAULT_INSTALL_SCRIPT_URL = "https://dot.net/v1/dotnet-install"
DEFAULT_RELEASES_INDEX_URL = (
    "https://builds.dotnet.microsoft.com/dotnet/release-metadata/releases-index.json"
)


@dataclass
class DotnetKitConfig:
    """Complete dotnetkit configuration."""

    home: Optional[Path] = None
    storage_path: Optional[Path] = None
    timeout_seconds: float = 600
    web_timeout_seconds: float = 30
    script_cache_ttl_hours: float = 24
    install_script_url: str = DEFAULT_INSTALL_SCRIPT_URL
    releases_index_url: str = DEFAULT_RELEASES_INDEX_URL
    fallback_script_dir: Optional[Path] = None
    installer_download_dir: Optional[Path] = None

    def __post_init__(self):
        if self.home is None:
            self.home = get_dotnetkit_home()
        if self.storage_path is None:
            self.storage_path = get_default_storage_path(self.home)
        if self.installer_download_dir is None:
            self.installer_download_dir = self.home / "installers"

    @property
    def runtime_storage_path(self) -> Path:
        return self.storage_path / "runtime"

    @property
    def sdk_storage_path(self) -> Path:
        return self.storage_path / "sdk"

    def state_file(self, owner: str) -> Path:
        """
        Get the state file of one install owner.

        Runtime, local SDK and global SDK installs each track their own
        installing/installed sets, since they share version strings.

        Args:
            owner: One of STATE_OWNERS

        Raises:
            ValueError: If owner is not a known install owner
        """
        if owner not in STATE_OWNERS:
            raise ValueError(f"Unknown install state owner: {owner}")
        return self.home / f"state-{owner}.json"

    @property
    def lock_dir(self) -> Path:
        return self.home / "lock"

    @property
    def cache_dir(self) -> Path:
        return self.home / "cache"

    @property
    def install_script_dir(self) -> Path:
        return self.home / "install scripts"


_PATH_FIELDS = ("home", "storage_path", "fallback_script_dir", "installer_download_dir")
_NUMBER_FIELDS = ("timeout_seconds", "web_timeout_seconds", "script_cache_ttl_hours")
_STRING_FIELDS = ("install_script_url", "releases_index_url")


def parse_config(config_path: Path) -> DotnetKitConfig:
    """
    Parse a dotnetkit.yaml configuration file.

    Args:
        config_path: Path to dotnetkit.yaml

    Returns:
        Parsed and validated configuration (environment overrides not applied)

    Raises:
        ConfigError: If configuration is invalid
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}") from e

    if data is None:
        data = {}

    return _parse_and_validate(data, base_dir=config_path.parent)


def _parse_and_validate(data: Any, base_dir: Optional[Path] = None) -> DotnetKitConfig:
    """Parse and validate configuration data."""
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    known = {f.name for f in fields(DotnetKitConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    values: Dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if key in _PATH_FIELDS:
            values[key] = _parse_path(key, value, base_dir)
        elif key in _NUMBER_FIELDS:
            values[key] = _parse_number(key, value)
        elif key in _STRING_FIELDS:
            if not isinstance(value, str) or not value:
                raise ConfigError(f"{key} must be a non-empty string")
            values[key] = value

    return DotnetKitConfig(**values)


def _parse_path(key: str, value: Any, base_dir: Optional[Path]) -> Path:
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{key} must be a non-empty path string")
    path = Path(value).expanduser()
    # Relative paths are relative to the config file
    if not path.is_absolute() and base_dir is not None:
        path = base_dir / path
    return path


def _parse_number(key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key} must be a number, got {value!r}")
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {value}")
    return float(value)


def _apply_env_overrides(config: DotnetKitConfig) -> DotnetKitConfig:
    storage_path = os.environ.get(STORAGE_PATH_ENV_VAR)
    if storage_path:
        config.storage_path = Path(storage_path).expanduser()
        logger.debug(f"Storage path overridden by {STORAGE_PATH_ENV_VAR}: {storage_path}")

    timeout = os.environ.get(TIMEOUT_ENV_VAR)
    if timeout:
        try:
            config.timeout_seconds = _parse_number(TIMEOUT_ENV_VAR, float(timeout))
        except ValueError as e:
            raise ConfigError(f"{TIMEOUT_ENV_VAR} must be a number, got {timeout!r}") from e

    return config


def find_config_file(explicit: Optional[Path] = None) -> Optional[Path]:
    """
    Locate the configuration file to load.

    Lookup order: explicit path, ./dotnetkit.yaml, <dotnetkit home>/config.yaml.

    Raises:
        ConfigError: If an explicit path was given but does not exist
    """
    if explicit is not None:
        explicit = Path(explicit)
        if not explicit.exists():
            raise ConfigError(f"Configuration file not found: {explicit}")
        return explicit

    candidates = [Path.cwd() / CONFIG_FILE_NAME, get_dotnetkit_home() / HOME_CONFIG_FILE_NAME]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Optional[Path] = None) -> DotnetKitConfig:
    """
    Load configuration with file lookup and environment overrides.

    Args:
        config_path: Explicit config file; searched for when None

    Returns:
        Effective configuration (defaults when no file is found)

    Raises:
        ConfigError: If the file or an environment override is invalid
    """
    config_file = find_config_file(config_path)
    if config_file is None:
        logger.debug("No configuration file found, using defaults")
        config = DotnetKitConfig()
    else:
        logger.debug(f"Loading configuration from {config_file}")
        config = parse_config(config_file)

    return _apply_env_overrides(config)


__all__ = [
    "DotnetKitConfig",
    "parse_config",
    "find_config_file",
    "load_config",
    "CONFIG_FILE_NAME",
    "STORAGE_PATH_ENV_VAR",
    "TIMEOUT_ENV_VAR",
    "RUNTIME_STATE",
    "SDK_STATE",
    "GLOBAL_STATE",
    "STATE_OWNERS",
    "DEFAULT_INSTALL_SCRIPT_URL",
    "DEFAULT_RELEASES_INDEX_URL",
]
