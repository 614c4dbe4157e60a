"""Configuration module for dotnetkit.

This module provides YAML configuration parsing for dotnetkit.yaml.
"""

from dotnetkit.config.parser import (
    DotnetKitConfig,
    parse_config,
    find_config_file,
    load_config,
)
from dotnetkit.core.exceptions import ConfigError

__all__ = [
    "DotnetKitConfig",
    "ConfigError",
    "parse_config",
    "find_config_file",
    "load_config",
]
