"""
Shared utilities for CLI commands.
"""

import logging
import sys
from typing import Optional

from dotnetkit.acquisition.context import create_worker_context
from dotnetkit.acquisition.worker import AcquisitionWorker
from dotnetkit.config.parser import DotnetKitConfig, load_config

logger = logging.getLogger(__name__)


def load_cli_config(args) -> DotnetKitConfig:
    """
    Load configuration for a command from --config or the default lookup.

    Raises:
        ConfigError: If the configuration is invalid
    """
    return load_config(getattr(args, "config", None))


def create_worker(args, is_runtime: bool = False) -> AcquisitionWorker:
    """Create an AcquisitionWorker wired from the command's configuration."""
    config = load_cli_config(args)
    return AcquisitionWorker(create_worker_context(config, is_runtime=is_runtime))


def print_error(message: str, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"ERROR: {message}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)


def confirm(prompt: str) -> bool:
    """Ask a yes/no question on the terminal; anything but y/yes is no."""
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")
