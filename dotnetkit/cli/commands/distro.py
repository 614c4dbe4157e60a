"""
Distro command implementation.

Shows the detected Linux distribution and how it supports .NET.
"""

import logging

from dotnetkit.acquisition.distro import DistroVersionResolver
from dotnetkit.cli.utils import print_error
from dotnetkit.core.platform import detect_platform

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the distro command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 when not running on Linux)
    """
    if not detect_platform().is_linux:
        print_error("Distribution support only applies to Linux")
        return 1

    resolver = DistroVersionResolver()
    pair = resolver.get_running_distro()
    supported_version = resolver.get_supported_sdk_version(pair)
    requested_version = args.sdk_version or supported_version
    status = resolver.get_support_status(requested_version, pair)

    print(f"Distribution:          {pair.distro}")
    print(f"Version:               {pair.version}")
    print(f"Supported SDK version: {supported_version}")
    print(f"Support for {requested_version}: {status.value}")
    return 0
