"""
Acquire command implementation.

Installs a .NET SDK or runtime and prints the path of its dotnet executable.
"""

import logging

from dotnetkit.cli.utils import create_worker, print_error
from dotnetkit.core.exceptions import DotnetKitError

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the acquire command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    worker = create_worker(args, is_runtime=args.runtime)

    try:
        if args.global_install:
            resolver = worker.context.create_global_installer_resolver(args.version)
            dotnet_path = worker.acquire_global_sdk(resolver)
        elif args.runtime:
            dotnet_path = worker.acquire_runtime(args.version)
        else:
            dotnet_path = worker.acquire_sdk(args.version)
    except DotnetKitError as e:
        print_error(str(e))
        return 1

    print(dotnet_path)
    return 0
