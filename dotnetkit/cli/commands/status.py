"""
Status command implementation.

Reports where a version is installed without installing anything.
"""

import logging

from dotnetkit.cli.utils import create_worker, print_error

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the status command.

    Returns:
        0 and the dotnet path when installed, 1 otherwise
    """
    worker = create_worker(args, is_runtime=args.runtime)
    dotnet_path = worker.acquire_status(args.version, is_runtime=args.runtime)

    if dotnet_path is None:
        kind = "runtime" if args.runtime else "SDK"
        print_error(f".NET {kind} {args.version} is not installed")
        return 1

    print(dotnet_path)
    return 0
