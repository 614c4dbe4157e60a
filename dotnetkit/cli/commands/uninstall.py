"""
Uninstall-all command implementation.

Deletes every managed SDK and runtime install and resets their install
state. Machine-wide installs are left alone.
"""

import logging

from dotnetkit.cli.utils import confirm, create_worker

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the uninstall-all command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 when cancelled)
    """
    workers = [create_worker(args), create_worker(args, is_runtime=True)]
    storage_paths = [
        str(worker.context.install_directory_provider.get_storage_path()) for worker in workers
    ]

    if not args.yes and not confirm(
        f"Remove every .NET install under {' and '.join(storage_paths)}?"
    ):
        logger.info("Uninstall cancelled")
        return 1

    for worker, storage_path in zip(workers, storage_paths):
        worker.uninstall_all()
        print(f"Removed all managed .NET installs from {storage_path}")
    return 0
