"""
Find-path command implementation.

Resolves the dotnet executable the current environment would run.
"""

import logging

from dotnetkit.acquisition.path_finder import DotnetPathFinder
from dotnetkit.cli.utils import print_error
from dotnetkit.core.command import SubprocessCommandExecutor

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the find-path command.

    Returns:
        0 and the executable path when found, 1 otherwise
    """
    finder = DotnetPathFinder(SubprocessCommandExecutor())
    dotnet_path = finder.find_dotnet_path(args.arch)

    if dotnet_path is None:
        print_error("No dotnet executable was found on DOTNET_ROOT or PATH")
        return 1

    print(dotnet_path)
    return 0
