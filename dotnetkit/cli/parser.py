"""
dotnetkit CLI argument parser.

This module implements the command-line interface for dotnetkit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Get version from package
try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("dotnetkit")
except PackageNotFoundError:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)


class CLI:
    """dotnetkit command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="dotnetkit",
            description="dotnetkit - acquire and manage .NET SDKs and runtimes",
            epilog='Use "dotnetkit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"dotnetkit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./dotnetkit.yaml)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_acquire_command(subparsers)
        self._add_status_command(subparsers)
        self._add_uninstall_all_command(subparsers)
        self._add_distro_command(subparsers)
        self._add_find_path_command(subparsers)

        return parser

    def _add_acquire_command(self, subparsers):
        """Add 'acquire' subcommand."""
        parser = subparsers.add_parser(
            "acquire",
            help="Install a .NET SDK or runtime",
            description="Install a .NET SDK or runtime and print the dotnet executable path",
        )
        parser.add_argument(
            "version",
            metavar="VERSION",
            help="Version to install (e.g., 8.0, 8.0.404, 8.0.1xx, latest)",
        )
        kind = parser.add_mutually_exclusive_group()
        kind.add_argument(
            "--runtime",
            action="store_true",
            help="Install the .NET runtime instead of the SDK",
        )
        kind.add_argument(
            "--global",
            dest="global_install",
            action="store_true",
            help="Install the SDK machine-wide with the platform installer",
        )

    def _add_status_command(self, subparsers):
        """Add 'status' subcommand."""
        parser = subparsers.add_parser(
            "status",
            help="Show whether a version is installed",
            description="Print the dotnet executable path of an installed version",
        )
        parser.add_argument("version", metavar="VERSION", help="Version to look up")
        parser.add_argument(
            "--runtime", action="store_true", help="Look up a runtime instead of an SDK"
        )

    def _add_uninstall_all_command(self, subparsers):
        """Add 'uninstall-all' subcommand."""
        parser = subparsers.add_parser(
            "uninstall-all",
            help="Remove every managed install",
            description="Delete all managed .NET installs and reset install state",
        )
        parser.add_argument(
            "--yes", "-y", action="store_true", help="Do not ask for confirmation"
        )

    def _add_distro_command(self, subparsers):
        """Add 'distro' subcommand."""
        parser = subparsers.add_parser(
            "distro",
            help="Show Linux distribution support",
            description="Show the detected Linux distribution and its .NET support",
        )
        parser.add_argument(
            "--sdk-version",
            metavar="VERSION",
            help="Version to classify (default: the distro's supported SDK version)",
        )

    def _add_find_path_command(self, subparsers):
        """Add 'find-path' subcommand."""
        parser = subparsers.add_parser(
            "find-path",
            help="Find the dotnet executable on this machine",
            description="Resolve the dotnet executable from DOTNET_ROOT and PATH",
        )
        parser.add_argument(
            "--arch",
            metavar="ARCH",
            help="Requested architecture (x64, arm64, x86, arm) [default: current]",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        command_map = {
            "acquire": "dotnetkit.cli.commands.acquire",
            "status": "dotnetkit.cli.commands.status",
            "uninstall-all": "dotnetkit.cli.commands.uninstall",
            "distro": "dotnetkit.cli.commands.distro",
            "find-path": "dotnetkit.cli.commands.path",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
