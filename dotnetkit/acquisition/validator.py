"""
Installation validation and dotnet listing parsers.

The dotnet host reports what it can run through `--list-sdks` and
`--list-runtimes`:

    8.0.404 [/usr/share/dotnet/sdk]
    Microsoft.NETCore.App 8.0.11 [/usr/share/dotnet/shared/Microsoft.NETCore.App]

DotnetInstallationValidator uses those listings to confirm an install
reports the version that was requested.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List

from dotnetkit.core.exceptions import CommandExecutionError, InstallationValidationError
from dotnetkit.core.interfaces import CommandExecutor, InstallationValidator

logger = logging.getLogger(__name__)

_SDK_LINE = re.compile(r"^(?P<version>\S+)\s+\[(?P<directory>.+)\]\s*$")
_RUNTIME_LINE = re.compile(r"^(?P<name>\S+)\s+(?P<version>\S+)\s+\[(?P<directory>.+)\]\s*$")


@dataclass(frozen=True)
class DotnetListing:
    """One line of `dotnet --list-sdks` or `dotnet --list-runtimes` output."""

    version: str
    directory: str
    name: str = ""


def parse_list_sdks(output: str) -> List[DotnetListing]:
    """Parse `dotnet --list-sdks` output, skipping lines that do not match."""
    listings = []
    for line in output.splitlines():
        match = _SDK_LINE.match(line.strip())
        if match:
            listings.append(DotnetListing(match["version"], match["directory"]))
    return listings


def parse_list_runtimes(output: str) -> List[DotnetListing]:
    """Parse `dotnet --list-runtimes` output, skipping lines that do not match."""
    listings = []
    for line in output.splitlines():
        match = _RUNTIME_LINE.match(line.strip())
        if match:
            listings.append(
                DotnetListing(match["version"], match["directory"], match["name"])
            )
    return listings


def version_matches(reported: str, requested: str) -> bool:
    """
    Check whether a reported version satisfies a requested one.

    '8.0' is satisfied by '8.0.11', and '8.0.404' only by itself or its
    prereleases ('8.0.404-rc.1').
    """
    return (
        reported == requested
        or reported.startswith(requested + ".")
        or reported.startswith(requested + "-")
    )


class DotnetInstallationValidator(InstallationValidator):
    """Validates an install by asking its dotnet host what it contains."""

    def __init__(self, executor: CommandExecutor, timeout: float = 60):
        self.executor = executor
        self.timeout = timeout

    def validate(
        self, version: str, executable_path: Path, is_runtime: bool = False
    ) -> None:
        executable_path = Path(executable_path)

        if not executable_path.exists():
            raise InstallationValidationError(
                version, str(executable_path), "the executable does not exist"
            )
        if not executable_path.is_file():
            raise InstallationValidationError(
                version, str(executable_path), "the executable path is not a file"
            )

        flag = "--list-runtimes" if is_runtime else "--list-sdks"
        try:
            result = self.executor.execute(
                [str(executable_path), flag], timeout=self.timeout
            )
        except CommandExecutionError as e:
            raise InstallationValidationError(version, str(executable_path), str(e)) from e

        if not result.succeeded:
            raise InstallationValidationError(
                version,
                str(executable_path),
                f"'{flag}' exited with code {result.exit_code}",
            )

        parse = parse_list_runtimes if is_runtime else parse_list_sdks
        reported = [listing.version for listing in parse(result.stdout)]
        if not any(version_matches(v, version) for v in reported):
            raise InstallationValidationError(
                version,
                str(executable_path),
                f"reported versions {reported or 'none'} do not include {version}",
            )

        logger.debug(f"Validated .NET {version} at {executable_path}")


__all__ = [
    "DotnetListing",
    "DotnetInstallationValidator",
    "parse_list_sdks",
    "parse_list_runtimes",
    "version_matches",
]
