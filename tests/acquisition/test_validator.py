"""
Unit tests for installation validation and dotnet listing parsers.
"""

import pytest
from conftest import FakeExecutor

from dotnetkit.acquisition.validator import (
    DotnetInstallationValidator,
    parse_list_runtimes,
    parse_list_sdks,
    version_matches,
)
from dotnetkit.core.exceptions import CommandExecutionError, InstallationValidationError
from dotnetkit.core.interfaces import CommandResult

SDK_LISTING = """6.0.428 [/usr/share/dotnet/sdk]
8.0.404 [/usr/share/dotnet/sdk]
"""

RUNTIME_LISTING = """Microsoft.AspNetCore.App 8.0.11 [/usr/share/dotnet/shared/Microsoft.AspNetCore.App]
Microsoft.NETCore.App 8.0.11 [/usr/share/dotnet/shared/Microsoft.NETCore.App]
"""


class TestParsers:
    """Tests for listing parsers."""

    def test_parse_list_sdks(self):
        listings = parse_list_sdks(SDK_LISTING)

        assert [l.version for l in listings] == ["6.0.428", "8.0.404"]
        assert listings[0].directory == "/usr/share/dotnet/sdk"

    def test_parse_list_runtimes(self):
        listings = parse_list_runtimes(RUNTIME_LISTING)

        assert listings[1].name == "Microsoft.NETCore.App"
        assert listings[1].version == "8.0.11"
        assert listings[1].directory == "/usr/share/dotnet/shared/Microsoft.NETCore.App"

    def test_directories_with_spaces(self):
        listings = parse_list_sdks("8.0.404 [C:\\Program Files\\dotnet\\sdk]\r\n")
        assert listings[0].directory == "C:\\Program Files\\dotnet\\sdk"

    def test_noise_skipped(self):
        assert parse_list_sdks("Welcome to .NET!\n\n") == []


class TestVersionMatches:
    """Tests for version_matches."""

    @pytest.mark.parametrize(
        "reported,requested,expected",
        [
            ("8.0.11", "8.0", True),
            ("8.0.404", "8.0.404", True),
            ("8.0.404-rc.1", "8.0.404", True),
            ("8.0.4040", "8.0.404", False),
            ("8.01.1", "8.0", False),
            ("9.0.100", "8.0", False),
        ],
    )
    def test_matches(self, reported, requested, expected):
        assert version_matches(reported, requested) is expected


class TestDotnetInstallationValidator:
    """Tests for DotnetInstallationValidator."""

    @pytest.fixture
    def executable(self, tmp_path):
        path = tmp_path / "dotnet"
        path.write_text("")
        return path

    def test_valid_sdk(self, executable):
        executor = FakeExecutor({str(executable): CommandResult(SDK_LISTING, 0)})

        DotnetInstallationValidator(executor).validate("8.0", executable)

        assert executor.commands[0][0] == [str(executable), "--list-sdks"]

    def test_valid_runtime(self, executable):
        executor = FakeExecutor({str(executable): CommandResult(RUNTIME_LISTING, 0)})

        DotnetInstallationValidator(executor).validate("8.0", executable, is_runtime=True)

        assert executor.commands[0][0] == [str(executable), "--list-runtimes"]

    def test_missing_executable(self, tmp_path):
        with pytest.raises(InstallationValidationError, match="does not exist"):
            DotnetInstallationValidator(FakeExecutor()).validate("8.0", tmp_path / "dotnet")

    def test_directory_is_not_executable(self, tmp_path):
        with pytest.raises(InstallationValidationError, match="not a file"):
            DotnetInstallationValidator(FakeExecutor()).validate("8.0", tmp_path)

    def test_version_not_reported(self, executable):
        executor = FakeExecutor({str(executable): CommandResult(SDK_LISTING, 0)})

        with pytest.raises(InstallationValidationError, match="do not include 9.0"):
            DotnetInstallationValidator(executor).validate("9.0", executable)

    def test_listing_fails(self, executable):
        executor = FakeExecutor({str(executable): CommandResult("", 1)})

        with pytest.raises(InstallationValidationError, match="exited with code 1"):
            DotnetInstallationValidator(executor).validate("8.0", executable)

    def test_spawn_failure(self, executable):
        class BrokenExecutor(FakeExecutor):
            def execute(self, command, **kwargs):
                raise CommandExecutionError(list(command), "permission denied")

        with pytest.raises(InstallationValidationError, match="permission denied"):
            DotnetInstallationValidator(BrokenExecutor()).validate("8.0", executable)
