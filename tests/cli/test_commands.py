"""
Tests for CLI command implementations.
"""

import argparse
from unittest.mock import MagicMock, patch

from dotnetkit.acquisition.distro import DistroSupportStatus, DistroVersionPair
from dotnetkit.cli.commands import acquire, distro, path, status, uninstall
from dotnetkit.core.exceptions import AcquisitionFailedError
from dotnetkit.core.platform import PlatformInfo


def _args(**kwargs):
    defaults = dict(config=None, runtime=False, global_install=False, yes=False)
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


class TestAcquireCommand:
    """Tests for the acquire command."""

    def test_acquire_sdk_prints_path(self, capsys):
        worker = MagicMock()
        worker.acquire_sdk.return_value = "/home/me/.dotnetkit/dotnet/.dotnet/dotnet"

        with patch("dotnetkit.cli.commands.acquire.create_worker", return_value=worker):
            exit_code = acquire.run(_args(version="8.0"))

        assert exit_code == 0
        worker.acquire_sdk.assert_called_once_with("8.0")
        assert capsys.readouterr().out.strip() == "/home/me/.dotnetkit/dotnet/.dotnet/dotnet"

    def test_acquire_runtime_uses_runtime_layout(self):
        worker = MagicMock()
        worker.acquire_runtime.return_value = "/x/8.0/dotnet"

        with patch(
            "dotnetkit.cli.commands.acquire.create_worker", return_value=worker
        ) as create:
            acquire.run(_args(version="8.0", runtime=True))

        assert create.call_args.kwargs["is_runtime"] is True
        worker.acquire_runtime.assert_called_once_with("8.0")

    def test_acquire_global(self):
        worker = MagicMock()
        worker.acquire_global_sdk.return_value = "/usr/local/share/dotnet/dotnet"

        with patch("dotnetkit.cli.commands.acquire.create_worker", return_value=worker):
            assert acquire.run(_args(version="8.0.1xx", global_install=True)) == 0

        worker.context.create_global_installer_resolver.assert_called_once_with("8.0.1xx")

    def test_acquire_failure(self, capsys):
        worker = MagicMock()
        worker.acquire_sdk.side_effect = AcquisitionFailedError("8.0", RuntimeError("offline"))

        with patch("dotnetkit.cli.commands.acquire.create_worker", return_value=worker):
            assert acquire.run(_args(version="8.0")) == 1

        assert "ERROR: .NET Acquisition Failed: offline" in capsys.readouterr().err


class TestStatusCommand:
    """Tests for the status command."""

    def test_installed(self, capsys):
        worker = MagicMock()
        worker.acquire_status.return_value = "/x/dotnet"

        with patch("dotnetkit.cli.commands.status.create_worker", return_value=worker):
            assert status.run(_args(version="8.0")) == 0

        assert capsys.readouterr().out.strip() == "/x/dotnet"

    def test_not_installed(self, capsys):
        worker = MagicMock()
        worker.acquire_status.return_value = None

        with patch("dotnetkit.cli.commands.status.create_worker", return_value=worker):
            assert status.run(_args(version="8.0", runtime=True)) == 1

        assert ".NET runtime 8.0 is not installed" in capsys.readouterr().err


class TestUninstallCommand:
    """Tests for the uninstall-all command."""

    def test_yes_removes_sdks_and_runtimes(self, tmp_path, capsys):
        worker = MagicMock()
        worker.context.install_directory_provider.get_storage_path.return_value = tmp_path

        with patch(
            "dotnetkit.cli.commands.uninstall.create_worker", return_value=worker
        ) as create:
            assert uninstall.run(_args(yes=True)) == 0

        assert [c.kwargs.get("is_runtime", False) for c in create.call_args_list] == [
            False,
            True,
        ]
        assert worker.uninstall_all.call_count == 2
        assert capsys.readouterr().out.count("Removed all managed .NET installs") == 2

    def test_declined(self, tmp_path):
        worker = MagicMock()
        worker.context.install_directory_provider.get_storage_path.return_value = tmp_path

        with patch(
            "dotnetkit.cli.commands.uninstall.create_worker", return_value=worker
        ), patch("builtins.input", return_value="n"):
            assert uninstall.run(_args()) == 1

        worker.uninstall_all.assert_not_called()

    def test_no_terminal_declines(self, tmp_path):
        worker = MagicMock()
        worker.context.install_directory_provider.get_storage_path.return_value = tmp_path

        with patch(
            "dotnetkit.cli.commands.uninstall.create_worker", return_value=worker
        ), patch("builtins.input", side_effect=EOFError):
            assert uninstall.run(_args()) == 1


class TestDistroCommand:
    """Tests for the distro command."""

    def test_not_linux(self, capsys):
        with patch(
            "dotnetkit.cli.commands.distro.detect_platform",
            return_value=PlatformInfo("macos", "arm64"),
        ):
            assert distro.run(_args(sdk_version=None)) == 1

    def test_reports_support(self, capsys):
        resolver = MagicMock()
        resolver.get_running_distro.return_value = DistroVersionPair("Ubuntu", "22.04")
        resolver.get_supported_sdk_version.return_value = "9.0.100"
        resolver.get_support_status.return_value = DistroSupportStatus.MICROSOFT

        with patch(
            "dotnetkit.cli.commands.distro.detect_platform",
            return_value=PlatformInfo("linux", "x64"),
        ), patch("dotnetkit.cli.commands.distro.DistroVersionResolver", return_value=resolver):
            assert distro.run(_args(sdk_version=None)) == 0

        out = capsys.readouterr().out
        assert "Ubuntu" in out
        assert "Support for 9.0.100: MICROSOFT" in out


class TestFindPathCommand:
    """Tests for the find-path command."""

    def test_found(self, capsys):
        with patch("dotnetkit.cli.commands.path.DotnetPathFinder") as finder:
            finder.return_value.find_dotnet_path.return_value = "/usr/bin/dotnet"
            assert path.run(_args(arch=None)) == 0

        assert capsys.readouterr().out.strip() == "/usr/bin/dotnet"

    def test_not_found(self):
        with patch("dotnetkit.cli.commands.path.DotnetPathFinder") as finder:
            finder.return_value.find_dotnet_path.return_value = None
            assert path.run(_args(arch="arm64")) == 1

        finder.return_value.find_dotnet_path.assert_called_once_with("arm64")
