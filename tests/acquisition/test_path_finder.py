"""
Unit tests for dotnet executable discovery.
"""

import os

from conftest import FakeExecutor

from dotnetkit.acquisition.path_finder import DotnetPathFinder, get_os_arch
from dotnetkit.core.interfaces import CommandResult
from dotnetkit.core.platform import PlatformInfo

RUNTIMES = "Microsoft.NETCore.App 8.0.11 [/opt/dotnet/shared/Microsoft.NETCore.App]\n"


class TestGetOsArch:
    """Tests for get_os_arch."""

    def test_unix_uname(self, linux_x64):
        executor = FakeExecutor({"uname": CommandResult("aarch64\n", 0)})
        assert get_os_arch(executor, linux_x64) == "arm64"

    def test_unix_failure(self, linux_x64):
        executor = FakeExecutor({"uname": CommandResult("", 1)})
        assert get_os_arch(executor, linux_x64) == ""

    def test_windows_wow64(self):
        environ = {"PROCESSOR_ARCHITECTURE": "x86", "PROCESSOR_ARCHITEW6432": "ARM64"}
        assert get_os_arch(FakeExecutor(), PlatformInfo("windows", "x86"), environ) == "arm64"


class TestDotnetPathFinder:
    """Tests for DotnetPathFinder."""

    def test_dotnet_root(self, linux_x64):
        finder = DotnetPathFinder(FakeExecutor(), linux_x64, {"DOTNET_ROOT": "/opt/dotnet"})

        assert finder.find_dotnet_path() == os.path.join("/opt/dotnet", "dotnet")

    def test_dotnet_root_x64_on_arm(self):
        executor = FakeExecutor({"uname": CommandResult("arm64\n", 0)})
        environ = {"DOTNET_ROOT": "/usr/local/share/dotnet", "DOTNET_ROOT_X64": "/x64"}
        finder = DotnetPathFinder(executor, PlatformInfo("macos", "x64"), environ)

        assert finder.find_dotnet_root_path("x64") == "/x64"

    def test_dotnet_root_x64_ignored_on_x64_os(self):
        executor = FakeExecutor({"uname": CommandResult("x86_64\n", 0)})
        environ = {"DOTNET_ROOT": "/usr/share/dotnet", "DOTNET_ROOT_X64": "/x64"}
        finder = DotnetPathFinder(executor, PlatformInfo("linux", "x64"), environ)

        assert finder.find_dotnet_root_path("x64") == "/usr/share/dotnet"

    def test_path_lookup_derives_from_runtimes(self, linux_x64):
        """A PATH hit that can list runtimes resolves to its install root."""
        executor = FakeExecutor(
            {
                "which": CommandResult("/snap/bin/dotnet\n", 0),
                "/snap/bin/dotnet": CommandResult(RUNTIMES, 0),
            }
        )
        finder = DotnetPathFinder(executor, linux_x64, {"SHELL": "/bin/bash"})

        assert finder.find_dotnet_path() == os.path.join("/opt/dotnet", "dotnet")

    def test_non_bash_shell_falls_back_to_sh(self, linux_x64):
        class RecordingExecutor(FakeExecutor):
            def execute(self, command, *, shell=None, elevated=False, timeout=None):
                self.shells = getattr(self, "shells", []) + [shell]
                return CommandResult("", 1)

        executor = RecordingExecutor()
        finder = DotnetPathFinder(executor, linux_x64, {"SHELL": "/usr/bin/zsh"})

        assert finder.find_raw_path_environment_setting() is None
        assert executor.shells == ["/bin/sh"]

    def test_real_path_falls_back_to_realpath(self, tmp_path, linux_x64):
        target = tmp_path / "real-dotnet"
        target.write_text("")
        link = tmp_path / "dotnet"
        link.symlink_to(target)

        class WhichExecutor(FakeExecutor):
            def execute(self, command, *, shell=None, elevated=False, timeout=None):
                if command[0] == "which":
                    return CommandResult(f"{link}\n", 0)
                return CommandResult("", 1)

        finder = DotnetPathFinder(WhichExecutor(), linux_x64, {})

        assert finder.find_real_path_environment_setting() == os.path.realpath(link)

    def test_windows_where_first_hit(self):
        class WhereExecutor(FakeExecutor):
            def execute(self, command, *, shell=None, elevated=False, timeout=None):
                self.commands.append((list(command), shell))
                if command[0] == "where":
                    return CommandResult("C:\\dotnet\\dotnet.exe\r\nC:\\other\\dotnet.exe\r\n", 0)
                return CommandResult("", 1)

        executor = WhereExecutor()
        finder = DotnetPathFinder(executor, PlatformInfo("windows", "x64"), {})

        assert finder.find_raw_path_environment_setting() == "C:\\dotnet\\dotnet.exe"
        assert executor.commands[0] == (["where", "dotnet"], None)

    def test_nothing_found(self, linux_x64):
        finder = DotnetPathFinder(FakeExecutor({"which": CommandResult("", 1)}), linux_x64, {})
        assert finder.find_dotnet_path() is None
