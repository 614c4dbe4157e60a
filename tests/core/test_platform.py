"""
Unit tests for platform detection.
"""

from unittest.mock import patch

import pytest

from dotnetkit.core.platform import (
    PlatformInfo,
    clear_platform_cache,
    detect_platform,
    get_dotnet_executable,
    normalize_arch,
    rid_os,
)


class TestNormalizeArch:
    """Tests for architecture normalization."""

    @pytest.mark.parametrize(
        "machine,expected",
        [
            ("x86_64", "x64"),
            ("AMD64", "x64"),
            ("aarch64", "arm64"),
            ("arm64", "arm64"),
            ("i686", "x86"),
            ("armv7l", "arm"),
            ("riscv64", "riscv64"),
            ("x86_64\n", "x64"),
        ],
    )
    def test_normalize(self, machine, expected):
        assert normalize_arch(machine) == expected


class TestPlatformInfo:
    """Tests for PlatformInfo."""

    def test_runtime_identifier(self):
        """RIDs use .NET's OS prefixes."""
        assert PlatformInfo("windows", "x64").runtime_identifier() == "win-x64"
        assert PlatformInfo("macos", "arm64").runtime_identifier() == "osx-arm64"
        assert PlatformInfo("linux", "x64").runtime_identifier() == "linux-x64"

    def test_platform_string(self):
        assert PlatformInfo("macos", "arm64").platform_string() == "macos-arm64"

    def test_os_flags(self):
        info = PlatformInfo("windows", "x64")
        assert info.is_windows
        assert not info.is_macos
        assert not info.is_linux

    def test_rid_os_unknown_passthrough(self):
        assert rid_os("freebsd") == "freebsd"


class TestDetectPlatform:
    """Tests for detect_platform."""

    def test_detects_macos(self):
        with patch("platform.system", return_value="Darwin"), patch(
            "platform.machine", return_value="arm64"
        ):
            clear_platform_cache()
            assert detect_platform() == PlatformInfo("macos", "arm64")

    def test_unsupported_os(self):
        with patch("platform.system", return_value="Plan9"):
            clear_platform_cache()
            with pytest.raises(RuntimeError, match="Unsupported operating system"):
                detect_platform()

    def test_cached(self):
        with patch("platform.system", return_value="Linux"), patch(
            "platform.machine", return_value="x86_64"
        ) as machine:
            clear_platform_cache()
            detect_platform()
            detect_platform()

        assert machine.call_count == 1


class TestDotnetExecutable:
    """Tests for get_dotnet_executable."""

    def test_windows(self):
        assert get_dotnet_executable(PlatformInfo("windows", "x64")) == "dotnet.exe"

    def test_unix(self):
        assert get_dotnet_executable(PlatformInfo("linux", "arm64")) == "dotnet"
        assert get_dotnet_executable(PlatformInfo("macos", "x64")) == "dotnet"
