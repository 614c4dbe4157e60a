"""
Unit tests for directory layout.
"""

from pathlib import Path

from dotnetkit.core.directory import (
    RuntimeInstallationDirectoryProvider,
    SdkInstallationDirectoryProvider,
    get_default_storage_path,
    get_dotnetkit_home,
)


class TestHome:
    """Tests for home directory resolution."""

    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DOTNETKIT_HOME", str(tmp_path))
        assert get_dotnetkit_home() == tmp_path

    def test_default_under_user_home(self, monkeypatch):
        monkeypatch.delenv("DOTNETKIT_HOME", raising=False)
        assert get_dotnetkit_home().name == ".dotnetkit"

    def test_storage_path_under_home(self, tmp_path):
        assert get_default_storage_path(tmp_path) == tmp_path / "dotnet"


class TestInstallDirectoryProviders:
    """Tests for the runtime and SDK directory providers."""

    def test_runtime_dir_per_version(self, tmp_path):
        """Each runtime version gets its own directory."""
        provider = RuntimeInstallationDirectoryProvider(tmp_path)

        assert provider.get_install_dir("8.0") == tmp_path / "8.0"
        assert provider.get_install_dir("6.0") == tmp_path / "6.0"
        assert provider.get_storage_path() == tmp_path

    def test_sdk_dir_shared(self, tmp_path):
        """All SDK versions share one root."""
        provider = SdkInstallationDirectoryProvider(tmp_path)

        assert provider.get_install_dir("8.0") == tmp_path / ".dotnet"
        assert provider.get_install_dir("9.0.100") == tmp_path / ".dotnet"
        assert provider.get_storage_path() == tmp_path

    def test_default_storage(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DOTNETKIT_HOME", str(tmp_path))
        provider = SdkInstallationDirectoryProvider()

        assert provider.get_storage_path() == Path(tmp_path) / "dotnet"
