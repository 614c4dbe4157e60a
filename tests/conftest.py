"""
Pytest configuration and shared fixtures for dotnetkit tests.
"""

import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pytest

from dotnetkit.acquisition.context import AcquisitionWorkerContext
from dotnetkit.acquisition.distro import DistroVersionPair, DistroVersionResolver
from dotnetkit.core.directory import (
    RuntimeInstallationDirectoryProvider,
    SdkInstallationDirectoryProvider,
)
from dotnetkit.core.events import EventStream
from dotnetkit.core.exceptions import InstallationValidationError
from dotnetkit.core.interfaces import (
    AcquisitionInvoker,
    CommandExecutor,
    CommandResult,
    InstallationContext,
    InstallationValidator,
    StateStore,
)
from dotnetkit.core.platform import PlatformInfo


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# ============================================================================
# Test doubles
# ============================================================================


class MemoryStateStore(StateStore):
    """StateStore kept in a dict."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = dict(data or {})

    def get(self, key: str, default: Any = None) -> Any:
        value = self.data.get(key, default)
        return list(value) if isinstance(value, list) else value

    def update(self, key: str, value: Any) -> None:
        self.data[key] = list(value) if isinstance(value, list) else value


class FakeInvoker(AcquisitionInvoker):
    """
    Lays down a fake dotnet executable instead of running dotnet-install.

    Attributes:
        calls: Versions install() was called with
        release: When set, install() blocks until the event is set
        error: When set, install() raises it
    """

    def __init__(self, executable_name: str = "dotnet"):
        self.executable_name = executable_name
        self.calls: List[str] = []
        self.started = threading.Event()
        self.release: Optional[threading.Event] = None
        self.error: Optional[BaseException] = None
        self._lock = threading.Lock()

    def install(self, context: InstallationContext) -> None:
        with self._lock:
            self.calls.append(context.version)
        self.started.set()
        if self.release is not None:
            self.release.wait(timeout=10)
        if self.error is not None:
            raise self.error
        context.install_dir.mkdir(parents=True, exist_ok=True)
        context.executable_path.write_text("#!/bin/sh\n")
        if not context.is_runtime:
            (context.install_dir / "sdk" / context.version).mkdir(parents=True, exist_ok=True)


class FakeValidator(InstallationValidator):
    """Accepts any install whose executable exists unless told to reject it."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.reject = False

    def validate(self, version: str, executable_path: Path, is_runtime: bool = False) -> None:
        self.calls.append((version, Path(executable_path), is_runtime))
        if self.reject or not Path(executable_path).exists():
            raise InstallationValidationError(version, str(executable_path), "rejected")


class FakeExecutor(CommandExecutor):
    """
    Returns canned results keyed by the command's first element.

    Attributes:
        commands: Every (command, elevated) pair executed
        results: Program name -> CommandResult
    """

    def __init__(self, results: Optional[Dict[str, CommandResult]] = None):
        self.results: Dict[str, CommandResult] = dict(results or {})
        self.commands: List[tuple] = []

    def execute(
        self,
        command: Sequence[str],
        *,
        shell: Optional[str] = None,
        elevated: bool = False,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        command = [str(part) for part in command]
        self.commands.append((command, elevated))
        return self.results.get(command[0], CommandResult(stdout="", exit_code=0))


class FakeDistroResolver(DistroVersionResolver):
    """DistroVersionResolver pinned to one distribution."""

    def __init__(self, distro: str = "Ubuntu", version: str = "22.04"):
        self.pair = DistroVersionPair(distro, version)

    def get_running_distro(self):
        return self.pair


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def linux_x64() -> PlatformInfo:
    return PlatformInfo(os="linux", arch="x64")


@pytest.fixture
def events():
    """EventStream that records every posted event."""
    stream = EventStream()
    stream.seen = []
    stream.subscribe(stream.seen.append)
    return stream


@pytest.fixture
def make_context(tmp_path, events, linux_x64):
    """Build an AcquisitionWorkerContext wired with test doubles."""

    def _make(is_runtime: bool = False, platform_info: PlatformInfo = linux_x64, **overrides):
        storage = tmp_path / "dotnet"
        if is_runtime:
            provider = RuntimeInstallationDirectoryProvider(storage)
        else:
            provider = SdkInstallationDirectoryProvider(storage)

        values = dict(
            state_store=MemoryStateStore(),
            global_state_store=MemoryStateStore(),
            install_directory_provider=provider,
            acquisition_invoker=FakeInvoker(
                "dotnet.exe" if platform_info.is_windows else "dotnet"
            ),
            installation_validator=FakeValidator(),
            command_executor=FakeExecutor(),
            installer_download_dir=tmp_path / "installers",
            event_stream=events,
            platform_info=platform_info,
            distro_resolver=FakeDistroResolver(),
        )
        values.update(overrides)
        return AcquisitionWorkerContext(**values)

    return _make


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Point DOTNETKIT_HOME at a temporary directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("DOTNETKIT_HOME", str(home))
    monkeypatch.delenv("DOTNETKIT_STORAGE_PATH", raising=False)
    monkeypatch.delenv("DOTNETKIT_TIMEOUT", raising=False)
    return home


@pytest.fixture(autouse=True)
def reset_caches():
    """Reset any module-level caches between tests."""
    from dotnetkit.core.platform import clear_platform_cache

    clear_platform_cache()
    yield
    clear_platform_cache()
