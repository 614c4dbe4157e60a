"""
Acquisition worker context: collaborators, install records and wiring.

AcquisitionWorker depends only on the abstract collaborators bundled in
AcquisitionWorkerContext. create_worker_context() wires the default
implementations from a DotnetKitConfig.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from dotnetkit.acquisition.distro import DistroVersionResolver
from dotnetkit.acquisition.install_script import InstallScriptAcquisitionWorker
from dotnetkit.acquisition.installer_resolver import GlobalInstallerResolver
from dotnetkit.acquisition.invoker import ScriptAcquisitionInvoker
from dotnetkit.acquisition.validator import DotnetInstallationValidator
from dotnetkit.config.parser import (
    DEFAULT_RELEASES_INDEX_URL,
    GLOBAL_STATE,
    RUNTIME_STATE,
    SDK_STATE,
    DotnetKitConfig,
)
from dotnetkit.core.command import SubprocessCommandExecutor
from dotnetkit.core.directory import (
    RuntimeInstallationDirectoryProvider,
    SdkInstallationDirectoryProvider,
)
from dotnetkit.core.events import EventStream
from dotnetkit.core.interfaces import (
    AcquisitionInvoker,
    CommandExecutor,
    InstallationValidator,
    InstallDirectoryProvider,
    StateStore,
)
from dotnetkit.core.locking import LockManager
from dotnetkit.core.platform import PlatformInfo, detect_platform
from dotnetkit.core.state import JsonStateStore
from dotnetkit.core.web import WebRequestWorker

logger = logging.getLogger(__name__)


class InstallKind(Enum):
    SDK = "sdk"
    RUNTIME = "runtime"


class InstallScope(Enum):
    LOCAL = "local"
    GLOBAL = "global"


@dataclass(frozen=True)
class InstallRecord:
    """One install the worker manages."""

    version: str
    kind: InstallKind
    scope: InstallScope
    install_dir: Path
    executable_path: Path

    @property
    def is_runtime(self) -> bool:
        return self.kind is InstallKind.RUNTIME


@dataclass
class AcquisitionWorkerContext:
    """
    Collaborators of an AcquisitionWorker.

    Attributes:
        state_store: Durable installing/installed sets of local installs of this kind
        global_state_store: Durable installing/installed sets of global SDK installs
        event_stream: Sink for lifecycle events
        install_directory_provider: Maps versions to local install directories
        acquisition_invoker: Performs local installs
        installation_validator: Confirms installs report the expected version
        command_executor: Runs global installers and package managers
        installer_download_dir: Scratch directory for global installer packages
        timeout: Seconds a local install may take
        web_timeout: Seconds a network request may take
        web_worker: Cached fetcher for release metadata (global installs)
        releases_index_url: Address of the .NET releases index
    """

    state_store: StateStore
    global_state_store: StateStore
    install_directory_provider: InstallDirectoryProvider
    acquisition_invoker: AcquisitionInvoker
    installation_validator: InstallationValidator
    command_executor: CommandExecutor
    installer_download_dir: Path
    event_stream: EventStream = field(default_factory=EventStream)
    timeout: float = 600
    web_timeout: float = 30
    web_worker: Optional[WebRequestWorker] = None
    releases_index_url: str = DEFAULT_RELEASES_INDEX_URL
    platform_info: PlatformInfo = field(default_factory=detect_platform)
    distro_resolver: DistroVersionResolver = field(default_factory=DistroVersionResolver)

    def create_global_installer_resolver(self, version: str) -> GlobalInstallerResolver:
        """
        Build a resolver for a machine-wide SDK install of version.

        Raises:
            ValueError: If the context has no web worker
        """
        if self.web_worker is None:
            raise ValueError("A web worker is required to resolve global SDK installers")
        return GlobalInstallerResolver(
            version,
            self.web_worker,
            self.command_executor,
            releases_index_url=self.releases_index_url,
            platform_info=self.platform_info,
            distro_resolver=self.distro_resolver,
        )


def create_worker_context(
    config: Optional[DotnetKitConfig] = None,
    is_runtime: bool = False,
    event_stream: Optional[EventStream] = None,
) -> AcquisitionWorkerContext:
    """
    Wire the default collaborators for a worker.

    Args:
        config: Effective configuration; defaults when None
        is_runtime: Lay out installs per runtime version instead of one shared SDK root
        event_stream: Sink to post events to; a new stream when None

    Returns:
        Ready-to-use AcquisitionWorkerContext
    """
    config = config or DotnetKitConfig()
    event_stream = event_stream or EventStream()

    lock_manager = LockManager(config.lock_dir)
    executor = SubprocessCommandExecutor()
    web_worker = WebRequestWorker(
        config.cache_dir,
        lock_manager,
        timeout=config.web_timeout_seconds,
        ttl=config.script_cache_ttl_hours * 60 * 60,
        event_stream=event_stream,
    )
    script_worker = InstallScriptAcquisitionWorker(
        web_worker,
        lock_manager,
        config.install_script_dir,
        script_url=config.install_script_url,
        fallback_dir=config.fallback_script_dir,
        event_stream=event_stream,
    )

    # Separate roots and state per kind; an SDK reset must not touch runtimes
    if is_runtime:
        directory_provider = RuntimeInstallationDirectoryProvider(config.runtime_storage_path)
        state_file = config.state_file(RUNTIME_STATE)
    else:
        directory_provider = SdkInstallationDirectoryProvider(config.sdk_storage_path)
        state_file = config.state_file(SDK_STATE)

    logger.debug(
        f"Created {'runtime' if is_runtime else 'SDK'} worker context "
        f"with storage {directory_provider.get_storage_path()}"
    )

    return AcquisitionWorkerContext(
        state_store=JsonStateStore(state_file),
        global_state_store=JsonStateStore(config.state_file(GLOBAL_STATE)),
        install_directory_provider=directory_provider,
        acquisition_invoker=ScriptAcquisitionInvoker(script_worker, executor),
        installation_validator=DotnetInstallationValidator(executor),
        command_executor=executor,
        installer_download_dir=config.installer_download_dir,
        event_stream=event_stream,
        timeout=config.timeout_seconds,
        web_timeout=config.web_timeout_seconds,
        web_worker=web_worker,
        releases_index_url=config.releases_index_url,
    )


__all__ = [
    "InstallKind",
    "InstallScope",
    "InstallRecord",
    "AcquisitionWorkerContext",
    "create_worker_context",
]
