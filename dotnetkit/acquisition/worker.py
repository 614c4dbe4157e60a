"""
The acquisition orchestrator.

AcquisitionWorker installs, reports and removes .NET SDKs and runtimes. It
owns two pieces of state:

- the promise table: (version, scope) -> Future of the acquisition in flight, so
  concurrent requests for one version share a single install
- the durable installing/installed sets (through InstallStateSets), one for
  local installs of this worker's kind and one for global SDK installs

Acquisition flow for a local install:

    in flight? -> wait for it
    stale 'installing' entry? -> clean up (runtime: that version, SDK: everything)
    unmanaged install on disk and nothing recorded? -> adopt it
    recorded and present? -> validate and return
    otherwise -> mark installing, install, validate, mark installed

A failed acquisition leaves its 'installing' entry behind; the next request
for that version finds it and cleans up before retrying.

Example:
    >>> worker = AcquisitionWorker(create_worker_context(config, is_runtime=True))
    >>> worker.acquire_runtime("8.0")
    '/home/me/.dotnetkit/dotnet/runtime/8.0/dotnet'
"""

import logging
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Dict, Optional, Tuple

from dotnetkit.acquisition.context import (
    AcquisitionWorkerContext,
    InstallKind,
    InstallRecord,
    InstallScope,
)
from dotnetkit.acquisition.distro import DistroSupportStatus, major_minor
from dotnetkit.acquisition.installer_resolver import GlobalInstallerResolver
from dotnetkit.core.download import download_file
from dotnetkit.core.events import (
    AcquisitionAlreadyInstalled,
    AcquisitionCompleted,
    AcquisitionDeletion,
    AcquisitionError,
    AcquisitionInProgress,
    AcquisitionPartialInstallation,
    AcquisitionStarted,
    AcquisitionStatusResolved,
    AcquisitionStatusUndefined,
    ConflictingGlobalInstallDetected,
    InstallerDownloadStarted,
    InstallerExecuted,
    PreinstallDetected,
    PreinstallDetectionError,
    UninstallAllCompleted,
    UninstallAllStarted,
)
from dotnetkit.core.exceptions import (
    AcquisitionFailedError,
    AcquisitionInvokerError,
    ConflictingGlobalInstallError,
    DistroNotSupportedError,
    GlobalInstallerError,
)
from dotnetkit.core.filesystem import safe_rmtree, wipe_directory
from dotnetkit.core.interfaces import InstallationContext
from dotnetkit.core.platform import get_dotnet_executable
from dotnetkit.core.state import INSTALLED_KEY, INSTALLING_KEY, InstallStateSets

logger = logging.getLogger(__name__)

WINDOWS_INSTALLER_FLAGS = ["/quiet", "/install", "/norestart"]

# A local and a global install of one version are separate acquisitions
PromiseKey = Tuple[str, InstallScope]


class AcquisitionWorker:
    """
    Deduplicating, crash-tolerant installer of .NET versions.

    Attributes:
        context: Collaborators and settings
        state: View of the durable installing/installed sets of local installs
        global_state: View of the durable sets of global SDK installs
    """

    def __init__(self, context: AcquisitionWorkerContext):
        self.context = context
        self.state = InstallStateSets(context.state_store)
        self.global_state = InstallStateSets(context.global_state_store)
        self.dotnet_executable = get_dotnet_executable(context.platform_info)

        self._promises: Dict[PromiseKey, Future] = {}
        self._promises_lock = threading.Lock()

    def _post(self, event):
        self.context.event_stream.post(event)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def acquire_sdk(self, version: str) -> str:
        return self.acquire(version, InstallKind.SDK)

    def acquire_runtime(self, version: str) -> str:
        return self.acquire(version, InstallKind.RUNTIME)

    def acquire_global_sdk(self, resolver: GlobalInstallerResolver) -> str:
        """
        Install an SDK machine-wide with the platform installer.

        The promise key is the fully-qualified version the resolver picks.
        """
        version = resolver.get_full_version()
        return self.acquire(version, InstallKind.SDK, InstallScope.GLOBAL, resolver)

    def acquire(
        self,
        version: str,
        kind: InstallKind = InstallKind.SDK,
        scope: InstallScope = InstallScope.LOCAL,
        resolver: Optional[GlobalInstallerResolver] = None,
    ) -> str:
        """
        Acquire a version, joining an in-flight acquisition of it if one exists.

        Args:
            version: Version to install ('8.0', '8.0.404', ...)
            kind: SDK or runtime
            scope: Local (worker-managed directory) or global (machine-wide)
            resolver: Installer resolver, required for global installs

        Returns:
            Path to the dotnet executable

        Raises:
            AcquisitionFailedError: If the install or its validation failed
        """
        if scope is InstallScope.GLOBAL:
            if kind is not InstallKind.SDK:
                raise ValueError("Only SDKs can be installed globally")
            if resolver is None:
                raise ValueError("Global installs require a GlobalInstallerResolver")

        key = (version, scope)
        with self._promises_lock:
            future = self._promises.get(key)
            is_owner = future is None
            if is_owner:
                future = Future()
                self._promises[key] = future

        if not is_owner:
            self._post(AcquisitionInProgress(version=version))
            return future.result()

        try:
            if scope is InstallScope.GLOBAL:
                path = self._acquire_global_core(version, resolver)
            else:
                path = self._acquire_core(version, kind, future)
        except Exception as e:
            error = AcquisitionFailedError(version, e)
            self._evict(key, future)
            self._post(AcquisitionError(version=version, error=e))
            future.set_exception(error)
            raise error from e
        except BaseException as e:
            # Interrupted: release waiters, then let the interrupt propagate
            self._evict(key, future)
            future.set_exception(AcquisitionFailedError(version, e))
            raise

        self._evict(key, future)
        self._post(AcquisitionCompleted(version=version, executable_path=path))
        future.set_result(path)
        return path

    def acquire_status(self, version: str, is_runtime: bool = False) -> Optional[str]:
        """
        Report where a version is installed without installing anything.

        An acquisition in flight is waited for. SDK queries adopt an
        unmanaged install found on disk when nothing is recorded yet.

        Returns:
            Path to the dotnet executable, or None if the version is not installed
        """
        with self._promises_lock:
            future = self._promises.get((version, InstallScope.LOCAL))

        if future is not None:
            self._post(AcquisitionStatusResolved(version=version))
            return future.result()

        kind = InstallKind.RUNTIME if is_runtime else InstallKind.SDK
        record = self.get_install_record(version, kind)
        self.state.reload()

        if not self.state.installed and record.executable_path.exists() and not is_runtime:
            self._adopt_preinstalled(record.install_dir)

        if self.state.is_installed(version) and record.executable_path.exists():
            self._post(AcquisitionStatusResolved(version=version))
            return str(record.executable_path)

        self._post(AcquisitionStatusUndefined(version=version))
        return None

    def uninstall_all(self):
        """
        Remove every managed install and forget all state.

        In-flight acquisitions are dropped from the promise table; their
        callers still receive whatever the running install produces.
        """
        self._uninstall_all()

    def get_install_record(self, version: str, kind: InstallKind) -> InstallRecord:
        install_dir = self.context.install_directory_provider.get_install_dir(version)
        return InstallRecord(
            version=version,
            kind=kind,
            scope=InstallScope.LOCAL,
            install_dir=install_dir,
            executable_path=install_dir / self.dotnet_executable,
        )

    # ------------------------------------------------------------------
    # Promise table and cleanup
    # ------------------------------------------------------------------

    def _evict(self, key: PromiseKey, future: Future):
        with self._promises_lock:
            if self._promises.get(key) is future:
                del self._promises[key]

    def _remove_folder(self, folder: Path, within: Optional[Path] = None):
        self._post(AcquisitionDeletion(folder_path=str(folder)))
        safe_rmtree(folder, require_prefix=within)

    def _uninstall_all(self, keep: Optional[Tuple[PromiseKey, Future]] = None):
        self._post(UninstallAllStarted())

        # Global installs live outside the storage root
        with self._promises_lock:
            self._promises = {
                key: future
                for key, future in self._promises.items()
                if key[1] is InstallScope.GLOBAL
            }
            if keep is not None:
                self._promises[keep[0]] = keep[1]

        self._remove_folder(self.context.install_directory_provider.get_storage_path())
        self.state.reset()

        self._post(UninstallAllCompleted())

    def _uninstall_runtime(self, version: str):
        provider = self.context.install_directory_provider
        install_dir = provider.get_install_dir(version)
        self._remove_folder(install_dir, within=provider.get_storage_path())
        self.state.remove(INSTALLED_KEY, version)
        self.state.remove(INSTALLING_KEY, version)

    def _adopt_preinstalled(self, install_dir: Path):
        """Record every SDK of an install this worker did not lay down."""
        try:
            versions = sorted(entry.name for entry in (install_dir / "sdk").iterdir())
        except OSError as e:
            self._post(PreinstallDetectionError(error=e))
            return

        for version in versions:
            self._post(PreinstallDetected(version=version))
            self.state.add(INSTALLED_KEY, version)

    # ------------------------------------------------------------------
    # Local installs
    # ------------------------------------------------------------------

    def _acquire_core(self, version: str, kind: InstallKind, own_future: Future) -> str:
        is_runtime = kind is InstallKind.RUNTIME
        self.state.reload()

        if self.state.is_installing(version):
            self._post(AcquisitionPartialInstallation(version=version))
            if is_runtime:
                self._uninstall_runtime(version)
            else:
                self._uninstall_all(keep=((version, InstallScope.LOCAL), own_future))

        record = self.get_install_record(version, kind)
        executable = record.executable_path

        if executable.exists() and not self.state.installed:
            self._adopt_preinstalled(record.install_dir)

        if self.state.is_installed(version) and executable.exists():
            self.context.installation_validator.validate(version, executable, is_runtime)
            self._post(AcquisitionAlreadyInstalled(version=version))
            return str(executable)

        self.state.add(INSTALLING_KEY, version)
        self._post(AcquisitionStarted(version=version))

        install_context = InstallationContext(
            install_dir=record.install_dir,
            version=version,
            executable_path=executable,
            timeout=self.context.timeout,
            is_runtime=is_runtime,
        )
        try:
            self.context.acquisition_invoker.install(install_context)
        except Exception as e:
            raise AcquisitionInvokerError(f"Installation failed: {e}") from e

        self.context.installation_validator.validate(version, executable, is_runtime)
        self.state.move(version, INSTALLING_KEY, INSTALLED_KEY)
        return str(executable)

    # ------------------------------------------------------------------
    # Global installs
    # ------------------------------------------------------------------

    def _acquire_global_core(self, version: str, resolver: GlobalInstallerResolver) -> str:
        conflicting_version = resolver.get_conflicting_version()
        if conflicting_version:
            self._post(
                ConflictingGlobalInstallDetected(
                    version=version, conflicting_version=conflicting_version
                )
            )
            raise ConflictingGlobalInstallError(version, conflicting_version)

        executable = resolver.get_executable_path()

        if resolver.is_installed_globally() and executable.exists():
            self.global_state.reload()
            if not self.global_state.is_installed(version):
                self.global_state.add(INSTALLED_KEY, version)
            self._post(AcquisitionAlreadyInstalled(version=version))
            return str(executable)

        if self.context.platform_info.is_linux:
            self._install_with_package_manager(version)
            validated_version = major_minor(version)
        else:
            self._install_with_platform_installer(version, resolver)
            validated_version = version

        self.context.installation_validator.validate(validated_version, executable)
        self.global_state.move(version, INSTALLING_KEY, INSTALLED_KEY)
        return str(executable)

    def _install_with_platform_installer(
        self, version: str, resolver: GlobalInstallerResolver
    ):
        installer = resolver.get_installer()
        scratch_dir = Path(self.context.installer_download_dir)

        try:
            wipe_directory(scratch_dir)
            self._post(InstallerDownloadStarted(url=installer.url))
            installer_path = download_file(
                installer.url,
                scratch_dir / installer.file_name,
                expected_hash=installer.hash or None,
                timeout=self.context.web_timeout,
            )

            self.global_state.add(INSTALLING_KEY, version)
            self._post(AcquisitionStarted(version=version))

            exit_code = self._execute_installer(installer_path)
            self._post(
                InstallerExecuted(installer_path=str(installer_path), exit_code=exit_code)
            )
            if exit_code != 0:
                raise GlobalInstallerError(
                    f"The .NET SDK installer exited with code {exit_code}"
                )
        finally:
            wipe_directory(scratch_dir)

    def _execute_installer(self, installer_path: Path) -> int:
        executor = self.context.command_executor
        installer_path = installer_path.resolve()

        if self.context.platform_info.is_macos:
            # .pkg files only run through the macOS installer front-end, which takes no flags
            result = executor.execute(["open", "-W", str(installer_path)])
        else:
            result = executor.execute(
                [str(installer_path)] + WINDOWS_INSTALLER_FLAGS, elevated=True
            )

        if not result.succeeded:
            logger.error(f"Installer output: {result.stderr.strip() or result.stdout.strip()}")
        return result.exit_code

    def _install_with_package_manager(self, version: str):
        distro_resolver = self.context.distro_resolver
        pair = distro_resolver.get_running_distro()
        status = distro_resolver.get_support_status(version, pair)

        if status is not DistroSupportStatus.DISTRO:
            raise DistroNotSupportedError(pair.distro, pair.version, status.value)

        command = distro_resolver.get_install_command(version, pair)
        self.global_state.add(INSTALLING_KEY, version)
        self._post(AcquisitionStarted(version=version))

        result = self.context.command_executor.execute(command, elevated=True)
        self._post(InstallerExecuted(installer_path=command[0], exit_code=result.exit_code))
        if not result.succeeded:
            raise GlobalInstallerError(
                f"'{' '.join(command)}' exited with code {result.exit_code}: "
                f"{result.stderr.strip()}"
            )


__all__ = ["AcquisitionWorker"]
