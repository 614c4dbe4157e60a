"""
Acquisition of the dotnet-install script.

Local installs run Microsoft's dotnet-install script (dotnet-install.sh on
Unix, dotnet-install.ps1 on Windows). InstallScriptAcquisitionWorker
downloads it through the cached WebRequestWorker and writes it to disk
under a file lock. When the download or the write fails, a script left on
disk by an earlier run (or shipped in a configured fallback directory) is
used instead.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotnetkit.config.parser import DEFAULT_INSTALL_SCRIPT_URL
from dotnetkit.core.events import (
    EventStream,
    FallbackInstallScriptUsed,
    InstallScriptAcquisitionCompleted,
    InstallScriptAcquisitionError,
    ScriptLockAcquired,
    ScriptLockAttempted,
    ScriptLockError,
    ScriptLockReleased,
)
from dotnetkit.core.exceptions import DotnetKitError, ScriptAcquisitionError, WebRequestError
from dotnetkit.core.filesystem import atomic_write
from dotnetkit.core.locking import LockManager, LockTimeout
from dotnetkit.core.platform import PlatformInfo, detect_platform
from dotnetkit.core.web import WebRequestWorker

logger = logging.getLogger(__name__)

SCRIPT_FILE_NAME = "dotnet-install"


class InstallScriptAcquisitionWorker:
    """
    Provides a usable dotnet-install script path.

    Attributes:
        script_path: Where the downloaded script is written
        script_url: Address the script is fetched from
    """

    def __init__(
        self,
        web_worker: WebRequestWorker,
        lock_manager: LockManager,
        script_dir: Path,
        script_url: str = DEFAULT_INSTALL_SCRIPT_URL,
        fallback_dir: Optional[Path] = None,
        event_stream: Optional[EventStream] = None,
        platform_info: Optional[PlatformInfo] = None,
    ):
        self.web_worker = web_worker
        self.lock_manager = lock_manager
        self.event_stream = event_stream or EventStream()
        self.platform_info = platform_info or detect_platform()

        extension = "ps1" if self.platform_info.is_windows else "sh"
        self.script_name = f"{SCRIPT_FILE_NAME}.{extension}"
        self.script_path = Path(script_dir) / self.script_name
        self.script_url = f"{script_url}.{extension}"
        self.fallback_dir = Path(fallback_dir) if fallback_dir else None

    def get_fallback_script_path(self) -> Path:
        """Script used when a fresh download is unavailable."""
        if self.fallback_dir is not None:
            return self.fallback_dir / self.script_name
        return self.script_path

    def get_install_script_path(self) -> Path:
        """
        Download the install script and return where it was written.

        Returns:
            Path to the fresh script, or to the fallback script if the
            download or write failed and a fallback exists

        Raises:
            ScriptAcquisitionError: If no script could be obtained
        """
        try:
            script = self.web_worker.get_cached_data(self.script_url)
            if not script:
                raise WebRequestError(self.script_url, "empty response")

            self._write_script(script)
            self.event_stream.post(InstallScriptAcquisitionCompleted())
            return self.script_path

        except (DotnetKitError, OSError) as e:
            self.event_stream.post(InstallScriptAcquisitionError(error=e))

            fallback_path = self.get_fallback_script_path()
            if fallback_path.exists():
                self.event_stream.post(
                    FallbackInstallScriptUsed(script_path=str(fallback_path))
                )
                return fallback_path

            raise ScriptAcquisitionError(e) from e

    def _write_script(self, script: str):
        lock_path = str(self.lock_manager.script_lock_path(self.script_name))
        self.event_stream.post(ScriptLockAttempted(lock_path=lock_path))

        try:
            with self.lock_manager.script_lock(self.script_name):
                self.event_stream.post(ScriptLockAcquired(lock_path=lock_path))
                atomic_write(self.script_path, self._native_line_endings(script))
                if not self.platform_info.is_windows:
                    os.chmod(self.script_path, 0o755)
        except LockTimeout as e:
            self.event_stream.post(ScriptLockError(lock_path=lock_path, error=e))
            raise

        self.event_stream.post(ScriptLockReleased(lock_path=lock_path))
        logger.debug(f"Wrote install script to {self.script_path}")

    def _native_line_endings(self, script: str) -> str:
        script = script.replace("\r\n", "\n")
        if self.platform_info.is_windows:
            script = script.replace("\n", "\r\n")
        return script


__all__ = ["InstallScriptAcquisitionWorker"]
