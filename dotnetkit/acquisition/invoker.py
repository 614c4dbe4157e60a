"""
Local installs through the dotnet-install script.
"""

import logging
from typing import List, Optional

from dotnetkit.acquisition.install_script import InstallScriptAcquisitionWorker
from dotnetkit.core.exceptions import AcquisitionInvokerError
from dotnetkit.core.interfaces import AcquisitionInvoker, CommandExecutor, InstallationContext
from dotnetkit.core.platform import PlatformInfo, detect_platform

logger = logging.getLogger(__name__)


def is_channel(version: str) -> bool:
    """'8.0' names a release channel; '8.0.404' names one version."""
    return len(version.split(".")) == 2


class ScriptAcquisitionInvoker(AcquisitionInvoker):
    """
    Installs .NET into a local directory by running dotnet-install.

    Example:
        >>> invoker = ScriptAcquisitionInvoker(script_worker, SubprocessCommandExecutor())
        >>> invoker.install(InstallationContext(install_dir, "8.0", exe, 600, is_runtime=True))
    """

    def __init__(
        self,
        script_worker: InstallScriptAcquisitionWorker,
        executor: CommandExecutor,
        platform_info: Optional[PlatformInfo] = None,
    ):
        self.script_worker = script_worker
        self.executor = executor
        self.platform_info = platform_info or detect_platform()

    def build_install_command(self, script_path: str, context: InstallationContext) -> List[str]:
        """Build the interpreter command line that runs the script for context."""
        if self.platform_info.is_windows:
            command = [
                "powershell.exe",
                "-NoProfile",
                "-NonInteractive",
                "-ExecutionPolicy",
                "Bypass",
                "-File",
                script_path,
                "-InstallDir",
                str(context.install_dir),
                "-NoPath",
                "-Channel" if is_channel(context.version) else "-Version",
                context.version,
            ]
            if context.is_runtime:
                command += ["-Runtime", "dotnet"]
            return command

        command = [
            "bash",
            script_path,
            "--install-dir",
            str(context.install_dir),
            "--no-path",
            "--channel" if is_channel(context.version) else "--version",
            context.version,
        ]
        if context.is_runtime:
            command += ["--runtime", "dotnet"]
        return command

    def install(self, context: InstallationContext) -> None:
        script_path = self.script_worker.get_install_script_path()
        context.install_dir.mkdir(parents=True, exist_ok=True)

        command = self.build_install_command(str(script_path), context)
        logger.info(f"Installing .NET {context.version} into {context.install_dir}")

        result = self.executor.execute(command, timeout=context.timeout)
        if not result.succeeded:
            details = result.stderr.strip() or result.stdout.strip()
            raise AcquisitionInvokerError(
                f"dotnet-install exited with code {result.exit_code}: {details}"
            )


__all__ = ["ScriptAcquisitionInvoker", "is_channel"]
