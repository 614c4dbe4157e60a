"""
.NET acquisition for dotnetkit.

This package contains the acquisition orchestrator and the resolvers it
composes: install script download, local script installs, global installer
resolution, Linux distro support and executable discovery.
"""

from .context import (
    AcquisitionWorkerContext,
    InstallKind,
    InstallRecord,
    InstallScope,
    create_worker_context,
)
from .distro import (
    DistroSupportStatus,
    DistroVersionPair,
    DistroVersionResolver,
)
from .install_script import InstallScriptAcquisitionWorker
from .installer_resolver import GlobalInstallerResolver, InstallerFile
from .invoker import ScriptAcquisitionInvoker
from .path_finder import DotnetPathFinder
from .validator import DotnetInstallationValidator
from .worker import AcquisitionWorker

__all__ = [
    "AcquisitionWorker",
    "AcquisitionWorkerContext",
    "InstallKind",
    "InstallRecord",
    "InstallScope",
    "create_worker_context",
    "DistroSupportStatus",
    "DistroVersionPair",
    "DistroVersionResolver",
    "InstallScriptAcquisitionWorker",
    "GlobalInstallerResolver",
    "InstallerFile",
    "ScriptAcquisitionInvoker",
    "DotnetPathFinder",
    "DotnetInstallationValidator",
]
