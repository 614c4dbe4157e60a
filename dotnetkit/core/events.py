"""
Structured lifecycle events for dotnetkit.

Acquisition components report what they do by posting event objects to an
EventStream. The stream logs every event and forwards it to subscribers
(telemetry sinks, progress displays, tests).

Example:
    >>> stream = EventStream()
    >>> seen = []
    >>> stream.subscribe(seen.append)
    >>> stream.post(AcquisitionStarted(version="8.0"))
    >>> seen[0].event_name
    'AcquisitionStarted'
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class AcquisitionEvent:
    """Base class for all events."""

    level = logging.DEBUG

    @property
    def event_name(self) -> str:
        return type(self).__name__

    def message(self) -> str:
        return self.event_name


# ============================================================================
# Acquisition lifecycle
# ============================================================================


@dataclass
class VersionEvent(AcquisitionEvent):
    version: str = ""

    def message(self) -> str:
        return f"{self.event_name}: {self.version}"


@dataclass
class AcquisitionStarted(VersionEvent):
    level = logging.INFO


@dataclass
class AcquisitionInProgress(VersionEvent):
    pass


@dataclass
class AcquisitionAlreadyInstalled(VersionEvent):
    pass


@dataclass
class AcquisitionCompleted(VersionEvent):
    level = logging.INFO
    executable_path: str = ""


@dataclass
class AcquisitionPartialInstallation(VersionEvent):
    level = logging.WARNING


@dataclass
class AcquisitionStatusResolved(VersionEvent):
    pass


@dataclass
class AcquisitionStatusUndefined(VersionEvent):
    pass


@dataclass
class AcquisitionError(VersionEvent):
    level = logging.ERROR
    error: Optional[BaseException] = None

    def message(self) -> str:
        return f"{self.event_name}: {self.version}: {self.error}"


@dataclass
class AcquisitionDeletion(AcquisitionEvent):
    level = logging.INFO
    folder_path: str = ""

    def message(self) -> str:
        return f"{self.event_name}: {self.folder_path}"


@dataclass
class UninstallAllStarted(AcquisitionEvent):
    level = logging.INFO


@dataclass
class UninstallAllCompleted(AcquisitionEvent):
    level = logging.INFO


@dataclass
class PreinstallDetected(VersionEvent):
    level = logging.INFO


@dataclass
class PreinstallDetectionError(AcquisitionEvent):
    level = logging.WARNING
    error: Optional[BaseException] = None

    def message(self) -> str:
        return f"{self.event_name}: {self.error}"


# ============================================================================
# Install script
# ============================================================================


@dataclass
class ScriptLockEvent(AcquisitionEvent):
    lock_path: str = ""

    def message(self) -> str:
        return f"{self.event_name}: {self.lock_path}"


@dataclass
class ScriptLockAttempted(ScriptLockEvent):
    pass


@dataclass
class ScriptLockAcquired(ScriptLockEvent):
    pass


@dataclass
class ScriptLockReleased(ScriptLockEvent):
    pass


@dataclass
class ScriptLockError(ScriptLockEvent):
    level = logging.ERROR
    error: Optional[BaseException] = None

    def message(self) -> str:
        return f"{self.event_name}: {self.lock_path}: {self.error}"


@dataclass
class InstallScriptAcquisitionCompleted(AcquisitionEvent):
    level = logging.INFO


@dataclass
class InstallScriptAcquisitionError(AcquisitionEvent):
    level = logging.WARNING
    error: Optional[BaseException] = None

    def message(self) -> str:
        return f"{self.event_name}: {self.error}"


@dataclass
class FallbackInstallScriptUsed(AcquisitionEvent):
    level = logging.WARNING
    script_path: str = ""

    def message(self) -> str:
        return f"{self.event_name}: {self.script_path}"


# ============================================================================
# Global installs and web requests
# ============================================================================


@dataclass
class ConflictingGlobalInstallDetected(VersionEvent):
    level = logging.ERROR
    conflicting_version: str = ""

    def message(self) -> str:
        return f"{self.event_name}: {self.version} conflicts with {self.conflicting_version}"


@dataclass
class InstallerDownloadStarted(AcquisitionEvent):
    level = logging.INFO
    url: str = ""

    def message(self) -> str:
        return f"{self.event_name}: {self.url}"


@dataclass
class InstallerExecuted(AcquisitionEvent):
    level = logging.INFO
    installer_path: str = ""
    exit_code: int = 0

    def message(self) -> str:
        return f"{self.event_name}: {self.installer_path} exited with {self.exit_code}"


@dataclass
class WebRequestSent(AcquisitionEvent):
    url: str = ""

    def message(self) -> str:
        return f"{self.event_name}: {self.url}"


@dataclass
class WebRequestCacheHit(WebRequestSent):
    pass


EventCallback = Callable[[AcquisitionEvent], None]


@dataclass
class EventStream:
    """
    Fan-out sink for acquisition events.

    Posting is safe from multiple threads. A failing subscriber is logged and
    does not stop delivery to the others.
    """

    subscribers: List[EventCallback] = field(default_factory=list)

    def __post_init__(self):
        self._lock = threading.Lock()

    def subscribe(self, callback: EventCallback):
        with self._lock:
            self.subscribers.append(callback)

    def post(self, event: AcquisitionEvent):
        logger.log(event.level, event.message())
        with self._lock:
            subscribers = list(self.subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"Event subscriber failed on {event.event_name}: {e}")


__all__ = [
    "AcquisitionEvent",
    "EventStream",
    "AcquisitionStarted",
    "AcquisitionInProgress",
    "AcquisitionAlreadyInstalled",
    "AcquisitionCompleted",
    "AcquisitionPartialInstallation",
    "AcquisitionStatusResolved",
    "AcquisitionStatusUndefined",
    "AcquisitionError",
    "AcquisitionDeletion",
    "UninstallAllStarted",
    "UninstallAllCompleted",
    "PreinstallDetected",
    "PreinstallDetectionError",
    "ScriptLockAttempted",
    "ScriptLockAcquired",
    "ScriptLockReleased",
    "ScriptLockError",
    "InstallScriptAcquisitionCompleted",
    "InstallScriptAcquisitionError",
    "FallbackInstallScriptUsed",
    "ConflictingGlobalInstallDetected",
    "InstallerDownloadStarted",
    "InstallerExecuted",
    "WebRequestSent",
    "WebRequestCacheHit",
]
