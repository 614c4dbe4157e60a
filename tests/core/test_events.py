"""
Unit tests for lifecycle events.
"""

import logging

from dotnetkit.core.events import (
    AcquisitionCompleted,
    AcquisitionError,
    AcquisitionPartialInstallation,
    AcquisitionStarted,
    EventStream,
    FallbackInstallScriptUsed,
)


class TestEvents:
    """Tests for event types."""

    def test_event_name(self):
        assert AcquisitionStarted(version="8.0").event_name == "AcquisitionStarted"

    def test_version_message(self):
        assert AcquisitionStarted(version="8.0").message() == "AcquisitionStarted: 8.0"

    def test_levels(self):
        assert AcquisitionStarted.level == logging.INFO
        assert AcquisitionPartialInstallation.level == logging.WARNING
        assert AcquisitionError.level == logging.ERROR

    def test_error_message_includes_cause(self):
        event = AcquisitionError(version="8.0", error=RuntimeError("disk full"))
        assert "disk full" in event.message()

    def test_fallback_message_includes_path(self):
        event = FallbackInstallScriptUsed(script_path="/tmp/dotnet-install.sh")
        assert "/tmp/dotnet-install.sh" in event.message()


class TestEventStream:
    """Tests for EventStream."""

    def test_subscribers_receive_events(self):
        stream = EventStream()
        first, second = [], []
        stream.subscribe(first.append)
        stream.subscribe(second.append)

        event = AcquisitionCompleted(version="8.0", executable_path="/x/dotnet")
        stream.post(event)

        assert first == [event]
        assert second == [event]

    def test_failing_subscriber_does_not_stop_delivery(self, caplog):
        stream = EventStream()
        seen = []

        def broken(event):
            raise RuntimeError("sink down")

        stream.subscribe(broken)
        stream.subscribe(seen.append)

        with caplog.at_level(logging.WARNING, logger="dotnetkit.core.events"):
            stream.post(AcquisitionStarted(version="8.0"))

        assert len(seen) == 1
        assert "sink down" in caplog.text

    def test_post_logs_at_event_level(self, caplog):
        stream = EventStream()

        with caplog.at_level(logging.INFO, logger="dotnetkit.core.events"):
            stream.post(AcquisitionStarted(version="9.0"))

        assert "AcquisitionStarted: 9.0" in caplog.text
