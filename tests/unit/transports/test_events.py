"""Tests for connection event listeners."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from pyamtron.transports.events import ConnectionEvent, EventListeners


class TestEventListeners:
    """Subscription and emission."""

    def test_emit_calls_listener(self) -> None:
        listeners = EventListeners()
        callback = MagicMock()
        listeners.add(ConnectionEvent.CONNECTED, callback)

        listeners.emit(ConnectionEvent.CONNECTED)

        callback.assert_called_once_with()

    def test_error_listener_receives_exception(self) -> None:
        listeners = EventListeners()
        callback = MagicMock()
        listeners.add("error", callback)
        err = RuntimeError("boom")

        listeners.emit(ConnectionEvent.ERROR, err)

        callback.assert_called_once_with(err)

    def test_only_matching_event(self) -> None:
        listeners = EventListeners()
        callback = MagicMock()
        listeners.add(ConnectionEvent.CONNECTION_LOST, callback)

        listeners.emit(ConnectionEvent.DISCONNECTED)

        callback.assert_not_called()

    def test_unsubscribe(self) -> None:
        listeners = EventListeners()
        callback = MagicMock()
        remove = listeners.add(ConnectionEvent.CONNECTED, callback)

        remove()
        remove()
        listeners.emit(ConnectionEvent.CONNECTED)

        callback.assert_not_called()
        assert listeners.count(ConnectionEvent.CONNECTED) == 0

    def test_failing_listener_does_not_stop_others(self) -> None:
        listeners = EventListeners()
        failing = MagicMock(side_effect=ValueError("listener bug"))
        second = MagicMock()
        listeners.add(ConnectionEvent.CONNECTED, failing)
        listeners.add(ConnectionEvent.CONNECTED, second)

        listeners.emit(ConnectionEvent.CONNECTED)

        failing.assert_called_once()
        second.assert_called_once()

    def test_unknown_event_name(self) -> None:
        with pytest.raises(ValueError):
            EventListeners().add("reconnected", MagicMock())
