"""Connection state and event subscription for transports."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Any

_LOGGER = logging.getLogger(__name__)

Listener = Callable[..., Any]


class ConnectionState(StrEnum):
    """Connection state of a transport session."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class ConnectionEvent(StrEnum):
    """Events emitted on connection state transitions.

    ``ERROR`` listeners receive the exception as their only argument; the
    other events carry no arguments.
    """

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    CONNECTION_LOST = "connection_lost"
    ERROR = "error"


class EventListeners:
    """Callback registry keyed by :class:`ConnectionEvent`."""

    def __init__(self) -> None:
        self._listeners: dict[ConnectionEvent, list[Listener]] = {
            event: [] for event in ConnectionEvent
        }

    def add(self, event: ConnectionEvent | str, callback: Listener) -> Callable[[], None]:
        """Register *callback* for *event* and return an unsubscribe function."""
        event = ConnectionEvent(event)
        self._listeners[event].append(callback)

        def _remove() -> None:
            if callback in self._listeners[event]:
                self._listeners[event].remove(callback)

        return _remove

    def emit(self, event: ConnectionEvent, *args: Any) -> None:
        """Invoke every listener for *event*.

        A failing listener is logged and does not stop the others.
        """
        for callback in list(self._listeners[event]):
            try:
                callback(*args)
            except Exception:
                _LOGGER.exception("Listener for %s event failed", event)

    def count(self, event: ConnectionEvent) -> int:
        """Number of listeners registered for *event*."""
        return len(self._listeners[event])


__all__ = ["ConnectionEvent", "ConnectionState", "EventListeners", "Listener"]
