"""Transport-specific exceptions.

This module provides exception classes for transport operations,
allowing clients to handle errors appropriately.

All transport exceptions inherit from :class:`~pyamtron.exceptions.AmtronError`
so callers can use a single ``except AmtronError`` to catch both catalog
errors and Modbus transport failures.
"""

from __future__ import annotations

from pyamtron.exceptions import AmtronError


class TransportError(AmtronError):
    """Base exception for all transport errors."""

    pass


class TransportConnectionError(TransportError):
    """Failed to connect to the device."""

    pass


class NotConnectedError(TransportConnectionError):
    """Operation attempted while the session is disconnected.

    Raised before any wire I/O and never retried.
    """

    def __init__(self, message: str = "Transport not connected") -> None:
        super().__init__(message)


class PortClosedError(TransportConnectionError):
    """The serial handle is closed or reported an I/O error."""

    pass


class TransportTimeoutError(TransportError):
    """Operation timed out."""

    pass


class TransportReadError(TransportError):
    """Failed to read data from device."""

    pass


class TransportWriteError(TransportError):
    """Failed to write data to device."""

    pass


__all__ = [
    "NotConnectedError",
    "PortClosedError",
    "TransportConnectionError",
    "TransportError",
    "TransportReadError",
    "TransportTimeoutError",
    "TransportWriteError",
]
