"""Exceptions for pyamtron.

All library errors inherit from :class:`AmtronError` so callers can use a
single ``except AmtronError`` to catch catalog, codec and transport failures.
Transport-level errors live in :mod:`pyamtron.transports.exceptions`.
"""

from __future__ import annotations


class AmtronError(Exception):
    """Base exception for all pyamtron errors."""

    pass


class UnknownRegisterError(AmtronError):
    """Raised when a register name is not in the catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown register: {name!r}")


class AccessViolationError(AmtronError):
    """Raised when reading a write-only or writing a read-only register."""

    def __init__(self, name: str, operation: str) -> None:
        self.name = name
        self.operation = operation
        super().__init__(f"Register {name!r} is not {operation}")


class CodecError(AmtronError):
    """Base exception for register value conversion errors."""

    pass


class DecodeError(CodecError):
    """Raw register words could not be converted to a value."""

    pass


class EncodeError(CodecError):
    """A value cannot be represented in the target register type."""

    pass


__all__ = [
    "AccessViolationError",
    "AmtronError",
    "CodecError",
    "DecodeError",
    "EncodeError",
    "UnknownRegisterError",
]
