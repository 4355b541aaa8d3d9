"""Pytest configuration and fixtures for pyamtron tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pyamtron.transports.modbus_serial import ModbusSerialTransport


def make_response(registers: list[int] | None = None, *, error: bool = False) -> MagicMock:
    """Build a pymodbus-like response object."""
    response = MagicMock()
    response.isError.return_value = error
    response.registers = list(registers or [])
    return response


def make_client() -> MagicMock:
    """Build a mocked AsyncModbusSerialClient.

    Reads return a single zero word unless overridden by the test.
    """
    client = MagicMock()
    client.connect = AsyncMock(return_value=True)
    client.close = MagicMock()
    client.read_holding_registers = AsyncMock(return_value=make_response([0]))
    client.write_register = AsyncMock(return_value=make_response())
    client.write_registers = AsyncMock(return_value=make_response())
    return client


def make_transport(**kwargs: Any) -> ModbusSerialTransport:
    """Serial transport with fast retry/reconnect timings for tests."""
    options: dict[str, Any] = {
        "port": "/dev/ttyUSB0",
        "retry_delay": 0,
        "reconnect_interval": 0.01,
    }
    options.update(kwargs)
    transport = ModbusSerialTransport(**options)
    transport.settle_delay = 0
    return transport


@pytest.fixture
def mock_client() -> MagicMock:
    """Mocked pymodbus serial client."""
    return make_client()


@pytest.fixture
def mock_client_cls(mock_client: MagicMock) -> Any:
    """Patch the pymodbus serial client class for the whole test."""
    with patch("pymodbus.client.AsyncModbusSerialClient", return_value=mock_client) as cls:
        yield cls


@pytest.fixture
async def transport(mock_client_cls: MagicMock) -> AsyncGenerator[ModbusSerialTransport, None]:
    """Connected transport backed by the mocked client."""
    transport = make_transport()
    await transport.connect()
    yield transport
    await transport.disconnect()
