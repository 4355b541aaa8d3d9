"""Transport layer for pyamtron.

This module provides the Modbus RTU session used to talk to the charger:
named register reads and writes, retry handling, reconnection, the health
check and the master heartbeat.

Usage:
    from pyamtron.transports import ModbusSerialTransport, SerialConfig

    transport = ModbusSerialTransport.from_config(SerialConfig.from_env())
    async with transport:
        transport.start_keep_alive()
        state = await transport.read_register("evse_state")
"""

from __future__ import annotations

from ._modbus_base import HEALTH_CHECK_REGISTER, BaseModbusTransport
from .codec import decode, decode_registers, encode, encode_value
from .config import RpcConfig, SerialConfig
from .events import ConnectionEvent, ConnectionState
from .exceptions import (
    NotConnectedError,
    PortClosedError,
    TransportConnectionError,
    TransportError,
    TransportReadError,
    TransportTimeoutError,
    TransportWriteError,
)
from .keepalive import HEARTBEAT_REGISTER, KeepAliveScheduler
from .modbus_serial import ModbusSerialTransport

__all__ = [
    # Transport implementations
    "BaseModbusTransport",
    "ModbusSerialTransport",
    # Configuration
    "RpcConfig",
    "SerialConfig",
    # Connection state
    "ConnectionEvent",
    "ConnectionState",
    # Heartbeat
    "HEARTBEAT_REGISTER",
    "HEALTH_CHECK_REGISTER",
    "KeepAliveScheduler",
    # Codec
    "decode",
    "decode_registers",
    "encode",
    "encode_value",
    # Exceptions
    "NotConnectedError",
    "PortClosedError",
    "TransportConnectionError",
    "TransportError",
    "TransportReadError",
    "TransportTimeoutError",
    "TransportWriteError",
]
