"""Python library for Mennekes Amtron chargers over Modbus RTU.

Usage:
    Register-level access:
        from pyamtron.transports import ModbusSerialTransport

        async with ModbusSerialTransport(port="/dev/ttyUSB0") as transport:
            transport.start_keep_alive()
            state = await transport.read_register("evse_state")
            await transport.write_register("charging_current_em", 16)

    High-level control:
        from pyamtron import ChargerController

        charger = ChargerController(transport)
        await charger.start_charging(10)
        status = await charger.get_status()
"""

from __future__ import annotations

from .devices import ChargerController
from .exceptions import (
    AccessViolationError,
    AmtronError,
    CodecError,
    DecodeError,
    EncodeError,
    UnknownRegisterError,
)
from .transports import (
    ConnectionEvent,
    ConnectionState,
    ModbusSerialTransport,
    SerialConfig,
)

__version__ = "0.1.0"
__all__ = [
    "ChargerController",
    "ModbusSerialTransport",
    "SerialConfig",
    "ConnectionEvent",
    "ConnectionState",
    # Exceptions
    "AmtronError",
    "AccessViolationError",
    "CodecError",
    "DecodeError",
    "EncodeError",
    "UnknownRegisterError",
]
