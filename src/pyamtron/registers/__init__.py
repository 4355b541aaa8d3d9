"""Canonical Modbus register map for the Amtron Compact 2.0s charger.

- amtron: every holding register of layout 1.0.3 plus device constants
"""

from pyamtron.registers.amtron import (
    AMTRON_REGISTERS,
    BY_ADDRESS,
    BY_CATEGORY,
    BY_NAME,
    HEARTBEAT_VALUE,
    HEARTBEAT_WINDOW,
    MAX_CHARGING_CURRENT,
    MIN_CHARGING_CURRENT,
    SATELLITE_UNIT_ID,
    SYSTEM_RESTART_VALUE,
    Access,
    DataType,
    RegisterCategory,
    RegisterDefinition,
    describe_value,
    lookup,
    lookup_address,
    readable_registers,
    writable_registers,
)

__all__ = [
    "AMTRON_REGISTERS",
    "BY_ADDRESS",
    "BY_CATEGORY",
    "BY_NAME",
    "HEARTBEAT_VALUE",
    "HEARTBEAT_WINDOW",
    "MAX_CHARGING_CURRENT",
    "MIN_CHARGING_CURRENT",
    "SATELLITE_UNIT_ID",
    "SYSTEM_RESTART_VALUE",
    "Access",
    "DataType",
    "RegisterCategory",
    "RegisterDefinition",
    "describe_value",
    "lookup",
    "lookup_address",
    "readable_registers",
    "writable_registers",
]
