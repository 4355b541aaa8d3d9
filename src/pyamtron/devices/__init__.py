"""Device-level API for the Amtron charger."""

from .charger import ChargerController, format_duration, format_modbus_version
from .models import (
    AllData,
    ChargerStatus,
    Configuration,
    DeviceInfo,
    Diagnostics,
    EnergyData,
    Measurements,
    PhaseReadings,
    PowerReadings,
    SessionData,
    Statistics,
)

__all__ = [
    "AllData",
    "ChargerController",
    "ChargerStatus",
    "Configuration",
    "DeviceInfo",
    "Diagnostics",
    "EnergyData",
    "Measurements",
    "PhaseReadings",
    "PowerReadings",
    "SessionData",
    "Statistics",
    "format_duration",
    "format_modbus_version",
]
