"""Pydantic models for charger readings.

Models are built from snake_case field names and serialise with camelCase
keys (``model_dump(by_alias=True)``), the shape JSON-RPC clients receive.
A value that could not be read is ``None``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AmtronModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_api(self) -> dict[str, Any]:
        """JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class DeviceInfo(AmtronModel):
    """Identification of the charger."""

    modbus_version: str | None = None
    firmware_version: str | None = None
    serial_number: str | None = None
    max_current_evse: float | None = Field(default=None, alias="maxCurrentEVSE")
    max_current_house: float | None = None


class ChargerStatus(AmtronModel):
    """Charging state with text labels."""

    evse_state: int | None = None
    evse_state_text: str = "Unknown"
    cp_state: int | None = None
    cp_state_text: str = "Unknown"
    authorization_status: int | None = None
    authorization_text: str = "Unknown"
    downgrade: int | None = None
    downgrade_text: str = "Unknown"
    phase_rotation: int | None = None
    signaled_current: float | None = None


class PhaseReadings(AmtronModel):
    """Per-phase measurement."""

    l1: float | None = None
    l2: float | None = None
    l3: float | None = None
    unit: str


class PowerReadings(PhaseReadings):
    """Per-phase and overall power."""

    total: float | None = None
    unit: str = "W"


class EnergyData(AmtronModel):
    session: float | None = None
    total: float | None = None
    unit: str = "kWh"


class SessionUnits(AmtronModel):
    current: str = "A"
    energy: str = "kWh"
    duration: str = "s"


class SessionData(AmtronModel):
    """Current charging session."""

    max_current: float | None = None
    charged_energy: float | None = None
    duration: int | None = None
    duration_formatted: str | None = None
    detected_phases: int | None = None
    unit: SessionUnits = Field(default_factory=SessionUnits)


class StatisticsUnits(AmtronModel):
    energy: str = "kWh"


class Statistics(AmtronModel):
    """Lifetime counters."""

    total_energy: float | None = None
    total_sessions: int | None = None
    unit: StatisticsUnits = Field(default_factory=StatisticsUnits)


class Diagnostics(AmtronModel):
    """Error and fallback state."""

    active_error_code: int | None = None
    has_error: bool | None = None
    master_lost_fallback: bool | None = None
    switched_phases: int | None = None
    temperature: float | None = None


class Configuration(AmtronModel):
    """Installation settings of the charger."""

    max_current_house: float | None = None
    max_current_evse: float | None = None
    phase_switching_mode: int | None = None
    phase_options_hw: int | None = None
    cable_lock: bool | None = None
    master_lost_fallback_current: int | None = None
    grid_imbalance: bool | None = None
    grid_phases_connected: int | None = None
    authorization: bool | None = None


class Measurements(AmtronModel):
    voltage: PhaseReadings
    current: PhaseReadings
    power: PowerReadings


class AllData(AmtronModel):
    """Snapshot of every reading group."""

    device_info: DeviceInfo
    status: ChargerStatus
    measurements: Measurements
    energy: EnergyData
    session: SessionData
    diagnostics: Diagnostics
    configuration: Configuration
    timestamp: datetime


__all__ = [
    "AllData",
    "AmtronModel",
    "ChargerStatus",
    "Configuration",
    "DeviceInfo",
    "Diagnostics",
    "EnergyData",
    "Measurements",
    "PhaseReadings",
    "PowerReadings",
    "SessionData",
    "SessionUnits",
    "Statistics",
    "StatisticsUnits",
]
