"""High-level control of a Mennekes Amtron charger.

This module provides the ChargerController class, which groups register
reads into typed readings and wraps the control registers (charging current,
release, phases, lock) in validated operations.

Group reads use the session's ``read_many``, so a register that fails to read
shows up as ``None`` in the returned model instead of failing the whole call.
All I/O goes through one session and is therefore strictly sequential.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pyamtron.exceptions import AmtronError
from pyamtron.registers.amtron import (
    MAX_CHARGING_CURRENT,
    MIN_CHARGING_CURRENT,
    SYSTEM_RESTART_VALUE,
    describe_value,
)

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

if TYPE_CHECKING:
    from pyamtron.transports._modbus_base import BaseModbusTransport

_LOGGER = logging.getLogger(__name__)

# Pause between setting the current and releasing charging
START_RELEASE_DELAY = 0.1


def format_modbus_version(version: int | None) -> str | None:
    """Format the packed layout version, e.g. ``0x103`` -> ``"1.0.3"``."""
    if version is None:
        return None
    major = (version >> 8) & 0xFF
    minor = (version >> 4) & 0x0F
    patch = version & 0x0F
    return f"{major}.{minor}.{patch}"


def format_duration(seconds: int | None) -> str | None:
    """Format seconds as ``"1h 2m 3s"``."""
    if seconds is None:
        return None
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}h {minutes}m {secs}s"


def _flag(value: Any, on: int = 1) -> bool | None:
    if value is None:
        return None
    return value == on


class ChargerController:
    """Typed readings and control operations for one charger.

    Example:
        ```python
        async with ModbusSerialTransport(port="/dev/ttyUSB0") as transport:
            charger = ChargerController(transport)
            await charger.start_charging(10)
            status = await charger.get_status()
            print(status.evse_state_text)
        ```
    """

    def __init__(self, transport: BaseModbusTransport) -> None:
        """Initialize the controller.

        Args:
            transport: Connected Modbus session for the charger
        """
        self._transport = transport

    @property
    def transport(self) -> BaseModbusTransport:
        """Underlying Modbus session."""
        return self._transport

    async def _read(self, *names: str) -> dict[str, Any]:
        return await self._transport.read_many(names)

    # =========================================================================
    # Device information
    # =========================================================================

    async def get_device_info(self) -> DeviceInfo:
        """Read layout version, firmware, serial number and current limits."""
        info = await self._read(
            "modbus_version",
            "firmware_version",
            "serial_number",
            "max_current_evse",
            "max_current_house",
        )
        return DeviceInfo(
            modbus_version=format_modbus_version(info["modbus_version"]),
            firmware_version=info["firmware_version"],
            serial_number=info["serial_number"],
            max_current_evse=info["max_current_evse"],
            max_current_house=info["max_current_house"],
        )

    # =========================================================================
    # Status
    # =========================================================================

    async def get_status(self) -> ChargerStatus:
        """Read the charging state registers with their text labels."""
        status = await self._read(
            "evse_state",
            "cp_state",
            "authorization_status",
            "downgrade",
            "phase_rotation",
            "signaled_current",
        )
        return ChargerStatus(
            evse_state=status["evse_state"],
            evse_state_text=describe_value("evse_state", status["evse_state"]),
            cp_state=status["cp_state"],
            cp_state_text=describe_value("cp_state", status["cp_state"]),
            authorization_status=status["authorization_status"],
            authorization_text=describe_value(
                "authorization_status", status["authorization_status"]
            ),
            downgrade=status["downgrade"],
            downgrade_text=describe_value("downgrade", status["downgrade"]),
            phase_rotation=status["phase_rotation"],
            signaled_current=status["signaled_current"],
        )

    # =========================================================================
    # Measurements
    # =========================================================================

    async def get_voltage(self) -> PhaseReadings:
        values = await self._read("voltage_l1", "voltage_l2", "voltage_l3")
        return PhaseReadings(
            l1=values["voltage_l1"],
            l2=values["voltage_l2"],
            l3=values["voltage_l3"],
            unit="V",
        )

    async def get_current(self) -> PhaseReadings:
        values = await self._read("current_l1", "current_l2", "current_l3")
        return PhaseReadings(
            l1=values["current_l1"],
            l2=values["current_l2"],
            l3=values["current_l3"],
            unit="A",
        )

    async def get_power(self) -> PowerReadings:
        values = await self._read("power_l1", "power_l2", "power_l3", "power_overall")
        return PowerReadings(
            l1=values["power_l1"],
            l2=values["power_l2"],
            l3=values["power_l3"],
            total=values["power_overall"],
        )

    async def get_charging_power(self) -> float:
        """Overall charging power in kW.

        Raises:
            AmtronError: If the power register cannot be read
        """
        power = await self._transport.read_register("power_overall")
        return float(power) / 1000

    async def get_temperature(self) -> float:
        """Charger temperature in °C."""
        return float(await self._transport.read_register("temperature"))

    # =========================================================================
    # Energy and session
    # =========================================================================

    async def get_energy(self) -> EnergyData:
        values = await self._read("charged_energy_session", "charged_energy_total")
        return EnergyData(
            session=values["charged_energy_session"],
            total=values["charged_energy_total"],
        )

    async def get_session_data(self) -> SessionData:
        """Read the current session counters."""
        values = await self._read(
            "max_current_session",
            "charged_energy_session",
            "duration_session",
            "detected_ev_phases",
        )
        return SessionData(
            max_current=values["max_current_session"],
            charged_energy=values["charged_energy_session"],
            duration=values["duration_session"],
            duration_formatted=format_duration(values["duration_session"]),
            detected_phases=values["detected_ev_phases"],
        )

    async def get_statistics(self) -> Statistics:
        values = await self._read("charged_energy_total", "charging_sessions_total")
        return Statistics(
            total_energy=values["charged_energy_total"],
            total_sessions=values["charging_sessions_total"],
        )

    # =========================================================================
    # Control
    # =========================================================================

    async def set_charging_current(self, ampere: float) -> None:
        """Set the energy manager's charging current limit.

        Args:
            ampere: Current limit, 6..32 A

        Raises:
            ValueError: If the current is outside 6..32 A (no I/O)
            AmtronError: If the write fails
        """
        if (
            isinstance(ampere, bool)
            or not isinstance(ampere, (int, float))
            or not MIN_CHARGING_CURRENT <= ampere <= MAX_CHARGING_CURRENT
        ):
            raise ValueError(
                f"Current must be between {MIN_CHARGING_CURRENT}A and {MAX_CHARGING_CURRENT}A"
            )

        _LOGGER.info("Setting charging current to %sA", ampere)
        await self._transport.write_register("charging_current_em", ampere)
        _LOGGER.info("Successfully set charging current to %sA", ampere)

    async def start_charging(self, current: float = MIN_CHARGING_CURRENT) -> None:
        """Set the charging current, then release charging."""
        _LOGGER.info("Starting charging with %sA...", current)
        await self.set_charging_current(current)
        await asyncio.sleep(START_RELEASE_DELAY)
        await self._transport.write_register("charging_release_em", 1)
        _LOGGER.info("Charging started successfully")

    async def stop_charging(self) -> None:
        """Withdraw the charging release."""
        _LOGGER.info("Stopping charging...")
        await self._transport.write_register("charging_release_em", 0)
        _LOGGER.info("Charging stopped successfully")

    async def pause_charging(self) -> None:
        """Set the current to 0 A while keeping the release."""
        _LOGGER.info("Pausing charging...")
        await self._transport.write_register("charging_current_em", 0)
        _LOGGER.info("Charging paused")

    async def resume_charging(self, current: float = MIN_CHARGING_CURRENT) -> None:
        _LOGGER.info("Resuming charging with %sA...", current)
        await self.set_charging_current(current)
        _LOGGER.info("Charging resumed")

    async def set_requested_phases(self, phases: int) -> None:
        """Request all phases (0) or a single phase (1).

        Raises:
            ValueError: If phases is not 0 or 1 (no I/O)
        """
        if isinstance(phases, bool) or phases not in (0, 1):
            raise ValueError("Phases must be 0 (all phases) or 1 (single phase)")

        _LOGGER.info("Setting requested phases to %s...", "all" if phases == 0 else "single")
        await self._transport.write_register("requested_phases", phases)
        _LOGGER.info("Requested phases set successfully")

    async def set_lock(self, lock: bool) -> None:
        """Lock or unlock the charger."""
        _LOGGER.info("%s EVSE...", "Locking" if lock else "Unlocking")
        await self._transport.write_register("lock_evse", 1 if lock else 0)
        _LOGGER.info("EVSE %s successfully", "locked" if lock else "unlocked")

    async def restart_system(self) -> None:
        """Trigger a charger restart."""
        _LOGGER.warning("Restarting charger...")
        await self._transport.write_register("system_restart", SYSTEM_RESTART_VALUE)

    # =========================================================================
    # Diagnostics
    # =========================================================================

    async def get_diagnostics(self) -> Diagnostics:
        values = await self._read(
            "active_error_code",
            "master_lost_fallback_state",
            "switched_phases",
            "temperature",
        )
        error_code = values["active_error_code"]
        return Diagnostics(
            active_error_code=error_code,
            has_error=None if error_code is None else error_code != 0,
            master_lost_fallback=_flag(values["master_lost_fallback_state"]),
            switched_phases=values["switched_phases"],
            temperature=values["temperature"],
        )

    async def get_configuration(self) -> Configuration:
        """Read the installation settings."""
        values = await self._read(
            "max_current_house",
            "max_current_evse",
            "phase_switching_mode",
            "phase_options_hw",
            "cable_lock_config",
            "master_lost_fallback_current",
            "grid_imbalance",
            "grid_phases_connected",
            "authorization",
        )
        return Configuration(
            max_current_house=values["max_current_house"],
            max_current_evse=values["max_current_evse"],
            phase_switching_mode=values["phase_switching_mode"],
            phase_options_hw=values["phase_options_hw"],
            cable_lock=_flag(values["cable_lock_config"]),
            master_lost_fallback_current=values["master_lost_fallback_current"],
            grid_imbalance=_flag(values["grid_imbalance"]),
            grid_phases_connected=values["grid_phases_connected"],
            authorization=_flag(values["authorization"]),
        )

    async def get_all_data(self) -> AllData:
        """Read every reading group, one after another."""
        try:
            device_info = await self.get_device_info()
            status = await self.get_status()
            measurements = Measurements(
                voltage=await self.get_voltage(),
                current=await self.get_current(),
                power=await self.get_power(),
            )
            energy = await self.get_energy()
            session = await self.get_session_data()
            diagnostics = await self.get_diagnostics()
            configuration = await self.get_configuration()
        except AmtronError as err:
            _LOGGER.error("Error getting all data: %s", err)
            raise

        return AllData(
            device_info=device_info,
            status=status,
            measurements=measurements,
            energy=energy,
            session=session,
            diagnostics=diagnostics,
            configuration=configuration,
            timestamp=datetime.now(UTC),
        )


__all__ = ["ChargerController", "format_duration", "format_modbus_version"]
