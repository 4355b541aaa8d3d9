"""Canonical Amtron Compact 2.0s holding register map.

Single source of truth for ALL charger registers. Every register on this
device is a holding register (function code 0x03 for reads, 0x06 / 0x10 for
writes); the access flags say which direction is actually permitted.

Cross-validated against:
  - Mennekes Modbus RTU Specification v2.0 (2024-03-21)
  - Modbus register layout version 1.0.3

Each RegisterDefinition carries:
  canonical name → address → word count → data type → access → valid range

Two device-specific encoding quirks apply (handled by ``transports.codec``):
  - 32-bit values (uint32/int32/float32) are sent low word first.
  - ASCII strings have the two bytes of every word swapped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Flag, StrEnum

from pyamtron.exceptions import UnknownRegisterError


class DataType(StrEnum):
    """Wire data type of a register."""

    UINT16 = "uint16"
    INT16 = "int16"
    UINT32 = "uint32"
    INT32 = "int32"
    FLOAT32 = "float32"
    ASCII = "ascii"


class Access(Flag):
    """Access rights of a register."""

    READ = 1
    WRITE = 2
    READ_WRITE = 3


class RegisterCategory(StrEnum):
    """Address block a register belongs to (from the device documentation)."""

    GENERAL = "general"
    STATUS = "status"
    CONFIGURATION = "configuration"
    MEASUREMENT = "measurement"
    SETTINGS = "settings"
    INPUT = "input"
    SESSION = "session"
    FUNCTION = "function"
    DIAGNOSTIC = "diagnostic"
    STATISTICS = "statistics"


# Number of 16-bit words each fixed-width type occupies.
WORDS_PER_TYPE: dict[DataType, int] = {
    DataType.UINT16: 1,
    DataType.INT16: 1,
    DataType.UINT32: 2,
    DataType.INT32: 2,
    DataType.FLOAT32: 2,
}


@dataclass(frozen=True)
class RegisterDefinition:
    """Single charger register definition.

    Attributes:
        name: Stable canonical name (snake_case).  Once published, MUST NOT change.
        address: Modbus holding register address.
        word_count: Number of consecutive 16-bit words.
        data_type: Wire data type.
        access: Read and/or write permission.
        valid_range: Inclusive (min, max) bound.  Advisory only; callers that
            know the domain enforce it.
        title: Human-readable title from the device documentation.
        description: Longer description.
        unit: Engineering unit string.
        values: Enumeration labels for discrete registers.
        write_value: Fixed command value for command registers (heartbeat,
            restart).  None for regular registers.
        version: Register layout version that introduced the register.
        category: Documentation address block.
    """

    name: str
    address: int
    word_count: int
    data_type: DataType
    access: Access = Access.READ
    valid_range: tuple[float, float] | None = None
    title: str = ""
    description: str = ""
    unit: str = ""
    values: dict[int, str] = field(default_factory=dict, hash=False, compare=False)
    write_value: int | None = None
    version: str = "v01.00"
    category: RegisterCategory = RegisterCategory.GENERAL

    def __post_init__(self) -> None:
        if not 0 <= self.address <= 0xFFFF:
            raise ValueError(f"{self.name}: address must be 0..0xFFFF, got {self.address}")
        if self.word_count < 1 or self.address + self.word_count - 1 > 0xFFFF:
            raise ValueError(f"{self.name}: invalid word count {self.word_count}")
        expected = WORDS_PER_TYPE.get(self.data_type)
        if expected is not None and self.word_count != expected:
            raise ValueError(
                f"{self.name}: {self.data_type} needs {expected} word(s), got {self.word_count}"
            )
        if self.write_value is not None and Access.WRITE not in self.access:
            raise ValueError(f"{self.name}: write_value set on a read-only register")
        if self.valid_range is not None and self.valid_range[0] > self.valid_range[1]:
            raise ValueError(f"{self.name}: valid_range {self.valid_range} is not ordered")

    @property
    def readable(self) -> bool:
        """True if the register may be read."""
        return Access.READ in self.access

    @property
    def writable(self) -> bool:
        """True if the register may be written."""
        return Access.WRITE in self.access

    @property
    def end_address(self) -> int:
        """Last address occupied by this register (inclusive)."""
        return self.address + self.word_count - 1


# =============================================================================
# DEVICE CONSTANTS
# =============================================================================

DEFAULT_BAUDRATE = 57600
OPTIONAL_BAUDRATES = (9600, 14400, 19200, 28800, 38400, 56000, 57600)
DATA_BITS = 8
DEFAULT_STOP_BITS = 2
DEFAULT_PARITY = "N"
DIRECT_UNIT_ID = 1
SATELLITE_UNIT_ID = 50

HEARTBEAT_VALUE = 0x55AA
# The charger enters its master-lost fallback when no heartbeat arrives
# within this window (seconds).
HEARTBEAT_WINDOW = 10.0
SYSTEM_RESTART_VALUE = 0x00BB

MIN_CHARGING_CURRENT = 6
MAX_CHARGING_CURRENT = 32
RECOMMENDED_CURRENT_CHANGE_INTERVAL = 5.0


# =============================================================================
# AMTRON HOLDING REGISTERS
# =============================================================================
# Organised by the address blocks of the device documentation.

AMTRON_REGISTERS: tuple[RegisterDefinition, ...] = (
    # =========================================================================
    # GENERAL INFORMATION (0x0000 - 0x00FF)
    # =========================================================================
    RegisterDefinition(
        name="modbus_version",
        address=0x0000,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 65535),
        title="Modbus Version",
        description="Internal Modbus register layout version (V1.0.0 = 0x100, V1.0.3 = 0x103).",
        category=RegisterCategory.GENERAL,
    ),
    RegisterDefinition(
        name="firmware_version",
        address=0x0001,
        word_count=8,
        data_type=DataType.ASCII,
        title="Firmware Version",
        description="Firmware version.",
        category=RegisterCategory.GENERAL,
    ),
    RegisterDefinition(
        name="serial_number",
        address=0x0013,
        word_count=8,
        data_type=DataType.ASCII,
        title="Serial Number",
        description="Serial number.",
        version="v01.02",
        category=RegisterCategory.GENERAL,
    ),
    # =========================================================================
    # STATUS (0x0100 - 0x02FF)
    # =========================================================================
    RegisterDefinition(
        name="evse_state",
        address=0x0100,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 7),
        title="EVSE State",
        description="Status of the charging station.",
        values={
            0: "Not initialized",
            1: "Idle (A1)",
            2: "EV connected (B1)",
            3: "Preconditions valid but not charging yet",
            4: "Ready to charge (B2)",
            5: "Charging (C2)",
            6: "Error",
            7: "Service Mode",
        },
        category=RegisterCategory.STATUS,
    ),
    RegisterDefinition(
        name="authorization_status",
        address=0x0101,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 2),
        title="Authorization Status",
        description="Authorization status (RFID and energy manager).",
        values={
            0: "Not used (IDLE)",
            1: "Authorized (charging released)",
            2: "Not authorized (charging not released)",
        },
        category=RegisterCategory.STATUS,
    ),
    RegisterDefinition(
        name="downgrade",
        address=0x0102,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 2),
        title="Downgrade",
        description="Status of the downgrade.",
        values={
            0: "Not relevant (no EV connected)",
            1: "Charging current not downgraded",
            2: "Charging current downgraded",
        },
        category=RegisterCategory.STATUS,
    ),
    RegisterDefinition(
        name="phase_rotation",
        address=0x0103,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 2),
        title="Phase Rotation",
        description="Order of the connected phases (relevant for load management).",
        values={0: "L1 - L2 - L3", 1: "L2 - L3 - L1", 2: "L3 - L1 - L2"},
        category=RegisterCategory.STATUS,
    ),
    RegisterDefinition(
        name="cp_state",
        address=0x0108,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 29),
        title="CP State",
        description="State of the CP communication EVSE-EV.",
        values={
            0: "Init",
            10: "A1 (no EV)",
            11: "B1 (EV connected)",
            12: "C1 (EV ready to charge)",
            13: "D1",
            14: "E (Error)",
            15: "F (Error)",
            26: "A2 (EV disconnected)",
            27: "B2 (EVSE ready to charge)",
            28: "C2 (charging)",
            29: "D2",
        },
        version="v01.02",
        category=RegisterCategory.STATUS,
    ),
    RegisterDefinition(
        name="signaled_current",
        address=0x0114,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Signaled Current",
        description="Signaled current to the EV.",
        unit="A",
        version="v01.03",
        category=RegisterCategory.STATUS,
    ),
    # =========================================================================
    # CONFIGURATION (0x0300 - 0x04FF)
    # =========================================================================
    RegisterDefinition(
        name="downgrade_current",
        address=0x0300,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Downgrade Current",
        description="Charging current limitation while downgrade is active.",
        unit="A",
        category=RegisterCategory.CONFIGURATION,
    ),
    RegisterDefinition(
        name="charging_current_em",
        address=0x0302,
        word_count=2,
        data_type=DataType.FLOAT32,
        access=Access.READ_WRITE,
        valid_range=(0, 32),
        title="Charging Current Energy Manager",
        description=(
            "Charging current limitation by energy manager. 0 = no limitation, "
            "0.01-5.99 = invalid (signals 0A), 6-x = valid limit."
        ),
        unit="A",
        category=RegisterCategory.CONFIGURATION,
    ),
    RegisterDefinition(
        name="max_current_house",
        address=0x0304,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Max Current House (DIP)",
        description="Maximal installation current, configured from DIP switch.",
        unit="A",
        category=RegisterCategory.CONFIGURATION,
    ),
    RegisterDefinition(
        name="max_current_evse",
        address=0x0306,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Max Current EVSE",
        description="Maximal current of the EVSE as configured during the installation.",
        unit="A",
        category=RegisterCategory.CONFIGURATION,
    ),
    RegisterDefinition(
        name="phase_switching_mode",
        address=0x030A,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 2),
        title="Phase Switching Mode",
        description="Phase usage while using the solar algorithm.",
        values={
            0: "Solar only 1 phase",
            1: "Solar only 3 phases",
            2: "Solar dynamic 1 or 3 phases",
        },
        category=RegisterCategory.CONFIGURATION,
    ),
    RegisterDefinition(
        name="phase_options_hw",
        address=0x030C,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 2),
        title="Phase Options HW",
        description="Phase options regarding the hardware.",
        values={0: "HW only 1 phase", 1: "HW only 3 phases", 2: "HW 1 or 3 phases"},
        version="v01.01",
        category=RegisterCategory.CONFIGURATION,
    ),
    RegisterDefinition(
        name="cable_lock_config",
        address=0x030D,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 1),
        title="Cable Lock",
        description="Permanent cable lock configuration.",
        values={0: "Not enabled or unavailable", 1: "Enabled"},
        version="v01.02",
        category=RegisterCategory.CONFIGURATION,
    ),
    RegisterDefinition(
        name="master_lost_fallback_current",
        address=0x030E,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 32),
        title="Master Lost Fallback Current",
        description=(
            "Fallback behaviour if the master (energy manager) is unavailable. "
            "0 = disabled, 1 = pause, 6-32 = continue with value."
        ),
        unit="A",
        version="v01.02",
        category=RegisterCategory.CONFIGURATION,
    ),
    RegisterDefinition(
        name="grid_imbalance",
        address=0x030F,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 1),
        title="Grid Imbalance",
        description="Grid imbalance setting.",
        values={0: "Disabled", 1: "Enabled"},
        version="v01.02",
        category=RegisterCategory.CONFIGURATION,
    ),
    RegisterDefinition(
        name="grid_imbalance_threshold",
        address=0x0310,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(10, 30),
        title="Grid Imbalance Threshold",
        description="Grid imbalance threshold.",
        unit="A",
        version="v01.02",
        category=RegisterCategory.CONFIGURATION,
    ),
    RegisterDefinition(
        name="grid_phases_connected",
        address=0x0311,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 2),
        title="Grid Phases Connected",
        description="Number of grid phases connected to the EVSE.",
        values={0: "L1", 2: "L1, L2 and L3"},
        version="v01.02",
        category=RegisterCategory.CONFIGURATION,
    ),
    RegisterDefinition(
        name="authorization",
        address=0x0312,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 1),
        title="Authorization",
        description="Authorization setting.",
        values={0: "Disabled", 1: "Enabled"},
        version="v01.02",
        category=RegisterCategory.CONFIGURATION,
    ),
    RegisterDefinition(
        name="solar_supported_charging_current",
        address=0x0313,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(6, 32),
        title="Solar Supported Charging Current",
        description="Minimal charging current in solar supported charging (Sunshine+) mode.",
        unit="A",
        version="v01.02",
        category=RegisterCategory.CONFIGURATION,
    ),
    RegisterDefinition(
        name="phase_switching_pause",
        address=0x0314,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 1200),
        title="Phase Switching Pause",
        description="Duration of the pause during a dynamic phase switch.",
        unit="s",
        version="v01.02",
        category=RegisterCategory.CONFIGURATION,
    ),
    # =========================================================================
    # OUTPUT MEASUREMENTS (AC) (0x0500 - 0x06FF)
    # =========================================================================
    RegisterDefinition(
        name="current_l1",
        address=0x0500,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Current L1",
        description="RMS output current of phase L1.",
        unit="A",
        category=RegisterCategory.MEASUREMENT,
    ),
    RegisterDefinition(
        name="current_l2",
        address=0x0502,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Current L2",
        description="RMS output current of phase L2.",
        unit="A",
        category=RegisterCategory.MEASUREMENT,
    ),
    RegisterDefinition(
        name="current_l3",
        address=0x0504,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Current L3",
        description="RMS output current of phase L3.",
        unit="A",
        category=RegisterCategory.MEASUREMENT,
    ),
    RegisterDefinition(
        name="voltage_l1",
        address=0x0506,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Voltage L1",
        description="RMS output voltage of phase L1.",
        unit="V",
        category=RegisterCategory.MEASUREMENT,
    ),
    RegisterDefinition(
        name="voltage_l2",
        address=0x0508,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Voltage L2",
        description="RMS output voltage of phase L2.",
        unit="V",
        category=RegisterCategory.MEASUREMENT,
    ),
    RegisterDefinition(
        name="voltage_l3",
        address=0x050A,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Voltage L3",
        description="RMS output voltage of phase L3.",
        unit="V",
        category=RegisterCategory.MEASUREMENT,
    ),
    RegisterDefinition(
        name="power_l1",
        address=0x050C,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Power L1",
        description="Actual power on phase L1.",
        unit="W",
        category=RegisterCategory.MEASUREMENT,
    ),
    RegisterDefinition(
        name="power_l2",
        address=0x050E,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Power L2",
        description="Actual power on phase L2.",
        unit="W",
        category=RegisterCategory.MEASUREMENT,
    ),
    RegisterDefinition(
        name="power_l3",
        address=0x0510,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Power L3",
        description="Actual power on phase L3.",
        unit="W",
        category=RegisterCategory.MEASUREMENT,
    ),
    RegisterDefinition(
        name="power_overall",
        address=0x0512,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Power Overall",
        description="Actual overall power on all phases.",
        unit="W",
        category=RegisterCategory.MEASUREMENT,
    ),
    # =========================================================================
    # SETTINGS (0x0700 - 0x08FF)
    # =========================================================================
    RegisterDefinition(
        name="maximal_evse_current",
        address=0x0706,
        word_count=1,
        data_type=DataType.UINT16,
        access=Access.READ_WRITE,
        valid_range=(0, 6),
        title="Maximal EVSE Current",
        description="Maximal current of the wallbox.",
        values={
            0: "32A (22kW) / 16A (11kW)",
            1: "25A (22kW) / 16A (11kW)",
            2: "20A (22kW) / 16A (11kW)",
            3: "16A",
            4: "13A",
            5: "10A",
            6: "6A",
        },
        version="v01.03",
        category=RegisterCategory.SETTINGS,
    ),
    RegisterDefinition(
        name="phase_rotation_setting",
        address=0x070A,
        word_count=1,
        data_type=DataType.UINT16,
        access=Access.READ_WRITE,
        valid_range=(0, 2),
        title="Phase Rotation",
        description="Phase rotation on grid side.",
        values={
            0: "L1=L1, L2=L2, L3=L3 (no rotation)",
            1: "L1=L2, L2=L3, L3=L1",
            2: "L1=L3, L2=L1, L3=L2",
        },
        version="v01.03",
        category=RegisterCategory.SETTINGS,
    ),
    RegisterDefinition(
        name="connected_phases",
        address=0x0710,
        word_count=1,
        data_type=DataType.UINT16,
        access=Access.READ_WRITE,
        valid_range=(0, 2),
        title="Connected Phases",
        description="Number of phases connected to the grid.",
        values={0: "L1 is connected", 2: "L1, L2, L3 are connected"},
        version="v01.03",
        category=RegisterCategory.SETTINGS,
    ),
    RegisterDefinition(
        name="phase_usage_solar_charging",
        address=0x071A,
        word_count=1,
        data_type=DataType.UINT16,
        access=Access.READ_WRITE,
        valid_range=(0, 3),
        title="Phase Usage Solar Charging",
        description="Phases used in solar charging.",
        values={
            0: "1ph for 7.4kW, 3ph for 11/22kW",
            1: "Use always one phase",
            2: "Use always three phases",
            3: "Dynamic phase switch",
        },
        version="v01.03",
        category=RegisterCategory.SETTINGS,
    ),
    RegisterDefinition(
        name="fallback_current_master_lost",
        address=0x073A,
        word_count=1,
        data_type=DataType.UINT16,
        access=Access.READ_WRITE,
        valid_range=(0, 32),
        title="Fallback Current Master Lost",
        description=(
            "Fallback behaviour when the heartbeat of the master is not available. "
            "0 = disabled, 1 = pause, 6-32 = fallback current."
        ),
        unit="A",
        version="v01.03",
        category=RegisterCategory.SETTINGS,
    ),
    RegisterDefinition(
        name="solar_charging_active",
        address=0x073C,
        word_count=1,
        data_type=DataType.UINT16,
        access=Access.READ_WRITE,
        valid_range=(0, 1),
        title="Solar Charging Active",
        description="Internal solar modes can be indicated with the help of the solar LEDs.",
        values={0: "Solar Modes not active (DIP7 OFF)", 1: "Solar Modes active (DIP7 ON)"},
        version="v01.03",
        category=RegisterCategory.SETTINGS,
    ),
    RegisterDefinition(
        name="phase_switching_pause_setting",
        address=0x078C,
        word_count=1,
        data_type=DataType.UINT16,
        access=Access.READ_WRITE,
        valid_range=(0, 1200),
        title="Phase Switching Pause",
        description="Time between a phase switch from 1 to 3 phase and vice versa.",
        unit="s",
        version="v01.03",
        category=RegisterCategory.SETTINGS,
    ),
    # =========================================================================
    # INPUT MEASUREMENTS (0x0900 - 0x0AFF)
    # =========================================================================
    RegisterDefinition(
        name="temperature",
        address=0x0900,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Temperature",
        description="Temperature inside the EVSE.",
        unit="°C",
        version="v01.02",
        category=RegisterCategory.INPUT,
    ),
    # =========================================================================
    # CHARGING SESSION (0x0B00 - 0x0CFF)
    # =========================================================================
    RegisterDefinition(
        name="max_current_session",
        address=0x0B00,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Max Current Session",
        description=(
            "Max charging current, evaluated out of all sources that could "
            "restrict the maximal allowed current."
        ),
        unit="A",
        category=RegisterCategory.SESSION,
    ),
    RegisterDefinition(
        name="charged_energy_session",
        address=0x0B02,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Charged Energy Session",
        description="Energy transferred within the current charging session.",
        unit="kWh",
        category=RegisterCategory.SESSION,
    ),
    RegisterDefinition(
        name="duration_session",
        address=0x0B04,
        word_count=2,
        data_type=DataType.UINT32,
        title="Duration Session",
        description="Duration of the current charging session.",
        unit="s",
        category=RegisterCategory.SESSION,
    ),
    RegisterDefinition(
        name="detected_ev_phases",
        address=0x0B06,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 3),
        title="Detected EV Phases",
        description="Maximum number of detected phases of the EV during a charging session.",
        values={
            0: "Not initialized",
            1: "1 phase detected",
            2: "2 phases detected",
            3: "3 phases detected",
        },
        version="v01.02",
        category=RegisterCategory.SESSION,
    ),
    # =========================================================================
    # FUNCTIONS (0x0D00 - 0x0DFF)
    # =========================================================================
    RegisterDefinition(
        name="heartbeat_em",
        address=0x0D00,
        word_count=1,
        data_type=DataType.UINT16,
        access=Access.WRITE,
        title="Heartbeat Energy Manager",
        description="Master heartbeat with value 0x55AA (21930) must be sent at least every 10s.",
        write_value=HEARTBEAT_VALUE,
        category=RegisterCategory.FUNCTION,
    ),
    RegisterDefinition(
        name="cable_lock_status",
        address=0x0D02,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 3),
        title="Cable Lock",
        description="Locking status of the cable.",
        values={
            0: "Cable locking unknown",
            1: "Cable unlocked",
            2: "Cable locked",
            3: "EVSE with fixed cable",
        },
        category=RegisterCategory.FUNCTION,
    ),
    RegisterDefinition(
        name="solar_charging_mode",
        address=0x0D03,
        word_count=1,
        data_type=DataType.UINT16,
        access=Access.READ_WRITE,
        valid_range=(0, 3),
        title="Solar Charging Mode",
        description="Active charge mode.",
        values={
            0: "Solar charging mode not active",
            1: "Fast charging (Standard) Mode",
            2: "Solar charging (Sunshine) Mode",
            3: "Solar supported charging (Sunshine+) Mode",
        },
        category=RegisterCategory.FUNCTION,
    ),
    RegisterDefinition(
        name="requested_phases",
        address=0x0D04,
        word_count=1,
        data_type=DataType.UINT16,
        access=Access.READ_WRITE,
        valid_range=(0, 1),
        title="Requested Phases",
        description=(
            "Requested phases when using dynamic phase usage. "
            "EVSE must support this technically."
        ),
        values={
            0: "Regular charging on all available phases",
            1: "Force charging on 1 phase only",
        },
        category=RegisterCategory.FUNCTION,
    ),
    RegisterDefinition(
        name="charging_release_em",
        address=0x0D05,
        word_count=1,
        data_type=DataType.UINT16,
        access=Access.READ_WRITE,
        valid_range=(0, 1),
        title="Charging Release Energy Manager",
        description="Charging release by energy manager.",
        values={
            0: "Charging not allowed (relays opened)",
            1: "Charging allowed (relays closed)",
        },
        category=RegisterCategory.FUNCTION,
    ),
    RegisterDefinition(
        name="lock_evse",
        address=0x0D06,
        word_count=1,
        data_type=DataType.UINT16,
        access=Access.READ_WRITE,
        valid_range=(0, 1),
        title="Lock EVSE",
        description="Lock charging station (prevent charging).",
        values={0: "EVSE not locked", 1: "EVSE locked"},
        category=RegisterCategory.FUNCTION,
    ),
    RegisterDefinition(
        name="system_restart",
        address=0x0D19,
        word_count=1,
        data_type=DataType.UINT16,
        access=Access.WRITE,
        title="System Restart",
        description=(
            "Trigger a system restart by sending 0xBB once. "
            "Only use when the system is in IDLE state."
        ),
        write_value=SYSTEM_RESTART_VALUE,
        version="v01.03",
        category=RegisterCategory.FUNCTION,
    ),
    # =========================================================================
    # DIAGNOSTIC (0x0E00 - 0x0FFF)
    # =========================================================================
    RegisterDefinition(
        name="active_error_code",
        address=0x0E00,
        word_count=1,
        data_type=DataType.UINT16,
        title="Active Error Code",
        description="Error code in case of an active error. 0 = no error active.",
        category=RegisterCategory.DIAGNOSTIC,
    ),
    RegisterDefinition(
        name="master_lost_fallback_state",
        address=0x0E01,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 1),
        title="Master Lost Fallback State",
        description="Master lost fallback state.",
        values={0: "Not active", 1: "Active (energy manager unavailable)"},
        version="v01.02",
        category=RegisterCategory.DIAGNOSTIC,
    ),
    RegisterDefinition(
        name="switched_phases",
        address=0x0E02,
        word_count=1,
        data_type=DataType.UINT16,
        valid_range=(0, 1),
        title="Switched Phases",
        description=(
            "Phase that is used, or will be used if the EVSE closes the charging relay."
        ),
        values={
            0: "Regular charging on all available phases",
            1: "Only 1 phase charging",
        },
        version="v01.02",
        category=RegisterCategory.DIAGNOSTIC,
    ),
    # =========================================================================
    # STATISTICS (0x1000 - 0x1FFF)
    # =========================================================================
    RegisterDefinition(
        name="charged_energy_total",
        address=0x1000,
        word_count=2,
        data_type=DataType.FLOAT32,
        title="Charged Energy Total",
        description=(
            "Cumulated charged energy on the AC port of the EVSE of all time. "
            "Not usable for billing."
        ),
        unit="kWh",
        version="v01.02",
        category=RegisterCategory.STATISTICS,
    ),
    RegisterDefinition(
        name="charging_sessions_total",
        address=0x1002,
        word_count=2,
        data_type=DataType.UINT32,
        title="Charging Sessions Total",
        description="Total number of charging sessions.",
        version="v01.02",
        category=RegisterCategory.STATISTICS,
    ),
)


def _validate_catalog(registers: tuple[RegisterDefinition, ...]) -> None:
    """Reject duplicate names and overlapping address ranges."""
    seen_names: set[str] = set()
    for reg in registers:
        if reg.name in seen_names:
            raise ValueError(f"Duplicate register name: {reg.name}")
        seen_names.add(reg.name)

    ordered = sorted(registers, key=lambda r: r.address)
    for prev, curr in zip(ordered, ordered[1:]):
        if curr.address <= prev.end_address:
            raise ValueError(
                f"Register {curr.name} at 0x{curr.address:04X} overlaps "
                f"{prev.name} (0x{prev.address:04X}-0x{prev.end_address:04X})"
            )


_validate_catalog(AMTRON_REGISTERS)


# =============================================================================
# LOOKUP INDEXES (built once at import time)
# =============================================================================

# name → RegisterDefinition
BY_NAME: dict[str, RegisterDefinition] = {r.name: r for r in AMTRON_REGISTERS}

# start address → RegisterDefinition
BY_ADDRESS: dict[int, RegisterDefinition] = {r.address: r for r in AMTRON_REGISTERS}

# Category → tuple of RegisterDefinitions
BY_CATEGORY: dict[RegisterCategory, tuple[RegisterDefinition, ...]] = {}
for _reg in AMTRON_REGISTERS:
    BY_CATEGORY.setdefault(_reg.category, ())
    BY_CATEGORY[_reg.category] = (*BY_CATEGORY[_reg.category], _reg)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def lookup(name: str) -> RegisterDefinition:
    """Resolve a register name (case-insensitive) to its definition.

    Raises:
        UnknownRegisterError: If the name is not in the catalog.
    """
    try:
        return BY_NAME[name.strip().lower()]
    except (KeyError, AttributeError):
        raise UnknownRegisterError(name) from None


def lookup_address(address: int) -> RegisterDefinition | None:
    """Return the register starting at *address*, or None."""
    return BY_ADDRESS.get(address)


def readable_registers() -> tuple[RegisterDefinition, ...]:
    """Return all registers that can be read."""
    return tuple(r for r in AMTRON_REGISTERS if r.readable)


def writable_registers() -> tuple[RegisterDefinition, ...]:
    """Return all registers that can be written."""
    return tuple(r for r in AMTRON_REGISTERS if r.writable)


def describe_value(name: str, raw: int | None) -> str:
    """Return the enumeration label for *raw*, or ``"Unknown"``."""
    reg = lookup(name)
    if raw is None:
        return "Unknown"
    return reg.values.get(raw, "Unknown")
