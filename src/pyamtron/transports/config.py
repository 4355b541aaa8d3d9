"""Transport configuration for the Amtron serial connection.

This module provides the SerialConfig dataclass for configuring the serial
transport in a uniform way, supporting serialization to/from dictionaries
and loading from environment variables (optionally via a ``.env`` file).

Example:
    # Satellite mode on a USB adapter
    config = SerialConfig(
        port="/dev/ttyUSB0",
        unit_id=SATELLITE_UNIT_ID,
    )
    config.validate()

    # Serialize to dict for storage
    data = config.to_dict()

    # Restore from dict
    restored = SerialConfig.from_dict(data)
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from pyamtron.registers.amtron import (
    DATA_BITS,
    DEFAULT_BAUDRATE,
    DEFAULT_PARITY,
    DEFAULT_STOP_BITS,
    DIRECT_UNIT_ID,
    HEARTBEAT_WINDOW,
)

# pymodbus parity letters keyed by the names used in configuration files
PARITY_ALIASES: dict[str, str] = {
    "none": "N",
    "n": "N",
    "even": "E",
    "e": "E",
    "odd": "O",
    "o": "O",
}


def default_port() -> str:
    """Platform default serial port."""
    return "COM3" if sys.platform == "win32" else "/dev/ttyUSB0"


def normalize_parity(parity: str) -> str:
    """Map ``none``/``even``/``odd`` (or N/E/O) to the pymodbus letter."""
    try:
        return PARITY_ALIASES[parity.strip().lower()]
    except KeyError:
        raise ValueError(f"parity must be none, even or odd, got {parity!r}") from None


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


def _as_bool(value: Any, default: bool) -> bool:
    if value is None or isinstance(value, str):
        return _env_bool(value, default)
    return bool(value)


@dataclass
class SerialConfig:
    """Configuration for the Modbus RTU serial session.

    Attributes:
        port: Serial port path (e.g. /dev/ttyUSB0 or COM3)
        baudrate: Serial baud rate (default 57600)
        bytesize: Data bits per byte (fixed 8 on this device)
        parity: 'N' (none), 'E' (even) or 'O' (odd)
        stopbits: Number of stop bits (default 2)
        unit_id: Modbus unit/slave ID (1 direct, 50 satellite)
        timeout: Response timeout per wire exchange in seconds
        max_retries: Retries after the first failed attempt
        retry_delay: Fixed delay between attempts in seconds
        reconnect_interval: Delay before each reconnect attempt in seconds
        health_check_interval: Period of the connection health check in seconds
        keep_alive_enabled: Start the heartbeat after connecting
        keep_alive_initial_delay: Grace delay before the first heartbeat
        keep_alive_interval: Heartbeat period; must stay below the device's
            10 s window
    """

    port: str = ""
    baudrate: int = DEFAULT_BAUDRATE
    bytesize: int = DATA_BITS
    parity: str = DEFAULT_PARITY
    stopbits: int = DEFAULT_STOP_BITS
    unit_id: int = DIRECT_UNIT_ID
    timeout: float = 1.0
    max_retries: int = 3
    retry_delay: float = 0.5
    reconnect_interval: float = 5.0
    health_check_interval: float = 30.0
    keep_alive_enabled: bool = True
    keep_alive_initial_delay: float = 2.0
    keep_alive_interval: float = 9.0

    def __post_init__(self) -> None:
        if not self.port:
            self.port = default_port()
        self.parity = normalize_parity(self.parity)

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        if self.baudrate <= 0:
            raise ValueError("baudrate must be positive")
        if self.bytesize != DATA_BITS:
            raise ValueError(f"bytesize must be {DATA_BITS}")
        if self.stopbits not in (1, 2):
            raise ValueError("stopbits must be 1 or 2")
        if not 1 <= self.unit_id <= 247:
            raise ValueError("unit_id must be between 1 and 247")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.retry_delay < 0 or self.reconnect_interval <= 0:
            raise ValueError("retry_delay and reconnect_interval must be positive")
        if self.health_check_interval <= 0:
            raise ValueError("health_check_interval must be positive")
        if not 0 < self.keep_alive_interval < HEARTBEAT_WINDOW:
            raise ValueError(f"keep_alive_interval must be between 0 and {HEARTBEAT_WINDOW}s")
        if self.keep_alive_initial_delay < 0:
            raise ValueError("keep_alive_initial_delay must not be negative")

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return {
            "port": self.port,
            "baudrate": self.baudrate,
            "bytesize": self.bytesize,
            "parity": self.parity,
            "stopbits": self.stopbits,
            "unit_id": self.unit_id,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
            "retry_delay": self.retry_delay,
            "reconnect_interval": self.reconnect_interval,
            "health_check_interval": self.health_check_interval,
            "keep_alive_enabled": self.keep_alive_enabled,
            "keep_alive_initial_delay": self.keep_alive_initial_delay,
            "keep_alive_interval": self.keep_alive_interval,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SerialConfig:
        """Create configuration from dictionary (the inverse of to_dict())."""
        defaults = cls()
        return cls(
            port=data.get("port", defaults.port),
            baudrate=int(data.get("baudrate", defaults.baudrate)),
            bytesize=int(data.get("bytesize", defaults.bytesize)),
            parity=data.get("parity", defaults.parity),
            stopbits=int(data.get("stopbits", defaults.stopbits)),
            unit_id=int(data.get("unit_id", defaults.unit_id)),
            timeout=float(data.get("timeout", defaults.timeout)),
            max_retries=int(data.get("max_retries", defaults.max_retries)),
            retry_delay=float(data.get("retry_delay", defaults.retry_delay)),
            reconnect_interval=float(data.get("reconnect_interval", defaults.reconnect_interval)),
            health_check_interval=float(
                data.get("health_check_interval", defaults.health_check_interval)
            ),
            keep_alive_enabled=_as_bool(
                data.get("keep_alive_enabled"), defaults.keep_alive_enabled
            ),
            keep_alive_initial_delay=float(
                data.get("keep_alive_initial_delay", defaults.keep_alive_initial_delay)
            ),
            keep_alive_interval=float(
                data.get("keep_alive_interval", defaults.keep_alive_interval)
            ),
        )

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        *,
        dotenv_path: str | Path | None = None,
    ) -> SerialConfig:
        """Create configuration from ``MODBUS_*`` environment variables.

        Args:
            env: Mapping to read instead of ``os.environ`` (no .env loading).
            dotenv_path: Optional .env file loaded into the environment first.

        Timeouts and intervals are given in milliseconds.
        """
        if env is None:
            load_dotenv(dotenv_path)
            env = os.environ

        def _get(key: str) -> str | None:
            value = env.get(key)
            return value if value not in (None, "") else None

        defaults = cls()
        timeout_ms = _get("MODBUS_TIMEOUT")
        reconnect_ms = _get("MODBUS_RECONNECT_INTERVAL")
        return cls(
            port=_get("MODBUS_PORT") or defaults.port,
            baudrate=int(_get("MODBUS_BAUDRATE") or defaults.baudrate),
            bytesize=int(_get("MODBUS_DATABITS") or defaults.bytesize),
            parity=_get("MODBUS_PARITY") or defaults.parity,
            stopbits=int(_get("MODBUS_STOPBITS") or defaults.stopbits),
            unit_id=int(_get("MODBUS_SLAVE_ID") or defaults.unit_id),
            timeout=int(timeout_ms) / 1000 if timeout_ms else defaults.timeout,
            max_retries=int(_get("MODBUS_MAX_RETRIES") or defaults.max_retries),
            reconnect_interval=(
                int(reconnect_ms) / 1000 if reconnect_ms else defaults.reconnect_interval
            ),
            keep_alive_enabled=_env_bool(env.get("HEARTBEAT_ENABLED"), True),
        )


@dataclass
class RpcConfig:
    """JSON-RPC HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> RpcConfig:
        """Create configuration from ``RPC_HOST`` / ``RPC_PORT``."""
        if env is None:
            env = os.environ
        return cls(
            host=env.get("RPC_HOST") or cls.host,
            port=int(env.get("RPC_PORT") or cls.port),
        )


__all__ = [
    "PARITY_ALIASES",
    "RpcConfig",
    "SerialConfig",
    "default_port",
    "normalize_parity",
]
