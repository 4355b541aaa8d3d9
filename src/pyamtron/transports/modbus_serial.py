"""Modbus RTU serial transport implementation.

This module provides the ModbusSerialTransport class for communicating with
a Mennekes Amtron charger via Modbus RTU over a USB-to-RS485 serial adapter.

IMPORTANT: Single-Client Limitation
------------------------------------
Serial ports support only ONE concurrent connection.  The charger also
expects exactly one energy manager writing the heartbeat register.

Example:
    transport = ModbusSerialTransport(port="/dev/ttyUSB0")
    await transport.connect()
    transport.start_keep_alive()

    state = await transport.read_register("evse_state")
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from pyamtron.registers.amtron import (
    DATA_BITS,
    DEFAULT_BAUDRATE,
    DEFAULT_PARITY,
    DEFAULT_STOP_BITS,
)

from ._modbus_base import BaseModbusTransport
from .config import SerialConfig
from .exceptions import TransportConnectionError

if TYPE_CHECKING:
    from pymodbus.client import AsyncModbusSerialClient

_LOGGER = logging.getLogger(__name__)


class ModbusSerialTransport(BaseModbusTransport):
    """Modbus RTU serial session for the Amtron charger.

    Example:
        config = SerialConfig.from_env()
        async with ModbusSerialTransport.from_config(config) as transport:
            current = await transport.read_register("charging_current_em")

    Note:
        Requires the `pymodbus` and `pyserial` packages.
    """

    transport_type: str = "modbus_serial"

    # Seconds the serial adapter is given to settle after opening
    settle_delay: float = 0.2

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        bytesize: int = DATA_BITS,
        parity: str = DEFAULT_PARITY,
        stopbits: int = DEFAULT_STOP_BITS,
        unit_id: int = 1,
        timeout: float = 1.0,
        max_retries: int = 3,
        retry_delay: float = 0.5,
        reconnect_interval: float = 5.0,
        health_check_interval: float = 30.0,
        keep_alive_initial_delay: float = 2.0,
        keep_alive_interval: float = 9.0,
    ) -> None:
        """Initialize Modbus serial transport.

        Args:
            port: Serial port path (e.g., /dev/ttyUSB0, COM3)
            baudrate: Serial baud rate (default 57600)
            bytesize: Data bits per byte (default 8)
            parity: Parity setting - 'N' (none), 'E' (even), 'O' (odd)
            stopbits: Number of stop bits (default 2)
            unit_id: Modbus unit/slave ID (1 direct, 50 satellite)
            timeout: Response timeout per exchange in seconds
            max_retries: Retries after the first failed attempt
            retry_delay: Fixed delay between attempts in seconds
            reconnect_interval: Delay before each reconnect attempt
            health_check_interval: Period of the connection health check
            keep_alive_initial_delay: Grace delay before the first heartbeat
            keep_alive_interval: Heartbeat period in seconds
        """
        super().__init__(
            unit_id=unit_id,
            timeout=timeout,
            max_retries=max_retries,
            retry_delay=retry_delay,
            reconnect_interval=reconnect_interval,
            health_check_interval=health_check_interval,
            keep_alive_initial_delay=keep_alive_initial_delay,
            keep_alive_interval=keep_alive_interval,
        )
        self._port = port
        self._baudrate = baudrate
        self._bytesize = bytesize
        self._parity = parity
        self._stopbits = stopbits
        # Narrow type for serial client
        self._client: AsyncModbusSerialClient | None = None

    @classmethod
    def from_config(cls, config: SerialConfig) -> ModbusSerialTransport:
        """Create a transport from a validated SerialConfig."""
        config.validate()
        return cls(
            port=config.port,
            baudrate=config.baudrate,
            bytesize=config.bytesize,
            parity=config.parity,
            stopbits=config.stopbits,
            unit_id=config.unit_id,
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            reconnect_interval=config.reconnect_interval,
            health_check_interval=config.health_check_interval,
            keep_alive_initial_delay=config.keep_alive_initial_delay,
            keep_alive_interval=config.keep_alive_interval,
        )

    @property
    def endpoint(self) -> str:
        """Serial port and framing used in log messages."""
        return (
            f"{self._port} @ {self._baudrate} baud "
            f"{self._bytesize}{self._parity}{self._stopbits} (unit {self._unit_id})"
        )

    @property
    def port(self) -> str:
        """Get the serial port path."""
        return self._port

    @property
    def baudrate(self) -> int:
        """Get the serial baud rate."""
        return self._baudrate

    async def _open_client(self) -> AsyncModbusSerialClient:
        """Open the serial port.

        Raises:
            TransportConnectionError: If the port cannot be opened
        """
        from pymodbus.client import AsyncModbusSerialClient

        try:
            client = AsyncModbusSerialClient(
                port=self._port,
                baudrate=self._baudrate,
                bytesize=self._bytesize,
                parity=self._parity,
                stopbits=self._stopbits,
                timeout=self._timeout,
                retries=0,
            )
            try:
                connected = await client.connect()
                if not connected:
                    raise TransportConnectionError(
                        f"Failed to connect to serial port {self._port}"
                    )

                # Brief delay to allow serial port to stabilize
                await asyncio.sleep(self.settle_delay)
            except BaseException:
                client.close()
                raise
            return client

        except PermissionError as err:
            _LOGGER.error(
                "Permission denied opening serial port %s: %s",
                self._port,
                err,
            )
            raise TransportConnectionError(
                f"Permission denied for {self._port}. "
                "On Linux, add user to 'dialout' group: "
                "sudo usermod -a -G dialout $USER"
            ) from err
        except (TimeoutError, OSError) as err:
            _LOGGER.error(
                "Failed to connect to serial port %s: %s",
                self._port,
                err,
            )
            raise TransportConnectionError(
                f"Failed to connect to {self._port}: {err}. "
                "Verify: (1) serial port exists, (2) charger is powered, "
                "(3) correct permissions, (4) port is not in use by "
                "another application."
            ) from err


__all__ = ["ModbusSerialTransport"]
