"""Shared Modbus session logic for the Amtron transports.

This module provides the BaseModbusTransport class containing the
register-level read/write logic with retry handling, the connection state
machine, reconnection scheduling, the periodic health check and the
heartbeat scheduler.

Subclasses must implement:
- _open_client(): create and open the protocol-specific pymodbus client
- endpoint property: human-readable connection target for logging

Invariant: at most one wire exchange is in flight.  Every request to the
pymodbus client (application reads/writes, health check, heartbeat) is made
while holding ``self._lock``; retry and reconnect delays are spent outside it.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from pymodbus.exceptions import ConnectionException, ModbusException, ModbusIOException

from pyamtron.exceptions import AccessViolationError, AmtronError
from pyamtron.registers.amtron import lookup
from pyamtron.transports.codec import decode, encode
from pyamtron.transports.events import (
    ConnectionEvent,
    ConnectionState,
    EventListeners,
    Listener,
)
from pyamtron.transports.exceptions import (
    NotConnectedError,
    PortClosedError,
    TransportConnectionError,
    TransportError,
    TransportReadError,
    TransportTimeoutError,
    TransportWriteError,
)
from pyamtron.transports.keepalive import KeepAliveScheduler

_LOGGER = logging.getLogger(__name__)

__all__ = ["BaseModbusTransport", "HEALTH_CHECK_REGISTER"]

# Cheap single-word register read by the periodic health check
HEALTH_CHECK_REGISTER = "evse_state"

# Extra time granted on top of the pymodbus timeout before an exchange is
# abandoned by asyncio.wait_for
_EXCHANGE_GRACE = 0.5

_TIMEOUT_MARKERS = ("timeout", "timed out", "no response")


def _is_timeout(err: BaseException) -> bool:
    message = str(err).lower()
    return any(marker in message for marker in _TIMEOUT_MARKERS)


class BaseModbusTransport:
    """Base class for the Amtron Modbus session.

    Provides named register read/write with retry handling, connection-loss
    detection, single-flight reconnection, a periodic health check and the
    heartbeat scheduler.

    Subclasses must implement ``_open_client()`` returning an opened pymodbus
    async client, and raise ``TransportConnectionError`` on failure.
    """

    def __init__(
        self,
        *,
        unit_id: int = 1,
        timeout: float = 1.0,
        max_retries: int = 3,
        retry_delay: float = 0.5,
        reconnect_interval: float = 5.0,
        health_check_interval: float = 30.0,
        keep_alive_initial_delay: float = 2.0,
        keep_alive_interval: float = 9.0,
    ) -> None:
        """Initialize base Modbus transport.

        Args:
            unit_id: Modbus unit/slave ID (default 1)
            timeout: Response timeout per wire exchange in seconds
            max_retries: Retries after the first failed attempt (default 3)
            retry_delay: Fixed delay between attempts in seconds (default 0.5)
            reconnect_interval: Delay before each reconnect attempt in seconds
            health_check_interval: Period of the connection health check
            keep_alive_initial_delay: Grace delay before the first heartbeat
            keep_alive_interval: Period of the heartbeat (below 10s)
        """
        self._unit_id = unit_id
        self._timeout = timeout
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._reconnect_interval = reconnect_interval
        self._health_check_interval = health_check_interval
        self._client: Any = None
        self._lock = asyncio.Lock()
        self._state = ConnectionState.DISCONNECTED
        self._listeners = EventListeners()
        self._auto_reconnect = True
        self._reconnect_task: asyncio.Task[None] | None = None
        self._health_task: asyncio.Task[None] | None = None
        self._last_retry_count = 0
        self._keep_alive = KeepAliveScheduler(
            self,
            initial_delay=keep_alive_initial_delay,
            interval=keep_alive_interval,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def endpoint(self) -> str:
        """Connection target used in log messages."""
        raise NotImplementedError

    @property
    def unit_id(self) -> int:
        """Get the Modbus unit/slave ID."""
        return self._unit_id

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """True while the session is connected."""
        return self._state is ConnectionState.CONNECTED

    @property
    def is_reconnecting(self) -> bool:
        """True while a reconnect attempt is scheduled."""
        return self._reconnect_task is not None and not self._reconnect_task.done()

    @property
    def keep_alive(self) -> KeepAliveScheduler:
        """Heartbeat scheduler owned by this session."""
        return self._keep_alive

    @property
    def last_retry_count(self) -> int:
        """Failed attempts of the most recent wire operation on this session.

        Diagnostic only.  The value is shared by every caller of the session,
        so a heartbeat or health check that runs afterwards overwrites it.
        """
        return self._last_retry_count

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_listener(self, event: ConnectionEvent | str, callback: Listener) -> Callable[[], None]:
        """Subscribe to a connection event.

        Returns:
            Function that removes the listener again.
        """
        return self._listeners.add(event, callback)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def _open_client(self) -> Any:
        """Create and open the pymodbus client.

        Raises:
            TransportConnectionError: If the client cannot be opened
        """
        raise NotImplementedError

    async def connect(self) -> None:
        """Open the connection and start the health check.

        On failure an ``error`` event is emitted, a reconnect is scheduled and
        the failure is re-raised.

        Raises:
            TransportConnectionError: If connection fails
        """
        _LOGGER.info("Connecting to Modbus RTU on %s...", self.endpoint)
        self._auto_reconnect = True
        try:
            async with self._lock:
                self._close_client()
                self._client = await self._open_client()
        except Exception as err:
            conn_err = (
                err
                if isinstance(err, TransportConnectionError)
                else TransportConnectionError(f"Failed to open {self.endpoint}: {err}")
            )
            self._state = ConnectionState.DISCONNECTED
            _LOGGER.error("Failed to connect to Modbus RTU: %s", conn_err)
            self._listeners.emit(ConnectionEvent.ERROR, conn_err)
            self._schedule_reconnect()
            if conn_err is err:
                raise
            raise conn_err from err

        self._state = ConnectionState.CONNECTED
        self._cancel_reconnect()
        _LOGGER.info("Successfully connected to Modbus RTU device on %s", self.endpoint)
        self._listeners.emit(ConnectionEvent.CONNECTED)
        self._start_health_check()

    async def disconnect(self) -> None:
        """Stop timers, close the connection and emit ``disconnected``.

        Idempotent.  An exchange already in flight completes (or times out)
        before the handle is closed.
        """
        self._auto_reconnect = False
        # Timers are only cancelled between exchanges, never inside one
        async with self._lock:
            await self._keep_alive.stop()
            await self._cancel_task(self._health_task)
            self._health_task = None
            await self._cancel_task(self._reconnect_task)
            self._reconnect_task = None

            had_client = self._client is not None
            self._close_client()

        was_connected = self._state is ConnectionState.CONNECTED
        self._state = ConnectionState.DISCONNECTED
        if had_client or was_connected:
            _LOGGER.info("Disconnected from Modbus RTU device on %s", self.endpoint)
            self._listeners.emit(ConnectionEvent.DISCONNECTED)

    async def __aenter__(self) -> BaseModbusTransport:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.disconnect()

    def _close_client(self) -> None:
        """Close the pymodbus client.  Caller holds the lock."""
        client, self._client = self._client, None
        if client is None:
            return
        try:
            client.close()
        except Exception as err:
            _LOGGER.warning("Error closing Modbus client: %s", err)

    def _ensure_connected(self) -> None:
        if self._state is not ConnectionState.CONNECTED:
            raise NotConnectedError()

    def _handle_connection_lost(self, err: BaseException) -> None:
        """Mark the session disconnected and schedule a reconnect."""
        if not self._auto_reconnect:
            return
        if self._state is ConnectionState.CONNECTED:
            self._state = ConnectionState.DISCONNECTED
            _LOGGER.warning("Modbus connection lost (%s), attempting to reconnect...", err)
            self._listeners.emit(ConnectionEvent.CONNECTION_LOST)
        self._schedule_reconnect()

    # ------------------------------------------------------------------
    # Reconnection
    # ------------------------------------------------------------------

    def _schedule_reconnect(self) -> None:
        """Schedule one reconnect attempt.  No-op if one is already pending."""
        if self.is_reconnecting or not self._auto_reconnect:
            return
        _LOGGER.info("Scheduling reconnection in %.1fs...", self._reconnect_interval)
        self._reconnect_task = asyncio.create_task(
            self._reconnect_after_delay(), name="amtron-reconnect"
        )

    async def _reconnect_after_delay(self) -> None:
        await asyncio.sleep(self._reconnect_interval)
        # Clear before connecting so a failed attempt can schedule the next one
        self._reconnect_task = None
        try:
            await self.connect()
        except TransportError as err:
            _LOGGER.error("Reconnection failed: %s", err)

    def _cancel_reconnect(self) -> None:
        task = self._reconnect_task
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        self._reconnect_task = None

    @staticmethod
    async def _cancel_task(task: asyncio.Task[None] | None) -> None:
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    # ------------------------------------------------------------------
    # Health check
    # ------------------------------------------------------------------

    def _start_health_check(self) -> None:
        if self._health_task is not None and not self._health_task.done():
            self._health_task.cancel()
        self._health_task = asyncio.create_task(
            self._health_check_loop(), name="amtron-health-check"
        )

    async def _health_check_loop(self) -> None:
        while True:
            await asyncio.sleep(self._health_check_interval)
            try:
                await self.read_register(HEALTH_CHECK_REGISTER)
            except AmtronError as err:
                _LOGGER.warning("Connection check failed, attempting reconnection...")
                self._health_task = None
                self._handle_connection_lost(err)
                return

    # ------------------------------------------------------------------
    # Heartbeat
    # ------------------------------------------------------------------

    def start_keep_alive(self) -> None:
        """Start the periodic heartbeat write."""
        self._keep_alive.start()

    async def stop_keep_alive(self) -> None:
        """Stop the periodic heartbeat write.

        A heartbeat already on the wire is allowed to finish first.
        """
        async with self._lock:
            await self._keep_alive.stop()

    # ------------------------------------------------------------------
    # Wire-level exchange (with retry and error tracking)
    # ------------------------------------------------------------------

    async def _exchange(
        self,
        request: Callable[[Any], Awaitable[Any]],
        description: str,
        error_cls: type[TransportError],
    ) -> Any:
        """Perform one request/response exchange while holding the lock."""
        async with self._lock:
            client = self._client
            if client is None:
                raise PortClosedError("Serial port not open")
            try:
                result = await asyncio.wait_for(
                    request(client), timeout=self._timeout + _EXCHANGE_GRACE
                )
            except ConnectionException as err:
                raise PortClosedError(f"Port not open while {description}: {err}") from err
            except ModbusIOException as err:
                if _is_timeout(err):
                    raise TransportTimeoutError(f"Timeout {description}") from err
                raise error_cls(f"Failed {description}: {err}") from err
            except TimeoutError as err:
                raise TransportTimeoutError(f"Timeout {description}") from err
            except OSError as err:
                raise PortClosedError(f"Serial port error while {description}: {err}") from err
            except ModbusException as err:
                raise error_cls(f"Failed {description}: {err}") from err

        if result.isError():
            raise error_cls(f"Modbus error {description}: {result}")
        return result

    async def _execute(
        self,
        request: Callable[[Any], Awaitable[Any]],
        description: str,
        error_cls: type[TransportError],
    ) -> Any:
        """Run an exchange with up to ``max_retries`` retries.

        Timeouts and port errors additionally trigger the connection-lost
        path on the attempt where they occur.
        """
        last_err: TransportError | None = None
        self._last_retry_count = 0

        for attempt in range(self._max_retries + 1):
            try:
                return await self._exchange(request, description, error_cls)
            except (TransportTimeoutError, PortClosedError) as err:
                last_err = err
                self._handle_connection_lost(err)
            except TransportError as err:
                last_err = err

            self._last_retry_count = attempt + 1
            _LOGGER.error("Error %s: %s", description, last_err)
            if attempt < self._max_retries:
                _LOGGER.debug(
                    "Retrying %s (%d/%d) after %.1fs",
                    description,
                    attempt + 1,
                    self._max_retries,
                    self._retry_delay,
                )
                await asyncio.sleep(self._retry_delay)

        _LOGGER.error(
            "Giving up %s after %d attempts: %s",
            description,
            self._max_retries + 1,
            last_err,
        )
        raise last_err  # type: ignore[misc]

    async def _read_holding_registers(self, address: int, count: int) -> list[int]:
        """Read holding registers (function code 0x03).

        Raises:
            TransportReadError: If read fails after all retries
            TransportTimeoutError: If the last attempt timed out
            PortClosedError: If the last attempt found the port closed
        """
        description = f"reading {count} register(s) at 0x{address:04X}"
        result = await self._execute(
            lambda client: client.read_holding_registers(
                address=address,
                count=count,
                device_id=self._unit_id,
            ),
            description,
            TransportReadError,
        )
        registers = getattr(result, "registers", None)
        if registers is None or len(registers) != count:
            raise TransportReadError(f"Invalid Modbus response {description}: {registers!r}")
        return list(registers)

    async def _write_holding_registers(self, address: int, values: list[int]) -> None:
        """Write holding registers.

        Uses write single register (0x06) for one word and write multiple
        registers (0x10) otherwise.

        Raises:
            TransportWriteError: If write fails after all retries
            TransportTimeoutError: If the last attempt timed out
            PortClosedError: If the last attempt found the port closed
        """
        description = f"writing {len(values)} register(s) at 0x{address:04X}"
        if len(values) == 1:
            await self._execute(
                lambda client: client.write_register(
                    address=address,
                    value=values[0],
                    device_id=self._unit_id,
                ),
                description,
                TransportWriteError,
            )
        else:
            await self._execute(
                lambda client: client.write_registers(
                    address=address,
                    values=values,
                    device_id=self._unit_id,
                ),
                description,
                TransportWriteError,
            )

    # ------------------------------------------------------------------
    # Named register access
    # ------------------------------------------------------------------

    async def read_register(self, name: str) -> int | float | str:
        """Read and decode a register by name.

        Raises:
            UnknownRegisterError: Name not in the catalog (no I/O)
            AccessViolationError: Register is write-only (no I/O)
            NotConnectedError: Session is disconnected (no I/O)
            DecodeError: Response cannot be decoded
            TransportError: Wire failure after all retries
        """
        reg = lookup(name)
        if not reg.readable:
            raise AccessViolationError(reg.name, "readable")
        self._ensure_connected()

        words = await self._read_holding_registers(reg.address, reg.word_count)
        return decode(reg, words)

    async def write_register(self, name: str, value: int | float) -> None:
        """Encode and write a register by name.

        Raises:
            UnknownRegisterError: Name not in the catalog (no I/O)
            AccessViolationError: Register is read-only (no I/O)
            EncodeError: Value does not fit the register type (no I/O)
            NotConnectedError: Session is disconnected (no I/O)
            TransportError: Wire failure after all retries
        """
        reg = lookup(name)
        if not reg.writable:
            raise AccessViolationError(reg.name, "writable")
        words = encode(reg, value)
        self._ensure_connected()

        await self._write_holding_registers(reg.address, words)
        _LOGGER.debug("Successfully wrote %s to register %s", value, reg.name)

    async def read_many(self, names: Iterable[str]) -> dict[str, int | float | str | None]:
        """Read several registers one after another.

        A failing register is logged and reported as None; the remaining
        registers are still read.
        """
        results: dict[str, int | float | str | None] = {}
        for name in names:
            try:
                results[name] = await self.read_register(name)
            except AmtronError as err:
                _LOGGER.error("Failed to read %s: %s", name, err)
                results[name] = None
        return results
