"""Periodic master heartbeat for the Amtron charger.

The charger expects the energy manager to write 0x55AA to the heartbeat
register at least every 10 seconds; otherwise it enters its master-lost
fallback (pause or reduced current).  The scheduler fires after a short
grace delay, so it does not collide with the startup reads, and then every
9 seconds.

Heartbeat writes go through the transport's ``write_register`` and therefore
through its wire lock, so they never overlap an application request.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from pyamtron.registers.amtron import HEARTBEAT_VALUE, HEARTBEAT_WINDOW

if TYPE_CHECKING:
    from pyamtron.transports._modbus_base import BaseModbusTransport

_LOGGER = logging.getLogger(__name__)

HEARTBEAT_REGISTER = "heartbeat_em"


class KeepAliveScheduler:
    """Send the heartbeat write on a fixed schedule until stopped."""

    def __init__(
        self,
        transport: BaseModbusTransport,
        *,
        register: str = HEARTBEAT_REGISTER,
        value: int = HEARTBEAT_VALUE,
        initial_delay: float = 2.0,
        interval: float = 9.0,
    ) -> None:
        """Initialize the scheduler.

        Args:
            transport: Session the heartbeat is written through
            register: Name of the heartbeat register
            value: Constant value written on every tick
            initial_delay: Seconds before the first heartbeat
            interval: Seconds between heartbeats (must be below 10s)

        Raises:
            ValueError: If the interval does not fit the device's window
        """
        if not 0 < interval < HEARTBEAT_WINDOW:
            raise ValueError(
                f"Heartbeat interval must be below {HEARTBEAT_WINDOW}s, got {interval}s"
            )
        self._transport = transport
        self._register = register
        self._value = value
        self._initial_delay = initial_delay
        self._interval = interval
        self._task: asyncio.Task[None] | None = None
        self._sent = 0
        self._failed = 0

    @property
    def is_running(self) -> bool:
        """True while the heartbeat task is scheduled."""
        return self._task is not None and not self._task.done()

    @property
    def sent_count(self) -> int:
        """Number of successful heartbeat writes."""
        return self._sent

    @property
    def failed_count(self) -> int:
        """Number of failed heartbeat writes."""
        return self._failed

    def start(self) -> None:
        """Start sending heartbeats.  No-op if already running."""
        if self.is_running:
            return
        _LOGGER.info(
            "Starting heartbeat transmission (0x%04X every %.1fs)",
            self._value,
            self._interval,
        )
        self._task = asyncio.create_task(self._run(), name="amtron-heartbeat")

    async def stop(self) -> None:
        """Cancel the pending heartbeat.  Safe to call when not running."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        _LOGGER.info("Stopped heartbeat transmission")

    async def send_heartbeat(self) -> bool:
        """Write one heartbeat.  Failures are logged and reported as False."""
        try:
            await self._transport.write_register(self._register, self._value)
        except Exception as err:
            self._failed += 1
            _LOGGER.error("Failed to send heartbeat: %s", err)
            return False
        self._sent += 1
        _LOGGER.debug("Heartbeat sent successfully")
        return True

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        await asyncio.sleep(self._initial_delay)
        next_tick = loop.time()
        while True:
            await self.send_heartbeat()
            # Fixed rate: ticks start every interval regardless of write time
            next_tick += self._interval
            now = loop.time()
            if next_tick < now:
                next_tick = now
            await asyncio.sleep(next_tick - now)


__all__ = ["HEARTBEAT_REGISTER", "KeepAliveScheduler"]
