#!/usr/bin/env python3
"""Modbus RTU connection diagnostic for the Amtron charger.

Opens the serial port directly with pymodbus (no retries, no heartbeat
scheduler) and runs four probes: layout version, EVSE state, one heartbeat
write and the 32-bit float decode of the EVSE current limit.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

logging.getLogger("pymodbus").setLevel(logging.ERROR)

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env")


async def main() -> int:
    """Run the connection probes."""
    from pymodbus.client import AsyncModbusSerialClient
    from pymodbus.exceptions import ModbusException

    from pyamtron.registers import HEARTBEAT_VALUE, lookup
    from pyamtron.transports.codec import decode

    port = os.getenv("MODBUS_PORT", "/dev/serial/by-id/usb-1a86_USB_Serial-if00-port0")
    baudrate = int(os.getenv("MODBUS_BAUDRATE", "57600"))
    unit_id = int(os.getenv("MODBUS_SLAVE_ID", "50"))
    timeout = 2.0

    print("Mennekes Amtron Modbus Connection Diagnostic")
    print(f"Current time: {datetime.now().isoformat()}")
    print("=" * 60)
    print(f"Port: {port}")
    print(f"Baud Rate: {baudrate}")
    print(f"Unit ID: {unit_id}")
    print(f"Timeout: {timeout}s")

    client = AsyncModbusSerialClient(
        port=port,
        baudrate=baudrate,
        bytesize=8,
        parity="N",
        stopbits=2,
        timeout=timeout,
        retries=0,
    )
    if not await client.connect():
        print("\n✗ Connection failed: could not open serial port")
        return 1
    print("✓ Connection established")

    print("Waiting 1 second before first read...")
    await asyncio.sleep(1.0)

    passed = 0

    async def read(name: str) -> int | float | str | None:
        reg = lookup(name)
        print(f"\nReading {reg.title} (0x{reg.address:04X}, {reg.word_count} reg)...")
        try:
            resp = await client.read_holding_registers(
                address=reg.address, count=reg.word_count, device_id=unit_id
            )
        except ModbusException as err:
            print(f"✗ Failed: {err}")
            return None
        if resp.isError():
            print(f"✗ Failed: {resp}")
            return None
        raw = ", ".join(f"0x{word:04X}" for word in resp.registers)
        value = decode(reg, resp.registers)
        print(f"✓ Success! Raw: [{raw}] -> {value!r}")
        return value

    version = await read("modbus_version")
    if isinstance(version, int):
        passed += 1
        print(f"  Version: {(version >> 8) & 0xFF}.{(version >> 4) & 0x0F}.{version & 0x0F}")

    state = await read("evse_state")
    if isinstance(state, int):
        passed += 1
        print(f"  State: {lookup('evse_state').values.get(state, 'Unknown')}")

    heartbeat = lookup("heartbeat_em")
    print(f"\nWriting HEARTBEAT (0x{heartbeat.address:04X} = 0x{HEARTBEAT_VALUE:04X})...")
    try:
        resp = await client.write_register(
            address=heartbeat.address, value=HEARTBEAT_VALUE, device_id=unit_id
        )
        if resp.isError():
            print(f"✗ Failed: {resp}")
        else:
            passed += 1
            print("✓ Success! Heartbeat sent")
    except ModbusException as err:
        print(f"✗ Failed: {err}")

    if await read("max_current_evse") is not None:
        passed += 1

    client.close()
    print("\n✓ Connection closed")

    print("\n" + "=" * 60)
    print(f"SUMMARY: {passed}/4 probes passed")
    print("=" * 60)
    return 0 if passed == 4 else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
