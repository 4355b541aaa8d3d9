#!/usr/bin/env python3
"""Example JSON-RPC client for the pyamtron server.

Calls the read-only methods of a running ``pyamtron-rpc`` instance and prints
the results.  Control calls are listed at the end but not executed.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import os
import sys
from typing import Any

import aiohttp

RPC_URL = os.getenv("AMTRON_RPC_URL", "http://localhost:8080/")

_ids = itertools.count(1)


async def call(
    session: aiohttp.ClientSession,
    method: str,
    params: dict[str, Any] | None = None,
) -> Any:
    """Call one RPC method and print the outcome."""
    print(f"\n📡 Calling {method}...")
    payload = {"jsonrpc": "2.0", "method": method, "params": params or {}, "id": next(_ids)}
    try:
        async with session.post(RPC_URL, json=payload) as resp:
            body = await resp.json()
    except aiohttp.ClientError as err:
        print(f"❌ Request failed: {err}")
        return None

    if "error" in body:
        print(f"❌ Error: {body['error']['message']}")
        return None

    print("✅ Success:", json.dumps(body["result"], indent=2))
    return body["result"]


def section(title: str) -> None:
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


async def main() -> int:
    section("Mennekes Amtron RPC Client Example")

    timeout = aiohttp.ClientTimeout(total=30)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        section("1. HEALTH CHECK")
        if await call(session, "ping") is None:
            return 1
        await call(session, "health")

        section("2. DEVICE INFORMATION")
        await call(session, "getDeviceInfo")

        section("3. CURRENT STATUS")
        await call(session, "getStatus")

        section("4. MEASUREMENTS")
        for method in (
            "getVoltage",
            "getCurrent",
            "getPower",
            "getChargingPower",
            "getTemperature",
        ):
            await call(session, method)

        section("5. ENERGY AND SESSION DATA")
        for method in ("getEnergy", "getSessionData", "getStatistics"):
            await call(session, method)

        section("6. DIAGNOSTICS AND CONFIGURATION")
        await call(session, "getDiagnostics")
        await call(session, "getConfiguration")

        section("7. GET ALL DATA")
        await call(session, "getAllData")

    section("8. CONTROL EXAMPLES (NOT EXECUTED)")
    print(
        """
The following calls change the charger state:

    await call(session, "setChargingCurrent", {"ampere": 10})
    await call(session, "startCharging", {"current": 6})
    await call(session, "pauseCharging")
    await call(session, "resumeCharging", {"current": 10})
    await call(session, "stopCharging")
    await call(session, "setRequestedPhases", {"phases": 1})
    await call(session, "setLock", {"lock": True})
"""
    )
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
