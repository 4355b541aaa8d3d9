"""JSON-RPC 2.0 server exposing the charger controller over HTTP.

Requests are POSTed to ``/`` as a single object or a batch (array).  Batch
entries are executed one after another.  Method results are wrapped as::

    {"success": true, "data": <result>, "timestamp": "<ISO 8601>"}

Failures inside a method are reported as application error -32000 carrying
the exception message.

Example:
    server = RpcServer(controller, host="0.0.0.0", port=8080)
    await server.start()
    ...
    await server.stop()
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from aiohttp import web
from pydantic import BaseModel, ValidationError

from pyamtron.exceptions import AmtronError

from .schemas import (
    APPLICATION_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    ChargingCurrentParams,
    JsonRpcRequest,
    NoParams,
    RpcParams,
    SetChargingCurrentParams,
    SetLockParams,
    SetRequestedPhasesParams,
    error_response,
    result_response,
)

if TYPE_CHECKING:
    from pyamtron.devices.charger import ChargerController

_LOGGER = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True)
class RpcMethod:
    """A registered RPC method."""

    handler: Handler
    params: type[RpcParams] = NoParams
    wrap: bool = True


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _to_json(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    return value


class RpcServer:
    """aiohttp application serving the charger's JSON-RPC methods."""

    def __init__(
        self,
        controller: ChargerController,
        *,
        host: str = "0.0.0.0",
        port: int = 8080,
    ) -> None:
        """Initialize the server.

        Args:
            controller: Controller the methods are dispatched to
            host: Interface to bind
            port: TCP port to listen on
        """
        self._controller = controller
        self._host = host
        self._port = port
        self._runner: web.AppRunner | None = None
        self._started = time.monotonic()
        self._methods = self._build_methods()
        self._app = web.Application()
        self._app.router.add_post("/", self._handle_http)

    @property
    def app(self) -> web.Application:
        """The aiohttp application (for embedding or testing)."""
        return self._app

    @property
    def methods(self) -> tuple[str, ...]:
        """Names of all registered methods."""
        return tuple(self._methods)

    def _build_methods(self) -> dict[str, RpcMethod]:
        c = self._controller
        return {
            # Health
            "ping": RpcMethod(self._ping, wrap=False),
            "health": RpcMethod(self._health, wrap=False),
            # Device information and status
            "getDeviceInfo": RpcMethod(lambda _: c.get_device_info()),
            "getStatus": RpcMethod(lambda _: c.get_status()),
            # Measurements
            "getVoltage": RpcMethod(lambda _: c.get_voltage()),
            "getCurrent": RpcMethod(lambda _: c.get_current()),
            "getPower": RpcMethod(lambda _: c.get_power()),
            "getChargingPower": RpcMethod(lambda _: c.get_charging_power()),
            "getTemperature": RpcMethod(lambda _: c.get_temperature()),
            # Energy and session
            "getEnergy": RpcMethod(lambda _: c.get_energy()),
            "getSessionData": RpcMethod(lambda _: c.get_session_data()),
            "getStatistics": RpcMethod(lambda _: c.get_statistics()),
            # Control
            "setChargingCurrent": RpcMethod(self._set_charging_current, SetChargingCurrentParams),
            "startCharging": RpcMethod(self._start_charging, ChargingCurrentParams),
            "stopCharging": RpcMethod(self._stop_charging),
            "pauseCharging": RpcMethod(self._pause_charging),
            "resumeCharging": RpcMethod(self._resume_charging, ChargingCurrentParams),
            "setRequestedPhases": RpcMethod(self._set_requested_phases, SetRequestedPhasesParams),
            "setLock": RpcMethod(self._set_lock, SetLockParams),
            "restartSystem": RpcMethod(self._restart_system),
            # Diagnostics
            "getDiagnostics": RpcMethod(lambda _: c.get_diagnostics()),
            "getConfiguration": RpcMethod(lambda _: c.get_configuration()),
            "getAllData": RpcMethod(lambda _: c.get_all_data()),
        }

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Start listening for HTTP requests."""
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._host, self._port)
        await site.start()
        self._started = time.monotonic()
        _LOGGER.info("JSON-RPC server started on %s:%d", self._host, self._port)

    async def stop(self) -> None:
        """Stop the HTTP server.  Safe to call when not started."""
        runner, self._runner = self._runner, None
        if runner is None:
            return
        await runner.cleanup()
        _LOGGER.info("JSON-RPC server stopped")

    # =========================================================================
    # Request handling
    # =========================================================================

    async def _handle_http(self, request: web.Request) -> web.Response:
        try:
            payload = await request.json()
        except ValueError:
            return web.json_response(error_response(None, PARSE_ERROR, "Parse error"))

        if isinstance(payload, list):
            if not payload:
                return web.json_response(error_response(None, INVALID_REQUEST, "Invalid Request"))
            responses = []
            for item in payload:
                response = await self.dispatch(item)
                if response is not None:
                    responses.append(response)
            if not responses:
                return web.Response(status=204)
            return web.json_response(responses)

        response = await self.dispatch(payload)
        if response is None:
            return web.Response(status=204)
        return web.json_response(response)

    async def dispatch(self, payload: Any) -> dict[str, Any] | None:
        """Execute one JSON-RPC request object.

        Returns:
            The response object, or None for a notification.
        """
        try:
            rpc = JsonRpcRequest.model_validate(payload)
        except ValidationError:
            request_id = payload.get("id") if isinstance(payload, dict) else None
            if not isinstance(request_id, (int, str)) or isinstance(request_id, bool):
                request_id = None
            return error_response(request_id, INVALID_REQUEST, "Invalid Request")

        response = await self._call(rpc)
        if rpc.is_notification:
            return None
        return response

    async def _call(self, rpc: JsonRpcRequest) -> dict[str, Any]:
        method = self._methods.get(rpc.method)
        if method is None:
            return error_response(rpc.id, METHOD_NOT_FOUND, f"Method not found: {rpc.method}")

        try:
            params = method.params.parse(rpc.params)
        except ValidationError as err:
            return error_response(
                rpc.id,
                INVALID_PARAMS,
                "Invalid params",
                err.errors(include_url=False, include_context=False, include_input=False),
            )

        _LOGGER.debug("RPC call %s(%s)", rpc.method, rpc.params)
        try:
            result = await method.handler(params)
        except (AmtronError, ValueError) as err:
            _LOGGER.error("RPC method error: %s", err)
            return error_response(rpc.id, APPLICATION_ERROR, str(err))
        except Exception as err:
            _LOGGER.exception("Unexpected error in RPC method %s", rpc.method)
            return error_response(rpc.id, APPLICATION_ERROR, str(err))

        if method.wrap:
            result = {"success": True, "data": _to_json(result), "timestamp": _now()}
        return result_response(rpc.id, result)

    # =========================================================================
    # Method handlers
    # =========================================================================

    async def _ping(self, _: NoParams) -> dict[str, Any]:
        return {"success": True, "message": "pong", "timestamp": _now()}

    async def _health(self, _: NoParams) -> dict[str, Any]:
        connected = self._controller.transport.is_connected
        return {
            "success": True,
            "data": {
                "status": "healthy" if connected else "disconnected",
                "modbusConnected": connected,
                "uptime": round(time.monotonic() - self._started, 3),
                "timestamp": _now(),
            },
        }

    async def _set_charging_current(self, params: SetChargingCurrentParams) -> dict[str, str]:
        await self._controller.set_charging_current(params.ampere)
        return {"message": f"Charging current set to {params.ampere}A"}

    async def _start_charging(self, params: ChargingCurrentParams) -> dict[str, str]:
        await self._controller.start_charging(params.current)
        return {"message": f"Charging started with {params.current}A"}

    async def _stop_charging(self, _: NoParams) -> dict[str, str]:
        await self._controller.stop_charging()
        return {"message": "Charging stopped"}

    async def _pause_charging(self, _: NoParams) -> dict[str, str]:
        await self._controller.pause_charging()
        return {"message": "Charging paused"}

    async def _resume_charging(self, params: ChargingCurrentParams) -> dict[str, str]:
        await self._controller.resume_charging(params.current)
        return {"message": f"Charging resumed with {params.current}A"}

    async def _set_requested_phases(self, params: SetRequestedPhasesParams) -> dict[str, str]:
        await self._controller.set_requested_phases(params.phases)
        return {"message": f"Requested phases set to {'all' if params.phases == 0 else 'single'}"}

    async def _set_lock(self, params: SetLockParams) -> dict[str, str]:
        await self._controller.set_lock(params.lock)
        return {"message": f"EVSE {'locked' if params.lock else 'unlocked'}"}

    async def _restart_system(self, _: NoParams) -> dict[str, str]:
        await self._controller.restart_system()
        return {"message": "System restart requested"}


__all__ = ["RpcMethod", "RpcServer"]
