"""Tests for the JSON-RPC HTTP server."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Iterable
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from pyamtron.devices.charger import ChargerController
from pyamtron.rpc import (
    APPLICATION_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    RpcServer,
)
from pyamtron.transports.exceptions import TransportTimeoutError

VALUES: dict[str, Any] = {
    "evse_state": 5,
    "cp_state": 28,
    "authorization_status": 1,
    "downgrade": 1,
    "phase_rotation": 0,
    "signaled_current": 16.0,
    "max_current_evse": 32.0,
    "firmware_version": "5.22",
    "power_overall": 7400.0,
}


@pytest.fixture
def mock_transport() -> MagicMock:
    transport = MagicMock()
    transport.is_connected = True

    async def read_many(names: Iterable[str]) -> dict[str, Any]:
        return {name: VALUES.get(name) for name in names}

    transport.read_many = AsyncMock(side_effect=read_many)
    transport.read_register = AsyncMock(side_effect=lambda name: VALUES[name])
    transport.write_register = AsyncMock()
    return transport


@pytest.fixture
def server(mock_transport: MagicMock) -> RpcServer:
    return RpcServer(ChargerController(mock_transport))


@pytest.fixture
async def client(
    server: RpcServer,
) -> AsyncGenerator[TestClient[web.Request, web.Application], None]:
    """Test client bound to the RPC application."""
    async with TestClient(TestServer(server.app)) as test_client:
        yield test_client


async def call(
    client: TestClient[web.Request, web.Application],
    method: str,
    params: Any = None,
    request_id: Any = 1,
) -> dict[str, Any]:
    body: dict[str, Any] = {"jsonrpc": "2.0", "method": method, "id": request_id}
    if params is not None:
        body["params"] = params
    resp = await client.post("/", json=body)
    assert resp.status == 200
    return await resp.json()


class TestHealthMethods:
    """ping and health."""

    @pytest.mark.asyncio
    async def test_ping(self, client: TestClient[web.Request, web.Application]) -> None:
        response = await call(client, "ping")

        assert response["jsonrpc"] == "2.0"
        assert response["id"] == 1
        assert response["result"]["success"] is True
        assert response["result"]["message"] == "pong"
        assert "timestamp" in response["result"]

    @pytest.mark.asyncio
    async def test_health_connected(
        self, client: TestClient[web.Request, web.Application]
    ) -> None:
        response = await call(client, "health")

        data = response["result"]["data"]
        assert data["status"] == "healthy"
        assert data["modbusConnected"] is True
        assert data["uptime"] >= 0

    @pytest.mark.asyncio
    async def test_health_disconnected(
        self,
        client: TestClient[web.Request, web.Application],
        mock_transport: MagicMock,
    ) -> None:
        mock_transport.is_connected = False

        response = await call(client, "health")

        assert response["result"]["data"]["status"] == "disconnected"
        assert response["result"]["data"]["modbusConnected"] is False


class TestReadMethods:
    """Wrapped results of controller getters."""

    @pytest.mark.asyncio
    async def test_get_status(self, client: TestClient[web.Request, web.Application]) -> None:
        response = await call(client, "getStatus")

        result = response["result"]
        assert result["success"] is True
        assert result["data"]["evseState"] == 5
        assert result["data"]["evseStateText"] == "Charging (C2)"
        assert "timestamp" in result

    @pytest.mark.asyncio
    async def test_get_device_info_keys(
        self, client: TestClient[web.Request, web.Application]
    ) -> None:
        response = await call(client, "getDeviceInfo")

        data = response["result"]["data"]
        assert data["maxCurrentEVSE"] == 32.0
        assert data["firmwareVersion"] == "5.22"
        assert data["serialNumber"] is None

    @pytest.mark.asyncio
    async def test_get_charging_power(
        self, client: TestClient[web.Request, web.Application]
    ) -> None:
        response = await call(client, "getChargingPower")
        assert response["result"]["data"] == 7.4

    @pytest.mark.asyncio
    async def test_get_all_data(self, client: TestClient[web.Request, web.Application]) -> None:
        response = await call(client, "getAllData")

        data = response["result"]["data"]
        assert data["status"]["evseState"] == 5
        assert data["measurements"]["power"]["total"] == 7400.0

    @pytest.mark.asyncio
    async def test_transport_error_is_application_error(
        self,
        client: TestClient[web.Request, web.Application],
        mock_transport: MagicMock,
    ) -> None:
        mock_transport.read_register.side_effect = TransportTimeoutError("Timeout")

        response = await call(client, "getTemperature")

        assert response["error"]["code"] == APPLICATION_ERROR
        assert response["error"]["message"] == "Timeout"
        assert response["id"] == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_is_application_error(
        self,
        client: TestClient[web.Request, web.Application],
        mock_transport: MagicMock,
    ) -> None:
        mock_transport.read_register.side_effect = RuntimeError("boom")

        response = await call(client, "getTemperature")

        assert response["error"]["code"] == APPLICATION_ERROR
        assert response["error"]["message"] == "boom"


class TestControlMethods:
    """Parameter handling of write methods."""

    @pytest.mark.asyncio
    async def test_set_charging_current(
        self,
        client: TestClient[web.Request, web.Application],
        mock_transport: MagicMock,
    ) -> None:
        response = await call(client, "setChargingCurrent", {"ampere": 16})

        assert response["result"]["data"] == {"message": "Charging current set to 16A"}
        mock_transport.write_register.assert_awaited_once_with("charging_current_em", 16)

    @pytest.mark.asyncio
    async def test_positional_params(
        self,
        client: TestClient[web.Request, web.Application],
        mock_transport: MagicMock,
    ) -> None:
        await call(client, "setChargingCurrent", [10])
        mock_transport.write_register.assert_awaited_once_with("charging_current_em", 10)

    @pytest.mark.asyncio
    async def test_current_out_of_range(
        self,
        client: TestClient[web.Request, web.Application],
        mock_transport: MagicMock,
    ) -> None:
        response = await call(client, "setChargingCurrent", {"ampere": 40})

        assert response["error"]["code"] == APPLICATION_ERROR
        assert "between 6A and 32A" in response["error"]["message"]
        mock_transport.write_register.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("method", "params"),
        [
            ("setChargingCurrent", {"ampere": "16"}),
            ("setChargingCurrent", {}),
            ("setLock", {"lock": "true"}),
            ("setRequestedPhases", {"phases": 2}),
        ],
    )
    async def test_invalid_params(
        self,
        client: TestClient[web.Request, web.Application],
        mock_transport: MagicMock,
        method: str,
        params: dict[str, Any],
    ) -> None:
        response = await call(client, method, params)

        assert response["error"]["code"] == INVALID_PARAMS
        assert response["error"]["message"] == "Invalid params"
        assert isinstance(response["error"]["data"], list)
        mock_transport.write_register.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_start_charging_default_current(
        self,
        client: TestClient[web.Request, web.Application],
        mock_transport: MagicMock,
    ) -> None:
        with patch("pyamtron.devices.charger.asyncio.sleep", new=AsyncMock()):
            response = await call(client, "startCharging")

        assert response["result"]["data"]["message"] == "Charging started with 6A"
        assert mock_transport.write_register.await_args_list[-1].args == (
            "charging_release_em",
            1,
        )

    @pytest.mark.asyncio
    async def test_set_lock(
        self,
        client: TestClient[web.Request, web.Application],
        mock_transport: MagicMock,
    ) -> None:
        response = await call(client, "setLock", {"lock": True})

        assert response["result"]["data"]["message"] == "EVSE locked"
        mock_transport.write_register.assert_awaited_once_with("lock_evse", 1)

    @pytest.mark.asyncio
    async def test_restart_system(
        self,
        client: TestClient[web.Request, web.Application],
        mock_transport: MagicMock,
    ) -> None:
        response = await call(client, "restartSystem")

        assert response["result"]["data"]["message"] == "System restart requested"
        mock_transport.write_register.assert_awaited_once_with("system_restart", 0xBB)


class TestProtocol:
    """JSON-RPC 2.0 envelope handling."""

    @pytest.mark.asyncio
    async def test_unknown_method(self, client: TestClient[web.Request, web.Application]) -> None:
        response = await call(client, "getFoo", request_id="abc")

        assert response["error"]["code"] == METHOD_NOT_FOUND
        assert response["error"]["message"] == "Method not found: getFoo"
        assert response["id"] == "abc"

    @pytest.mark.asyncio
    async def test_parse_error(self, client: TestClient[web.Request, web.Application]) -> None:
        resp = await client.post(
            "/", data="{not json", headers={"Content-Type": "application/json"}
        )

        response = await resp.json()
        assert response["error"]["code"] == PARSE_ERROR
        assert response["id"] is None

    @pytest.mark.asyncio
    async def test_missing_version_is_invalid_request(
        self, client: TestClient[web.Request, web.Application]
    ) -> None:
        resp = await client.post("/", json={"method": "ping", "id": 7})

        response = await resp.json()
        assert response["error"]["code"] == INVALID_REQUEST
        assert response["id"] == 7

    @pytest.mark.asyncio
    async def test_empty_batch(self, client: TestClient[web.Request, web.Application]) -> None:
        resp = await client.post("/", json=[])

        response = await resp.json()
        assert response["error"]["code"] == INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_batch(self, client: TestClient[web.Request, web.Application]) -> None:
        resp = await client.post(
            "/",
            json=[
                {"jsonrpc": "2.0", "method": "ping", "id": 1},
                {"jsonrpc": "2.0", "method": "ping"},
                {"jsonrpc": "2.0", "method": "nope", "id": 3},
                42,
            ],
        )

        responses = await resp.json()
        assert [r["id"] for r in responses] == [1, 3, None]
        assert responses[0]["result"]["message"] == "pong"
        assert responses[1]["error"]["code"] == METHOD_NOT_FOUND
        assert responses[2]["error"]["code"] == INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_notification_has_no_body(
        self,
        client: TestClient[web.Request, web.Application],
        mock_transport: MagicMock,
    ) -> None:
        resp = await client.post("/", json={"jsonrpc": "2.0", "method": "stopCharging"})

        assert resp.status == 204
        mock_transport.write_register.assert_awaited_once_with("charging_release_em", 0)

    @pytest.mark.asyncio
    async def test_null_id_is_not_notification(
        self, client: TestClient[web.Request, web.Application]
    ) -> None:
        response = await call(client, "ping", request_id=None)

        assert response["id"] is None
        assert response["result"]["message"] == "pong"

    def test_registered_methods(self, server: RpcServer) -> None:
        assert set(server.methods) == {
            "ping",
            "health",
            "getDeviceInfo",
            "getStatus",
            "getVoltage",
            "getCurrent",
            "getPower",
            "getChargingPower",
            "getTemperature",
            "getEnergy",
            "getSessionData",
            "getStatistics",
            "setChargingCurrent",
            "startCharging",
            "stopCharging",
            "pauseCharging",
            "resumeCharging",
            "setRequestedPhases",
            "setLock",
            "restartSystem",
            "getDiagnostics",
            "getConfiguration",
            "getAllData",
        }

    @pytest.mark.asyncio
    async def test_stop_without_start(self, server: RpcServer) -> None:
        await server.stop()
