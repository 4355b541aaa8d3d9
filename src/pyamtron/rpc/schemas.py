"""JSON-RPC 2.0 envelope and parameter models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, StrictBool, StrictFloat, StrictInt

from pyamtron.registers.amtron import MIN_CHARGING_CURRENT

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
APPLICATION_ERROR = -32000

RequestId = StrictInt | str | None


class JsonRpcRequest(BaseModel):
    """A single JSON-RPC 2.0 request object.

    A request without an ``id`` member is a notification and gets no response.
    """

    jsonrpc: Literal["2.0"]
    method: str = Field(min_length=1)
    params: dict[str, Any] | list[Any] | None = None
    id: RequestId = None

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set


class RpcParams(BaseModel):
    """Base class for method parameters.

    Positional parameters are mapped onto the fields in declaration order.
    """

    @classmethod
    def parse(cls, params: dict[str, Any] | list[Any] | None) -> RpcParams:
        if params is None:
            params = {}
        if isinstance(params, list):
            params = dict(zip(cls.model_fields, params, strict=False))
        return cls.model_validate(params)


class NoParams(RpcParams):
    pass


class SetChargingCurrentParams(RpcParams):
    ampere: StrictFloat | StrictInt


class ChargingCurrentParams(RpcParams):
    """Optional current for startCharging / resumeCharging."""

    current: StrictFloat | StrictInt = MIN_CHARGING_CURRENT


class SetRequestedPhasesParams(RpcParams):
    phases: StrictInt = Field(ge=0, le=1)


class SetLockParams(RpcParams):
    lock: StrictBool


def error_response(request_id: Any, code: int, message: str, data: Any = None) -> dict[str, Any]:
    """Build a JSON-RPC error response object."""
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "error": error, "id": request_id}


def result_response(request_id: Any, result: Any) -> dict[str, Any]:
    """Build a JSON-RPC success response object."""
    return {"jsonrpc": "2.0", "result": result, "id": request_id}


__all__ = [
    "APPLICATION_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "ChargingCurrentParams",
    "JsonRpcRequest",
    "NoParams",
    "RpcParams",
    "SetChargingCurrentParams",
    "SetLockParams",
    "SetRequestedPhasesParams",
    "error_response",
    "result_response",
]
