"""JSON-RPC 2.0 HTTP interface for the charger controller."""

from .schemas import (
    APPLICATION_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
)
from .server import RpcMethod, RpcServer

__all__ = [
    "APPLICATION_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "RpcMethod",
    "RpcServer",
]
