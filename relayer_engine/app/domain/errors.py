from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """
    Closed set of error conditions reported over JSON-RPC.

    Several kinds share a JSON-RPC code (unsupported vs unimplemented
    methods) but stay distinguishable by kind and message.
    """

    PARSE_ERROR = "parse_error"
    INVALID_REQUEST = "invalid_request"
    METHOD_NOT_FOUND = "method_not_found"
    UNSUPPORTED = "unsupported"
    UNIMPLEMENTED = "unimplemented"
    INVALID_PARAMS = "invalid_params"
    INTERNAL = "internal"

    @property
    def code(self) -> int:
        return _ERROR_CODES[self]


_ERROR_CODES: dict[ErrorKind, int] = {
    ErrorKind.PARSE_ERROR: -32700,
    ErrorKind.INVALID_REQUEST: -32600,
    ErrorKind.METHOD_NOT_FOUND: -32601,
    ErrorKind.UNSUPPORTED: -32601,
    ErrorKind.UNIMPLEMENTED: -32601,
    ErrorKind.INVALID_PARAMS: -32602,
    ErrorKind.INTERNAL: -32603,
}


class RpcError(Exception):
    """Single error type for every failure surfaced to RPC callers."""

    def __init__(self, kind: ErrorKind, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.data = data

    @property
    def code(self) -> int:
        return self.kind.code

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            result["data"] = self.data
        return result

    def __repr__(self) -> str:
        return f"RpcError({self.kind.name}, {self.message!r})"


def unsupported(method: str) -> RpcError:
    return RpcError(ErrorKind.UNSUPPORTED, f"Unsupported method: {method}")


def unimplemented(method: str) -> RpcError:
    return RpcError(ErrorKind.UNIMPLEMENTED, f"Unimplemented method: {method}")


def method_not_found(method: str) -> RpcError:
    return RpcError(ErrorKind.METHOD_NOT_FOUND, f"Method not found: {method}")


def invalid_params(message: str = "Invalid method parameter(s).") -> RpcError:
    return RpcError(ErrorKind.INVALID_PARAMS, message)


def missing_argument(index: int, message: str | None = None) -> RpcError:
    return RpcError(
        ErrorKind.INVALID_PARAMS,
        message or f"missing value for required argument {index}",
    )


def too_many_arguments(max_count: int) -> RpcError:
    return RpcError(
        ErrorKind.INVALID_PARAMS,
        f"too many arguments, want at most {max_count}",
    )
