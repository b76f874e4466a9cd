"""
JSON-RPC 2.0 dispatcher.

Supports:
- method registration by module namespace,
- batch requests,
- argument-count checking against the handler signature,
- mapping of RpcError kinds (and unexpected failures) to error responses.
"""
from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from relayer_engine.app.domain.errors import (
    ErrorKind,
    RpcError,
    invalid_params,
    method_not_found,
    missing_argument,
    too_many_arguments,
)

logger = logging.getLogger(__name__)

RpcHandler = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class RpcRequest:
    jsonrpc: str
    method: str
    params: list[Any] | dict[str, Any] | None
    id: str | int | None

    @classmethod
    def from_dict(cls, data: Any) -> "RpcRequest":
        if not isinstance(data, dict):
            raise RpcError(ErrorKind.INVALID_REQUEST, "Invalid request")
        method = data.get("method", "")
        if not isinstance(method, str):
            raise RpcError(ErrorKind.INVALID_REQUEST, "Method must be a string")
        return cls(
            jsonrpc=data.get("jsonrpc", ""),
            method=method,
            params=data.get("params"),
            id=data.get("id"),
        )

    @property
    def is_notification(self) -> bool:
        return self.id is None


def response(request_id: Any, *, result: Any = None, error: RpcError | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id}
    if error is not None:
        body["error"] = error.to_dict()
    else:
        body["result"] = result
    return body


class RpcModule:
    """
    Base class for method namespaces (``eth``, ``net``, ...).

    Public coroutine methods marked with @rpc_method are exported as
    ``<namespace>_<name>``.
    """

    namespace: str = ""

    def get_methods(self) -> dict[str, RpcHandler]:
        methods: dict[str, RpcHandler] = {}
        for name in dir(self):
            if name.startswith("_"):
                continue
            attr = getattr(self, name)
            if callable(attr) and getattr(attr, "__rpc_method__", False):
                methods[f"{self.namespace}_{name}" if self.namespace else name] = attr
        return methods


def rpc_method(func: RpcHandler) -> RpcHandler:
    """Mark a module coroutine as a JSON-RPC endpoint."""
    func.__rpc_method__ = True  # type: ignore[attr-defined]
    return func


class RpcServer:
    def __init__(self) -> None:
        self._methods: dict[str, RpcHandler] = {}

    def register_method(self, name: str, handler: RpcHandler) -> None:
        self._methods[name] = handler

    def register_module(self, module: RpcModule) -> None:
        methods = module.get_methods()
        self._methods.update(methods)
        logger.info("Registered RPC module %r (%s methods)", module.namespace, len(methods))

    def get_methods(self) -> list[str]:
        return sorted(self._methods)

    async def handle_request(self, data: str | bytes | Any) -> str | None:
        """Handle a raw request body; returns the JSON response, or None for notifications."""
        try:
            parsed = json.loads(data) if isinstance(data, (str, bytes)) else data
        except json.JSONDecodeError as exc:
            error = RpcError(ErrorKind.PARSE_ERROR, f"Parse error: {exc}")
            return json.dumps(response(None, error=error))

        if isinstance(parsed, list):
            if not parsed:
                error = RpcError(ErrorKind.INVALID_REQUEST, "Empty batch")
                return json.dumps(response(None, error=error))
            responses = await asyncio.gather(*(self.handle_single(item) for item in parsed))
            responses = [r for r in responses if r is not None]
            return json.dumps(responses) if responses else None

        single = await self.handle_single(parsed)
        return None if single is None else json.dumps(single)

    async def handle_single(self, data: Any) -> dict[str, Any] | None:
        try:
            request = RpcRequest.from_dict(data)
        except RpcError as exc:
            return response(data.get("id") if isinstance(data, dict) else None, error=exc)

        if request.jsonrpc != "2.0":
            return response(
                request.id,
                error=RpcError(ErrorKind.INVALID_REQUEST, "Invalid JSON-RPC version"),
            )
        if not request.method:
            return response(request.id, error=RpcError(ErrorKind.INVALID_REQUEST, "Missing method"))

        try:
            result = await self.call(request.method, request.params)
        except RpcError as exc:
            if request.is_notification:
                return None
            return response(request.id, error=exc)
        except Exception as exc:
            logger.exception("Error handling RPC method %s", request.method)
            if request.is_notification:
                return None
            return response(request.id, error=RpcError(ErrorKind.INTERNAL, str(exc)))

        if request.is_notification:
            return None
        return response(request.id, result=result)

    async def call(self, method: str, params: list[Any] | dict[str, Any] | None) -> Any:
        handler = self._methods.get(method)
        if handler is None:
            raise method_not_found(method)

        if params is None:
            params = []
        if isinstance(params, list):
            _expect_args(handler, len(params))
            return await handler(*params)
        if isinstance(params, dict):
            try:
                inspect.signature(handler).bind(**params)
            except TypeError as exc:
                raise invalid_params(str(exc)) from None
            return await handler(**params)
        raise invalid_params("Invalid params type")


def _expect_args(handler: RpcHandler, count: int) -> None:
    positional = [
        p
        for p in inspect.signature(handler).parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    required = sum(1 for p in positional if p.default is p.empty)
    if count < required:
        raise missing_argument(count)
    if count > len(positional):
        raise too_many_arguments(len(positional))
