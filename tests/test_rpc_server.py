import json

import pytest

from relayer_engine.app.domain.errors import unsupported
from relayer_engine.app.interface.rpc.server import RpcModule, RpcServer, rpc_method


class EchoModule(RpcModule):
    namespace = "test"

    @rpc_method
    async def echo(self, value, suffix=""):
        return f"{value}{suffix}"

    @rpc_method
    async def work(self):
        raise unsupported("test_work")

    @rpc_method
    async def explode(self):
        raise RuntimeError("kaboom")

    async def hidden(self):
        return "not exported"


@pytest.fixture
def server():
    server = RpcServer()
    server.register_module(EchoModule())
    return server


async def _call(server, payload):
    raw = await server.handle_request(json.dumps(payload))
    return None if raw is None else json.loads(raw)


def test_only_marked_methods_are_exported(server):
    assert server.get_methods() == ["test_echo", "test_explode", "test_work"]


@pytest.mark.asyncio
async def test_positional_and_named_params(server):
    reply = await _call(server, {"jsonrpc": "2.0", "id": 1, "method": "test_echo", "params": ["a", "b"]})
    assert reply == {"jsonrpc": "2.0", "id": 1, "result": "ab"}
    reply = await _call(server, {"jsonrpc": "2.0", "id": 2, "method": "test_echo", "params": {"value": "x"}})
    assert reply["result"] == "x"


@pytest.mark.asyncio
async def test_argument_count_is_checked(server):
    reply = await _call(server, {"jsonrpc": "2.0", "id": 1, "method": "test_echo", "params": []})
    assert reply["error"] == {"code": -32602, "message": "missing value for required argument 0"}
    reply = await _call(server, {"jsonrpc": "2.0", "id": 1, "method": "test_echo", "params": [1, 2, 3]})
    assert reply["error"]["message"] == "too many arguments, want at most 2"
    reply = await _call(server, {"jsonrpc": "2.0", "id": 1, "method": "test_echo", "params": {"nope": 1}})
    assert reply["error"]["code"] == -32602


@pytest.mark.asyncio
async def test_errors(server):
    reply = await _call(server, {"jsonrpc": "2.0", "id": 1, "method": "eth_nothing"})
    assert reply["error"]["code"] == -32601
    reply = await _call(server, {"jsonrpc": "2.0", "id": 1, "method": "test_work"})
    assert reply["error"] == {"code": -32601, "message": "Unsupported method: test_work"}
    reply = await _call(server, {"jsonrpc": "2.0", "id": 1, "method": "test_explode"})
    assert reply["error"] == {"code": -32603, "message": "kaboom"}
    reply = await _call(server, {"jsonrpc": "1.0", "id": 1, "method": "test_echo", "params": [1]})
    assert reply["error"]["code"] == -32600


@pytest.mark.asyncio
async def test_parse_error_and_invalid_request(server):
    reply = json.loads(await server.handle_request("{not json"))
    assert reply["error"]["code"] == -32700
    assert reply["id"] is None
    reply = await _call(server, [])
    assert reply["error"]["code"] == -32600
    reply = await _call(server, 5)
    assert reply["error"]["code"] == -32600


@pytest.mark.asyncio
async def test_batch_and_notifications(server):
    reply = await _call(
        server,
        [
            {"jsonrpc": "2.0", "id": 1, "method": "test_echo", "params": ["a"]},
            {"jsonrpc": "2.0", "method": "test_echo", "params": ["skipped"]},
            {"jsonrpc": "2.0", "id": 2, "method": "missing"},
        ],
    )
    assert [r["id"] for r in reply] == [1, 2]
    assert reply[0]["result"] == "a"
    assert reply[1]["error"]["code"] == -32601

    assert await _call(server, {"jsonrpc": "2.0", "method": "test_echo", "params": ["x"]}) is None
    assert await _call(server, [{"jsonrpc": "2.0", "method": "test_explode"}]) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("method", [[], 42, {"name": "test_echo"}, None])
async def test_non_string_method_is_an_invalid_request(server, method):
    reply = await _call(server, {"jsonrpc": "2.0", "id": 3, "method": method, "params": ["a"]})
    assert reply["id"] == 3
    assert reply["error"]["code"] == -32600
