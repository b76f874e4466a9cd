import json
from unittest.mock import AsyncMock

import pytest

from relayer_engine.app.application.services.filters import FilterService
from relayer_engine.app.domain.models import EventRecord
from relayer_engine.app.infrastructure.adapters.block_writer import SqlAlchemyBlockWriter
from relayer_engine.app.infrastructure.adapters.chain_reader import SqlAlchemyChainReader
from relayer_engine.app.infrastructure.adapters.filter_registry import SqlAlchemyFilterRegistry
from relayer_engine.app.interface.rpc.eth import EthModule
from relayer_engine.app.interface.rpc.net import NetModule, Web3Module
from relayer_engine.app.interface.rpc.server import RpcServer
from tests.chain_fixtures import addr, h32, make_block, make_tx

CHAIN_ID = 1313161554
TRANSFER = h32(0xDD)


@pytest.fixture
def gateway():
    return AsyncMock()


@pytest.fixture
def rpc(engine, gateway):
    reader = SqlAlchemyChainReader(engine=engine)
    filters = FilterService(registry=SqlAlchemyFilterRegistry(engine=engine), reader=reader)
    server = RpcServer()
    server.register_module(EthModule(chain_id=CHAIN_ID, reader=reader, filters=filters, gateway=gateway))
    server.register_module(NetModule(chain_id=CHAIN_ID))
    server.register_module(Web3Module())

    async def call(method, *params):
        raw = await server.handle_request(
            json.dumps({"jsonrpc": "2.0", "id": 1, "method": method, "params": list(params)})
        )
        return json.loads(raw)

    return call


@pytest.fixture
def writer(engine):
    return SqlAlchemyBlockWriter(engine=engine, chain_id=CHAIN_ID)


async def _three_blocks(writer):
    transfer = EventRecord(topics=(TRANSFER, h32(1)), data=b"\x00" * 32)
    await writer.persist_block(make_block(0))
    await writer.persist_block(
        make_block(1, (make_tx(1, events=(transfer, transfer)), make_tx(2, sender=2)))
    )
    await writer.persist_block(make_block(2, (make_tx(3, sender=2, events=(transfer,)),)))


@pytest.mark.asyncio
async def test_transaction_counts_per_block(rpc, writer):
    await _three_blocks(writer)
    results = [
        (await rpc("eth_getBlockTransactionCountByNumber", hex(n)))["result"] for n in range(3)
    ]
    assert results == ["0x0", "0x2", "0x1"]
    by_hash = await rpc("eth_getBlockTransactionCountByHash", "0x" + h32(0xB001).hex())
    assert by_hash["result"] == "0x2"
    assert (await rpc("eth_getBlockTransactionCountByNumber", "latest"))["result"] == "0x1"
    assert (await rpc("eth_getBlockTransactionCountByNumber", "0x9"))["result"] is None


@pytest.mark.asyncio
async def test_chain_and_block_number(rpc, writer):
    assert (await rpc("eth_chainId"))["result"] == "0x4e454152"
    assert (await rpc("net_version"))["result"] == str(CHAIN_ID)
    assert (await rpc("eth_blockNumber"))["result"] == "0x0"
    assert (await rpc("eth_getBlockByNumber", "latest"))["result"] is None
    await _three_blocks(writer)
    assert (await rpc("eth_blockNumber"))["result"] == "0x2"


@pytest.mark.asyncio
async def test_get_block(rpc, writer):
    await _three_blocks(writer)
    block = (await rpc("eth_getBlockByNumber", "0x1", False))["result"]
    assert block["number"] == "0x1"
    assert block["hash"] == "0x" + h32(0xB001).hex()
    assert block["transactions"] == ["0x" + h32(0x1001).hex(), "0x" + h32(0x1002).hex()]
    assert block["timestamp"] == "0x65920080"
    assert block["uncles"] == []

    full = (await rpc("eth_getBlockByHash", block["hash"], True))["result"]
    assert [tx["transactionIndex"] for tx in full["transactions"]] == ["0x0", "0x1"]

    earliest = (await rpc("eth_getBlockByNumber", "earliest", False))["result"]
    assert earliest["number"] == "0x0"
    assert (await rpc("eth_getBlockByHash", "0x" + "00" * 32, False))["result"] is None
    assert (await rpc("eth_getUncleCountByBlockNumber", "0x1"))["result"] == "0x0"


@pytest.mark.asyncio
async def test_get_transactions(rpc, writer):
    await _three_blocks(writer)
    tx = (await rpc("eth_getTransactionByHash", "0x" + h32(0x1003).hex()))["result"]
    assert tx["blockNumber"] == "0x2"
    assert tx["from"] == "0x" + addr(2).hex()
    assert tx["value"] == hex(10**18)
    assert tx["r"] == hex(2**255 + 3)

    by_index = (await rpc("eth_getTransactionByBlockNumberAndIndex", "0x1", "0x1"))["result"]
    assert by_index["hash"] == "0x" + h32(0x1002).hex()
    by_hash = (
        await rpc("eth_getTransactionByBlockHashAndIndex", "0x" + h32(0xB001).hex(), "0x0")
    )["result"]
    assert by_hash["hash"] == "0x" + h32(0x1001).hex()
    assert (await rpc("eth_getTransactionByBlockNumberAndIndex", "0x1", "0x5"))["result"] is None
    assert (await rpc("eth_getTransactionByHash", "0x" + "00" * 32))["result"] is None


@pytest.mark.asyncio
async def test_get_logs(rpc, writer):
    await _three_blocks(writer)
    logs = (
        await rpc("eth_getLogs", {"fromBlock": "earliest", "topics": ["0x" + TRANSFER.hex()]})
    )["result"]
    assert [(log["blockNumber"], log["logIndex"]) for log in logs] == [
        ("0x1", "0x0"),
        ("0x1", "0x1"),
        ("0x2", "0x0"),
    ]
    assert logs[0]["address"] == "0x" + addr(1).hex()
    assert logs[0]["removed"] is False

    latest_only = (await rpc("eth_getLogs", {}))["result"]
    assert [log["blockNumber"] for log in latest_only] == ["0x2"]

    by_sender = (
        await rpc("eth_getLogs", {"fromBlock": "0x0", "toBlock": "0x2", "address": "0x" + addr(2).hex()})
    )["result"]
    assert [log["blockNumber"] for log in by_sender] == ["0x2"]

    by_hash = (await rpc("eth_getLogs", {"blockHash": "0x" + h32(0xB001).hex()}))["result"]
    assert len(by_hash) == 2


@pytest.mark.asyncio
async def test_filters_over_rpc(rpc, writer):
    await writer.persist_block(make_block(0))
    filter_id = (await rpc("eth_newBlockFilter"))["result"]
    assert (await rpc("eth_getFilterChanges", filter_id))["result"] == []
    await writer.persist_block(make_block(1))
    assert (await rpc("eth_getFilterChanges", filter_id))["result"] == ["0x" + h32(0xB001).hex()]
    assert (await rpc("eth_getFilterChanges", filter_id))["result"] == []
    assert (await rpc("eth_uninstallFilter", filter_id))["result"] is True
    assert (await rpc("eth_uninstallFilter", filter_id))["result"] is False

    assert (await rpc("eth_getFilterChanges", "0x0"))["result"] == []
    assert (await rpc("eth_getFilterLogs", "0x0"))["result"] == []
    assert (await rpc("eth_uninstallFilter", "0x0"))["result"] is True


@pytest.mark.asyncio
async def test_malformed_input(rpc):
    reply = await rpc("eth_getBlockByNumber", "tomorrow", False)
    assert reply["error"]["code"] == -32602
    assert "invalid block ID" in reply["error"]["message"]
    assert (await rpc("eth_getFilterChanges", "12"))["error"]["code"] == -32602
    assert (await rpc("eth_getTransactionByHash", "0x12"))["error"]["code"] == -32602
    assert (await rpc("eth_getBlockByNumber"))["error"]["message"] == (
        "missing value for required argument 0"
    )


@pytest.mark.asyncio
async def test_unsupported_and_unimplemented(rpc):
    work = await rpc("eth_getWork")
    sign = await rpc("eth_sign", "0x" + "11" * 20, "0x00")
    assert work["error"]["code"] == sign["error"]["code"] == -32601
    assert work["error"]["message"].startswith("Unsupported")
    assert sign["error"]["message"].startswith("Unimplemented")
    assert (await rpc("eth_estimateGas", {}))["error"]["code"] == -32601


@pytest.mark.asyncio
async def test_state_reads_go_upstream(rpc, gateway):
    gateway.get_balance.return_value = "0xde0b6b3a7640000"
    gateway.get_storage_at.return_value = "0x" + "00" * 32
    account = "0x" + "ab" * 20

    assert (await rpc("eth_getBalance", account, "latest"))["result"] == "0xde0b6b3a7640000"
    gateway.get_balance.assert_awaited_once_with(account, "latest")

    await rpc("eth_getStorageAt", account, "0x1", "0x10")
    gateway.get_storage_at.assert_awaited_once_with(account, 1, 16)

    bad = await rpc("eth_getBalance", "0x1234")
    assert bad["error"]["code"] == -32602


@pytest.mark.asyncio
async def test_web3_namespace(rpc):
    digest = (await rpc("web3_sha3", "0x68656c6c6f20776f726c64"))["result"]
    assert digest == "0x47173285a8d7341e5e972fc677286384f802f8ef42a5ec5f03bbfa254cb01fad"
    assert (await rpc("web3_clientVersion"))["result"].startswith("relayer-engine/")
    assert (await rpc("net_listening"))["result"] is True


@pytest.mark.asyncio
async def test_new_filter_creates_a_pollable_event_filter(rpc, writer):
    await _three_blocks(writer)
    reply = await rpc("eth_newFilter", {"topics": ["0x" + TRANSFER.hex()]})
    assert "error" not in reply
    filter_id = reply["result"]
    assert (await rpc("eth_getFilterChanges", filter_id))["result"] == []

    transfer = EventRecord(topics=(TRANSFER,), data=b"")
    await writer.persist_block(make_block(3, (make_tx(4, events=(transfer,)),)))
    changes = (await rpc("eth_getFilterChanges", filter_id))["result"]
    assert [log["blockNumber"] for log in changes] == ["0x3"]
