from __future__ import annotations

import logging
from typing import Any

from relayer_engine.app.application.services.block_bounds import (
    BlockSpec,
    resolve_block_spec,
    validate_block_spec,
)
from relayer_engine.app.application.services.filters import FilterService
from relayer_engine.app.application.services.log_filters import parse_log_filter
from relayer_engine.app.domain.codec import (
    bytes_to_hex,
    hex_to_address,
    hex_to_bytes,
    hex_to_hash,
    hex_to_int,
    int_to_hex,
)
from relayer_engine.app.domain.errors import invalid_params, unimplemented, unsupported
from relayer_engine.app.domain.models import LogEntry
from relayer_engine.app.domain.ports.out import ChainReader, ChainStateGateway
from relayer_engine.app.interface.rpc.serializers import (
    serialize_block,
    serialize_log,
    serialize_transaction,
)
from relayer_engine.app.interface.rpc.server import RpcModule, rpc_method

logger = logging.getLogger(__name__)

_TAGS = ("earliest", "latest", "pending")


class EthModule(RpcModule):
    """
    ``eth_*`` namespace served from the relational projection.

    Account state (balance, code, storage, nonce), eth_call and raw
    transaction submission are proxied to the upstream node. Signing and gas
    estimation are not implemented.

    eth_newFilter creates a working event filter; it does not answer with an
    unimplemented-method error.
    """

    namespace = "eth"

    def __init__(
        self,
        *,
        chain_id: int,
        reader: ChainReader,
        filters: FilterService,
        gateway: ChainStateGateway | None = None,
    ) -> None:
        self._chain_id = chain_id
        self._reader = reader
        self._filters = filters
        self._gateway = gateway

    # -------------------------------------------------------------------------
    # Chain
    # -------------------------------------------------------------------------

    @rpc_method
    async def chainId(self) -> str:  # EIP-695
        return int_to_hex(self._chain_id)

    @rpc_method
    async def blockNumber(self) -> str:
        latest = await self._reader.max_block_height()
        return int_to_hex(0 if latest is None else latest)

    # -------------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------------

    @rpc_method
    async def getBlockByNumber(self, block_number: BlockSpec, full_object: bool = False) -> dict | None:
        number = await self._resolve(block_number)
        if number is None:
            return None
        block = await self._reader.get_block(number=number)
        return None if block is None else serialize_block(block, full_transactions=bool(full_object))

    @rpc_method
    async def getBlockByHash(self, block_hash: str, full_object: bool = False) -> dict | None:
        block = await self._reader.get_block(block_hash=hex_to_hash(block_hash))
        return None if block is None else serialize_block(block, full_transactions=bool(full_object))

    @rpc_method
    async def getBlockTransactionCountByNumber(self, block_number: BlockSpec) -> str | None:
        number = await self._resolve(block_number)
        if number is None:
            return None
        return _maybe_hex(await self._reader.count_transactions(number=number))

    @rpc_method
    async def getBlockTransactionCountByHash(self, block_hash: str) -> str | None:
        count = await self._reader.count_transactions(block_hash=hex_to_hash(block_hash))
        return _maybe_hex(count)

    @rpc_method
    async def getUncleCountByBlockNumber(self, block_number: BlockSpec) -> str | None:
        number = await self._resolve(block_number)
        if number is None:
            return None
        count = await self._reader.count_transactions(number=number)
        return None if count is None else "0x0"

    @rpc_method
    async def getUncleCountByBlockHash(self, block_hash: str) -> str | None:
        count = await self._reader.count_transactions(block_hash=hex_to_hash(block_hash))
        return None if count is None else "0x0"

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @rpc_method
    async def getTransactionByHash(self, transaction_hash: str) -> dict | None:
        tx = await self._reader.get_transaction(transaction_hash=hex_to_hash(transaction_hash))
        return None if tx is None else serialize_transaction(tx)

    @rpc_method
    async def getTransactionByBlockHashAndIndex(self, block_hash: str, transaction_index: str) -> dict | None:
        block_hash_ = hex_to_hash(block_hash)
        index = hex_to_int(transaction_index)
        tx = await self._reader.get_transaction(block_hash=block_hash_, index=index)
        return None if tx is None else serialize_transaction(tx)

    @rpc_method
    async def getTransactionByBlockNumberAndIndex(
        self,
        block_number: BlockSpec,
        transaction_index: str,
    ) -> dict | None:
        index = hex_to_int(transaction_index)
        number = await self._resolve(block_number)
        if number is None:
            return None
        tx = await self._reader.get_transaction(block_number=number, index=index)
        return None if tx is None else serialize_transaction(tx)

    # -------------------------------------------------------------------------
    # Logs and filters
    # -------------------------------------------------------------------------

    @rpc_method
    async def getLogs(self, filter_options: dict[str, Any] | None = None) -> list[dict]:
        log_filter = parse_log_filter(filter_options)
        entries = await self._reader.get_logs(log_filter)
        return [serialize_log(e) for e in entries]

    @rpc_method
    async def newFilter(self, filter_options: dict[str, Any] | None = None) -> str:
        return int_to_hex(await self._filters.new_event_filter(filter_options))

    @rpc_method
    async def newBlockFilter(self) -> str:
        return int_to_hex(await self._filters.new_block_filter())

    @rpc_method
    async def newPendingTransactionFilter(self) -> str:
        return int_to_hex(await self._filters.new_pending_transaction_filter())

    @rpc_method
    async def getFilterChanges(self, filter_id: str) -> list:
        return _serialize_filter_result(await self._filters.get_changes(hex_to_int(filter_id)))

    @rpc_method
    async def getFilterLogs(self, filter_id: str) -> list:
        return _serialize_filter_result(await self._filters.get_logs(hex_to_int(filter_id)))

    @rpc_method
    async def uninstallFilter(self, filter_id: str) -> bool:
        return await self._filters.uninstall(hex_to_int(filter_id))

    # -------------------------------------------------------------------------
    # Proxied to the upstream node
    # -------------------------------------------------------------------------

    @rpc_method
    async def getBalance(self, address: str, block_number: BlockSpec = "latest") -> str:
        return await self._upstream().get_balance(_address(address), _upstream_block(block_number))

    @rpc_method
    async def getCode(self, address: str, block_number: BlockSpec = "latest") -> str:
        return await self._upstream().get_code(_address(address), _upstream_block(block_number))

    @rpc_method
    async def getStorageAt(self, address: str, key: str, block_number: BlockSpec = "latest") -> str:
        return await self._upstream().get_storage_at(
            _address(address),
            hex_to_int(key),
            _upstream_block(block_number),
        )

    @rpc_method
    async def getTransactionCount(self, address: str, block_number: BlockSpec = "latest") -> str:
        return await self._upstream().get_transaction_count(
            _address(address),
            _upstream_block(block_number),
        )

    @rpc_method
    async def call(self, transaction: dict[str, Any], block_number: BlockSpec = "latest") -> str:
        if not isinstance(transaction, dict):
            raise invalid_params("transaction must be an object")
        return await self._upstream().call(transaction, _upstream_block(block_number))

    @rpc_method
    async def sendRawTransaction(self, transaction: str) -> str:
        hex_to_bytes(transaction, what="transaction")
        return await self._upstream().send_raw_transaction(transaction)

    # -------------------------------------------------------------------------
    # Not served here
    # -------------------------------------------------------------------------

    @rpc_method
    async def sendTransaction(self, transaction: dict[str, Any]) -> str:
        raise unimplemented("eth_sendTransaction")

    @rpc_method
    async def sign(self, account: str, message: str) -> str:
        raise unimplemented("eth_sign")

    @rpc_method
    async def signTransaction(self, transaction: dict[str, Any]) -> str:
        raise unimplemented("eth_signTransaction")

    @rpc_method
    async def signTypedData(self, address: str, data: dict[str, Any]) -> str:  # EIP-712
        raise unimplemented("eth_signTypedData")

    @rpc_method
    async def estimateGas(self, transaction: dict[str, Any], block_number: BlockSpec = "latest") -> str:
        raise unimplemented("eth_estimateGas")

    @rpc_method
    async def getTransactionReceipt(self, transaction_hash: str) -> dict | None:
        raise unimplemented("eth_getTransactionReceipt")

    @rpc_method
    async def getWork(self) -> list:
        raise unsupported("eth_getWork")

    @rpc_method
    async def submitWork(self, nonce: str, pow_hash: str, mix_digest: str) -> bool:
        raise unsupported("eth_submitWork")

    @rpc_method
    async def submitHashrate(self, hashrate: str, client_id: str) -> bool:
        raise unsupported("eth_submitHashrate")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _resolve(self, block_spec: BlockSpec) -> int | None:
        """Concrete height for a block spec; None for a tag on an empty store."""
        validate_block_spec(block_spec)
        if block_spec is None or block_spec in ("latest", "pending"):
            latest = await self._reader.max_block_height()
            if latest is None:
                return None
            return resolve_block_spec(latest, block_spec)
        return resolve_block_spec(0, block_spec)

    def _upstream(self) -> ChainStateGateway:
        if self._gateway is None:
            raise unimplemented("upstream state access")
        return self._gateway


def _serialize_filter_result(result: list) -> list:
    return [serialize_log(item) if isinstance(item, LogEntry) else bytes_to_hex(item) for item in result]


def _maybe_hex(value: int | None) -> str | None:
    return None if value is None else int_to_hex(value)


def _address(address: str) -> str:
    hex_to_address(address)
    return address


def _upstream_block(block_spec: BlockSpec) -> str | int:
    validate_block_spec(block_spec)
    if block_spec is None:
        return "latest"
    if isinstance(block_spec, str) and block_spec not in _TAGS:
        return hex_to_int(block_spec)
    return block_spec
