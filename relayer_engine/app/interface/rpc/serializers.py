from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from relayer_engine.app.domain.codec import bytes_to_hex, int_to_hex
from relayer_engine.app.domain.models import BlockView, LogEntry, TransactionView

_ZERO_ADDRESS = "0x" + "00" * 20
_EMPTY_BLOOM = "0x" + "00" * 256
_EMPTY_NONCE = "0x" + "00" * 8
# keccak256(rlp([]))
_EMPTY_UNCLES_HASH = "0x1dcc4de8dec75d7aab85b567b6ccd41ad312451b948a7413f0a142fd40d49347"


def _unix_seconds(value: datetime) -> int:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def serialize_log(entry: LogEntry) -> dict[str, Any]:
    return {
        "blockNumber": int_to_hex(entry.block_number),
        "blockHash": bytes_to_hex(entry.block_hash),
        "transactionIndex": int_to_hex(entry.transaction_index),
        "transactionHash": bytes_to_hex(entry.transaction_hash),
        "logIndex": int_to_hex(entry.log_index),
        "address": bytes_to_hex(entry.address),
        "topics": [bytes_to_hex(topic) for topic in entry.topics],
        "data": bytes_to_hex(entry.data),
        "removed": entry.removed,
    }


def serialize_transaction(tx: TransactionView) -> dict[str, Any]:
    return {
        "blockHash": bytes_to_hex(tx.block_hash),
        "blockNumber": int_to_hex(tx.block_number),
        "from": bytes_to_hex(tx.from_address),
        "gas": int_to_hex(tx.gas_limit),
        "gasPrice": int_to_hex(tx.gas_price),
        "hash": bytes_to_hex(tx.hash),
        "input": bytes_to_hex(tx.input),
        "nonce": int_to_hex(tx.nonce),
        "to": bytes_to_hex(tx.to_address),
        "transactionIndex": int_to_hex(tx.transaction_index),
        "value": int_to_hex(tx.value),
        "v": int_to_hex(tx.v),
        "r": int_to_hex(tx.r),
        "s": int_to_hex(tx.s),
    }


def serialize_block(block: BlockView, *, full_transactions: bool = False) -> dict[str, Any]:
    if full_transactions:
        transactions: list[Any] = [serialize_transaction(tx) for tx in block.transactions]
    else:
        transactions = [bytes_to_hex(tx.hash) for tx in block.transactions]
    return {
        "number": int_to_hex(block.number),
        "hash": bytes_to_hex(block.hash),
        "parentHash": bytes_to_hex(block.parent_hash),
        "nonce": _EMPTY_NONCE,
        "sha3Uncles": _EMPTY_UNCLES_HASH,
        "logsBloom": _EMPTY_BLOOM,
        "transactionsRoot": bytes_to_hex(block.transactions_root),
        "stateRoot": bytes_to_hex(block.state_root),
        "receiptsRoot": bytes_to_hex(block.receipts_root),
        "miner": _ZERO_ADDRESS,
        "difficulty": "0x0",
        "totalDifficulty": "0x0",
        "extraData": "0x",
        "size": int_to_hex(block.size),
        "gasLimit": int_to_hex(block.gas_limit),
        "gasUsed": int_to_hex(block.gas_used),
        "timestamp": int_to_hex(_unix_seconds(block.timestamp)),
        "transactions": transactions,
        "uncles": [],
    }
