from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

import aiohttp
from eth_utils import to_canonical_address
from web3 import AsyncWeb3
from web3.exceptions import (
    BlockNotFound,
    ProviderConnectionError,
    TimeExhausted,
    TooManyRequests,
    TransactionNotFound,
)

from relayer_engine.app.domain.models import BlockRecord, EventRecord, TransactionRecord
from relayer_engine.app.domain.ports.out import BlockSource, TransientFetchError

logger = logging.getLogger(__name__)

# Upstream failures retried at the same height.
_TRANSIENT_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    aiohttp.ClientError,
    ProviderConnectionError,
    TooManyRequests,
    TimeExhausted,
)


class Web3BlockSource(BlockSource):
    """
    Block source backed by an upstream Ethereum-compatible JSON-RPC node.

    Fetches:
      - eth_getBlockByNumber(height, full transactions),
      - eth_getTransactionReceipt per transaction (status, gas used, logs).

    A block the node does not know yet is reported as None. Transport
    failures (including HTTP error statuses and rate limiting) are reported
    as TransientFetchError. Anything else propagates.
    """

    def __init__(self, *, w3: AsyncWeb3) -> None:
        self._w3 = w3

    async def fetch_block(self, height: int) -> BlockRecord | None:
        try:
            block = await self._w3.eth.get_block(height, full_transactions=True)
            transactions = [await self._transaction(tx) for tx in block["transactions"]]
        except (BlockNotFound, TransactionNotFound):
            return None
        except _TRANSIENT_ERRORS as exc:
            raise TransientFetchError(str(exc)) from exc

        return BlockRecord(
            number=int(block["number"]),
            hash=bytes(block["hash"]),
            parent_hash=bytes(block["parentHash"]),
            timestamp=datetime.fromtimestamp(int(block["timestamp"]), tz=timezone.utc),
            size=int(block.get("size", 0)),
            gas_limit=int(block["gasLimit"]),
            gas_used=int(block["gasUsed"]),
            transactions_root=bytes(block["transactionsRoot"]),
            state_root=bytes(block["stateRoot"]),
            receipts_root=bytes(block["receiptsRoot"]),
            transactions=tuple(transactions),
        )

    async def _transaction(self, tx: Any) -> TransactionRecord:
        receipt = await self._w3.eth.get_transaction_receipt(tx["hash"])
        to = tx.get("to")
        return TransactionRecord(
            hash=bytes(tx["hash"]),
            from_address=bytes(to_canonical_address(tx["from"])),
            to_address=None if to is None else bytes(to_canonical_address(to)),
            nonce=int(tx["nonce"]),
            value=int(tx["value"]),
            input=bytes(tx.get("input", b"")),
            v=int(tx.get("v", 0)),
            r=_as_int(tx.get("r")),
            s=_as_int(tx.get("s")),
            gas_price=int(tx.get("gasPrice", 0)),
            gas_limit=int(tx.get("gas", 0)),
            gas_used=int(receipt.get("gasUsed", 0)),
            status=bool(receipt.get("status", 1)),
            events=tuple(
                EventRecord(
                    topics=tuple(bytes(topic) for topic in log["topics"]),
                    data=bytes(log["data"]),
                )
                for log in sorted(receipt.get("logs", []), key=lambda log: log["logIndex"])
            ),
        )


def _as_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    return int(value)
