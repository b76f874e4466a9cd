from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from relayer_engine.app.domain.models import BlockRecord, TransactionRecord
from relayer_engine.app.infrastructure.db.models import BlocksDB, EventsDB, TransactionsDB

logger = logging.getLogger(__name__)


class SqlAlchemyBlockWriter:
    """
    PostgreSQL/SQLAlchemy implementation of BlockWriter.

    A block, its transactions (index assigned in source order from 0) and
    their events (log index assigned in emission order from 0) are inserted
    inside a single database transaction, so readers see either the whole
    block or nothing.
    """

    def __init__(self, *, engine: AsyncEngine, chain_id: int) -> None:
        self._engine = engine
        self._chain_id = chain_id

    async def next_height(self) -> int:
        async with self._engine.connect() as conn:
            max_height = await conn.scalar(select(func.max(BlocksDB.block_number)))
        return 0 if max_height is None else int(max_height) + 1

    async def persist_block(self, block: BlockRecord) -> None:
        async with self._engine.begin() as conn:
            await conn.execute(
                insert(BlocksDB).values(
                    block_number=block.number,
                    chain_id=self._chain_id,
                    block_hash=block.hash,
                    parent_hash=block.parent_hash,
                    timestamp=block.timestamp,
                    size=block.size,
                    gas_limit=block.gas_limit,
                    gas_used=block.gas_used,
                    transactions_root=block.transactions_root,
                    state_root=block.state_root,
                    receipts_root=block.receipts_root,
                )
            )
            for transaction_index, transaction in enumerate(block.transactions):
                await self._persist_transaction(conn, block.number, transaction_index, transaction)

    async def _persist_transaction(
        self,
        conn: AsyncConnection,
        block_number: int,
        transaction_index: int,
        transaction: TransactionRecord,
    ) -> None:
        logger.debug(
            "Indexing transaction 0x%s at #%s:%s",
            transaction.hash.hex(),
            block_number,
            transaction_index,
        )
        transaction_id = await conn.scalar(
            insert(TransactionsDB)
            .values(
                block_number=block_number,
                transaction_index=transaction_index,
                transaction_hash=transaction.hash,
                from_address=transaction.from_address,
                to_address=transaction.to_address,
                nonce=transaction.nonce,
                gas_price=transaction.gas_price,
                gas_limit=transaction.gas_limit,
                gas_used=transaction.gas_used,
                value=transaction.value,
                input=transaction.input,
                v=transaction.v,
                r=transaction.r,
                s=transaction.s,
                status=transaction.status,
            )
            .returning(TransactionsDB.id)
        )
        if not transaction.events:
            return

        payload: list[dict[str, Any]] = []
        for log_index, event in enumerate(transaction.events):
            topics = list(event.topics) + [None] * (4 - len(event.topics))
            payload.append(
                {
                    "transaction_id": transaction_id,
                    "log_index": log_index,
                    "topic0": topics[0],
                    "topic1": topics[1],
                    "topic2": topics[2],
                    "topic3": topics[3],
                    "data": event.data,
                }
            )
        await conn.execute(insert(EventsDB), payload)
