from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.ext.asyncio import AsyncEngine

from relayer_engine.app.application.services.block_bounds import resolve_block_spec
from relayer_engine.app.domain.codec import as_bytes
from relayer_engine.app.domain.models import BlockView, LogEntry, LogFilter, TransactionView
from relayer_engine.app.infrastructure.db.models import BlocksDB, EventsDB, TransactionsDB
from relayer_engine.app.infrastructure.db.topics import compile_topics

logger = logging.getLogger(__name__)

_TOPIC_COLUMNS = (EventsDB.topic0, EventsDB.topic1, EventsDB.topic2, EventsDB.topic3)


class SqlAlchemyChainReader:
    """
    Read side of the projection: block / transaction lookups and the log
    query engine behind eth_getLogs and filter polling.
    """

    def __init__(self, *, engine: AsyncEngine) -> None:
        self._engine = engine

    # -------------------------------------------------------------------------
    # Watermarks
    # -------------------------------------------------------------------------

    async def max_block_height(self) -> int | None:
        async with self._engine.connect() as conn:
            return await conn.scalar(select(func.max(BlocksDB.block_number)))

    async def max_event_id(self) -> int | None:
        async with self._engine.connect() as conn:
            return await conn.scalar(select(func.max(EventsDB.id)))

    # -------------------------------------------------------------------------
    # Blocks and transactions
    # -------------------------------------------------------------------------

    async def get_block(
        self,
        *,
        number: int | None = None,
        block_hash: bytes | None = None,
    ) -> BlockView | None:
        stmt = select(BlocksDB.__table__).where(_block_key(number, block_hash))
        async with self._engine.connect() as conn:
            row = (await conn.execute(stmt)).mappings().one_or_none()
            if row is None:
                return None
            tx_stmt = (
                _transaction_select()
                .where(TransactionsDB.block_number == row["block_number"])
                .order_by(TransactionsDB.transaction_index)
            )
            tx_rows = (await conn.execute(tx_stmt)).mappings().all()

        transactions = [_transaction_view(r) for r in tx_rows]
        return BlockView(
            number=row["block_number"],
            hash=as_bytes(row["block_hash"]),
            parent_hash=as_bytes(row["parent_hash"]),
            timestamp=row["timestamp"],
            size=row["size"],
            gas_limit=row["gas_limit"],
            gas_used=row["gas_used"],
            transactions_root=as_bytes(row["transactions_root"]),
            state_root=as_bytes(row["state_root"]),
            receipts_root=as_bytes(row["receipts_root"]),
            transactions=transactions,
        )

    async def count_transactions(
        self,
        *,
        number: int | None = None,
        block_hash: bytes | None = None,
    ) -> int | None:
        """Number of transactions in a block, or None if the block is unknown."""
        stmt = (
            select(BlocksDB.block_number, func.count(TransactionsDB.id).label("tx_count"))
            .select_from(BlocksDB)
            .outerjoin(TransactionsDB, TransactionsDB.block_number == BlocksDB.block_number)
            .where(_block_key(number, block_hash))
            .group_by(BlocksDB.block_number)
        )
        async with self._engine.connect() as conn:
            row = (await conn.execute(stmt)).one_or_none()
        return None if row is None else int(row.tx_count)

    async def get_transaction(
        self,
        *,
        transaction_hash: bytes | None = None,
        block_number: int | None = None,
        block_hash: bytes | None = None,
        index: int | None = None,
    ) -> TransactionView | None:
        stmt = _transaction_select()
        if transaction_hash is not None:
            stmt = stmt.where(TransactionsDB.transaction_hash == transaction_hash)
        else:
            if index is None:
                raise ValueError("index is required when looking up by block")
            stmt = stmt.where(
                _block_key(block_number, block_hash),
                TransactionsDB.transaction_index == index,
            )
        async with self._engine.connect() as conn:
            row = (await conn.execute(stmt)).mappings().one_or_none()
        return None if row is None else _transaction_view(row)

    async def block_hashes(self, *, after: int, until: int | None = None) -> list[bytes]:
        """Hashes of blocks with ``after < height <= until``, in height order."""
        stmt = select(BlocksDB.block_hash).where(BlocksDB.block_number > after)
        if until is not None:
            stmt = stmt.where(BlocksDB.block_number <= until)
        stmt = stmt.order_by(BlocksDB.block_number)
        async with self._engine.connect() as conn:
            rows = (await conn.execute(stmt)).scalars().all()
        return [as_bytes(h) for h in rows]

    # -------------------------------------------------------------------------
    # Logs
    # -------------------------------------------------------------------------

    async def get_logs(
        self,
        log_filter: LogFilter,
        *,
        after_event_id: int | None = None,
        until_event_id: int | None = None,
        default_range: bool = True,
    ) -> list[LogEntry]:
        """
        Events matching ``log_filter``, ordered by block, transaction and log index.

        With ``default_range`` False, fromBlock / toBlock only apply when the
        filter names them explicitly (filter polling is scoped by event id
        instead).
        """
        where: list[ColumnElement[bool]] = []

        if log_filter.block_hash is not None:  # EIP-234
            where.append(BlocksDB.block_hash == log_filter.block_hash)
        elif default_range or log_filter.from_block is not None or log_filter.to_block is not None:
            latest = await self.max_block_height()
            latest = 0 if latest is None else latest
            if default_range or log_filter.from_block is not None:
                where.append(
                    BlocksDB.block_number >= resolve_block_spec(latest, log_filter.from_block)
                )
            if default_range or log_filter.to_block is not None:
                where.append(
                    BlocksDB.block_number <= resolve_block_spec(latest, log_filter.to_block)
                )

        if log_filter.addresses is not None:
            where.append(TransactionsDB.from_address.in_(log_filter.addresses))

        topics_clause = compile_topics(log_filter.topics, _TOPIC_COLUMNS)
        if topics_clause is not None:
            where.append(topics_clause)

        if after_event_id is not None:
            where.append(EventsDB.id > after_event_id)
        if until_event_id is not None:
            where.append(EventsDB.id <= until_event_id)

        stmt = _log_select()
        if where:
            stmt = stmt.where(*where)
        stmt = stmt.order_by(
            BlocksDB.block_number,
            TransactionsDB.transaction_index,
            EventsDB.log_index,
        )
        logger.debug("eth_getLogs query: %s", stmt)

        async with self._engine.connect() as conn:
            rows = (await conn.execute(stmt)).mappings().all()
        return [_log_entry(r) for r in rows]


def _block_key(number: int | None, block_hash: bytes | None) -> ColumnElement[bool]:
    if block_hash is not None:
        return BlocksDB.block_hash == block_hash
    if number is not None:
        return BlocksDB.block_number == number
    raise ValueError("either a block number or a block hash is required")


def _transaction_select() -> Select[Any]:
    return select(
        TransactionsDB.block_number,
        BlocksDB.block_hash,
        TransactionsDB.transaction_index,
        TransactionsDB.transaction_hash,
        TransactionsDB.from_address,
        TransactionsDB.to_address,
        TransactionsDB.nonce,
        TransactionsDB.gas_price,
        TransactionsDB.gas_limit,
        TransactionsDB.value,
        TransactionsDB.input,
        TransactionsDB.v,
        TransactionsDB.r,
        TransactionsDB.s,
    ).join_from(TransactionsDB, BlocksDB, TransactionsDB.block_number == BlocksDB.block_number)


def _transaction_view(row: Any) -> TransactionView:
    to_address = row["to_address"]
    return TransactionView(
        block_number=row["block_number"],
        block_hash=as_bytes(row["block_hash"]),
        transaction_index=row["transaction_index"],
        hash=as_bytes(row["transaction_hash"]),
        from_address=as_bytes(row["from_address"]),
        to_address=None if to_address is None else as_bytes(to_address),
        nonce=row["nonce"],
        gas_price=row["gas_price"],
        gas_limit=row["gas_limit"],
        value=row["value"],
        input=as_bytes(row["input"]),
        v=row["v"],
        r=row["r"],
        s=row["s"],
    )


def _log_select() -> Select[Any]:
    return (
        select(
            BlocksDB.block_number,
            BlocksDB.block_hash,
            TransactionsDB.transaction_index,
            TransactionsDB.transaction_hash,
            EventsDB.log_index,
            TransactionsDB.from_address,
            *_TOPIC_COLUMNS,
            EventsDB.data,
        )
        .select_from(EventsDB)
        .join(TransactionsDB, EventsDB.transaction_id == TransactionsDB.id)
        .join(BlocksDB, TransactionsDB.block_number == BlocksDB.block_number)
    )


def _log_entry(row: Any) -> LogEntry:
    topics = tuple(
        as_bytes(row[column.key]) for column in _TOPIC_COLUMNS if row[column.key] is not None
    )
    return LogEntry(
        block_number=row["block_number"],
        block_hash=as_bytes(row["block_hash"]),
        transaction_index=row["transaction_index"],
        transaction_hash=as_bytes(row["transaction_hash"]),
        log_index=row["log_index"],
        address=as_bytes(row["from_address"]),
        topics=topics,
        data=as_bytes(row["data"]),
    )
