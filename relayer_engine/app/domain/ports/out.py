from __future__ import annotations

from typing import Any, Protocol

from relayer_engine.app.domain.models import (
    BlockRecord,
    BlockView,
    FilterKind,
    FilterRecord,
    LogEntry,
    LogFilter,
    TransactionView,
)


class TransientFetchError(Exception):
    """The upstream source could not be reached; the same height is retried."""


class BlockSource(Protocol):
    """
    Port for the upstream chain-data source.

    Implementations return the block at ``height`` with fully materialized
    transactions (and their events), or None when the chain has not
    produced that block yet. Network failures are reported as
    TransientFetchError.
    """

    async def fetch_block(self, height: int) -> BlockRecord | None:
        ...


class BlockWriter(Protocol):
    """
    Port for persisting ingested blocks.

    ``persist_block`` writes a block, its transactions and their events as
    a single unit of work; readers never observe a partial block.
    """

    async def next_height(self) -> int:
        ...

    async def persist_block(self, block: BlockRecord) -> None:
        ...


class ChainReader(Protocol):
    """Port for read-only queries over the indexed chain."""

    async def max_block_height(self) -> int | None:
        ...

    async def max_event_id(self) -> int | None:
        ...

    async def get_block(
        self,
        *,
        number: int | None = None,
        block_hash: bytes | None = None,
    ) -> BlockView | None:
        ...

    async def count_transactions(
        self,
        *,
        number: int | None = None,
        block_hash: bytes | None = None,
    ) -> int | None:
        ...

    async def get_transaction(
        self,
        *,
        transaction_hash: bytes | None = None,
        block_number: int | None = None,
        block_hash: bytes | None = None,
        index: int | None = None,
    ) -> TransactionView | None:
        ...

    async def block_hashes(self, *, after: int, until: int | None = None) -> list[bytes]:
        ...

    async def get_logs(
        self,
        log_filter: LogFilter,
        *,
        after_event_id: int | None = None,
        until_event_id: int | None = None,
        default_range: bool = True,
    ) -> list[LogEntry]:
        ...


class FilterRegistry(Protocol):
    """
    Port for the durable catalog of server-side filters.

    Owns no query logic; cursors are advanced with an atomic
    compare-and-advance so concurrent pollers never deliver an item twice.
    """

    async def create(self, kind: FilterKind, params: dict[str, Any] | None = None) -> int:
        ...

    async def get(self, filter_id: int) -> FilterRecord | None:
        ...

    async def advance(self, filter_id: int, *, expected: int, new: int) -> bool:
        ...

    async def remove(self, filter_id: int) -> bool:
        ...


class ChainStateGateway(Protocol):
    """
    Low-level dependency for account state the projection does not hold.

    Calls are proxied to the upstream node; arguments and results use the
    JSON-RPC wire encoding.
    """

    async def get_balance(self, address: str, block: str) -> str:
        ...

    async def get_code(self, address: str, block: str) -> str:
        ...

    async def get_storage_at(self, address: str, key: int, block: str) -> str:
        ...

    async def get_transaction_count(self, address: str, block: str) -> str:
        ...

    async def call(self, transaction: dict[str, Any], block: str) -> str:
        ...

    async def send_raw_transaction(self, payload: str) -> str:
        ...
