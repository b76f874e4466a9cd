from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union


# -----------------------------------------------------------------------------
# Upstream records (what the block source hands to the indexer)
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class EventRecord:
    """A log emitted by a transaction, in emission order."""

    topics: tuple[bytes, ...]
    data: bytes

    def __post_init__(self) -> None:
        if len(self.topics) > 4:
            raise ValueError("an event carries at most 4 topics")


@dataclass(frozen=True)
class TransactionRecord:
    hash: bytes
    from_address: bytes
    to_address: bytes | None
    nonce: int
    value: int
    input: bytes
    v: int
    r: int
    s: int
    gas_price: int = 0
    gas_limit: int = 0
    gas_used: int = 0
    status: bool = True
    events: tuple[EventRecord, ...] = ()


@dataclass(frozen=True)
class BlockRecord:
    number: int
    hash: bytes
    parent_hash: bytes
    timestamp: datetime
    size: int
    gas_limit: int
    gas_used: int
    transactions_root: bytes
    state_root: bytes
    receipts_root: bytes
    transactions: tuple[TransactionRecord, ...] = ()


# -----------------------------------------------------------------------------
# Query side
# -----------------------------------------------------------------------------

MAX_TOPICS = 4

# A topic position is a wildcard, a single digest, or a set of candidates.
TopicPosition = Union[None, bytes, list[Union[bytes, None]]]


@dataclass(frozen=True)
class LogFilter:
    """
    Parsed ``eth_getLogs`` / ``eth_newFilter`` filter object.

    ``from_block`` / ``to_block`` keep the raw block spec (tag or hex) so
    they can be resolved against the store at query time.
    """

    from_block: str | int | None = None
    to_block: str | int | None = None
    block_hash: bytes | None = None
    addresses: tuple[bytes, ...] | None = None
    topics: list[TopicPosition] | None = None


@dataclass(frozen=True)
class LogEntry:
    block_number: int
    block_hash: bytes
    transaction_index: int
    transaction_hash: bytes
    log_index: int
    address: bytes
    topics: tuple[bytes, ...]
    data: bytes
    removed: bool = False


@dataclass(frozen=True)
class TransactionView:
    block_number: int
    block_hash: bytes
    transaction_index: int
    hash: bytes
    from_address: bytes
    to_address: bytes | None
    nonce: int
    gas_price: int
    gas_limit: int
    value: int
    input: bytes
    v: int
    r: int
    s: int


@dataclass(frozen=True)
class BlockView:
    number: int
    hash: bytes
    parent_hash: bytes
    timestamp: datetime
    size: int
    gas_limit: int
    gas_used: int
    transactions_root: bytes
    state_root: bytes
    receipts_root: bytes
    transactions: list[TransactionView] = field(default_factory=list)


# -----------------------------------------------------------------------------
# Filters
# -----------------------------------------------------------------------------


class FilterKind(str, Enum):
    BLOCK = "block"
    EVENT = "event"
    PENDING_TRANSACTION = "pending-transaction"


NO_CURSOR = -1
"""Cursor value of a filter created against an empty store."""


@dataclass(frozen=True)
class FilterRecord:
    id: int
    kind: FilterKind
    created_at: datetime
    client: str
    params: dict[str, Any] | None
    origin: int
    cursor: int
