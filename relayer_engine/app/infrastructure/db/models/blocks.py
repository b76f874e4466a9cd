from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, LargeBinary
from sqlalchemy.orm import Mapped, mapped_column

from relayer_engine.app.infrastructure.db.column_types import U256
from relayer_engine.app.infrastructure.db.db_base import BaseDB


class BlocksDB(BaseDB):
    """
    Canonical block table.

    One row per block height. Heights form a gap-free sequence starting at
    0 and rows are never updated or deleted once written by the indexer.
    """

    __tablename__ = "blocks"
    __table_args__ = (
        Index("ix_blocks_hash", "block_hash", unique=True),
        Index("ix_blocks_timestamp", "timestamp"),
    )
    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------
    block_number: Mapped[int] = mapped_column(
        BigInteger, primary_key=True, autoincrement=False
    )
    chain_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    block_hash: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    parent_hash: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    # -------------------------------------------------------------------------
    # Time
    # -------------------------------------------------------------------------
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # -------------------------------------------------------------------------
    # Gas / execution metadata
    # -------------------------------------------------------------------------
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    gas_limit: Mapped[int] = mapped_column(U256, nullable=False)
    gas_used: Mapped[int] = mapped_column(U256, nullable=False)
    # -------------------------------------------------------------------------
    # Merkle roots
    # -------------------------------------------------------------------------
    transactions_root: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    state_root: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    receipts_root: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
