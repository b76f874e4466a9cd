from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from relayer_engine.app.infrastructure.db.column_types import U256, BigIntegerPK
from relayer_engine.app.infrastructure.db.db_base import BaseDB


class TransactionsDB(BaseDB):
    """
    Transactions of indexed blocks.

    ``id`` is a global surrogate assigned by the store; the natural key is
    (block_number, transaction_index), where the index is the dense 0-based
    position of the transaction in its source block.
    """

    __tablename__ = "transactions"
    __table_args__ = (
        UniqueConstraint(
            "block_number",
            "transaction_index",
            name="uq_transactions_block_index",
        ),
        Index("ix_transactions_hash", "transaction_hash", unique=True),
        Index("ix_transactions_from", "from_address"),
    )

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    block_number: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("blocks.block_number"),
        nullable=False,
    )
    transaction_index: Mapped[int] = mapped_column(Integer, nullable=False)
    transaction_hash: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    from_address: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    # Null for contract creations
    to_address: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)

    nonce: Mapped[int] = mapped_column(U256, nullable=False)
    gas_price: Mapped[int] = mapped_column(U256, nullable=False)
    gas_limit: Mapped[int] = mapped_column(U256, nullable=False)
    gas_used: Mapped[int] = mapped_column(U256, nullable=False)
    value: Mapped[int] = mapped_column(U256, nullable=False)
    input: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    v: Mapped[int] = mapped_column(U256, nullable=False)
    r: Mapped[int] = mapped_column(U256, nullable=False)
    s: Mapped[int] = mapped_column(U256, nullable=False)

    status: Mapped[bool] = mapped_column(Boolean, nullable=False)
