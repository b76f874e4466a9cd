from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, LargeBinary, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from relayer_engine.app.infrastructure.db.column_types import BigIntegerPK
from relayer_engine.app.infrastructure.db.db_base import BaseDB


class EventsDB(BaseDB):
    """
    Logs emitted by indexed transactions.

    ``log_index`` is the 0-based emission ordinal within the owning
    transaction. Topics are spread over four nullable columns; unused slots
    stay NULL so a topic predicate on them never matches.
    """

    __tablename__ = "events"
    __table_args__ = (
        UniqueConstraint("transaction_id", "log_index", name="uq_events_transaction_log"),
        Index("ix_events_topic0", "topic0"),
    )

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    transaction_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("transactions.id"),
        nullable=False,
    )
    log_index: Mapped[int] = mapped_column(Integer, nullable=False)

    topic0: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    topic1: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    topic2: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    topic3: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)

    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
