from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from relayer_engine.app.infrastructure.db.column_types import BigIntegerPK
from relayer_engine.app.infrastructure.db.db_base import BaseDB


class FiltersDB(BaseDB):
    """
    Server-side filters created through eth_new*Filter.

    ``cursor`` is the last block height (block / pending-transaction
    filters) or event id (event filters) already delivered; ``origin`` keeps
    its value at creation. -1 means the store was empty at that point.
    """

    __tablename__ = "filters"

    id: Mapped[int] = mapped_column(BigIntegerPK, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    client: Mapped[str] = mapped_column(String(64), nullable=False)
    params: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    origin: Mapped[int] = mapped_column(BigInteger, nullable=False)
    cursor: Mapped[int] = mapped_column(BigInteger, nullable=False)
