from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncEngine

from relayer_engine.app.domain.models import NO_CURSOR, FilterKind, FilterRecord
from relayer_engine.app.infrastructure.db.models import BlocksDB, EventsDB, FiltersDB

logger = logging.getLogger(__name__)

# Client identity is not tracked yet; every filter is owned by this placeholder.
_ANONYMOUS_CLIENT = "0.0.0.0"


class SqlAlchemyFilterRegistry:
    """
    PostgreSQL/SQLAlchemy implementation of FilterRegistry.

    A new filter's cursor starts at the current head (max block height, or
    max event id for event filters), so it never matches history older than
    itself. Cursor moves use compare-and-advance; of two concurrent pollers
    only one wins a given range.
    """

    def __init__(self, *, engine: AsyncEngine) -> None:
        self._engine = engine

    async def create(self, kind: FilterKind, params: dict[str, Any] | None = None) -> int:
        head_column = EventsDB.id if kind is FilterKind.EVENT else BlocksDB.block_number
        async with self._engine.begin() as conn:
            head = await conn.scalar(select(func.max(head_column)))
            cursor = NO_CURSOR if head is None else int(head)
            filter_id = await conn.scalar(
                insert(FiltersDB)
                .values(
                    kind=kind.value,
                    created_at=datetime.now(timezone.utc),
                    client=_ANONYMOUS_CLIENT,
                    params=params,
                    origin=cursor,
                    cursor=cursor,
                )
                .returning(FiltersDB.id)
            )
        logger.info("Created %s filter %s at cursor %s", kind.value, filter_id, cursor)
        return int(filter_id)

    async def get(self, filter_id: int) -> FilterRecord | None:
        async with self._engine.connect() as conn:
            row = (
                await conn.execute(select(FiltersDB.__table__).where(FiltersDB.id == filter_id))
            ).mappings().one_or_none()
        if row is None:
            return None
        return FilterRecord(
            id=row["id"],
            kind=FilterKind(row["kind"]),
            created_at=row["created_at"],
            client=row["client"],
            params=row["params"],
            origin=row["origin"],
            cursor=row["cursor"],
        )

    async def advance(self, filter_id: int, *, expected: int, new: int) -> bool:
        if new < expected:
            raise ValueError(f"filter cursor cannot move backwards ({expected} -> {new})")
        async with self._engine.begin() as conn:
            result = await conn.execute(
                update(FiltersDB)
                .where(FiltersDB.id == filter_id, FiltersDB.cursor == expected)
                .values(cursor=new)
            )
        advanced = result.rowcount == 1
        if not advanced:
            logger.debug("Filter %s cursor moved concurrently; %s -> %s lost", filter_id, expected, new)
        return advanced

    async def remove(self, filter_id: int) -> bool:
        async with self._engine.begin() as conn:
            result = await conn.execute(delete(FiltersDB).where(FiltersDB.id == filter_id))
        found = result.rowcount > 0
        if found:
            logger.info("Uninstalled filter %s", filter_id)
        return found
