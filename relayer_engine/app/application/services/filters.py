from __future__ import annotations

import logging
from typing import Any

from relayer_engine.app.application.services.log_filters import parse_log_filter
from relayer_engine.app.domain.models import FilterKind, FilterRecord, LogEntry, LogFilter
from relayer_engine.app.domain.ports.out import ChainReader, FilterRegistry

logger = logging.getLogger(__name__)

# Filter id 0 means "no filter": polls and uninstalls answer without the store.
NULL_FILTER_ID = 0

FilterResult = list[bytes] | list[LogEntry]


class FilterService:
    """
    Application-level use cases for server-side filters.

    Dispatches eth_getFilterChanges / eth_getFilterLogs on the filter kind:
      - block: hashes of blocks after the cursor (changes) or after the
        filter's origin (logs),
      - event: logs matching the filter's params,
      - pending-transaction: always empty, there is no pending pool view.

    Incremental polls compute the result for (cursor, head] first and only
    return it if the compare-and-advance of the cursor succeeds, so an item
    is delivered once even with concurrent pollers on one filter.
    """

    def __init__(self, *, registry: FilterRegistry, reader: ChainReader) -> None:
        self._registry = registry
        self._reader = reader

    async def new_block_filter(self) -> int:
        return await self._registry.create(FilterKind.BLOCK)

    async def new_pending_transaction_filter(self) -> int:
        return await self._registry.create(FilterKind.PENDING_TRANSACTION)

    async def new_event_filter(self, raw_filter: dict[str, Any] | None) -> int:
        parse_log_filter(raw_filter)  # reject malformed filters before storing them
        return await self._registry.create(FilterKind.EVENT, raw_filter or {})

    async def uninstall(self, filter_id: int) -> bool:
        if filter_id == NULL_FILTER_ID:
            return True
        return await self._registry.remove(filter_id)

    async def get_changes(self, filter_id: int) -> FilterResult:
        record = await self._lookup(filter_id)
        if record is None:
            return []

        if record.kind is FilterKind.BLOCK:
            head = await self._reader.max_block_height()
            if head is None or head <= record.cursor:
                return []
            hashes = await self._reader.block_hashes(after=record.cursor, until=head)
            if not await self._registry.advance(record.id, expected=record.cursor, new=head):
                return []
            return hashes

        if record.kind is FilterKind.EVENT:
            head = await self._reader.max_event_id()
            if head is None or head <= record.cursor:
                return []
            logs = await self._reader.get_logs(
                _stored_filter(record),
                after_event_id=record.cursor,
                until_event_id=head,
                default_range=False,
            )
            if not await self._registry.advance(record.id, expected=record.cursor, new=head):
                return []
            return logs

        return []

    async def get_logs(self, filter_id: int) -> FilterResult:
        record = await self._lookup(filter_id)
        if record is None:
            return []

        if record.kind is FilterKind.BLOCK:
            return await self._reader.block_hashes(after=record.origin)

        if record.kind is FilterKind.EVENT:
            return await self._reader.get_logs(_stored_filter(record))

        return []

    async def _lookup(self, filter_id: int) -> FilterRecord | None:
        if filter_id == NULL_FILTER_ID:
            return None
        record = await self._registry.get(filter_id)
        if record is None:
            logger.debug("Unknown filter %s", filter_id)
        return record


def _stored_filter(record: FilterRecord) -> LogFilter:
    return parse_log_filter(record.params or {})
