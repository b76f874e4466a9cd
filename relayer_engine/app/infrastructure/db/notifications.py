from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

logger = logging.getLogger(__name__)

BLOCK_CHANNEL = "block"


class BlockNotificationListener:
    """
    LISTEN on the channel the ``blocks`` insert trigger notifies.

    Only a hint for idle pollers: notifications may be missed, so nothing
    relies on them for correctness. Requires the asyncpg driver.
    """

    def __init__(self, engine: AsyncEngine, *, channel: str = BLOCK_CHANNEL) -> None:
        self._engine = engine
        self._channel = channel
        self._conn: AsyncConnection | None = None
        self.latest_block: int | None = None

    async def start(self) -> None:
        self._conn = await self._engine.connect()
        raw = await self._conn.get_raw_connection()
        await raw.driver_connection.add_listener(self._channel, self.on_notification)
        logger.info("Listening for %r notifications", self._channel)

    async def stop(self) -> None:
        if self._conn is None:
            return
        raw = await self._conn.get_raw_connection()
        await raw.driver_connection.remove_listener(self._channel, self.on_notification)
        await self._conn.close()
        self._conn = None

    def on_notification(self, connection: Any, pid: int, channel: str, payload: str) -> None:
        if channel != self._channel or not payload:
            return
        try:
            block_number = int(payload)
        except ValueError:
            return  # ignore UFOs
        logger.info("Block #%s received", block_number)
        if self.latest_block is None or block_number > self.latest_block:
            self.latest_block = block_number
