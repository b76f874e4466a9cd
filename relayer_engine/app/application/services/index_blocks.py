from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from relayer_engine.app.domain.models import BlockRecord
from relayer_engine.app.domain.ports.out import BlockSource, BlockWriter, TransientFetchError

logger = logging.getLogger(__name__)


class BlockSequenceError(RuntimeError):
    """The upstream source answered with a block other than the one requested."""


@dataclass(frozen=True)
class RetryPolicy:
    """
    Fixed-interval, unbounded retry for blocks that are not available yet.

    ``sleep`` is injectable so tests can drive the loop with a fake clock.
    """

    interval: float = 0.1
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    async def wait(self) -> None:
        await self.sleep(self.interval)


class BlockIndexer:
    """
    Sequential ingestion loop.

    Resumes at the height after the last persisted block, fetches each block
    from the source (waiting until the chain produces it), persists it as one
    unit of work and moves on. It never fetches height h+1 before h is
    durably written, which keeps the recorded heights gap-free.

    Persistence errors propagate and end the loop.
    """

    def __init__(
        self,
        *,
        source: BlockSource,
        writer: BlockWriter,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._source = source
        self._writer = writer
        self._retry = retry or RetryPolicy()
        self._stop = asyncio.Event()
        self._watermark: int | None = None

    @property
    def watermark(self) -> int | None:
        """Next height the indexer will try to ingest."""
        return self._watermark

    def request_stop(self) -> None:
        """Stop after the block being persisted (if any) is fully written."""
        logger.info("Stop requested at block #%s", self._watermark)
        self._stop.set()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    async def run(self) -> None:
        self._watermark = await self._writer.next_height()
        logger.info("Resuming from block #%s", self._watermark)

        while not self._stop.is_set():
            block = await self._fetch(self._watermark)
            if block is None:
                break
            await self.index_block(block)
            self._watermark += 1

        logger.info("Indexer stopped; next block is #%s", self._watermark)

    async def index_block(self, block: BlockRecord) -> None:
        expected = self._watermark
        if expected is not None and block.number != expected:
            raise BlockSequenceError(
                f"source returned block #{block.number} while #{expected} was requested"
            )
        await self._writer.persist_block(block)
        logger.info(
            "Indexed block #%s (%s transactions)",
            block.number,
            len(block.transactions),
        )

    async def _fetch(self, height: int) -> BlockRecord | None:
        """Block until ``height`` is available; None only when stopping."""
        attempts = 0
        while not self._stop.is_set():
            try:
                block = await self._source.fetch_block(height)
            except TransientFetchError as exc:
                logger.warning("Fetching block #%s failed, retrying: %s", height, exc)
                block = None
            if block is not None:
                return block

            attempts += 1
            if attempts == 1:
                logger.debug("Block #%s not produced yet, waiting", height)
            await self._retry.wait()
        return None
