from __future__ import annotations

import asyncio
import logging
import signal

from relayer_engine.app.infrastructure.db.engine import create_app_async_engine
from relayer_engine.app.infrastructure.factories.block_indexer_factory import block_indexer_factory

logger = logging.getLogger(__name__)


async def block_indexer_task(
    *,
    chain_id: int,
    backend: str = "sqlalchemy",
) -> None:
    """
    Follows the upstream chain and persists every block into the projection.

    Resumes after the highest stored block. SIGINT/SIGTERM stop the loop once
    the block in flight is fully written.
    """
    engine = create_app_async_engine()
    try:
        indexer = block_indexer_factory(
            backend=backend,
            engine=engine,
            chain_id=chain_id,
        )

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, indexer.request_stop)
            except NotImplementedError:
                # no signal handlers on this platform's event loop
                logger.debug("Signal handler for %s not installed", sig)

        await indexer.run()
    finally:
        await engine.dispose()
