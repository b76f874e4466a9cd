from __future__ import annotations

from typing import Callable, Dict

from sqlalchemy.ext.asyncio import AsyncEngine

from relayer_engine.app.application.services.index_blocks import BlockIndexer, RetryPolicy
from relayer_engine.app.config import settings
from relayer_engine.app.infrastructure.adapters.block_writer import SqlAlchemyBlockWriter
from relayer_engine.app.infrastructure.factories.upstream import create_upstream_web3
from relayer_engine.app.infrastructure.fetchers.web3_block_source import Web3BlockSource

BlockIndexerFactory = Callable[[AsyncEngine, int], BlockIndexer]


def _make_sqlalchemy_indexer(engine: AsyncEngine, chain_id: int) -> BlockIndexer:
    """
    Wire dependencies for the SQLAlchemy backend:
    - AsyncWeb3 block source for the configured upstream endpoint,
    - SQLAlchemy block writer,
    - fixed-interval retry policy from INDEXER_RETRY_INTERVAL.
    """
    return BlockIndexer(
        source=Web3BlockSource(w3=create_upstream_web3()),
        writer=SqlAlchemyBlockWriter(engine=engine, chain_id=chain_id),
        retry=RetryPolicy(interval=settings.indexer_retry_interval),
    )


_BLOCK_INDEXER_REGISTRY: Dict[str, BlockIndexerFactory] = {
    "sqlalchemy": _make_sqlalchemy_indexer,
}


def block_indexer_factory(
    *,
    backend: str,
    engine: AsyncEngine,
    chain_id: int,
) -> BlockIndexer:
    try:
        factory = _BLOCK_INDEXER_REGISTRY[backend]
    except KeyError:
        raise ValueError(f"Unsupported block indexer backend: {backend!r}")
    return factory(engine, chain_id)
