import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from relayer_engine.app.application.services.index_blocks import (
    BlockIndexer,
    BlockSequenceError,
    RetryPolicy,
)
from relayer_engine.app.domain.models import EventRecord
from relayer_engine.app.domain.ports.out import TransientFetchError
from relayer_engine.app.infrastructure.adapters.block_writer import SqlAlchemyBlockWriter
from relayer_engine.app.infrastructure.db.models import BlocksDB, EventsDB, TransactionsDB
from tests.chain_fixtures import h32, make_block, make_tx


class FakeChain:
    """
    Upstream stand-in: serves ``blocks`` by height, answers None for the
    first ``delays[h]`` requests of height h and raises for heights listed
    in ``failures`` once.
    """

    def __init__(self, blocks, *, delays=None, failures=()):
        self.blocks = {b.number: b for b in blocks}
        self.delays = dict(delays or {})
        self.failures = set(failures)
        self.requests = []

    async def fetch_block(self, height):
        self.requests.append(height)
        if height in self.failures:
            self.failures.discard(height)
            raise TransientFetchError("connection refused")
        if self.delays.get(height, 0) > 0:
            self.delays[height] -= 1
            return None
        return self.blocks.get(height)


def _stopping_sleep(indexer_ref, *, after_height):
    """Fake clock: counts waits and stops the indexer once it waits past ``after_height``."""
    waits = []

    async def sleep(interval):
        waits.append(interval)
        indexer = indexer_ref[0]
        if indexer.watermark is not None and indexer.watermark > after_height:
            indexer.request_stop()

    return sleep, waits


async def _run(engine, chain, *, last_height):
    ref = []
    sleep, waits = _stopping_sleep(ref, after_height=last_height)
    indexer = BlockIndexer(
        source=chain,
        writer=SqlAlchemyBlockWriter(engine=engine, chain_id=1),
        retry=RetryPolicy(interval=0.5, sleep=sleep),
    )
    ref.append(indexer)
    await indexer.run()
    return indexer, waits


@pytest.mark.asyncio
async def test_indexes_gap_free_through_delays_and_failures(engine):
    blocks = [make_block(0), make_block(1, (make_tx(1), make_tx(2))), make_block(2, (make_tx(3),))]
    chain = FakeChain(blocks, delays={1: 2}, failures={2})

    indexer, waits = await _run(engine, chain, last_height=2)

    assert indexer.watermark == 3
    assert chain.requests[:6] == [0, 1, 1, 1, 2, 2]
    assert waits[:3] == [0.5, 0.5, 0.5]
    async with engine.connect() as conn:
        heights = (await conn.execute(select(BlocksDB.block_number).order_by(BlocksDB.block_number))).scalars().all()
        tx_rows = (
            await conn.execute(
                select(TransactionsDB.block_number, TransactionsDB.transaction_index).order_by(TransactionsDB.id)
            )
        ).all()
    assert list(heights) == [0, 1, 2]
    assert [tuple(r) for r in tx_rows] == [(1, 0), (1, 1), (2, 0)]


@pytest.mark.asyncio
async def test_resumes_after_highest_persisted_block(engine):
    writer = SqlAlchemyBlockWriter(engine=engine, chain_id=1)
    assert await writer.next_height() == 0
    await writer.persist_block(make_block(0))
    await writer.persist_block(make_block(1))
    assert await writer.next_height() == 2

    chain = FakeChain([make_block(0), make_block(1), make_block(2)])
    indexer, _ = await _run(engine, chain, last_height=2)

    assert chain.requests[0] == 2
    assert indexer.watermark == 3


@pytest.mark.asyncio
async def test_events_keep_emission_order(engine):
    events = tuple(EventRecord(topics=(h32(i),), data=bytes([i])) for i in range(3))
    chain = FakeChain([make_block(0, (make_tx(0, events=events),))])

    await _run(engine, chain, last_height=0)

    async with engine.connect() as conn:
        rows = (await conn.execute(select(EventsDB.log_index, EventsDB.data).order_by(EventsDB.id))).all()
    assert [(r.log_index, r.data) for r in rows] == [(0, b"\x00"), (1, b"\x01"), (2, b"\x02")]


@pytest.mark.asyncio
async def test_stop_before_start_fetches_nothing(engine):
    chain = FakeChain([make_block(0)])
    indexer = BlockIndexer(source=chain, writer=SqlAlchemyBlockWriter(engine=engine, chain_id=1))
    indexer.request_stop()
    await indexer.run()
    assert chain.requests == []
    assert indexer.stopping


@pytest.mark.asyncio
async def test_out_of_sequence_block_is_rejected(engine):
    class WrongHeight:
        async def fetch_block(self, height):
            return make_block(height + 5)

    indexer = BlockIndexer(source=WrongHeight(), writer=SqlAlchemyBlockWriter(engine=engine, chain_id=1))
    with pytest.raises(BlockSequenceError):
        await indexer.run()


@pytest.mark.asyncio
async def test_failed_persist_leaves_no_partial_block(engine):
    writer = SqlAlchemyBlockWriter(engine=engine, chain_id=1)
    duplicate = make_tx(7)
    with pytest.raises(IntegrityError):
        await writer.persist_block(make_block(0, (duplicate, duplicate)))

    async with engine.connect() as conn:
        assert (await conn.execute(select(BlocksDB.block_number))).first() is None
        assert (await conn.execute(select(TransactionsDB.id))).first() is None
    assert await writer.next_height() == 0
