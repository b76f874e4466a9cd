import os
import sys
from collections.abc import AsyncIterator
from pathlib import Path

import pytest_asyncio

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are read at import time; tests never talk to PostgreSQL.
os.environ.setdefault("POSTGRES_USER", "relayer")
os.environ.setdefault("POSTGRES_PASSWORD", "relayer")
os.environ.setdefault("POSTGRES_SERVER", "localhost")
os.environ.setdefault("POSTGRES_PORT", "5432")
os.environ.setdefault("POSTGRES_DB", "relayer")

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from relayer_engine.app.infrastructure.db.db_base import BaseDB  # noqa: E402
import relayer_engine.app.infrastructure.db.models  # noqa: E402,F401


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(BaseDB.metadata.create_all)
    yield engine
    await engine.dispose()
