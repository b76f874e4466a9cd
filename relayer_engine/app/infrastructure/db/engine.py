from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from relayer_engine.app.config import settings


def create_app_async_engine(*, echo: bool | None = None) -> AsyncEngine:
    """
    Factory for AsyncEngine used by the indexer and the RPC server.

    Each task owns the engine it creates and disposes it on exit; adapters
    receive it at construction and open a connection per unit of work.
    """
    return create_async_engine(
        settings.database_url,  # postgresql+asyncpg://...
        echo=settings.debug if echo is None else echo,
        pool_pre_ping=True,
    )


def ini_escaped_url(url: str) -> str:
    """
    Database URL escaped for an ini option (alembic's ``sqlalchemy.url``).

    Percent-encoded credentials would otherwise be read as configparser
    interpolation.
    """
    return url.replace("%", "%%")
