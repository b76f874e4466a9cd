from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from relayer_engine.app.infrastructure.db.engine import create_app_async_engine
from relayer_engine.app.infrastructure.db.notifications import BlockNotificationListener
from relayer_engine.app.infrastructure.factories.rpc_server_factory import rpc_server_factory
from relayer_engine.app.interface.rpc.server import RpcServer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    if getattr(app.state, "rpc_server", None) is not None:
        yield
        return

    engine = create_app_async_engine()
    listener: BlockNotificationListener | None = None
    try:
        app.state.rpc_server = rpc_server_factory(backend="sqlalchemy", engine=engine)
        if engine.dialect.name == "postgresql":
            listener = BlockNotificationListener(engine)
            await listener.start()
        app.state.block_listener = listener
        yield
    finally:
        if listener is not None:
            await listener.stop()
        await engine.dispose()


def create_app(*, rpc_server: RpcServer | None = None) -> FastAPI:
    """
    HTTP transport for the JSON-RPC surface.

    Without an explicit ``rpc_server`` the lifespan wires one over a fresh
    AsyncEngine and, on PostgreSQL, starts the new-block listener.
    """
    app = FastAPI(title="relayer-engine", lifespan=_lifespan)
    app.state.rpc_server = rpc_server
    app.state.block_listener = None
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.post("/")
    async def rpc_endpoint(request: Request) -> Response:
        body = await request.body()
        result = await request.app.state.rpc_server.handle_request(body)
        if result is None:
            return Response(status_code=204)
        return Response(content=result, media_type="application/json")

    @app.get("/health")
    async def health(request: Request) -> dict:
        listener = request.app.state.block_listener
        return {
            "status": "ok",
            "latest_notified_block": None if listener is None else listener.latest_block,
        }

    return app
