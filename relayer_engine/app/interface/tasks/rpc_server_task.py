from __future__ import annotations

import uvicorn

from relayer_engine.app.interface.rpc.http import create_app


async def rpc_server_task(
    *,
    host: str,
    port: int,
) -> None:
    """Serves the JSON-RPC endpoint over HTTP until interrupted."""
    config = uvicorn.Config(create_app(), host=host, port=port, log_config=None)
    await uvicorn.Server(config).serve()
