from __future__ import annotations

import aiohttp
from web3 import AsyncHTTPProvider, AsyncWeb3

from relayer_engine.app.config import settings


def create_upstream_web3() -> AsyncWeb3:
    """AsyncWeb3 client for the upstream node configured by ENDPOINT_URL."""
    return AsyncWeb3(
        AsyncHTTPProvider(
            settings.endpoint_url,
            request_kwargs={"timeout": aiohttp.ClientTimeout(total=settings.endpoint_timeout)},
        )
    )
