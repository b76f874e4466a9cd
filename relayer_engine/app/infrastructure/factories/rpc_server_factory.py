from __future__ import annotations

from typing import Callable, Dict

from sqlalchemy.ext.asyncio import AsyncEngine

from relayer_engine.app.application.services.filters import FilterService
from relayer_engine.app.config import settings
from relayer_engine.app.infrastructure.adapters.chain_reader import SqlAlchemyChainReader
from relayer_engine.app.infrastructure.adapters.filter_registry import SqlAlchemyFilterRegistry
from relayer_engine.app.infrastructure.factories.upstream import create_upstream_web3
from relayer_engine.app.infrastructure.fetchers.web3_chain_state import Web3ChainStateGateway
from relayer_engine.app.interface.rpc.eth import EthModule
from relayer_engine.app.interface.rpc.net import NetModule, Web3Module
from relayer_engine.app.interface.rpc.server import RpcServer

RpcServerFactory = Callable[[AsyncEngine], RpcServer]


def _make_sqlalchemy_server(engine: AsyncEngine) -> RpcServer:
    """
    Wire the eth_* module over the SQLAlchemy read side:
    - chain reader (blocks, transactions, logs),
    - filter registry + filter service,
    - upstream gateway for account state.
    """
    reader = SqlAlchemyChainReader(engine=engine)
    filters = FilterService(registry=SqlAlchemyFilterRegistry(engine=engine), reader=reader)

    server = RpcServer()
    server.register_module(
        EthModule(
            chain_id=settings.chain_id,
            reader=reader,
            filters=filters,
            gateway=Web3ChainStateGateway(w3=create_upstream_web3()),
        )
    )
    server.register_module(NetModule(chain_id=settings.chain_id))
    server.register_module(Web3Module())
    return server


_RPC_SERVER_REGISTRY: Dict[str, RpcServerFactory] = {
    "sqlalchemy": _make_sqlalchemy_server,
}


def rpc_server_factory(*, backend: str, engine: AsyncEngine) -> RpcServer:
    try:
        factory = _RPC_SERVER_REGISTRY[backend]
    except KeyError:
        raise ValueError(f"Unsupported RPC server backend: {backend!r}")
    return factory(engine)
