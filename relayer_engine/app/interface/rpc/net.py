from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from eth_utils import encode_hex, keccak

from relayer_engine.app.domain.codec import hex_to_bytes
from relayer_engine.app.interface.rpc.server import RpcModule, rpc_method


def _client_version() -> str:
    try:
        return f"relayer-engine/{version('relayer-engine')}/python"
    except PackageNotFoundError:
        return "relayer-engine/unknown/python"


class NetModule(RpcModule):
    """Network methods (net_* namespace); this server has no peers of its own."""

    namespace = "net"

    def __init__(self, *, chain_id: int) -> None:
        self._chain_id = chain_id

    @rpc_method
    async def version(self) -> str:
        return str(self._chain_id)

    @rpc_method
    async def listening(self) -> bool:
        return True

    @rpc_method
    async def peerCount(self) -> str:
        return "0x0"


class Web3Module(RpcModule):
    namespace = "web3"

    @rpc_method
    async def clientVersion(self) -> str:
        return _client_version()

    @rpc_method
    async def sha3(self, data: str) -> str:
        return encode_hex(keccak(hex_to_bytes(data)))
