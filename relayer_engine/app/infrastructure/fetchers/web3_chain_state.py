from __future__ import annotations

from typing import Any

from eth_utils import encode_hex
from web3 import AsyncWeb3

from relayer_engine.app.domain.ports.out import ChainStateGateway


class Web3ChainStateGateway(ChainStateGateway):
    """
    Proxies account-state reads and raw submissions to the upstream node.

    The projection only holds blocks, transactions and logs; balances,
    code, storage and nonces are answered by the node itself.
    """

    def __init__(self, *, w3: AsyncWeb3) -> None:
        self._w3 = w3

    async def get_balance(self, address: str, block: str) -> str:
        balance = await self._w3.eth.get_balance(self._address(address), block)
        return hex(balance)

    async def get_code(self, address: str, block: str) -> str:
        code = await self._w3.eth.get_code(self._address(address), block)
        return encode_hex(bytes(code))

    async def get_storage_at(self, address: str, key: int, block: str) -> str:
        value = await self._w3.eth.get_storage_at(self._address(address), key, block)
        return encode_hex(bytes(value).rjust(32, b"\x00"))

    async def get_transaction_count(self, address: str, block: str) -> str:
        nonce = await self._w3.eth.get_transaction_count(self._address(address), block)
        return hex(nonce)

    async def call(self, transaction: dict[str, Any], block: str) -> str:
        output = await self._w3.eth.call(transaction, block)
        return encode_hex(bytes(output))

    async def send_raw_transaction(self, payload: str) -> str:
        tx_hash = await self._w3.eth.send_raw_transaction(payload)
        return encode_hex(bytes(tx_hash))

    def _address(self, address: str) -> str:
        # web3 expects checksum hex string
        return self._w3.to_checksum_address(address)
