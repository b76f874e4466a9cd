from __future__ import annotations

from typing import Final

from relayer_engine.app.domain.codec import hex_to_int
from relayer_engine.app.domain.errors import RpcError, invalid_params

BlockSpec = int | str | None

_EARLIEST: Final[str] = "earliest"
_LATEST: Final[str] = "latest"
_PENDING: Final[str] = "pending"


def resolve_block_spec(latest_block: int, block_spec: BlockSpec) -> int:
    """
    Resolve a block spec into a concrete height.

    - None, "latest" and "pending" -> ``latest_block`` (there is no separate
      pending view),
    - "earliest" -> 0,
    - a 0x-hex quantity -> that height, an int -> as given.

    Anything else raises RpcError (invalid params).
    """
    if block_spec is None:
        return latest_block
    if isinstance(block_spec, int) and not isinstance(block_spec, bool):
        if block_spec < 0:
            raise invalid_params(f"invalid block ID: {block_spec}")
        return block_spec
    if block_spec == _EARLIEST:
        return 0
    if block_spec in (_LATEST, _PENDING):
        return latest_block
    try:
        return hex_to_int(block_spec)
    except RpcError:
        raise invalid_params(f"invalid block ID: {block_spec}") from None


def validate_block_spec(block_spec: BlockSpec) -> None:
    """Fail fast on a malformed spec before any store access."""
    resolve_block_spec(0, block_spec)
