"""
Wire codec for JSON-RPC values.

Quantities are ``0x``-prefixed, big-endian hex without leading zeros
(``0x0`` for zero). Data values (hashes, addresses, payloads) are
``0x``-prefixed hex with an even number of digits. Integers are plain
Python ``int``, so 256-bit values round-trip exactly.
"""
from __future__ import annotations

import re
from typing import Any

from eth_utils import decode_hex, encode_hex, is_hex_address, to_canonical_address

from relayer_engine.app.domain.errors import invalid_params

_QUANTITY_RE = re.compile(r"^0x[0-9a-fA-F]+$")
_DATA_RE = re.compile(r"^0x([0-9a-fA-F]{2})*$")

HASH_LENGTH = 32
ADDRESS_LENGTH = 20


def int_to_hex(value: int) -> str:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"negative quantity: {value}")
    return hex(value)


def hex_to_int(value: Any) -> int:
    """Decode a quantity; raises ``RpcError`` (invalid params) when malformed."""
    if isinstance(value, str) and _QUANTITY_RE.match(value):
        return int(value, 16)
    raise invalid_params(f"invalid quantity: {value!r}")


def bytes_to_hex(value: bytes | bytearray | memoryview | None) -> str | None:
    if value is None:
        return None
    return encode_hex(bytes(value))


def hex_to_bytes(value: Any, *, length: int | None = None, what: str = "data") -> bytes:
    if not isinstance(value, str) or not _DATA_RE.match(value):
        raise invalid_params(f"invalid {what}: {value!r}")
    raw = decode_hex(value)
    if length is not None and len(raw) != length:
        raise invalid_params(f"invalid {what}: expected {length} bytes, got {len(raw)}")
    return raw


def hex_to_hash(value: Any) -> bytes:
    return hex_to_bytes(value, length=HASH_LENGTH, what="hash")


def hex_to_address(value: Any) -> bytes:
    if not isinstance(value, str) or not is_hex_address(value):
        raise invalid_params(f"invalid address: {value!r}")
    return bytes(to_canonical_address(value))


def as_bytes(value: bytes | bytearray | memoryview) -> bytes:
    # asyncpg may hand back memoryview for BYTEA
    if isinstance(value, memoryview):
        return value.tobytes()
    return bytes(value)
