from __future__ import annotations

from typing import Any

from relayer_engine.app.application.services.block_bounds import validate_block_spec
from relayer_engine.app.domain.codec import hex_to_address, hex_to_hash
from relayer_engine.app.domain.errors import invalid_params
from relayer_engine.app.domain.models import MAX_TOPICS, LogFilter, TopicPosition


def parse_log_filter(raw: Any) -> LogFilter:
    """
    Validate and decode a JSON filter object (``eth_getLogs`` / ``eth_newFilter``).

    Raises RpcError (invalid params) for any malformed field, before the
    store is touched.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise invalid_params("filter must be an object")

    block_hash = raw.get("blockHash")
    from_block = raw.get("fromBlock")
    to_block = raw.get("toBlock")
    validate_block_spec(from_block)
    validate_block_spec(to_block)

    return LogFilter(
        from_block=from_block,
        to_block=to_block,
        block_hash=hex_to_hash(block_hash) if block_hash is not None else None,
        addresses=_parse_addresses(raw.get("address")),
        topics=_parse_topics(raw.get("topics")),
    )


def _parse_addresses(raw: Any) -> tuple[bytes, ...] | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        return (hex_to_address(raw),)
    if isinstance(raw, list):
        return tuple(hex_to_address(address) for address in raw)
    raise invalid_params(f"invalid address filter: {raw!r}")


def _parse_topics(raw: Any) -> list[TopicPosition] | None:
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise invalid_params(f"invalid topics filter: {raw!r}")
    if len(raw) > MAX_TOPICS:
        raise invalid_params(f"too many topic positions, want at most {MAX_TOPICS}")

    positions: list[TopicPosition] = []
    for topic in raw:
        if topic is None:
            positions.append(None)
        elif isinstance(topic, str):
            positions.append(hex_to_hash(topic))
        elif isinstance(topic, list):
            positions.append([None if t is None else hex_to_hash(t) for t in topic])
        else:
            raise invalid_params(f"invalid topic: {topic!r}")
    return positions
