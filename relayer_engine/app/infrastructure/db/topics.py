from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import ColumnElement, and_, false, or_

from relayer_engine.app.domain.models import MAX_TOPICS, TopicPosition


def compile_topics(
    topics: Sequence[TopicPosition] | None,
    columns: Sequence[ColumnElement],
) -> ColumnElement[bool] | None:
    """
    Compile an Ethereum topic filter into a boolean SQL expression.

    Positions are ANDed; candidates inside a position are ORed; a None
    position is a wildcard. Position ``i`` binds to ``columns[i]``, i.e. the
    event's ``i+1``-th topic.

    Returns None when the filter places no constraint at all (absent, empty
    or all wildcards). A position given as an empty candidate list can never
    be satisfied and compiles to ``false()``.
    """
    if not topics:
        return None
    if len(topics) > MAX_TOPICS:
        raise ValueError(f"at most {MAX_TOPICS} topic positions are allowed, got {len(topics)}")

    operands: list[ColumnElement[bool]] = []
    for position, topic in enumerate(topics):
        if topic is None:
            continue
        column = columns[position]
        if isinstance(topic, (bytes, bytearray)):
            operands.append(column == bytes(topic))
            continue
        candidates = [column == bytes(candidate) for candidate in topic if candidate is not None]
        operands.append(or_(*candidates) if candidates else false())

    if not operands:
        return None
    if len(operands) == 1:
        return operands[0]
    return and_(*operands)
