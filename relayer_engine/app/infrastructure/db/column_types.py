from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import BigInteger, Integer, Numeric, String
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine

# Autoincrementing surrogate keys: BIGSERIAL on PostgreSQL, rowid on SQLite.
BigIntegerPK = BigInteger().with_variant(Integer, "sqlite")


class U256(TypeDecorator):
    """
    Unsigned 256-bit quantity stored as NUMERIC(78, 0).

    Values are bound and returned as Python ``int``; no float conversion
    happens on either side. SQLite has no exact wide numeric type, so it
    stores the decimal string instead.
    """

    impl = Numeric(78, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(78))
        return dialect.type_descriptor(Numeric(78, 0, asdecimal=True))

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        value = int(value)
        if value < 0:
            raise ValueError(f"U256 cannot hold a negative value: {value}")
        if dialect.name == "sqlite":
            return str(value)
        return Decimal(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> int | None:
        if value is None:
            return None
        return int(value)
