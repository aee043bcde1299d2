"""Custom SQLAlchemy column types shared by the cashflow models."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.dialects import postgresql
from sqlalchemy.types import CHAR, JSON, TypeDecorator


class GUID(TypeDecorator):
    """Platform-independent UUID type.

    PostgreSQL gets a native ``UUID`` column; other engines store the value
    as a 36-character string. Values are always read back as strings.
    """

    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):  # type: ignore[override]
        if dialect.name == "postgresql":
            return dialect.type_descriptor(postgresql.UUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value: Any, dialect):  # type: ignore[override]
        if value is None:
            return value
        if dialect.name == "postgresql":
            if isinstance(value, uuid.UUID):
                return value
            return uuid.UUID(str(value))
        return str(value)

    def process_result_value(self, value: Any, dialect):  # type: ignore[override]
        if value is None:
            return value
        return str(value)


class StringList(TypeDecorator):
    """A list of short strings persisted as a JSON array.

    Blank entries are dropped and every value is trimmed and lower-cased, so
    order statuses and shipping method ids compare reliably with the values
    the commerce platform reports.
    """

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):  # type: ignore[override]
        if dialect.name == "postgresql":
            return dialect.type_descriptor(postgresql.JSONB())
        return dialect.type_descriptor(JSON())

    @staticmethod
    def _clean(values: Any) -> list[str]:
        if values is None:
            return []
        if isinstance(values, str):
            values = values.split(",")
        cleaned = []
        for item in values:
            text = str(item).strip().lower()
            if text and text not in cleaned:
                cleaned.append(text)
        return cleaned

    def process_bind_param(self, value: Any, dialect):  # type: ignore[override]
        if value is None:
            return value
        return self._clean(value)

    def process_result_value(self, value: Any, dialect):  # type: ignore[override]
        if value is None:
            return []
        return self._clean(value)
