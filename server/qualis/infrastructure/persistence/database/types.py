from __future__ import annotations
"""server/qualis/infrastructure/persistence/database/types.py
~~~~~~~~~~~~~~~~~~~~~~~~
Column types portable between Postgres (prod) and SQLite (tests).
"""
import uuid
from datetime import datetime, timezone

import sqlalchemy as sa


class JSONPortable(sa.types.TypeDecorator):
    """JSONB on Postgres, JSON elsewhere."""
    impl = sa.JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import JSONB
            return dialect.type_descriptor(JSONB(astext_type=sa.Text()))
        return dialect.type_descriptor(sa.JSON())


class TstzPortable(sa.types.TypeDecorator):
    """
    TIMESTAMPTZ on Postgres, DateTime() elsewhere.
    Values always come back timezone-aware (UTC), SQLite drops the tzinfo.
    """
    impl = sa.DateTime
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(sa.TIMESTAMP(timezone=True))
        return dialect.type_descriptor(sa.DateTime())

    def process_bind_param(self, value, dialect):
        if value is not None and dialect.name != "postgresql":
            return as_utc(value).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return as_utc(value)


def as_utc(dt_val: datetime) -> datetime:
    """
    Normalise a datetime to timezone-aware UTC.
    - naive: assumed UTC
    - aware: converted
    """
    if dt_val.tzinfo is None:
        return dt_val.replace(tzinfo=timezone.utc)
    return dt_val.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())
