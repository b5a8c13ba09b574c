from __future__ import annotations
"""
server/qualis/infrastructure/persistence/database/base.py

SQLAlchemy 2.x declarative base.

The `from qualis.infrastructure.persistence.database.models import *` below
registers every table on Base.metadata, so a plain
`Base.metadata.create_all(bind=engine)` (SQLite in tests) builds the full schema.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all models."""
    pass


# Side effect: importing the package registers all tables.
from qualis.infrastructure.persistence.database.models import *  # noqa: F403,F401,E402

__all__ = ["Base"]
