# server/qualis/infrastructure/persistence/database/session.py
from __future__ import annotations

"""SQLAlchemy engine + session factory (one per process, shared by the store)."""

import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from qualis.core.config import settings

_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def build_engine(database_url: str) -> Engine:
    """
    Create an Engine with dialect-aware connect_args.
    - PostgreSQL: pass connect_timeout
    - SQLite: share in-memory DB across connections (StaticPool), disable same-thread check
    """
    url = make_url(database_url)
    backend = url.get_backend_name()  # e.g. "postgresql", "sqlite"
    kwargs: dict = dict(future=True, pool_pre_ping=True)
    connect_args: dict = {}

    if backend.startswith("postgresql") or backend == "postgres":
        connect_args["connect_timeout"] = int(os.getenv("DB_CONNECT_TIMEOUT", str(settings.DB_CONNECT_TIMEOUT)))
    elif backend.startswith("sqlite"):
        # Store calls run in worker threads.
        connect_args["check_same_thread"] = False
        db_name = (url.database or "").strip()
        if db_name in ("", ":memory:"):
            kwargs["poolclass"] = StaticPool

    return create_engine(database_url, connect_args=connect_args, **kwargs)


def init_engine() -> Engine:
    """Singleton Engine built from settings.DATABASE_URL."""
    global _engine
    if _engine is None:
        _engine = build_engine(settings.DATABASE_URL)
    return _engine


def make_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        future=True,
        autoflush=True,
        expire_on_commit=False,
    )


def init_sessionmaker() -> sessionmaker:
    """Create (once) and return the SessionLocal factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = make_sessionmaker(init_engine())
    return _SessionLocal

