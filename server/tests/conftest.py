# server/tests/conftest.py
"""
Global conftest.

Key points:
- ENV is set *before* any qualis import so Settings() sees a test JWT secret,
  no Resend key and a SQLite DATABASE_URL.
- Each test gets its own SQLite file database (tmp_path) with the full schema
  (Base.metadata.create_all). A file rather than :memory: because store calls
  run in worker threads, each with its own connection.
- `store` is a real CareStore bound to that database; failures are injected
  with monkeypatch on its methods.
- `email_provider` is an in-process fake recording every send.
"""

import datetime as dt
import os
import time

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("JWT_AUDIENCE", "authenticated")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("NOTIFICATIONS_DRAIN_TOKEN", None)

import jwt
import pytest

from qualis.core.config import settings
from qualis.infrastructure.notifications.providers.email_provider import EmailDeliveryError
from qualis.infrastructure.persistence.database.base import Base
from qualis.infrastructure.persistence.database.models import (
    CareHome,
    Client,
    ManagerCareHome,
    Profile,
)
from qualis.infrastructure.persistence.database.session import build_engine, make_sessionmaker
from qualis.infrastructure.persistence.store import CareStore


# ============================================================================
# Database
# ============================================================================
@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite+pysqlite:///{tmp_path / 'qualis.db'}")
    Base.metadata.create_all(eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture
def Session(engine):
    """sessionmaker to use as `with Session() as s:`."""
    return make_sessionmaker(engine)


@pytest.fixture
def store(Session):
    return CareStore(Session)


@pytest.fixture
def seed(Session):
    """
    Adds ORM rows and commits:
        seed(CareHome(id="ch-1", name="Sunrise House"), ...)
    """
    def _seed(*rows):
        with Session() as s:
            s.add_all(rows)
            s.commit()
    return _seed


@pytest.fixture
def care_home_world(seed):
    """
    ch-9 "Sunrise House" with manager m-1 (and m-2), active owner o-1,
    inactive owner o-2, resident cl-1 (Ada Lovelace).
    """
    seed(
        CareHome(id="ch-9", name="Sunrise House"),
        Profile(id="m-1", email="m1@example.org", first_name="Mia", last_name="Manager", role="manager"),
        Profile(id="m-2", email="m2@example.org", first_name="Max", last_name="Manager", role="manager"),
        Profile(id="o-1", email="o1@example.org", first_name="Olu", last_name="Owner", role="business_owner"),
        Profile(
            id="o-2", email="o2@example.org", first_name="Old", last_name="Owner",
            role="business_owner", is_active=False,
        ),
        Profile(id="c-1", email="c1@example.org", first_name="Cat", last_name="Carer", role="carer"),
    )
    seed(
        ManagerCareHome(manager_id="m-1", care_home_id="ch-9"),
        ManagerCareHome(manager_id="m-2", care_home_id="ch-9"),
        Client(id="cl-1", care_home_id="ch-9", first_name="Ada", last_name="Lovelace"),
    )


# ============================================================================
# E-mail provider
# ============================================================================
class FakeEmailProvider:
    """Records sends; raises EmailDeliveryError for addresses in `fail_for`."""

    def __init__(self, fail_for=()):
        self.fail_for = set(fail_for)
        self.sent: list[dict] = []

    async def send(self, *, to, subject, text, html):
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html, "at": time.monotonic()})
        if to in self.fail_for:
            raise EmailDeliveryError("Resend API error (500): boom")


@pytest.fixture
def email_provider():
    return FakeEmailProvider()


@pytest.fixture
def no_sleep():
    """Replaces asyncio.sleep in the drainer; records requested delays."""
    delays: list[float] = []

    async def _sleep(seconds):
        delays.append(seconds)

    _sleep.delays = delays
    return _sleep


# ============================================================================
# Access tokens
# ============================================================================
@pytest.fixture
def make_token():
    """
    Signs claims the way the auth provider does (HS256, shared secret):
        make_token({"sub": "m-1"}), make_token({...}, expires_seconds=-10)
    """
    def _make(claims, *, expires_seconds=3600):
        now = dt.datetime.now(dt.timezone.utc)
        payload = {"iat": now, "exp": now + dt.timedelta(seconds=expires_seconds), **claims}
        if settings.JWT_AUDIENCE and "aud" not in payload:
            payload["aud"] = settings.JWT_AUDIENCE
        return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")
    return _make
