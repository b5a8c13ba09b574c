# server/tests/unit/test_security.py
import datetime as dt

import jwt
import pytest

from qualis.core.config import settings
from qualis.core.security import decode_access_token

pytestmark = pytest.mark.unit


def test_valid_token_returns_claims(make_token):
    claims = decode_access_token(make_token({"sub": "m-1"}))
    assert claims["sub"] == "m-1"
    assert claims["aud"] == settings.JWT_AUDIENCE


def test_expired_token_is_rejected(make_token):
    token = make_token({"sub": "m-1"}, expires_seconds=-10)
    assert decode_access_token(token) is None


def test_wrong_secret_is_rejected():
    now = dt.datetime.now(dt.timezone.utc)
    token = jwt.encode(
        {"sub": "m-1", "aud": settings.JWT_AUDIENCE, "exp": now + dt.timedelta(minutes=5)},
        "another-secret",
        algorithm="HS256",
    )
    assert decode_access_token(token) is None


def test_wrong_audience_is_rejected(make_token):
    token = make_token({"sub": "m-1", "aud": "someone-else"})
    assert decode_access_token(token) is None


def test_garbage_is_rejected():
    assert decode_access_token("not-a-jwt") is None
