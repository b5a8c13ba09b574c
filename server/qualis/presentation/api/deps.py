from __future__ import annotations
"""
server/qualis/presentation/api/deps.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Shared FastAPI dependencies.

- get_current_actor_id : verifies the access token (Bearer header, else the
  auth cookie) and returns its `sub`.
- get_store            : the CareStore bound to the application database.
- get_email_provider   : the Resend provider (500 if not configured).
- require_drain_token  : optional shared secret for the drain trigger.

Tests swap get_store / get_email_provider through app.dependency_overrides.

Conventions:
- 401 {"message": "Not authenticated."} for a missing/invalid/expired token
- the actor is NOT looked up in the database here: the token is the proof.
"""
import secrets
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from qualis.application.services.notification_drain_service import NotificationDrainer
from qualis.core.config import settings
from qualis.core.security import decode_access_token
from qualis.infrastructure.notifications.providers.email_provider import ResendEmailProvider
from qualis.infrastructure.persistence.database.session import init_sessionmaker
from qualis.infrastructure.persistence.store import CareStore

NOT_AUTHENTICATED = "Not authenticated."


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_actor_id(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> str:
    token = _bearer(authorization) or request.cookies.get(settings.ACCESS_COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHENTICATED)

    claims = decode_access_token(token)
    sub = (claims or {}).get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHENTICATED)
    return str(sub)


@lru_cache(maxsize=1)
def get_store() -> CareStore:
    return CareStore(init_sessionmaker())


def get_email_provider() -> ResendEmailProvider:
    if not settings.RESEND_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="RESEND_API_KEY is not configured.",
        )
    return ResendEmailProvider(settings.RESEND_API_KEY)


def get_drainer(
    store: CareStore = Depends(get_store),
    provider: ResendEmailProvider = Depends(get_email_provider),
) -> NotificationDrainer:
    return NotificationDrainer(store, provider)


def require_drain_token(x_drain_token: Optional[str] = Header(default=None, alias="X-Drain-Token")) -> None:
    expected = settings.NOTIFICATIONS_DRAIN_TOKEN
    if not expected:
        return
    if not x_drain_token or not secrets.compare_digest(x_drain_token, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHENTICATED)
