from __future__ import annotations
"""server/qualis/core/security.py
~~~~~~~~~~~~~~~~~~~~~~~~
Access token verification (HS256 JWT issued by the auth provider).

The server never issues tokens: login/refresh live with the auth provider.
We only check the signature, expiry and audience, and read `sub` as the
acting user id.
"""
from typing import Any, Optional

import jwt

from qualis.core.config import settings


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """
    Decode and verify an access token.
    Returns the claims, or None if the token is invalid/expired.
    """
    options = {"verify_aud": bool(settings.JWT_AUDIENCE)}
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=["HS256"],
            audience=settings.JWT_AUDIENCE or None,
            options=options,
        )
    except jwt.InvalidTokenError:
        return None

