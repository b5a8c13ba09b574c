from __future__ import annotations
"""server/qualis/infrastructure/notifications/providers/email_provider.py
~~~~~~~~~~~~~~~~~~~~~~~~
ResendEmailProvider: transactional e-mail over the Resend HTTP API.
"""
from typing import Optional

import httpx

from qualis.core.config import settings


class EmailDeliveryError(Exception):
    """The provider refused the message or could not be reached."""


class ResendEmailProvider:
    """
    Sends one message per call: POST {from, to, subject, text, html}.
    Any non-2xx answer or transport error raises EmailDeliveryError; the
    caller decides what to do with the row (no retry here).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        sender: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or settings.RESEND_API_KEY
        if not self.api_key:
            raise ValueError("RESEND_API_KEY not configured")
        self.sender = sender or settings.NOTIFICATION_EMAIL_FROM
        self.api_url = api_url or settings.RESEND_API_URL
        self.timeout = timeout
        # Tests plug an httpx.MockTransport here.
        self._transport = transport

    async def send(self, *, to: str, subject: str, text: str, html: str) -> None:
        body = {
            "from": self.sender,
            "to": to,
            "subject": subject,
            "text": text,
            "html": html,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(f"Resend request failed: {exc}") from exc

        if not response.is_success:
            raise EmailDeliveryError(f"Resend API error ({response.status_code}): {response.text}")
