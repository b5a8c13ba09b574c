from __future__ import annotations
"""server/qualis/application/services/notification_drain_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Drain queued e-mail notifications through the e-mail provider.

One drain = one batch, in phases:

Phase 0 (REQUEUE):
  - rows left in `sending` by a crashed drain (lock older than
    NOTIFICATION_SENDING_STALE_MINUTES) go back to `queued`.

Phase 1 (SELECT + CLAIM):
  - up to `batch_size` queued e-mail rows, oldest first;
  - ONE conditional bulk update queued -> sending; only the rows this call
    actually claimed are processed (a concurrent drain gets the others).

Phase 2 (DELIVERY), strictly sequential:
  - recipient e-mails are resolved once for the whole batch;
  - each row is sent, then marked sent / failed on its own;
  - a fixed delay separates two sends (provider rate limit, <= 2 msg/s at 500 ms).

Phase 0/1 errors and the profile lookup abort the drain (NotificationDrainError).
Everything in phase 2 is row-scoped.
"""
import asyncio
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Mapping, Optional

from qualis.core.config import settings
from qualis.domain.notifications import NotificationStatus, QueuedNotification, RecipientProfile
from qualis.infrastructure.notifications.providers.email_provider import EmailDeliveryError, ResendEmailProvider
from qualis.infrastructure.persistence.database.types import utcnow
from qualis.infrastructure.persistence.store import CareStore, StoreError

log = logging.getLogger(__name__)

RECIPIENT_EMAIL_MISSING = "Recipient email not found."


class NotificationDrainError(Exception):
    """Batch-level failure: nothing (more) was sent by this drain."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class DrainItemResult:
    id: str
    status: str
    error: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        out = {"id": self.id, "status": self.status}
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass(frozen=True)
class DrainReport:
    processed: int = 0
    sent: int = 0
    failed: int = 0
    results: list[DrainItemResult] = field(default_factory=list)

    @classmethod
    def from_results(cls, results: list[DrainItemResult]) -> "DrainReport":
        sent = sum(1 for r in results if r.status == NotificationStatus.SENT.value)
        return cls(processed=len(results), sent=sent, failed=len(results) - sent, results=results)

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["results"] = [r.as_dict() for r in self.results]
        return data


@dataclass(frozen=True)
class EmailMessage:
    subject: str
    text: str
    html: str


def render_email(row: QueuedNotification, default_subject: str) -> EmailMessage:
    """
    subject: row subject > payload.subject > default
    text:    payload.body (pretty JSON of the payload if absent)
    html:    payload.htmlBody > text with newlines as <br />
    """
    payload: Mapping[str, Any] = row.payload or {}

    subject = row.subject or payload.get("subject") or default_subject
    body = payload.get("body")
    text = body if isinstance(body, str) else json.dumps(dict(payload), indent=2, default=str)
    html = payload.get("htmlBody")
    if not isinstance(html, str):
        html = text.replace("\n", "<br />")
    return EmailMessage(subject=str(subject), text=text, html=html)


class NotificationDrainer:
    def __init__(
        self,
        store: CareStore,
        provider: ResendEmailProvider,
        *,
        delay_seconds: Optional[float] = None,
        default_subject: Optional[str] = None,
        stale_after_minutes: Optional[int] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.provider = provider
        self.delay_seconds = (
            delay_seconds if delay_seconds is not None else settings.NOTIFICATION_SEND_DELAY_MS / 1000.0
        )
        self.default_subject = default_subject or settings.NOTIFICATION_DEFAULT_SUBJECT
        self.stale_after_minutes = (
            stale_after_minutes if stale_after_minutes is not None else settings.NOTIFICATION_SENDING_STALE_MINUTES
        )
        self._sleep = sleep
        self._clock = clock

    async def drain(self, batch_size: Optional[int] = None) -> DrainReport:
        batch_size = batch_size or settings.NOTIFICATION_BATCH_SIZE
        now = self._clock()

        # ------------------------------------------------------------------
        # Phase 0 : stale claims back to queued
        # ------------------------------------------------------------------
        if self.stale_after_minutes > 0:
            cutoff = now - timedelta(minutes=self.stale_after_minutes)
            try:
                requeued = await self.store.requeue_stale_notifications(locked_before=cutoff)
            except StoreError as exc:
                log.error("send-notifications: failed to requeue stale notifications: %s", exc)
                raise NotificationDrainError("Unable to requeue stale notifications.") from exc
            if requeued:
                log.warning("send-notifications: requeued %d stale notification(s)", requeued)

        # ------------------------------------------------------------------
        # Phase 1 : select + claim
        # ------------------------------------------------------------------
        try:
            queued = await self.store.queued_notifications(limit=batch_size, as_of=now)
        except StoreError as exc:
            log.error("send-notifications: failed to load queued notifications: %s", exc)
            raise NotificationDrainError("Unable to load queued notifications.") from exc

        if not queued:
            return DrainReport()

        try:
            claimed = set(await self.store.claim_notifications([n.id for n in queued]))
        except StoreError as exc:
            log.error("send-notifications: failed to lock notifications: %s", exc)
            raise NotificationDrainError("Unable to update notification status.") from exc

        batch = [n for n in queued if n.id in claimed]
        if len(batch) < len(queued):
            log.info(
                "send-notifications: %d row(s) already claimed by another drain",
                len(queued) - len(batch),
            )
        if not batch:
            return DrainReport()

        recipient_ids = sorted({n.recipient_id for n in batch if n.recipient_id})
        try:
            profiles = await self.store.recipient_profiles(recipient_ids)
        except StoreError as exc:
            log.error("send-notifications: failed to load recipient profiles: %s", exc)
            raise NotificationDrainError("Unable to load recipient profiles.") from exc
        profile_by_id = {p.id: p for p in profiles}

        # ------------------------------------------------------------------
        # Phase 2 : sequential delivery
        # ------------------------------------------------------------------
        results: list[DrainItemResult] = []
        for index, row in enumerate(batch):
            if index:
                await self._sleep(self.delay_seconds)
            profile = profile_by_id.get(row.recipient_id) if row.recipient_id else None
            results.append(await self._deliver(row, profile))

        report = DrainReport.from_results(results)
        log.info(
            "send-notifications: batch done",
            extra={"processed": report.processed, "sent": report.sent, "failed": report.failed},
        )
        return report

    async def _deliver(self, row: QueuedNotification, profile: Optional[RecipientProfile]) -> DrainItemResult:
        error: Optional[str] = None
        try:
            if profile is None or not profile.email:
                raise EmailDeliveryError(RECIPIENT_EMAIL_MISSING)
            message = render_email(row, self.default_subject)
            await self.provider.send(to=profile.email, subject=message.subject, text=message.text, html=message.html)
        except EmailDeliveryError as exc:
            error = str(exc) or "Failed to send email."
            log.error("send-notifications: email send failed", extra={"notification_id": row.id, "error": error})
        except Exception as exc:
            error = str(exc) or "Failed to send email."
            log.exception("send-notifications: unexpected error while sending notification_id=%s", row.id)

        try:
            if error is None:
                await self.store.mark_notification_sent(row.id)
            else:
                await self.store.mark_notification_failed(row.id, error)
        except StoreError:
            # The row stays in `sending`; phase 0 of a later drain requeues it.
            log.exception("send-notifications: failed to record status for notification_id=%s", row.id)

        if error is None:
            return DrainItemResult(id=row.id, status=NotificationStatus.SENT.value)
        return DrainItemResult(id=row.id, status=NotificationStatus.FAILED.value, error=error)
