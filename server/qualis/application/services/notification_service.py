from __future__ import annotations
"""server/qualis/application/services/notification_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Materialise notifications: one `queued` row per (recipient, channel).

Best-effort: the request that triggered the event must not fail because
its notifications could not be queued, so store errors come back as an
Outcome instead of an exception.
"""
import logging
from typing import Any, Iterable, Mapping, Optional, Sequence

from qualis.domain.notifications import DEFAULT_CHANNELS, NotificationChannel, NotificationDraft
from qualis.domain.outcomes import Outcome
from qualis.infrastructure.persistence.store import CareStore, StoreError

log = logging.getLogger(__name__)


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def build_notification_drafts(
    recipient_ids: Iterable[str],
    actor_id: str,
    subject: str,
    body: str,
    payload: Mapping[str, Any],
    channels: Sequence[NotificationChannel] = DEFAULT_CHANNELS,
) -> list[NotificationDraft]:
    """
    Each row carries its own copy of the payload (+ subject, body, channel)
    so it can be rendered without joining back to the originating event.
    """
    entity_type = _str_or_none(payload.get("entityType"))
    entity_id = _str_or_none(payload.get("entityId"))
    enriched = {**payload, "subject": subject, "body": body}

    return [
        NotificationDraft(
            recipient_id=recipient_id,
            channel=NotificationChannel(channel),
            subject=subject,
            payload={**enriched, "channel": NotificationChannel(channel).value},
            created_by=actor_id,
            related_entity_type=entity_type,
            related_entity_id=entity_id,
        )
        for recipient_id in sorted(recipient_ids)
        for channel in channels
    ]


async def queue_notifications(
    store: CareStore,
    recipient_ids: Iterable[str],
    actor_id: str,
    subject: str,
    body: str,
    payload: Mapping[str, Any],
    channels: Sequence[NotificationChannel] = DEFAULT_CHANNELS,
) -> Outcome:
    recipient_ids = list(recipient_ids)
    if not recipient_ids:
        return Outcome.noop("no recipients")

    drafts = build_notification_drafts(recipient_ids, actor_id, subject, body, payload, channels)
    try:
        await store.insert_notifications(drafts)
    except StoreError as exc:
        log.error(
            "notifications: failed to queue notifications: %s",
            exc,
            extra={"rows": len(drafts), "entity_id": payload.get("entityId")},
        )
        return Outcome.failure(str(exc))

    log.info("notifications queued", extra={"rows": len(drafts), "entity_id": payload.get("entityId")})
    return Outcome.success(len(drafts))
