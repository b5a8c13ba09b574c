# server/qualis/infrastructure/persistence/repositories/notification_queue_repository.py
from __future__ import annotations
"""
Notification queue repository: low-level reads and state transitions.

Key points:
- `fetch_queued(...)`: FIFO on created_at, only rows whose `send_after` is
  NULL or already past (`as_of`).
- `claim(...)`: ONE conditional UPDATE queued -> sending ... RETURNING id.
  Only the ids returned belong to the caller; a concurrent drain that selected
  the same rows gets nothing back for them.
- `requeue_stale(...)`: rows stuck in `sending` (crash between claim and
  send) go back to `queued` once their lock is older than the cutoff.
- Returns primitives (QueuedNotification) rather than ORM objects.
"""
from datetime import datetime
from typing import Iterable, Optional, Sequence

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from qualis.domain.notifications import (
    NotificationChannel,
    NotificationDraft,
    NotificationStatus,
    QueuedNotification,
)
from qualis.infrastructure.persistence.database.models.notification_queue import NotificationQueueItem
from qualis.infrastructure.persistence.database.types import as_utc, utcnow


def _snapshot(row: NotificationQueueItem) -> QueuedNotification:
    return QueuedNotification(
        id=row.id,
        recipient_id=row.recipient_id,
        channel=NotificationChannel(row.channel),
        status=NotificationStatus(row.status),
        subject=row.subject,
        payload=dict(row.payload or {}),
        created_at=row.created_at,
        send_after=row.send_after,
        related_entity_type=row.related_entity_type,
        related_entity_id=row.related_entity_id,
    )


class NotificationQueueRepository:
    def __init__(self, session: Session):
        self.s = session

    # --- Create ---------------------------------------------------------------

    def insert_many(self, drafts: Sequence[NotificationDraft]) -> list[str]:
        """Batched insert, all rows in the same flush."""
        rows = [
            NotificationQueueItem(
                recipient_id=d.recipient_id,
                channel=d.channel,
                status=d.status,
                subject=d.subject,
                payload=dict(d.payload),
                related_entity_type=d.related_entity_type,
                related_entity_id=d.related_entity_id,
                created_by=d.created_by,
                send_after=d.send_after,
            )
            for d in drafts
        ]
        self.s.add_all(rows)
        self.s.flush()
        return [r.id for r in rows]

    # --- Read ----------------------------------------------------------------

    def fetch_queued(
        self,
        *,
        channel: NotificationChannel = NotificationChannel.EMAIL,
        limit: int,
        as_of: Optional[datetime] = None,
    ) -> list[QueuedNotification]:
        pivot = as_utc(as_of or utcnow())
        stmt = (
            select(NotificationQueueItem)
            .where(
                NotificationQueueItem.channel == channel,
                NotificationQueueItem.status == NotificationStatus.QUEUED,
                or_(
                    NotificationQueueItem.send_after.is_(None),
                    NotificationQueueItem.send_after <= pivot,
                ),
            )
            .order_by(NotificationQueueItem.created_at.asc(), NotificationQueueItem.id.asc())
            .limit(limit)
        )
        return [_snapshot(r) for r in self.s.scalars(stmt)]

    def pending_for_recipient(self, recipient_id: str, *, limit: int = 5) -> list[QueuedNotification]:
        """Everything not yet sent for one user (in-app inbox)."""
        stmt = (
            select(NotificationQueueItem)
            .where(
                NotificationQueueItem.recipient_id == recipient_id,
                NotificationQueueItem.status != NotificationStatus.SENT,
            )
            .order_by(
                NotificationQueueItem.send_after.asc().nulls_last(),
                NotificationQueueItem.created_at.asc(),
            )
            .limit(limit)
        )
        return [_snapshot(r) for r in self.s.scalars(stmt)]

    # --- Update ---------------------------------------------------------------

    def claim(self, ids: Iterable[str], *, now: Optional[datetime] = None) -> list[str]:
        """queued -> sending for the given ids; returns the ids actually claimed."""
        ids = list(ids)
        if not ids:
            return []
        now = now or utcnow()
        stmt = (
            update(NotificationQueueItem)
            .where(
                NotificationQueueItem.id.in_(ids),
                NotificationQueueItem.status == NotificationStatus.QUEUED,
            )
            .values(status=NotificationStatus.SENDING, locked_at=now, updated_at=now)
            .returning(NotificationQueueItem.id)
            .execution_options(synchronize_session=False)
        )
        return list(self.s.execute(stmt).scalars())

    def requeue_stale(self, *, locked_before: datetime) -> int:
        """sending -> queued for rows locked before the cutoff. Returns the count."""
        stmt = (
            update(NotificationQueueItem)
            .where(
                NotificationQueueItem.status == NotificationStatus.SENDING,
                or_(
                    NotificationQueueItem.locked_at.is_(None),
                    NotificationQueueItem.locked_at < locked_before,
                ),
            )
            .values(status=NotificationStatus.QUEUED, locked_at=None, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return self.s.execute(stmt).rowcount or 0

    def mark_sent(self, notification_id: str, *, sent_at: Optional[datetime] = None) -> None:
        now = sent_at or utcnow()
        self.s.execute(
            update(NotificationQueueItem)
            .where(NotificationQueueItem.id == notification_id)
            .values(status=NotificationStatus.SENT, sent_at=now, error_message=None, updated_at=now)
            .execution_options(synchronize_session=False)
        )

    def mark_failed(self, notification_id: str, reason: str) -> None:
        self.s.execute(
            update(NotificationQueueItem)
            .where(NotificationQueueItem.id == notification_id)
            .values(status=NotificationStatus.FAILED, error_message=reason, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
