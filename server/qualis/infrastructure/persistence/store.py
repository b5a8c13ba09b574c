# server/qualis/infrastructure/persistence/store.py
from __future__ import annotations
"""
CareStore: async facade over the repositories, injected into the dispatcher
and the drainer.

- Each call opens its own Session, runs the repository code in a worker
  thread (asyncio.to_thread) and commits; concurrent calls therefore never
  share a session and really overlap.
- Any SQLAlchemy failure surfaces as StoreError, so callers only have one
  exception type to handle.
"""
import asyncio
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from qualis.domain.notifications import (
    AuditEventDraft,
    CareContext,
    NotificationChannel,
    NotificationDraft,
    QueuedNotification,
    RecipientProfile,
)
from qualis.infrastructure.persistence.database.models.profile import ROLE_BUSINESS_OWNER
from qualis.infrastructure.persistence.repositories.audit_event_repository import AuditEventRepository
from qualis.infrastructure.persistence.repositories.care_context_repository import CareContextRepository
from qualis.infrastructure.persistence.repositories.notification_queue_repository import (
    NotificationQueueRepository,
)


T = TypeVar("T")


class StoreError(Exception):
    """A data-store operation failed (wraps the driver/ORM error)."""


class CareStore:
    def __init__(self, sessions: sessionmaker):
        self._sessions = sessions

    def _call(self, fn: Callable[[Session], T]) -> T:
        with self._sessions() as s:
            try:
                result = fn(s)
                s.commit()
                return result
            except SQLAlchemyError as exc:
                s.rollback()
                raise StoreError(str(exc)) from exc

    async def _run(self, fn: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._call, fn)

    # --- Care context (reads) ----------------------------------------------

    async def care_home_name(self, care_home_id: str) -> Optional[str]:
        return await self._run(lambda s: CareContextRepository(s).care_home_name(care_home_id))

    async def manager_ids(self, care_home_id: str) -> list[str]:
        return await self._run(lambda s: CareContextRepository(s).manager_ids(care_home_id))

    async def active_business_owner_ids(self) -> list[str]:
        return await self._run(lambda s: CareContextRepository(s).active_profile_ids(ROLE_BUSINESS_OWNER))

    async def care_context(self, client_id: str) -> Optional[CareContext]:
        return await self._run(lambda s: CareContextRepository(s).care_context(client_id))

    async def recipient_profiles(self, ids: Iterable[str]) -> list[RecipientProfile]:
        ids = list(ids)
        return await self._run(lambda s: CareContextRepository(s).profiles(ids))

    # --- Writes from the dispatcher -------------------------------------------

    async def insert_notifications(self, drafts: Sequence[NotificationDraft]) -> list[str]:
        drafts = list(drafts)
        return await self._run(lambda s: NotificationQueueRepository(s).insert_many(drafts))

    async def insert_audit_event(self, draft: AuditEventDraft) -> str:
        return await self._run(lambda s: AuditEventRepository(s).insert(draft))

    # --- Queue (drainer / inbox) ----------------------------------------------

    async def queued_notifications(
        self,
        *,
        limit: int,
        channel: NotificationChannel = NotificationChannel.EMAIL,
        as_of: Optional[datetime] = None,
    ) -> list[QueuedNotification]:
        return await self._run(
            lambda s: NotificationQueueRepository(s).fetch_queued(channel=channel, limit=limit, as_of=as_of)
        )

    async def pending_notifications(self, recipient_id: str, *, limit: int = 5) -> list[QueuedNotification]:
        return await self._run(
            lambda s: NotificationQueueRepository(s).pending_for_recipient(recipient_id, limit=limit)
        )

    async def claim_notifications(self, ids: Iterable[str]) -> list[str]:
        ids = list(ids)
        return await self._run(lambda s: NotificationQueueRepository(s).claim(ids))

    async def requeue_stale_notifications(self, *, locked_before: datetime) -> int:
        return await self._run(lambda s: NotificationQueueRepository(s).requeue_stale(locked_before=locked_before))

    async def mark_notification_sent(self, notification_id: str) -> None:
        await self._run(lambda s: NotificationQueueRepository(s).mark_sent(notification_id))

    async def mark_notification_failed(self, notification_id: str, reason: str) -> None:
        await self._run(lambda s: NotificationQueueRepository(s).mark_failed(notification_id, reason))
