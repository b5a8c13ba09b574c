from __future__ import annotations
"""server/qualis/workers/tasks/notification_tasks.py
Celery task draining the e-mail notification queue.

- No Celery retry: rows that were not sent stay `queued` (or `failed`) and
  the next beat tick picks up whatever is still queued.
- Batch-level failures are logged and reported, never raised to Celery.
"""
import asyncio
from typing import Any, Optional

from celery.utils.log import get_task_logger

from qualis.application.services.notification_drain_service import NotificationDrainer, NotificationDrainError
from qualis.core.config import settings
from qualis.infrastructure.notifications.providers.email_provider import ResendEmailProvider
from qualis.infrastructure.persistence.database.session import init_sessionmaker
from qualis.infrastructure.persistence.store import CareStore
from qualis.workers.celery_app import celery

logger = get_task_logger(__name__)


def run_drain(
    batch_size: Optional[int] = None,
    *,
    store: Optional[CareStore] = None,
    provider: Optional[ResendEmailProvider] = None,
) -> dict[str, Any]:
    """Synchronous entry point (Celery worker, CLI)."""
    if provider is None:
        if not settings.RESEND_API_KEY:
            logger.error("RESEND_API_KEY not configured, drain skipped")
            return {"status": "error", "message": "RESEND_API_KEY is not configured."}
        provider = ResendEmailProvider(settings.RESEND_API_KEY)

    drainer = NotificationDrainer(store or CareStore(init_sessionmaker()), provider)
    try:
        report = asyncio.run(drainer.drain(batch_size))
    except NotificationDrainError as exc:
        logger.error("Notification drain aborted", extra={"reason": exc.message})
        return {"status": "error", "message": exc.message}

    if report.processed:
        logger.info(
            "Notification drain done",
            extra={"processed": report.processed, "sent": report.sent, "failed": report.failed},
        )
    return {"status": "ok", **report.as_dict()}


@celery.task(name="notifications.drain", acks_late=True, queue="notify")
def drain_notifications(batch_size: Optional[int] = None) -> dict[str, Any]:
    return run_drain(batch_size)
