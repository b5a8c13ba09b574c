from __future__ import annotations
"""
server/qualis/api/v1/endpoints/notifications.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
- GET  /notifications       : the caller's notifications not yet sent (inbox).
- POST /notifications/send  : drain one batch of queued e-mails (cron / manual).

The drain is also scheduled by Celery beat (workers/tasks/notification_tasks.py);
this endpoint exists for manual runs and external schedulers.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from qualis.application.services.notification_drain_service import NotificationDrainer, NotificationDrainError
from qualis.infrastructure.persistence.store import CareStore, StoreError
from qualis.presentation.api.deps import get_current_actor_id, get_drainer, get_store, require_drain_token

log = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    limit: int = Query(5, ge=1, le=50),
    actor_id: str = Depends(get_current_actor_id),
    store: CareStore = Depends(get_store),
):
    """Pending notifications (anything not `sent`), soonest `send_after` first."""
    try:
        rows = await store.pending_notifications(actor_id, limit=limit)
    except StoreError:
        log.exception("notifications: failed to fetch notifications")
        return JSONResponse({"message": "Unable to load notifications."}, status_code=500)

    return [
        {
            "id": n.id,
            "channel": n.channel.value,
            "status": n.status.value,
            "subject": n.subject,
            "body": n.payload.get("body"),
            "link": n.payload.get("link"),
            "related_entity_type": n.related_entity_type,
            "related_entity_id": n.related_entity_id,
            "send_after": n.send_after.isoformat() if n.send_after else None,
            "created_at": n.created_at.isoformat() if n.created_at else None,
        }
        for n in rows
    ]


@router.post("/send")
async def send_notifications(
    _: None = Depends(require_drain_token),
    batch: Optional[int] = Query(None, ge=1, le=100),
    drainer: NotificationDrainer = Depends(get_drainer),
):
    try:
        report = await drainer.drain(batch)
    except NotificationDrainError as exc:
        return JSONResponse({"message": exc.message}, status_code=500)
    return report.as_dict()
