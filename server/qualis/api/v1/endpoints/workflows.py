from __future__ import annotations
"""
server/qualis/api/v1/endpoints/workflows.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
POST /workflows/events: domain event submitted by the front-end after an
incident or care plan was saved.

Responses:
- 200 {"processed": true}   (notifications/audit are best-effort)
- 400 {"message": ...}      malformed/incomplete event, nothing written
- 401 {"message": ...}      no valid access token (checked before parsing)
- 500 {"message": ...}      unexpected error
"""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from qualis.api.schemas.workflow_event import INVALID_PAYLOAD, parse_workflow_event
from qualis.application.services.workflow_service import WorkflowDispatcher
from qualis.domain.events import WorkflowEventRejected
from qualis.infrastructure.persistence.store import CareStore
from qualis.presentation.api.deps import get_current_actor_id, get_store

log = logging.getLogger(__name__)

router = APIRouter(prefix="/workflows", tags=["workflows"])


@router.post("/events")
async def submit_workflow_event(
    request: Request,
    actor_id: str = Depends(get_current_actor_id),
    store: CareStore = Depends(get_store),
):
    try:
        raw = await request.json()
    except ValueError:
        return JSONResponse({"message": INVALID_PAYLOAD}, status_code=400)

    try:
        event = parse_workflow_event(raw)
        await WorkflowDispatcher(store).dispatch(event, actor_id)
    except WorkflowEventRejected as exc:
        log.info("workflow-events: rejected: %s", exc.message)
        return JSONResponse({"message": exc.message}, status_code=400)
    except Exception:
        log.exception("workflow-events: unexpected error")
        return JSONResponse({"message": "Failed to process workflow automation event."}, status_code=500)

    return {"processed": True}
