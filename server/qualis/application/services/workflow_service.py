from __future__ import annotations
"""server/qualis/application/services/workflow_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Workflow event dispatcher.

Per event (request-scoped, no persisted state):
  1) validate     -> WorkflowEventRejected (400) before any write
  2) enrich       -> care home / resident names, with display fallbacks
  3) compose      -> subject, body and a flat payload shared by notifications and audit
  4) fan-out      -> recipients, then notifications + audit concurrently
  5) acknowledge  -> processed=True even if a best-effort write failed
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from qualis.application.services.audit_service import create_audit_event
from qualis.application.services.notification_service import queue_notifications
from qualis.application.services.recipient_service import resolve_recipients
from qualis.domain.events import CarePlanCreated, IncidentCreated, WorkflowEvent, WorkflowEventRejected
from qualis.domain.notifications import DEFAULT_CHANNELS
from qualis.domain.outcomes import Outcome
from qualis.infrastructure.persistence.store import CareStore, StoreError

log = logging.getLogger(__name__)

DEFAULT_CARE_HOME_NAME = "Care Home"
DEFAULT_CLIENT_NAME = "Resident"


@dataclass(frozen=True)
class ComposedEvent:
    care_home_id: str
    entity_type: str
    entity_id: str
    subject: str
    body: str
    payload: dict[str, Any]


@dataclass(frozen=True)
class DispatchResult:
    processed: bool
    recipients: frozenset[str]
    notifications: Outcome
    audit: Outcome


class WorkflowDispatcher:
    def __init__(self, store: CareStore):
        self.store = store

    async def dispatch(self, event: WorkflowEvent, actor_id: str) -> DispatchResult:
        if isinstance(event, IncidentCreated):
            composed = await self._compose_incident(event)
        elif isinstance(event, CarePlanCreated):
            composed = await self._compose_care_plan(event)
        else:
            tag = getattr(event, "TYPE", type(event).__name__)
            raise WorkflowEventRejected(f"Unsupported workflow event type: {tag}")

        return await self._fan_out(composed, actor_id)

    # --- Enrichment + composition, one per variant ------------------------------

    async def _compose_incident(self, event: IncidentCreated) -> ComposedEvent:
        if not event.incident_id or not event.care_home_id:
            raise WorkflowEventRejected("Incident details incomplete.")

        care_home_name = await self._care_home_name(event.care_home_id)
        client_name = event.client_name or DEFAULT_CLIENT_NAME

        body = f"{event.incident_type} ({event.severity}) recorded for {client_name} at {care_home_name}."
        payload = {
            "type": IncidentCreated.TYPE,
            "entityType": "incident",
            "entityId": event.incident_id,
            "severity": event.severity,
            "incidentType": event.incident_type,
            "incidentDate": event.incident_date,
            "clientName": client_name,
            "reporterName": event.reporter_name,
            "careHomeId": event.care_home_id,
            "careHomeName": care_home_name,
            "link": f"/incidents/{event.incident_id}",
        }
        return ComposedEvent(
            care_home_id=event.care_home_id,
            entity_type="incident",
            entity_id=event.incident_id,
            subject=f"Incident logged: {client_name}",
            body=body,
            payload=payload,
        )

    async def _compose_care_plan(self, event: CarePlanCreated) -> ComposedEvent:
        if not event.care_plan_id or not event.client_id:
            raise WorkflowEventRejected("Care plan details incomplete.")

        care_home_id, care_home_name, client_name = await self._care_context(event.client_id, event.client_name)
        if not care_home_id:
            # Without a care home there is nobody to notify.
            raise WorkflowEventRejected("Care plan client missing care home context.")

        body = f"{event.title} drafted for {client_name} at {care_home_name}."
        payload = {
            "type": CarePlanCreated.TYPE,
            "entityType": "care_plan",
            "entityId": event.care_plan_id,
            "title": event.title,
            "clientId": event.client_id,
            "clientName": client_name,
            "startDate": event.start_date,
            "reviewDate": event.review_date,
            "creatorName": event.creator_name,
            "careHomeId": care_home_id,
            "careHomeName": care_home_name,
            "link": f"/care-plans/{event.care_plan_id}",
        }
        return ComposedEvent(
            care_home_id=care_home_id,
            entity_type="care_plan",
            entity_id=event.care_plan_id,
            subject=f"Care plan created: {client_name}",
            body=body,
            payload=payload,
        )

    async def _care_home_name(self, care_home_id: str) -> str:
        try:
            name = await self.store.care_home_name(care_home_id)
        except StoreError as exc:
            log.warning("workflow-events: failed to load care home %s: %s", care_home_id, exc)
            return DEFAULT_CARE_HOME_NAME
        return name or DEFAULT_CARE_HOME_NAME

    async def _care_context(
        self, client_id: str, fallback_name: Optional[str]
    ) -> tuple[Optional[str], str, str]:
        """(care_home_id, care_home_name, client_name) for a resident."""
        fallback_client = fallback_name or DEFAULT_CLIENT_NAME
        try:
            ctx = await self.store.care_context(client_id)
        except StoreError as exc:
            log.warning("workflow-events: failed to resolve client context %s: %s", client_id, exc)
            return None, DEFAULT_CARE_HOME_NAME, fallback_client

        if ctx is None:
            return None, DEFAULT_CARE_HOME_NAME, fallback_client

        if ctx.first_name and ctx.last_name:
            client_name = f"{ctx.first_name} {ctx.last_name}"
        else:
            client_name = fallback_client
        return ctx.care_home_id, ctx.care_home_name or DEFAULT_CARE_HOME_NAME, client_name

    # --- Fan-out -------------------------------------------------------------

    async def _fan_out(self, composed: ComposedEvent, actor_id: str) -> DispatchResult:
        resolution = await resolve_recipients(self.store, composed.care_home_id, actor_id)

        notifications, audit = await asyncio.gather(
            queue_notifications(
                self.store,
                resolution.recipients,
                actor_id,
                composed.subject,
                composed.body,
                composed.payload,
                DEFAULT_CHANNELS,
            ),
            create_audit_event(
                self.store,
                actor_id=actor_id,
                care_home_id=composed.care_home_id,
                entity_type=composed.entity_type,
                entity_id=composed.entity_id,
                description=composed.body,
                metadata=composed.payload,
            ),
        )

        log.info(
            "workflow event processed",
            extra={
                "event_type": composed.payload.get("type"),
                "entity_id": composed.entity_id,
                "recipients": len(resolution.recipients),
                "notifications_ok": notifications.ok,
                "audit_ok": audit.ok,
            },
        )
        return DispatchResult(
            processed=True,
            recipients=resolution.recipients,
            notifications=notifications,
            audit=audit,
        )
