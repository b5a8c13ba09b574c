from __future__ import annotations
"""server/qualis/api/schemas/workflow_event.py
~~~~~~~~~~~~~~~~~~~~~~~~
Wire schemas for POST /workflows/events (camelCase JSON) and conversion
to the domain events.

Missing ids are accepted here on purpose: the dispatcher rejects them with
a precise message ("Incident details incomplete.").
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from qualis.domain.events import (
    EVENT_TYPES,
    CarePlanCreated,
    IncidentCreated,
    WorkflowEvent,
    WorkflowEventRejected,
)

INVALID_PAYLOAD = "Invalid workflow event payload."


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class IncidentDetailsIn(_CamelModel):
    incident_type: str = Field(alias="incidentType")
    severity: str
    incident_date: str = Field(alias="incidentDate")
    client_name: Optional[str] = Field(None, alias="clientName")
    reporter_name: Optional[str] = Field(None, alias="reporterName")


class IncidentCreatedIn(_CamelModel):
    incident_id: Optional[str] = Field(None, alias="incidentId")
    care_home_id: Optional[str] = Field(None, alias="careHomeId")
    details: IncidentDetailsIn

    def to_event(self) -> IncidentCreated:
        d = self.details
        return IncidentCreated(
            incident_id=self.incident_id,
            care_home_id=self.care_home_id,
            incident_type=d.incident_type,
            severity=d.severity,
            incident_date=d.incident_date,
            client_name=d.client_name,
            reporter_name=d.reporter_name,
        )


class CarePlanDetailsIn(_CamelModel):
    title: str
    start_date: str = Field(alias="startDate")
    client_name: Optional[str] = Field(None, alias="clientName")
    creator_name: Optional[str] = Field(None, alias="creatorName")
    review_date: Optional[str] = Field(None, alias="reviewDate")


class CarePlanCreatedIn(_CamelModel):
    care_plan_id: Optional[str] = Field(None, alias="carePlanId")
    client_id: Optional[str] = Field(None, alias="clientId")
    details: CarePlanDetailsIn

    def to_event(self) -> CarePlanCreated:
        d = self.details
        return CarePlanCreated(
            care_plan_id=self.care_plan_id,
            client_id=self.client_id,
            title=d.title,
            start_date=d.start_date,
            client_name=d.client_name,
            creator_name=d.creator_name,
            review_date=d.review_date,
        )


# One wire schema per registered domain event.
WIRE_SCHEMAS: dict[type, type[_CamelModel]] = {
    IncidentCreated: IncidentCreatedIn,
    CarePlanCreated: CarePlanCreatedIn,
}


def parse_workflow_event(raw: Any) -> WorkflowEvent:
    """
    JSON body -> domain event.
    Raises WorkflowEventRejected for a missing/unknown `type` or malformed details.
    """
    if not isinstance(raw, dict):
        raise WorkflowEventRejected(INVALID_PAYLOAD)

    event_type = raw.get("type")
    if not event_type or not isinstance(event_type, str):
        raise WorkflowEventRejected(INVALID_PAYLOAD)

    event_cls = EVENT_TYPES.get(event_type)
    if event_cls is None:
        raise WorkflowEventRejected(f"Unsupported workflow event type: {event_type}")

    body = {k: v for k, v in raw.items() if k != "type"}
    try:
        return WIRE_SCHEMAS[event_cls].model_validate(body).to_event()
    except ValidationError as exc:
        raise WorkflowEventRejected(INVALID_PAYLOAD) from exc
