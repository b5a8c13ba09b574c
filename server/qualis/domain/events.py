# server/qualis/domain/events.py
from __future__ import annotations
"""
Workflow events (immutable dataclasses) handled by the dispatcher.

Each variant carries its wire tag in `TYPE`. Kept independent from the ORM
and from the HTTP schemas: the API layer builds these from JSON, tests build
them directly.
"""
from dataclasses import dataclass
from typing import ClassVar, Optional, Union


@dataclass(frozen=True)
class IncidentCreated:
    TYPE: ClassVar[str] = "incident.created"

    incident_id: Optional[str]
    care_home_id: Optional[str]
    incident_type: str
    severity: str
    incident_date: str
    client_name: Optional[str] = None
    reporter_name: Optional[str] = None


@dataclass(frozen=True)
class CarePlanCreated:
    TYPE: ClassVar[str] = "care_plan.created"

    care_plan_id: Optional[str]
    client_id: Optional[str]
    title: str
    start_date: str
    client_name: Optional[str] = None
    creator_name: Optional[str] = None
    review_date: Optional[str] = None


WorkflowEvent = Union[IncidentCreated, CarePlanCreated]

# Registry of known variants, keyed by wire tag.
EVENT_TYPES: dict[str, type] = {
    IncidentCreated.TYPE: IncidentCreated,
    CarePlanCreated.TYPE: CarePlanCreated,
}


class WorkflowEventRejected(Exception):
    """Event refused before any side effect (HTTP 400)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
