# server/qualis/infrastructure/persistence/repositories/audit_event_repository.py
from __future__ import annotations
"""Audit trail: insert only (rows are never updated or deleted)."""
from sqlalchemy.orm import Session

from qualis.domain.notifications import AuditEventDraft
from qualis.infrastructure.persistence.database.models.audit_event import AuditEvent


class AuditEventRepository:
    def __init__(self, session: Session):
        self.s = session

    def insert(self, draft: AuditEventDraft) -> str:
        evt = AuditEvent(
            actor_id=draft.actor_id,
            care_home_id=draft.care_home_id,
            entity_type=draft.entity_type,
            entity_id=draft.entity_id,
            action=draft.action,
            description=draft.description,
            metadata_=dict(draft.metadata),
        )
        self.s.add(evt)
        self.s.flush()
        return evt.id
