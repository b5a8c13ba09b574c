from __future__ import annotations
"""server/qualis/application/services/audit_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Audit trail writes (best-effort, never abort the workflow response).
"""
import logging
from typing import Any, Mapping, Optional

from qualis.domain.notifications import AuditEventDraft
from qualis.domain.outcomes import Outcome
from qualis.infrastructure.persistence.store import CareStore, StoreError

log = logging.getLogger(__name__)


async def create_audit_event(
    store: CareStore,
    *,
    actor_id: str,
    care_home_id: Optional[str],
    entity_type: str,
    entity_id: str,
    description: str,
    metadata: Mapping[str, Any],
) -> Outcome:
    draft = AuditEventDraft(
        actor_id=actor_id,
        care_home_id=care_home_id,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description,
        metadata=dict(metadata),
        action="created",
    )
    try:
        await store.insert_audit_event(draft)
    except StoreError as exc:
        log.error(
            "audit: failed to create audit event: %s",
            exc,
            extra={"entity_type": entity_type, "entity_id": entity_id},
        )
        return Outcome.failure(str(exc))
    return Outcome.success(1)
