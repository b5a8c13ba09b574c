from __future__ import annotations
"""server/qualis/application/services/recipient_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Who gets told about an event in a care home: the managers assigned to that
home plus every active business owner, never the person who acted.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Iterable

from qualis.domain.outcomes import Outcome
from qualis.infrastructure.persistence.store import CareStore, StoreError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecipientResolution:
    recipients: frozenset[str]
    managers: Outcome
    owners: Outcome


async def _lookup(source: str, query: Awaitable[list[str]]) -> tuple[list[str], Outcome]:
    try:
        ids = await query
    except StoreError as exc:
        log.warning("recipients: %s lookup failed: %s", source, exc)
        return [], Outcome.failure(str(exc))
    return ids, Outcome.success(len(ids))


def _collect(ids: Iterable[str | None], actor_id: str) -> set[str]:
    return {i for i in ids if i and i != actor_id}


async def resolve_recipients(store: CareStore, care_home_id: str, actor_id: str) -> RecipientResolution:
    """
    Both sources are queried concurrently and aggregated independently: one
    failing source contributes nothing, the other still counts.
    """
    (manager_ids, managers), (owner_ids, owners) = await asyncio.gather(
        _lookup("manager", store.manager_ids(care_home_id)),
        _lookup("business owner", store.active_business_owner_ids()),
    )

    recipients = _collect(manager_ids, actor_id) | _collect(owner_ids, actor_id)
    log.debug(
        "recipients resolved",
        extra={"care_home_id": care_home_id, "count": len(recipients)},
    )
    return RecipientResolution(recipients=frozenset(recipients), managers=managers, owners=owners)
