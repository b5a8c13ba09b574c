# server/qualis/infrastructure/persistence/repositories/care_context_repository.py
from __future__ import annotations
"""
Read-only lookups used to enrich workflow events and resolve recipients:
care homes, manager assignments, residents and staff profiles.
"""
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from qualis.domain.notifications import CareContext, RecipientProfile
from qualis.infrastructure.persistence.database.models.care_home import CareHome
from qualis.infrastructure.persistence.database.models.client import Client
from qualis.infrastructure.persistence.database.models.manager_care_home import ManagerCareHome
from qualis.infrastructure.persistence.database.models.profile import Profile


class CareContextRepository:
    def __init__(self, session: Session):
        self.s = session

    def care_home_name(self, care_home_id: str) -> Optional[str]:
        return self.s.scalar(select(CareHome.name).where(CareHome.id == care_home_id))

    def manager_ids(self, care_home_id: str) -> list[str]:
        stmt = select(ManagerCareHome.manager_id).where(ManagerCareHome.care_home_id == care_home_id)
        return list(self.s.scalars(stmt))

    def active_profile_ids(self, role: str) -> list[str]:
        stmt = select(Profile.id).where(Profile.role == role, Profile.is_active.is_(True))
        return list(self.s.scalars(stmt))

    def care_context(self, client_id: str) -> Optional[CareContext]:
        """Resident + owning care home in one query (None if the client is unknown)."""
        stmt = (
            select(Client.care_home_id, CareHome.name, Client.first_name, Client.last_name)
            .outerjoin(CareHome, CareHome.id == Client.care_home_id)
            .where(Client.id == client_id)
        )
        row = self.s.execute(stmt).first()
        if row is None:
            return None
        care_home_id, care_home_name, first_name, last_name = row
        return CareContext(
            care_home_id=care_home_id,
            care_home_name=care_home_name,
            first_name=first_name,
            last_name=last_name,
        )

    def profiles(self, ids: Iterable[str]) -> list[RecipientProfile]:
        ids = [i for i in ids if i]
        if not ids:
            return []
        stmt = select(Profile.id, Profile.email, Profile.first_name, Profile.last_name).where(Profile.id.in_(ids))
        return [
            RecipientProfile(id=pid, email=email, first_name=first, last_name=last)
            for pid, email, first, last in self.s.execute(stmt)
        ]
