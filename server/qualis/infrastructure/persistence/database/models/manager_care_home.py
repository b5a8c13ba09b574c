from __future__ import annotations
"""server/qualis/infrastructure/persistence/database/models/manager_care_home.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table manager_care_homes (manager ↔ care home assignments).
"""
import datetime as dt

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from qualis.infrastructure.persistence.database.base import Base
from qualis.infrastructure.persistence.database.types import TstzPortable, new_id, utcnow


class ManagerCareHome(Base):
    __tablename__ = "manager_care_homes"
    __table_args__ = (UniqueConstraint("manager_id", "care_home_id", name="uq_manager_care_home"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    manager_id: Mapped[str] = mapped_column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    care_home_id: Mapped[str] = mapped_column(String(36), ForeignKey("care_homes.id", ondelete="CASCADE"), index=True)
    assigned_at: Mapped[dt.datetime] = mapped_column(TstzPortable(), default=utcnow)
    assigned_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
