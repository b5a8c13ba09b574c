from __future__ import annotations
"""server/qualis/infrastructure/persistence/database/models/audit_event.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table audit_events (append-only).
"""
import datetime as dt

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from qualis.infrastructure.persistence.database.base import Base
from qualis.infrastructure.persistence.database.types import JSONPortable, TstzPortable, new_id, utcnow


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    actor_id: Mapped[str] = mapped_column(String(36), index=True)
    care_home_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    entity_type: Mapped[str] = mapped_column(String(64))
    entity_id: Mapped[str] = mapped_column(Text)
    action: Mapped[str] = mapped_column(String(32), default="created")
    description: Mapped[str] = mapped_column(Text)
    # "metadata" is reserved on declarative classes.
    metadata_: Mapped[dict] = mapped_column("metadata", JSONPortable(), default=dict)
    created_at: Mapped[dt.datetime] = mapped_column(TstzPortable(), default=utcnow)
