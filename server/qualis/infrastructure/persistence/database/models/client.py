from __future__ import annotations
"""server/qualis/infrastructure/persistence/database/models/client.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table clients (residents of a care home).
"""
import datetime as dt

from sqlalchemy import Boolean, ForeignKey, String, text
from sqlalchemy.orm import Mapped, mapped_column

from qualis.infrastructure.persistence.database.base import Base
from qualis.infrastructure.persistence.database.types import TstzPortable, new_id, utcnow


class Client(Base):
    __tablename__ = "clients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    care_home_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("care_homes.id", ondelete="SET NULL"), nullable=True, index=True
    )
    first_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=text("true"))
    created_at: Mapped[dt.datetime] = mapped_column(TstzPortable(), default=utcnow)
