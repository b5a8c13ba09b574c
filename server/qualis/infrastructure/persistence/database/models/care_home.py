from __future__ import annotations
"""server/qualis/infrastructure/persistence/database/models/care_home.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table care_homes (only the columns the pipeline reads).
"""
import datetime as dt

from sqlalchemy import Boolean, String, text
from sqlalchemy.orm import Mapped, mapped_column

from qualis.infrastructure.persistence.database.base import Base
from qualis.infrastructure.persistence.database.types import TstzPortable, new_id, utcnow


class CareHome(Base):
    __tablename__ = "care_homes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=text("true"))
    created_at: Mapped[dt.datetime] = mapped_column(TstzPortable(), default=utcnow)
