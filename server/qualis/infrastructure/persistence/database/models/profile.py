from __future__ import annotations
"""server/qualis/infrastructure/persistence/database/models/profile.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table profiles (one per authenticated user).
"""
import datetime as dt

from sqlalchemy import Boolean, String, text
from sqlalchemy.orm import Mapped, mapped_column

from qualis.infrastructure.persistence.database.base import Base
from qualis.infrastructure.persistence.database.types import TstzPortable, new_id, utcnow

ROLE_CARER = "carer"
ROLE_MANAGER = "manager"
ROLE_BUSINESS_OWNER = "business_owner"


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), index=True)
    first_name: Mapped[str] = mapped_column(String(120), default="")
    last_name: Mapped[str] = mapped_column(String(120), default="")
    role: Mapped[str] = mapped_column(String(32), default=ROLE_CARER, server_default=ROLE_CARER)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=text("true"))
    created_at: Mapped[dt.datetime] = mapped_column(TstzPortable(), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(TstzPortable(), default=utcnow, onupdate=utcnow)
