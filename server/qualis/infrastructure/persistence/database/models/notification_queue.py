from __future__ import annotations
"""server/qualis/infrastructure/persistence/database/models/notification_queue.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table notification_queue: one row per (recipient, channel) to deliver.

Lifecycle: queued -> sending -> sent | failed (cancelled is set by staff
tooling, never by the pipeline). Rows are never deleted by the pipeline.
"""
import datetime as dt

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from qualis.domain.notifications import NotificationChannel, NotificationStatus
from qualis.infrastructure.persistence.database.base import Base
from qualis.infrastructure.persistence.database.types import JSONPortable, TstzPortable, new_id, utcnow


def _str_enum(enum_cls, name: str):
    # Stored as the enum *value* ("queued"), not the member name.
    return sa.Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=16,
        values_callable=lambda e: [m.value for m in e],
        validate_strings=True,
    )


class NotificationQueueItem(Base):
    __tablename__ = "notification_queue"
    __table_args__ = (
        sa.Index("ix_notification_queue_drain", "channel", "status", "created_at"),
    )

    id: Mapped[str] = mapped_column(sa.String(36), primary_key=True, default=new_id)
    recipient_id: Mapped[str | None] = mapped_column(sa.String(36), nullable=True, index=True)
    channel: Mapped[NotificationChannel] = mapped_column(_str_enum(NotificationChannel, "notification_channel"))
    status: Mapped[NotificationStatus] = mapped_column(
        _str_enum(NotificationStatus, "notification_status"), default=NotificationStatus.QUEUED
    )
    # Caller-supplied names and ids end up here: unbounded.
    subject: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    payload: Mapped[dict] = mapped_column(JSONPortable(), default=dict)

    related_entity_type: Mapped[str | None] = mapped_column(sa.String(64), nullable=True)
    related_entity_id: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(sa.String(36), nullable=True)

    send_after: Mapped[dt.datetime | None] = mapped_column(TstzPortable(), nullable=True)
    locked_at: Mapped[dt.datetime | None] = mapped_column(TstzPortable(), nullable=True)
    sent_at: Mapped[dt.datetime | None] = mapped_column(TstzPortable(), nullable=True)
    error_message: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(TstzPortable(), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(TstzPortable(), default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<NotificationQueueItem id={self.id} channel={self.channel} status={self.status}>"
