# server/qualis/domain/notifications.py
from __future__ import annotations
"""
Notification queue value types, shared by the services and the store.

Only primitives cross the store boundary: the repositories map ORM rows
to these dataclasses so nothing depends on a live session.
"""
import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional


class NotificationChannel(str, enum.Enum):
    IN_APP = "in_app"
    EMAIL = "email"


class NotificationStatus(str, enum.Enum):
    QUEUED = "queued"
    SENDING = "sending"
    SENT = "sent"
    FAILED = "failed"
    CANCELLED = "cancelled"


DEFAULT_CHANNELS: tuple[NotificationChannel, ...] = (
    NotificationChannel.IN_APP,
    NotificationChannel.EMAIL,
)


@dataclass(frozen=True)
class NotificationDraft:
    """One queue row to insert (one recipient, one channel)."""
    recipient_id: str
    channel: NotificationChannel
    subject: str
    payload: Mapping[str, Any]
    created_by: Optional[str]
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    status: NotificationStatus = NotificationStatus.QUEUED
    send_after: Optional[datetime] = None


@dataclass(frozen=True)
class QueuedNotification:
    """Snapshot of a queue row selected for delivery."""
    id: str
    recipient_id: Optional[str]
    channel: NotificationChannel
    status: NotificationStatus
    subject: Optional[str]
    payload: Mapping[str, Any]
    created_at: datetime
    send_after: Optional[datetime] = None
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None


@dataclass(frozen=True)
class RecipientProfile:
    id: str
    email: Optional[str]
    first_name: Optional[str] = None
    last_name: Optional[str] = None


@dataclass(frozen=True)
class AuditEventDraft:
    actor_id: str
    care_home_id: Optional[str]
    entity_type: str
    entity_id: str
    description: str
    metadata: Mapping[str, Any] = field(default_factory=dict)
    action: str = "created"


@dataclass(frozen=True)
class CareContext:
    """What we know about a resident when a care plan is created."""
    care_home_id: Optional[str]
    care_home_name: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
