from __future__ import annotations
"""server/qualis/infrastructure/persistence/database/models/__init__.py
~~~~~~~~~~~~~~~~~~~~~~~~
ORM models (imported here so Base.metadata knows every table).
"""

from .care_home import CareHome
from .profile import Profile
from .manager_care_home import ManagerCareHome
from .client import Client
from .notification_queue import NotificationQueueItem
from .audit_event import AuditEvent

__all__ = ["CareHome", "Profile", "ManagerCareHome", "Client", "NotificationQueueItem", "AuditEvent"]
