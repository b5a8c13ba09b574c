from __future__ import annotations
"""server/qualis/workers/scheduler/beat_schedule.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Periodic Celery tasks (Beat).
"""
from qualis.core.config import settings

beat_schedule = {
    "drain-email-notifications": {
        "task": "notifications.drain",
        "schedule": float(settings.NOTIFICATION_DRAIN_INTERVAL_SECONDS),
        # A drain slower than the interval must not pile up behind itself.
        "options": {"expires": float(settings.NOTIFICATION_DRAIN_INTERVAL_SECONDS)},
    },
}
