from __future__ import annotations
"""server/qualis/workers/celery_app.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Celery app + routing + task modules + beat schedule.
"""
from celery import Celery

from qualis.core.config import settings
from qualis.workers.scheduler.beat_schedule import beat_schedule

celery = Celery("qualis", broker=settings.REDIS_URL, backend=settings.REDIS_URL)

# Queue routing
celery.conf.task_routes = {
    "notifications.drain": {"queue": "notify"},
}

celery.conf.update(
    imports=[
        "qualis.workers.tasks.notification_tasks",
    ],
    # One drain at a time per worker process: the drain itself paces the sends.
    worker_prefetch_multiplier=1,
)

celery.conf.beat_schedule = beat_schedule
