"""Celery application for background work.

Only the notification outbox runs here. Beat drains the outbox every
NOTIFICATION_DISPATCH_INTERVAL_SECONDS; the HTTP layer additionally kicks a
dispatch after each committed mutation so notifications show up promptly.

Run a worker with:
    celery -A filingdesk.workers.celery_app worker --beat --loglevel=info
"""

from celery import Celery
from celery.signals import setup_logging

from ..config import settings
from ..observability.logging_config import configure_logging

celery_app = Celery(
    "filingdesk",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["filingdesk.workers.notification_worker"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
)

celery_app.conf.beat_schedule = {
    "notifications-dispatch-outbox": {
        "task": "notifications.dispatch_outbox",
        "schedule": float(settings.NOTIFICATION_DISPATCH_INTERVAL_SECONDS),
        "options": {"expires": settings.NOTIFICATION_DISPATCH_INTERVAL_SECONDS},
    },
}


@setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    # Same JSON lines as the API instead of Celery's own handlers
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)
