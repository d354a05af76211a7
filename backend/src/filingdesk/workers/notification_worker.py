"""Notification outbox worker.

Drains pending outbox events into the in-app inbox. Runs in its own session
so a failing notification can never touch the transaction that raised it.
"""

import logging
from typing import Any, Dict

from celery import shared_task

from ..database import get_db_session
from ..notifications.dispatcher import NotificationDispatcher
from ..notifications.sink import DatabaseNotificationSink

logger = logging.getLogger(__name__)


def run_dispatch(db) -> Dict[str, Any]:
    """One dispatcher pass on the given session, committed on success."""
    dispatcher = NotificationDispatcher(DatabaseNotificationSink(db))
    result = dispatcher.dispatch_pending(db)
    db.commit()
    return {
        'status': 'completed',
        'dispatched': result.dispatched,
        'retried': result.retried,
        'failed': result.failed,
    }


@shared_task(name="notifications.dispatch_outbox", bind=True)
def dispatch_outbox_task(self) -> Dict[str, Any]:
    """Dispatch one batch of pending outbox events.

    Idempotent: events already dispatched are never picked up again, so
    overlapping beat and on-commit runs are safe.

    Returns:
        Dict with dispatched / retried / failed counts
    """
    try:
        with get_db_session() as db:
            return run_dispatch(db)
    except Exception as e:
        logger.error(
            "Notification dispatch task failed",
            exc_info=True,
            extra={"error": str(e)}
        )
        return {
            'status': 'failed',
            'error': str(e),
        }
