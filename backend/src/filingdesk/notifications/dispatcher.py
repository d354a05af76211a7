"""Outbox notification dispatcher.

Drains pending OutboxEvent rows, renders each event into its notifications
and hands them to a NotificationSink. Delivery is at-least-once: an event
whose second notification fails is retried as a whole.

A failing event never affects the filing or document that raised it; the
dispatcher only ever writes to outbox_event (and whatever the sink writes).
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import settings
from ..domain.events import event_from_payload
from ..models.base import utcnow
from ..models.outbox_event import OutboxEvent
from .ports import NotificationSink

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 1000


@dataclass
class DispatchResult:
    """Counters for one dispatch_pending() pass."""
    dispatched: int = 0
    retried: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.dispatched + self.retried + self.failed


class NotificationDispatcher:
    """Delivers outbox events through a NotificationSink.

    Args:
        sink: Destination for rendered notifications
        max_attempts: Attempts before an event is marked failed
        batch_size: Maximum events claimed per pass
    """

    def __init__(
        self,
        sink: NotificationSink,
        max_attempts: Optional[int] = None,
        batch_size: Optional[int] = None,
    ):
        self.sink = sink
        self.max_attempts = max_attempts or settings.NOTIFICATION_MAX_ATTEMPTS
        self.batch_size = batch_size or settings.NOTIFICATION_BATCH_SIZE

    def claim_pending(self, db: Session):
        """Oldest undelivered, not-yet-failed events.

        On PostgreSQL the rows are locked with SKIP LOCKED so concurrent
        workers never claim the same event.
        """
        stmt = (
            select(OutboxEvent)
            .where(OutboxEvent.dispatched_at.is_(None), OutboxEvent.failed_at.is_(None))
            .order_by(OutboxEvent.created_at, OutboxEvent.id)
            .limit(self.batch_size)
            .with_for_update(skip_locked=True)
        )
        return db.execute(stmt).scalars().all()

    def dispatch_pending(self, db: Session) -> DispatchResult:
        """Deliver one batch of pending events.

        The caller commits. Each event is delivered inside a savepoint, so a
        sink that writes to the database leaves nothing behind for an event
        that raised. Such events are recorded (attempts, last_error) and
        skipped; the rest of the batch still goes out.
        """
        result = DispatchResult()

        for row in self.claim_pending(db):
            try:
                with db.begin_nested():
                    self._deliver(row)
            except Exception as e:
                row.attempts = (row.attempts or 0) + 1
                row.last_error = str(e)[:MAX_ERROR_LENGTH]
                if row.attempts >= self.max_attempts:
                    row.failed_at = utcnow()
                    result.failed += 1
                    logger.error(
                        f"Outbox event {row.id} failed permanently after {row.attempts} attempts",
                        exc_info=True,
                        extra={"event_type": row.event_type},
                    )
                else:
                    result.retried += 1
                    logger.warning(
                        f"Outbox event {row.id} delivery failed (attempt {row.attempts})",
                        exc_info=True,
                        extra={"event_type": row.event_type},
                    )
                continue

            row.attempts = (row.attempts or 0) + 1
            row.dispatched_at = utcnow()
            result.dispatched += 1

        db.flush()

        if result.processed:
            logger.info(
                "Outbox dispatch pass completed",
                extra={
                    "dispatched": result.dispatched,
                    "retried": result.retried,
                    "failed": result.failed,
                },
            )
        return result

    def _deliver(self, row: OutboxEvent) -> None:
        event = event_from_payload(row.event_type, row.payload)
        for message in event.notifications():
            self.sink.notify(
                message.user_id,
                message.type,
                message.title,
                message.body,
                message.link,
            )
