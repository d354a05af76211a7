"""Transactional outbox writer.

Appends domain events to outbox_event in the caller's session. The row
commits or rolls back together with the mutation that raised the event.
"""

import logging

from sqlalchemy.orm import Session

from ..domain.events import DomainEvent
from ..models.outbox_event import OutboxEvent

logger = logging.getLogger(__name__)


class OutboxWriter:
    """Publishes domain events into the outbox table."""

    def publish(self, db: Session, event: DomainEvent) -> OutboxEvent:
        row = OutboxEvent(event_type=event.event_type, payload=event.to_payload())
        db.add(row)
        db.flush()

        logger.debug(
            f"Outbox event {row.id} queued",
            extra={"event_type": event.event_type},
        )
        return row

