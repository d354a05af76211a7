"""OutboxEvent SQLAlchemy model

Domain events are appended here in the same transaction as the mutation
that raised them. The notification dispatcher drains undispatched rows
later, so a rolled-back mutation never produces a notification and a
failed notification never rolls back a mutation.
"""

import uuid

from sqlalchemy import Column, Text, Integer, DateTime, Uuid, Index, func

from .base import Base, PortableJSONB, utcnow, iso


class OutboxEvent(Base):
    """Pending or dispatched domain event.

    State is derived from the timestamps:
    - dispatched_at and failed_at both NULL: pending
    - dispatched_at set: delivered to the notification sink
    - failed_at set: gave up after NOTIFICATION_MAX_ATTEMPTS
    """
    __tablename__ = "outbox_event"
    __table_args__ = (
        Index("ix_outbox_event_pending", "dispatched_at", "failed_at", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_type = Column(Text, nullable=False)
    payload = Column(PortableJSONB, nullable=False)
    attempts = Column(Integer, nullable=False, default=0, server_default="0")
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    dispatched_at = Column(DateTime(timezone=True), nullable=True)
    failed_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self):
        return {
            "id": str(self.id),
            "event_type": self.event_type,
            "payload": self.payload,
            "attempts": self.attempts,
            "last_error": self.last_error,
            "created_at": iso(self.created_at),
            "dispatched_at": iso(self.dispatched_at),
            "failed_at": iso(self.failed_at),
        }
