"""AuditLog SQLAlchemy model"""

import uuid

from sqlalchemy import Column, Text, ForeignKey, DateTime, Uuid, Index, func

from .base import Base, PortableJSONB, utcnow, iso


class AuditLog(Base):
    """AuditLog model for immutable change records.

    Written in the same session as the mutation it describes, so an entry
    exists if and only if the change committed. Entries are append-only and
    are never updated or deleted.
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_entity", "entity_type", "entity_id"),
        Index("ix_audit_log_created_at", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    actor_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    action = Column(Text, nullable=False)
    entity_type = Column(Text, nullable=False)
    entity_id = Column(Uuid, nullable=False)
    old_value = Column(PortableJSONB, nullable=True)
    new_value = Column(PortableJSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    def to_dict(self):
        """Convert audit log entry to dictionary representation"""
        return {
            "id": str(self.id),
            "actor_id": str(self.actor_id) if self.actor_id else None,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id),
            "old_value": self.old_value,
            "new_value": self.new_value,
            "created_at": iso(self.created_at),
        }
