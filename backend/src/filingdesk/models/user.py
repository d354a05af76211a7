"""User SQLAlchemy model"""

import uuid

from sqlalchemy import Column, Text, CheckConstraint, DateTime, Uuid, func

from .base import Base, utcnow, iso


class User(Base):
    """User model for customers and staff.

    Authentication lives outside this service; the row is consulted for
    ownership, advisor eligibility (role + ACTIVE status) and notification
    addressing.
    """
    __tablename__ = "user"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(Text, nullable=False, unique=True)
    full_name = Column(Text, nullable=True)
    role = Column(Text, nullable=False, server_default="CUSTOMER")
    status = Column(Text, nullable=False, server_default="ACTIVE")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "role IN ('CUSTOMER', 'TAX_ADVISOR', 'OPERATIONS', 'SUPER_ADMIN')",
            name='ck_user_role'
        ),
        CheckConstraint(
            "status IN ('ACTIVE', 'DISABLED')",
            name='ck_user_status'
        ),
    )

    def to_dict(self):
        """Convert user to dictionary representation"""
        return {
            "id": str(self.id),
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "status": self.status,
            "created_at": iso(self.created_at),
        }
