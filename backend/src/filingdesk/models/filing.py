"""Filing and FilingStatusLog SQLAlchemy models

Filing is one customer's tax-filing engagement for an assessment year.
FilingStatusLog is the append-only replay of every status transition.
"""

import uuid

from sqlalchemy import (
    Column, Text, ForeignKey, Numeric, DateTime, Uuid, Index,
    UniqueConstraint, CheckConstraint, func,
)
from sqlalchemy.orm import relationship

from .base import Base, utcnow, iso

_STATUS_VALUES = (
    "'INITIATED', 'DOCUMENTS_PENDING', 'DOCUMENTS_RECEIVED', 'UNDER_PREPARATION', "
    "'REVIEW_READY', 'CUSTOMER_APPROVED', 'E_FILED', 'ACKNOWLEDGED', 'COMPLETED', 'ON_HOLD'"
)


def _money(value):
    return str(value) if value is not None else None


class Filing(Base):
    """Filing model.

    At most one filing exists per (owner_user_id, assessment_year); the
    uniqueness constraint is the only guard, so concurrent initiations race
    on the insert rather than on a prior read. Filings are never deleted.

    held_from_status is set only while status is ON_HOLD and records the
    linear state the filing was parked from.
    """
    __tablename__ = "filing"
    __table_args__ = (
        UniqueConstraint("owner_user_id", "assessment_year", name="uq_filing_owner_year"),
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_filing_status"),
        Index("ix_filing_status", "status"),
        Index("ix_filing_advisor_user_id", "advisor_user_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_user_id = Column(Uuid, ForeignKey("user.id", ondelete="RESTRICT"), nullable=False)
    assessment_year = Column(Text, nullable=False)
    service_type = Column(Text, nullable=False)
    status = Column(Text, nullable=False, server_default="INITIATED")
    held_from_status = Column(Text, nullable=True)
    advisor_user_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    total_income = Column(Numeric(15, 2), nullable=True)
    tax_payable = Column(Numeric(15, 2), nullable=True)
    tax_paid = Column(Numeric(15, 2), nullable=True)
    refund_amount = Column(Numeric(15, 2), nullable=True)
    deadline = Column(DateTime(timezone=True), nullable=True)
    internal_notes = Column(Text, nullable=True)  # staff-only
    filed_at = Column(DateTime(timezone=True), nullable=True)
    acknowledged_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    # Relationships
    owner = relationship("User", foreign_keys=[owner_user_id])
    advisor = relationship("User", foreign_keys=[advisor_user_id])

    def to_dict(self, include_internal: bool = False):
        """Convert filing to dictionary representation

        Args:
            include_internal: Include staff-only fields (internal_notes)
        """
        data = {
            "id": str(self.id),
            "owner_user_id": str(self.owner_user_id),
            "assessment_year": self.assessment_year,
            "service_type": self.service_type,
            "status": self.status,
            "held_from_status": self.held_from_status,
            "advisor_user_id": str(self.advisor_user_id) if self.advisor_user_id else None,
            "total_income": _money(self.total_income),
            "tax_payable": _money(self.tax_payable),
            "tax_paid": _money(self.tax_paid),
            "refund_amount": _money(self.refund_amount),
            "deadline": iso(self.deadline),
            "filed_at": iso(self.filed_at),
            "acknowledged_at": iso(self.acknowledged_at),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
        if include_internal:
            data["internal_notes"] = self.internal_notes
        return data


class FilingStatusLog(Base):
    """Immutable status-change record.

    Exactly one row per transition call, including the INITIATED -> INITIATED
    row written when the filing is created.
    """
    __tablename__ = "filing_status_log"
    __table_args__ = (
        Index("ix_filing_status_log_filing_id_created_at", "filing_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    filing_id = Column(Uuid, ForeignKey("filing.id", ondelete="CASCADE"), nullable=False)
    from_status = Column(Text, nullable=False)
    to_status = Column(Text, nullable=False)
    changed_by_user_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    def to_dict(self):
        return {
            "id": str(self.id),
            "filing_id": str(self.filing_id),
            "from_status": self.from_status,
            "to_status": self.to_status,
            "changed_by_user_id": str(self.changed_by_user_id) if self.changed_by_user_id else None,
            "note": self.note,
            "created_at": iso(self.created_at),
        }
