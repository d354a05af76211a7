"""Document SQLAlchemy model

Document represents one uploaded file, i.e. one version inside a chain.
Every version carries chain_root_id (the id of version 1; version 1 points
at itself), so grouping and head lookup never depend on a null convention.
"""

import uuid

from sqlalchemy import (
    Column, Text, ForeignKey, BigInteger, Integer, DateTime, Uuid, Index,
    UniqueConstraint, CheckConstraint, func,
)

from .base import Base, utcnow, iso


class Document(Base):
    """Document model representing a single document version.

    Versions are strictly increasing within a chain starting at 1, one row
    per version (uq_document_chain_version). Deleting a chain tombstones all
    its rows; the storage key stays resolvable so audit entries that refer
    to the document remain meaningful.
    """
    __tablename__ = "document"
    __table_args__ = (
        UniqueConstraint("chain_root_id", "version", name="uq_document_chain_version"),
        CheckConstraint("version >= 1", name="ck_document_version_positive"),
        CheckConstraint(
            "status IN ('PENDING', 'ACCEPTED', 'REJECTED', 'NEEDS_REUPLOAD')",
            name="ck_document_status",
        ),
        CheckConstraint(
            "category IN ('NID', 'TIN_CERTIFICATE', 'SALARY_CERTIFICATE', 'BANK_STATEMENT', "
            "'RENTAL_AGREEMENT', 'INVESTMENT_PROOF', 'PREVIOUS_RETURN', 'TRADE_LICENSE', "
            "'ASSET_STATEMENT', 'FILED_RETURN', 'ACKNOWLEDGEMENT', 'OTHER')",
            name="ck_document_category",
        ),
        Index("ix_document_owner_user_id", "owner_user_id"),
        Index("ix_document_filing_id", "filing_id"),
        Index("ix_document_chain_root_id", "chain_root_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_user_id = Column(Uuid, ForeignKey("user.id", ondelete="RESTRICT"), nullable=False)
    filing_id = Column(Uuid, ForeignKey("filing.id", ondelete="SET NULL"), nullable=True)
    category = Column(Text, nullable=False)
    file_name = Column(Text, nullable=False)
    storage_key = Column(Text, nullable=False)
    file_size_bytes = Column(BigInteger, nullable=False)
    mime_type = Column(Text, nullable=False)
    status = Column(Text, nullable=False, server_default="PENDING")
    version = Column(Integer, nullable=False, server_default="1")
    chain_root_id = Column(Uuid, nullable=False)
    rejection_note = Column(Text, nullable=True)
    reviewed_by_user_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by_user_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    @property
    def is_root(self) -> bool:
        return self.version == 1

    def to_dict(self):
        """Convert document to dictionary representation"""
        return {
            "id": str(self.id),
            "owner_user_id": str(self.owner_user_id),
            "filing_id": str(self.filing_id) if self.filing_id else None,
            "category": self.category,
            "file_name": self.file_name,
            "file_size_bytes": self.file_size_bytes,
            "mime_type": self.mime_type,
            "status": self.status,
            "version": self.version,
            "chain_root_id": str(self.chain_root_id),
            "rejection_note": self.rejection_note,
            "reviewed_by_user_id": str(self.reviewed_by_user_id) if self.reviewed_by_user_id else None,
            "reviewed_at": iso(self.reviewed_at),
            "created_at": iso(self.created_at),
        }
