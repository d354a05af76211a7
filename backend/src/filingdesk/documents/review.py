"""Document review pipeline.

Review States:
    PENDING → ACCEPTED | REJECTED | NEEDS_REUPLOAD

Every outcome is terminal for the version; the only way back to PENDING is
a re-upload, which creates a new version. The review itself is a
compare-and-swap on status = 'PENDING' so two reviewers racing on the same
version cannot both succeed.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..audit.ports import AuditSink
from ..audit.service import AuditAction, DatabaseAuditSink
from ..domain.documents import (
    DocumentStatus,
    MIN_REJECTION_NOTE_LENGTH,
    NOTE_REQUIRED_OUTCOMES,
    REVIEW_OUTCOMES,
    can_transition,
)
from ..domain.events import DocumentRequested, DocumentReviewed
from ..errors import BadRequestError, NotFoundError
from ..models.base import utcnow
from ..models.document import Document
from ..models.filing import Filing
from ..models.user import User
from ..notifications.outbox import OutboxWriter
from .version_store import parse_category

logger = logging.getLogger(__name__)


def parse_review_outcome(value) -> DocumentStatus:
    """A status a PENDING version may move to."""
    try:
        outcome = DocumentStatus(value)
    except ValueError:
        outcome = None
    if not can_transition(DocumentStatus.PENDING, outcome):
        raise BadRequestError(
            f"Invalid review status: {value}. Allowed: {[s.value for s in REVIEW_OUTCOMES]}"
        )
    return outcome


def validate_rejection_note(outcome: DocumentStatus, note: Optional[str]) -> None:
    """REJECTED and NEEDS_REUPLOAD need a note of at least 10 characters."""
    if outcome in NOTE_REQUIRED_OUTCOMES:
        if not note or len(note.strip()) < MIN_REJECTION_NOTE_LENGTH:
            raise BadRequestError(
                f"A rejection note of at least {MIN_REJECTION_NOTE_LENGTH} characters "
                f"is required when status is {outcome.value}"
            )


class DocumentReviewPipeline:
    """Staff decisions on pending document versions."""

    def __init__(
        self,
        db: Session,
        audit_sink: Optional[AuditSink] = None,
        outbox: Optional[OutboxWriter] = None,
    ):
        self.db = db
        self.audit = audit_sink or DatabaseAuditSink(db)
        self.outbox = outbox or OutboxWriter()

    def review(
        self,
        document_id: UUID,
        new_status,
        rejection_note: Optional[str],
        reviewer_id: UUID,
    ) -> Document:
        """Record a review outcome for one document version.

        Raises:
            NotFoundError: Document missing
            BadRequestError: Not PENDING (already reviewed), invalid outcome,
                or missing/short rejection note
        """
        outcome = parse_review_outcome(new_status)

        document = self.db.query(Document).filter(
            Document.id == document_id,
            Document.deleted_at.is_(None),
        ).first()
        if not document:
            raise NotFoundError("Document not found")

        if not can_transition(DocumentStatus(document.status), outcome):
            raise BadRequestError(f"Document has already been reviewed (current: {document.status})")

        validate_rejection_note(outcome, rejection_note)

        now = utcnow()
        result = self.db.execute(
            update(Document)
            .where(
                Document.id == document_id,
                Document.status == DocumentStatus.PENDING.value,
                Document.deleted_at.is_(None),
            )
            .values(
                status=outcome.value,
                rejection_note=rejection_note,
                reviewed_by_user_id=reviewer_id,
                reviewed_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise BadRequestError("Document has already been reviewed")

        self.db.refresh(document)

        old_status = DocumentStatus.PENDING.value
        self.audit.append(
            reviewer_id,
            AuditAction.REVIEW,
            "Document",
            document.id,
            old_value={"status": old_status},
            new_value={"status": outcome.value, "note": rejection_note},
        )
        self.outbox.publish(
            self.db,
            DocumentReviewed(
                document_id=str(document.id),
                owner_user_id=str(document.owner_user_id),
                category=document.category,
                old_status=old_status,
                new_status=outcome.value,
                reviewer_id=str(reviewer_id) if reviewer_id else None,
                note=rejection_note,
            ),
        )
        self.db.flush()

        logger.info(
            f"Document {document.id} reviewed: {old_status} -> {outcome.value}",
            extra={
                "document_id": str(document.id),
                "reviewer_id": str(reviewer_id),
                "status": outcome.value,
            },
        )
        return document

    def request_additional(
        self,
        target_user_id: UUID,
        category,
        note: str,
        filing_id: Optional[UUID] = None,
        requester_id: Optional[UUID] = None,
    ) -> DocumentRequested:
        """Ask a user to upload a document.

        Only a notification is produced; a later upload in the category is
        not linked back to the request.

        Raises:
            NotFoundError: Target user or filing missing
            BadRequestError: Unknown category or empty note
        """
        category = parse_category(category)
        if not note or not note.strip():
            raise BadRequestError("A note is required when requesting a document")

        user = self.db.get(User, target_user_id)
        if not user:
            raise NotFoundError("User not found")

        if filing_id is not None:
            filing = self.db.query(Filing).filter(
                Filing.id == filing_id,
                Filing.owner_user_id == target_user_id,
            ).first()
            if not filing:
                raise NotFoundError("Filing not found")

        event = DocumentRequested(
            target_user_id=str(target_user_id),
            category=category.value,
            note=note.strip(),
            filing_id=str(filing_id) if filing_id else None,
            requester_id=str(requester_id) if requester_id else None,
        )
        self.outbox.publish(self.db, event)

        logger.info(
            f"Document requested from {target_user_id}: {category.value}",
            extra={"target_user_id": str(target_user_id), "requester_id": str(requester_id)},
        )
        return event
