"""Integration tests for document review and document requests"""

from uuid import uuid4

import pytest
from sqlalchemy import update

from filingdesk.audit.service import AuditAction
from filingdesk.documents.review import DocumentReviewPipeline, parse_review_outcome
from filingdesk.documents.version_store import DocumentVersionStore
from filingdesk.domain.documents import DocumentStatus
from filingdesk.errors import BadRequestError, NotFoundError
from filingdesk.filings.service import FilingLifecycleManager
from filingdesk.models import AuditLog, Document, OutboxEvent
from filingdesk.notifications.dispatcher import NotificationDispatcher

PDF = b"%PDF-1.4\n%review\n"


@pytest.fixture
def document(db_session, upload_store, customer):
    document = DocumentVersionStore(db_session, upload_store).upload(
        customer.id, "tin.pdf", PDF, "application/pdf", "TIN_CERTIFICATE"
    )
    db_session.commit()
    return document


@pytest.fixture
def pipeline(db_session, outbox):
    return DocumentReviewPipeline(db_session, outbox=outbox)


def deliver(db_session, sink):
    NotificationDispatcher(sink).dispatch_pending(db_session)
    db_session.commit()
    return sink.sent


class TestReview:

    def test_accept(self, db_session, sink, pipeline, outbox, document, advisor, customer):
        reviewed = pipeline.review(document.id, "ACCEPTED", None, advisor.id)
        db_session.commit()

        assert reviewed.status == "ACCEPTED"
        assert reviewed.reviewed_by_user_id == advisor.id
        assert reviewed.reviewed_at is not None
        assert outbox.last_event.new_status == "ACCEPTED"

        [sent] = deliver(db_session, sink)
        assert sent["user_id"] == str(customer.id)
        assert sent["title"] == "Document Approved"
        assert sent["link"] == f"/documents/{document.id}"

    def test_reject_carries_note_to_owner(self, db_session, sink, pipeline, document, advisor):
        pipeline.review(document.id, "REJECTED", "TIN certificate is expired", advisor.id)
        db_session.commit()

        assert db_session.get(Document, document.id).rejection_note == "TIN certificate is expired"
        [sent] = deliver(db_session, sink)
        assert sent["title"] == "Document Rejected"
        assert "TIN certificate is expired" in sent["body"]

    def test_review_is_audited(self, db_session, pipeline, document, advisor):
        pipeline.review(document.id, "NEEDS_REUPLOAD", "Second page is missing", advisor.id)
        db_session.commit()

        entry = db_session.query(AuditLog).filter_by(action=AuditAction.REVIEW).one()
        assert entry.actor_id == advisor.id
        assert entry.entity_id == document.id
        assert entry.old_value == {"status": "PENDING"}
        assert entry.new_value["status"] == "NEEDS_REUPLOAD"

    def test_second_review_rejected(self, db_session, pipeline, document, advisor):
        pipeline.review(document.id, "ACCEPTED", None, advisor.id)
        db_session.commit()

        with pytest.raises(BadRequestError, match="already been reviewed"):
            pipeline.review(document.id, "REJECTED", "Changed my mind entirely", advisor.id)
        assert db_session.get(Document, document.id).status == "ACCEPTED"

    def test_review_lost_to_concurrent_reviewer(self, db_session, pipeline, outbox, document, advisor):
        assert document.status == "PENDING"
        db_session.execute(
            update(Document)
            .where(Document.id == document.id)
            .values(status="REJECTED")
            .execution_options(synchronize_session=False)
        )

        # The loaded row still reads PENDING, so only the conditional update can notice
        with pytest.raises(BadRequestError, match=r"already been reviewed$"):
            pipeline.review(document.id, "ACCEPTED", None, advisor.id)

        assert outbox.events == []
        assert db_session.query(AuditLog).filter_by(action=AuditAction.REVIEW).count() == 0
        db_session.expire_all()
        assert db_session.get(Document, document.id).status == "REJECTED"

    def test_outcome_must_be_reachable_from_pending(self):
        assert parse_review_outcome("NEEDS_REUPLOAD") == DocumentStatus.NEEDS_REUPLOAD
        with pytest.raises(BadRequestError, match="Invalid review status"):
            parse_review_outcome("PENDING")

    @pytest.mark.parametrize("outcome", ["REJECTED", "NEEDS_REUPLOAD"])
    @pytest.mark.parametrize("note", [None, "", "too short", "   short   "])
    def test_note_required(self, pipeline, document, advisor, outcome, note):
        with pytest.raises(BadRequestError, match="at least 10 characters"):
            pipeline.review(document.id, outcome, note, advisor.id)

    def test_ten_character_note_is_enough(self, db_session, pipeline, document, advisor):
        reviewed = pipeline.review(document.id, "REJECTED", "0123456789", advisor.id)
        assert reviewed.status == "REJECTED"

    @pytest.mark.parametrize("outcome", ["PENDING", "APPROVED", "accepted"])
    def test_invalid_outcome(self, pipeline, document, advisor, outcome):
        with pytest.raises(BadRequestError, match="Invalid review status"):
            pipeline.review(document.id, outcome, None, advisor.id)

    def test_unknown_document(self, pipeline, advisor):
        with pytest.raises(NotFoundError):
            pipeline.review(uuid4(), "ACCEPTED", None, advisor.id)

    def test_failed_review_publishes_nothing(self, db_session, pipeline, outbox, document, advisor):
        with pytest.raises(BadRequestError):
            pipeline.review(document.id, "REJECTED", "short", advisor.id)
        assert outbox.events == []
        assert db_session.query(OutboxEvent).count() == 0


class TestRequestAdditional:

    def test_notifies_target(self, db_session, sink, pipeline, customer, advisor):
        event = pipeline.request_additional(customer.id, "BANK_STATEMENT", "  Last 6 months please ", requester_id=advisor.id)
        db_session.commit()

        assert event.note == "Last 6 months please"
        [sent] = deliver(db_session, sink)
        assert sent["user_id"] == str(customer.id)
        assert sent["title"] == "Document Requested"
        assert sent["body"] == "Please upload: BANK STATEMENT. Last 6 months please"
        assert sent["link"] == "/documents"

    def test_link_points_at_filing(self, db_session, sink, pipeline, customer, advisor):
        filing = FilingLifecycleManager(db_session).initiate(customer.id, "2025-2026", "individual")
        pipeline.request_additional(customer.id, "NID", "Front and back", filing_id=filing.id)
        db_session.commit()

        sent = [s for s in deliver(db_session, sink) if s["title"] == "Document Requested"]
        assert sent[0]["link"] == f"/filings/{filing.id}/documents"

    def test_no_document_rows_created(self, db_session, pipeline, customer):
        pipeline.request_additional(customer.id, "NID", "Front and back")
        db_session.commit()
        assert db_session.query(Document).count() == 0

    def test_unknown_user(self, pipeline):
        with pytest.raises(NotFoundError, match="User"):
            pipeline.request_additional(uuid4(), "NID", "Front and back")

    def test_unknown_category(self, pipeline, customer):
        with pytest.raises(BadRequestError):
            pipeline.request_additional(customer.id, "PASSPORT", "Front and back")

    @pytest.mark.parametrize("note", ["", "   "])
    def test_note_required(self, pipeline, customer, note):
        with pytest.raises(BadRequestError, match="note"):
            pipeline.request_additional(customer.id, "NID", note)

    def test_filing_of_another_user(self, db_session, pipeline, customer, other_customer):
        filing = FilingLifecycleManager(db_session).initiate(other_customer.id, "2025-2026", "individual")
        db_session.commit()
        with pytest.raises(NotFoundError, match="Filing"):
            pipeline.request_additional(customer.id, "NID", "Front and back", filing_id=filing.id)
