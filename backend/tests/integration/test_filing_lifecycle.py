"""Integration tests for the filing lifecycle

Covers initiation, status transitions, ON_HOLD, advisor assignment,
financial updates and the audit/outbox rows each mutation leaves behind.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import update

from filingdesk.audit.service import AuditAction
from filingdesk.errors import BadRequestError, ConflictError, NotFoundError
from filingdesk.filings.service import FilingLifecycleManager
from filingdesk.models import AuditLog, Filing, FilingStatusLog, Notification, OutboxEvent
from filingdesk.notifications.dispatcher import NotificationDispatcher
from filingdesk.notifications.sink import DatabaseNotificationSink


@pytest.fixture
def manager(db_session):
    return FilingLifecycleManager(db_session, require_complete_checklist=False)


@pytest.fixture
def filing(db_session, manager, customer):
    filing = manager.initiate(customer.id, "2025-2026", "individual")
    db_session.commit()
    return filing


def dispatch(db_session):
    result = NotificationDispatcher(DatabaseNotificationSink(db_session)).dispatch_pending(db_session)
    db_session.commit()
    return result


def notifications_for(db_session, user):
    return db_session.query(Notification).filter(Notification.user_id == user.id).all()


class TestInitiate:

    def test_creates_filing_in_initiated(self, db_session, filing, customer):
        assert filing.status == "INITIATED"
        assert filing.owner_user_id == customer.id
        assert filing.service_type == "individual"

        logs = db_session.query(FilingStatusLog).filter_by(filing_id=filing.id).all()
        assert len(logs) == 1
        assert (logs[0].from_status, logs[0].to_status) == ("INITIATED", "INITIATED")

    def test_audit_and_outbox_written(self, db_session, filing):
        audit = db_session.query(AuditLog).filter_by(entity_id=filing.id).one()
        assert audit.action == AuditAction.FILING_INITIATED

        event = db_session.query(OutboxEvent).one()
        assert event.event_type == "filing.initiated"
        assert event.payload["filing_id"] == str(filing.id)

    def test_duplicate_year_conflicts(self, db_session, manager, filing, customer):
        with pytest.raises(ConflictError):
            manager.initiate(customer.id, "2025-2026", "corporate")

        # The session is still usable after the failed insert
        other = manager.initiate(customer.id, "2026-2027", "corporate")
        db_session.commit()
        assert db_session.query(Filing).count() == 2
        assert other.assessment_year == "2026-2027"

    def test_same_year_different_owner_ok(self, db_session, manager, filing, other_customer):
        manager.initiate(other_customer.id, "2025-2026", "individual")
        db_session.commit()
        assert db_session.query(Filing).count() == 2

    def test_unknown_service_type(self, manager, customer):
        with pytest.raises(BadRequestError, match="Unknown service type"):
            manager.initiate(customer.id, "2025-2026", "partnership")

    def test_malformed_year(self, manager, customer):
        with pytest.raises(BadRequestError):
            manager.initiate(customer.id, "2025", "individual")

    def test_unknown_owner(self, manager):
        with pytest.raises(NotFoundError):
            manager.initiate(uuid4(), "2025-2026", "individual")


class TestTransitionScenario:
    """Initiate, move to DOCUMENTS_RECEIVED, owner is told once"""

    def test_documents_received_scenario(self, db_session, manager, filing, customer, ops_user):
        dispatch(db_session)
        before = len(notifications_for(db_session, customer))

        manager.transition(filing.id, "DOCUMENTS_RECEIVED", note="docs ok", actor_id=ops_user.id)
        db_session.commit()

        logs = manager.get_status_history(filing.id)
        assert len(logs) == 2
        assert logs[0].from_status == "INITIATED"
        assert logs[0].to_status == "DOCUMENTS_RECEIVED"
        assert logs[0].note == "docs ok"
        assert logs[0].changed_by_user_id == ops_user.id

        result = dispatch(db_session)
        assert result.dispatched == 1
        owner_notes = notifications_for(db_session, customer)
        assert len(owner_notes) == before + 1
        [status_note] = [n for n in owner_notes if n.title == "Filing Status Updated"]
        assert "DOCUMENTS RECEIVED" in status_note.body
        assert status_note.link == f"/filings/{filing.id}"

        assert manager.compute_progress(filing).progress == 33

    def test_audit_entry_for_status_change(self, db_session, manager, filing, ops_user):
        manager.transition(filing.id, "DOCUMENTS_PENDING", actor_id=ops_user.id)
        db_session.commit()

        audit = db_session.query(AuditLog).filter_by(action=AuditAction.STATUS_CHANGE).one()
        assert audit.actor_id == ops_user.id
        assert audit.old_value == {"status": "INITIATED"}
        assert audit.new_value["status"] == "DOCUMENTS_PENDING"


class TestTransitionRules:

    def test_illegal_transition_rejected(self, db_session, manager, filing, ops_user):
        manager.transition(filing.id, "E_FILED", actor_id=ops_user.id)
        db_session.commit()

        with pytest.raises(BadRequestError, match="Invalid transition"):
            manager.transition(filing.id, "UNDER_PREPARATION", actor_id=ops_user.id)

        db_session.rollback()
        assert db_session.get(Filing, filing.id).status == "E_FILED"
        assert len(manager.get_status_history(filing.id)) == 2

    def test_unknown_status(self, manager, filing):
        with pytest.raises(BadRequestError, match="Unknown filing status"):
            manager.transition(filing.id, "ARCHIVED")

    def test_missing_filing(self, manager):
        with pytest.raises(NotFoundError):
            manager.transition(uuid4(), "DOCUMENTS_PENDING")

    def test_status_changed_after_read_conflicts(self, db_session, manager, filing, ops_user):
        assert filing.status == "INITIATED"
        db_session.execute(
            update(Filing)
            .where(Filing.id == filing.id)
            .values(status="DOCUMENTS_PENDING")
            .execution_options(synchronize_session=False)
        )
        logs_before = db_session.query(FilingStatusLog).count()

        with pytest.raises(ConflictError, match="modified concurrently"):
            manager.transition(filing.id, "UNDER_PREPARATION", actor_id=ops_user.id)

        assert db_session.query(FilingStatusLog).count() == logs_before
        assert db_session.query(AuditLog).filter_by(action=AuditAction.STATUS_CHANGE).count() == 0
        assert db_session.query(OutboxEvent).filter_by(event_type="filing.status_changed").count() == 0

    def test_filed_at_is_stamped_once(self, db_session, manager, filing, ops_user):
        manager.transition(filing.id, "E_FILED", actor_id=ops_user.id)
        db_session.commit()
        first_stamp = db_session.get(Filing, filing.id).filed_at
        assert first_stamp is not None

        manager.transition(filing.id, "ON_HOLD", actor_id=ops_user.id)
        manager.transition(filing.id, "E_FILED", actor_id=ops_user.id)
        db_session.commit()

        assert db_session.get(Filing, filing.id).filed_at == first_stamp

    def test_acknowledged_at_stamped(self, db_session, manager, filing):
        manager.transition(filing.id, "ACKNOWLEDGED")
        db_session.commit()
        refreshed = db_session.get(Filing, filing.id)
        assert refreshed.acknowledged_at is not None
        assert refreshed.filed_at is None


class TestOnHold:

    def test_hold_remembers_and_resumes(self, db_session, manager, filing):
        manager.transition(filing.id, "UNDER_PREPARATION")
        manager.transition(filing.id, "ON_HOLD", note="waiting on customer")
        db_session.commit()

        held = db_session.get(Filing, filing.id)
        assert held.status == "ON_HOLD"
        assert held.held_from_status == "UNDER_PREPARATION"
        progress = manager.compute_progress(held)
        assert progress.on_hold is True
        assert progress.progress == 44

        manager.transition(filing.id, "REVIEW_READY")
        db_session.commit()
        resumed = db_session.get(Filing, filing.id)
        assert resumed.status == "REVIEW_READY"
        assert resumed.held_from_status is None

    def test_resume_to_illegal_target(self, db_session, manager, filing):
        manager.transition(filing.id, "REVIEW_READY")
        manager.transition(filing.id, "ON_HOLD")
        db_session.commit()

        with pytest.raises(BadRequestError):
            manager.transition(filing.id, "INITIATED")


class TestChecklistGate:

    class StubGate:
        def __init__(self, complete):
            self.complete = complete
            self.calls = 0

        def is_complete(self, filing):
            self.calls += 1
            return self.complete

    def test_incomplete_checklist_blocks_documents_received(self, db_session, filing):
        gate = self.StubGate(complete=False)
        manager = FilingLifecycleManager(db_session, checklist_gate=gate, require_complete_checklist=True)

        with pytest.raises(BadRequestError, match="required documents"):
            manager.transition(filing.id, "DOCUMENTS_RECEIVED")
        assert gate.calls == 1

    def test_gate_not_consulted_for_earlier_targets(self, db_session, filing):
        gate = self.StubGate(complete=False)
        manager = FilingLifecycleManager(db_session, checklist_gate=gate, require_complete_checklist=True)

        manager.transition(filing.id, "DOCUMENTS_PENDING")
        assert gate.calls == 0

    def test_complete_checklist_passes(self, db_session, filing):
        gate = self.StubGate(complete=True)
        manager = FilingLifecycleManager(db_session, checklist_gate=gate, require_complete_checklist=True)

        manager.transition(filing.id, "UNDER_PREPARATION")
        assert db_session.get(Filing, filing.id).status == "UNDER_PREPARATION"


class TestAssignAdvisor:

    def test_assign_notifies_owner_and_advisor(self, db_session, manager, filing, customer, advisor, ops_user):
        manager.assign_advisor(filing.id, advisor.id, actor_id=ops_user.id)
        db_session.commit()

        assert db_session.get(Filing, filing.id).advisor_user_id == advisor.id
        dispatch(db_session)
        advisor_notes = notifications_for(db_session, advisor)
        assert len(advisor_notes) == 1
        assert advisor_notes[0].link == f"/admin/filings/{filing.id}"
        assert any(n.title == "Advisor Assigned" for n in notifications_for(db_session, customer))

    def test_customer_cannot_be_advisor(self, db_session, manager, filing, other_customer):
        with pytest.raises(BadRequestError):
            manager.assign_advisor(filing.id, other_customer.id)
        db_session.rollback()
        assert db_session.get(Filing, filing.id).advisor_user_id is None

    def test_inactive_advisor_rejected(self, manager, filing, inactive_advisor):
        with pytest.raises(BadRequestError):
            manager.assign_advisor(filing.id, inactive_advisor.id)

    def test_unknown_advisor_rejected(self, manager, filing):
        with pytest.raises(BadRequestError):
            manager.assign_advisor(filing.id, uuid4())


class TestUpdateFinancials:

    def test_partial_update(self, db_session, manager, filing):
        deadline = datetime(2026, 11, 30, tzinfo=timezone.utc)
        manager.update_financials(filing.id, {"total_income": "1250000.50", "deadline": deadline})
        db_session.commit()

        manager.update_financials(filing.id, {"tax_paid": Decimal("5000")})
        db_session.commit()

        refreshed = db_session.get(Filing, filing.id)
        assert refreshed.total_income == Decimal("1250000.50")
        assert refreshed.tax_paid == Decimal("5000")
        assert refreshed.status == "INITIATED"
        assert len(manager.get_status_history(filing.id)) == 1
        assert db_session.query(OutboxEvent).count() == 1  # only the initiation event

    def test_unknown_field_rejected(self, manager, filing):
        with pytest.raises(BadRequestError):
            manager.update_financials(filing.id, {"status": "COMPLETED"})

    def test_bad_amount_rejected(self, manager, filing):
        with pytest.raises(BadRequestError):
            manager.update_financials(filing.id, {"tax_payable": "lots"})

    def test_days_remaining_from_deadline(self, db_session, manager, filing):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        manager.update_financials(filing.id, {"deadline": now + timedelta(days=10)})
        db_session.commit()
        assert manager.compute_progress(filing, now=now).days_remaining == 10


class TestReads:

    def test_get_for_owner_hides_other_owners(self, manager, filing, other_customer):
        with pytest.raises(NotFoundError):
            manager.get_for_owner(other_customer.id, filing.id)

    def test_list_for_owner_filters(self, db_session, manager, filing, customer):
        manager.initiate(customer.id, "2026-2027", "individual")
        db_session.commit()

        page = manager.list_for_owner(customer.id, assessment_year="2026-2027")
        assert page.total == 1
        assert page.items[0].assessment_year == "2026-2027"
        assert manager.list_for_owner(customer.id).total == 2

    def test_stats(self, db_session, manager, filing, other_customer):
        other = manager.initiate(other_customer.id, "2025-2026", "corporate")
        manager.transition(other.id, "COMPLETED")
        db_session.commit()

        stats = manager.get_stats()
        assert stats["total"] == 2
        assert stats["by_type"] == {"individual": 1, "corporate": 1}
        assert stats["completed"] == 1
        assert stats["active"] == 1
        assert stats["on_hold"] == 0


def test_outbox_receives_events_in_order(db_session, customer, outbox):
    manager = FilingLifecycleManager(db_session, outbox=outbox, require_complete_checklist=False)

    filing = manager.initiate(customer.id, "2025-2026", "nrb")
    manager.transition(filing.id, "DOCUMENTS_PENDING")

    assert [e.event_type for e in outbox.events] == ["filing.initiated", "filing.status_changed"]
    assert outbox.last_event.to_status == "DOCUMENTS_PENDING"
