"""Integration tests for the required-document checklist"""

from uuid import uuid4

import pytest

from filingdesk.documents.checklist import ChecklistEngine
from filingdesk.documents.review import DocumentReviewPipeline
from filingdesk.documents.version_store import DocumentVersionStore
from filingdesk.errors import NotFoundError
from filingdesk.filings.service import FilingLifecycleManager

PDF = b"%PDF-1.4\n%checklist\n"


@pytest.fixture
def store(db_session, upload_store):
    return DocumentVersionStore(db_session, upload_store)


@pytest.fixture
def pipeline(db_session):
    return DocumentReviewPipeline(db_session)


@pytest.fixture
def engine(db_session):
    return ChecklistEngine(db_session)


def make_filing(db_session, owner, service_type="individual"):
    filing = FilingLifecycleManager(db_session).initiate(owner.id, "2025-2026", service_type)
    db_session.commit()
    return filing


def upload_to(store, filing, category, name="doc.pdf"):
    return store.upload(filing.owner_user_id, name, PDF, "application/pdf", category, filing_id=filing.id)


def statuses(checklist):
    return {item.category: item.status for item in checklist.items}


class TestChecklist:

    def test_empty_filing(self, db_session, engine, customer):
        filing = make_filing(db_session, customer)

        checklist = engine.compute_checklist(filing.id)
        assert [item.category for item in checklist.items] == [
            "NID", "TIN_CERTIFICATE", "SALARY_CERTIFICATE", "BANK_STATEMENT",
        ]
        assert set(statuses(checklist).values()) == {"NOT_UPLOADED"}
        assert checklist.completion_rate == 0
        assert checklist.is_complete is False

    def test_half_complete(self, db_session, store, pipeline, engine, customer, advisor):
        filing = make_filing(db_session, customer)
        nid = upload_to(store, filing, "NID")
        tin = upload_to(store, filing, "TIN_CERTIFICATE")
        pipeline.review(nid.id, "ACCEPTED", None, advisor.id)
        pipeline.review(tin.id, "ACCEPTED", None, advisor.id)
        db_session.commit()

        checklist = engine.compute_checklist(filing.id, owner_user_id=customer.id)
        assert statuses(checklist) == {
            "NID": "ACCEPTED",
            "TIN_CERTIFICATE": "ACCEPTED",
            "SALARY_CERTIFICATE": "NOT_UPLOADED",
            "BANK_STATEMENT": "NOT_UPLOADED",
        }
        assert checklist.accepted_count == 2
        assert checklist.required_count == 4
        assert checklist.completion_rate == 50

    def test_reports_head_of_chain(self, db_session, store, pipeline, engine, customer, advisor):
        filing = make_filing(db_session, customer)
        v1 = upload_to(store, filing, "SALARY_CERTIFICATE")
        pipeline.review(v1.id, "REJECTED", "Certificate is not signed", advisor.id)
        v2 = store.reupload(customer.id, v1.id, "signed.pdf", PDF, "application/pdf")
        pipeline.review(v2.id, "ACCEPTED", None, advisor.id)
        db_session.commit()

        [item] = [i for i in engine.compute_checklist(filing.id).items if i.category == "SALARY_CERTIFICATE"]
        assert item.status == "ACCEPTED"
        assert item.document_id == v2.id
        assert item.chain_root_id == v1.id
        assert item.version == 2

    def test_accepted_chain_wins_over_newer_pending(self, db_session, store, pipeline, engine, customer, advisor):
        filing = make_filing(db_session, customer)
        first = upload_to(store, filing, "NID")
        pipeline.review(first.id, "ACCEPTED", None, advisor.id)
        upload_to(store, filing, "NID", name="nid-again.pdf")
        db_session.commit()

        [item] = [i for i in engine.compute_checklist(filing.id).items if i.category == "NID"]
        assert item.status == "ACCEPTED"
        assert item.document_id == first.id

    def test_only_filing_documents_count(self, db_session, store, pipeline, engine, customer, advisor):
        filing = make_filing(db_session, customer)
        loose = store.upload(customer.id, "nid.pdf", PDF, "application/pdf", "NID")
        pipeline.review(loose.id, "ACCEPTED", None, advisor.id)
        db_session.commit()

        assert statuses(engine.compute_checklist(filing.id))["NID"] == "NOT_UPLOADED"

    def test_deleted_chain_not_counted(self, db_session, store, engine, customer):
        filing = make_filing(db_session, customer)
        doc = upload_to(store, filing, "BANK_STATEMENT")
        db_session.commit()
        store.delete(customer.id, doc.id)
        db_session.commit()

        assert statuses(engine.compute_checklist(filing.id))["BANK_STATEMENT"] == "NOT_UPLOADED"

    def test_optional_categories_ignored(self, db_session, store, engine, customer):
        filing = make_filing(db_session, customer)
        upload_to(store, filing, "RENTAL_AGREEMENT")
        db_session.commit()

        checklist = engine.compute_checklist(filing.id)
        assert "RENTAL_AGREEMENT" not in statuses(checklist)
        assert checklist.required_count == 4

    @pytest.mark.parametrize("service_type,first", [
        ("corporate", "TRADE_LICENSE"),
        ("nrb", "NID"),
    ])
    def test_service_type_decides_categories(self, db_session, engine, customer, service_type, first):
        filing = make_filing(db_session, customer, service_type)
        checklist = engine.compute_checklist(filing.id)
        assert checklist.items[0].category == first
        assert "ASSET_STATEMENT" in statuses(checklist)

    def test_other_owner_gets_not_found(self, db_session, engine, customer, other_customer):
        filing = make_filing(db_session, customer)
        with pytest.raises(NotFoundError):
            engine.compute_checklist(filing.id, owner_user_id=other_customer.id)

    def test_unknown_filing(self, engine):
        with pytest.raises(NotFoundError):
            engine.compute_checklist(uuid4())
