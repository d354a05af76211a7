"""Unit tests for the document review state machine and checklist map"""

import pytest
from filingdesk.domain.documents import (
    ALLOWED_TRANSITIONS,
    CHECKLIST_MAP,
    DocumentCategory,
    DocumentStatus,
    can_transition,
    category_label,
    is_reuploadable,
    required_categories,
)
from filingdesk.domain.filings import ServiceType


class TestDocumentStatusStateMachine:
    """Review transitions per document version"""

    def test_new_versions_start_pending(self):
        assert can_transition(None, DocumentStatus.PENDING) is True
        assert can_transition(None, DocumentStatus.ACCEPTED) is False

    @pytest.mark.parametrize("outcome", [
        DocumentStatus.ACCEPTED,
        DocumentStatus.REJECTED,
        DocumentStatus.NEEDS_REUPLOAD,
    ])
    def test_pending_to_outcome(self, outcome):
        assert can_transition(DocumentStatus.PENDING, outcome) is True

    @pytest.mark.parametrize("terminal", [
        DocumentStatus.ACCEPTED,
        DocumentStatus.REJECTED,
        DocumentStatus.NEEDS_REUPLOAD,
    ])
    def test_outcomes_are_terminal(self, terminal):
        """A reviewed version never changes; re-upload creates a new one"""
        assert ALLOWED_TRANSITIONS[terminal] == []
        assert can_transition(terminal, DocumentStatus.PENDING) is False

    def test_pending_cannot_stay_pending(self):
        assert can_transition(DocumentStatus.PENDING, DocumentStatus.PENDING) is False

    @pytest.mark.parametrize("status,expected", [
        ("REJECTED", True),
        ("NEEDS_REUPLOAD", True),
        ("PENDING", False),
        ("ACCEPTED", False),
    ])
    def test_is_reuploadable(self, status, expected):
        assert is_reuploadable(status) is expected


class TestChecklistMap:

    def test_every_service_type_has_four_categories(self):
        for service_type in ServiceType:
            assert len(required_categories(service_type)) == 4

    def test_individual_order(self):
        assert required_categories(ServiceType.INDIVIDUAL) == [
            DocumentCategory.NID,
            DocumentCategory.TIN_CERTIFICATE,
            DocumentCategory.SALARY_CERTIFICATE,
            DocumentCategory.BANK_STATEMENT,
        ]

    def test_required_categories_returns_copy(self):
        categories = required_categories("corporate")
        categories.clear()
        assert CHECKLIST_MAP[ServiceType.CORPORATE]

    def test_category_label(self):
        assert category_label(DocumentCategory.TIN_CERTIFICATE) == "TIN CERTIFICATE"
        assert category_label("NID") == "NID"
