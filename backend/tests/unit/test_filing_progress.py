"""Unit tests for filing progress computation"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from filingdesk.domain.filings import (
    FilingStatus,
    STATUS_ORDER,
    compute_progress,
    days_remaining,
    progress_percent,
    parse_service_type,
    validate_assessment_year,
    ServiceType,
)
from filingdesk.errors import BadRequestError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_filing(status="INITIATED", held_from=None, deadline=None):
    return SimpleNamespace(status=status, held_from_status=held_from, deadline=deadline)


def log_row(to_status, at, from_status="INITIATED"):
    return SimpleNamespace(from_status=from_status, to_status=to_status, created_at=at)


class TestProgressPercent:

    @pytest.mark.parametrize("status,expected", [
        (FilingStatus.INITIATED, 11),
        (FilingStatus.DOCUMENTS_RECEIVED, 33),
        (FilingStatus.REVIEW_READY, 56),
        (FilingStatus.COMPLETED, 100),
    ])
    def test_percent_by_position(self, status, expected):
        assert progress_percent(status) == expected

    def test_no_linear_status_is_zero(self):
        assert progress_percent(None) == 0
        assert progress_percent(FilingStatus.ON_HOLD) == 0


class TestDaysRemaining:

    def test_no_deadline(self):
        assert days_remaining(None, NOW) is None

    def test_partial_day_rounds_up(self):
        assert days_remaining(NOW + timedelta(hours=36), NOW) == 2

    def test_exact_days(self):
        assert days_remaining(NOW + timedelta(days=3), NOW) == 3

    def test_past_deadline_is_zero(self):
        assert days_remaining(NOW - timedelta(days=5), NOW) == 0

    def test_naive_deadline_treated_as_utc(self):
        naive = (NOW + timedelta(days=1)).replace(tzinfo=None)
        assert days_remaining(naive, NOW) == 1


class TestComputeProgress:

    def test_documents_received_is_33_percent(self):
        result = compute_progress(make_filing("DOCUMENTS_RECEIVED"), now=NOW)
        assert result.progress == 33
        assert result.on_hold is False
        assert result.days_remaining is None

    def test_status_steps_mark_completed_and_current(self):
        result = compute_progress(make_filing("UNDER_PREPARATION"), now=NOW)
        assert [s.status for s in result.status_steps] == STATUS_ORDER
        completed = [s.status for s in result.status_steps if s.completed]
        assert completed == STATUS_ORDER[:4]
        current = [s.status for s in result.status_steps if s.current]
        assert current == [FilingStatus.UNDER_PREPARATION]

    def test_on_hold_reports_held_from_progress(self):
        result = compute_progress(make_filing("ON_HOLD", held_from="DOCUMENTS_RECEIVED"), now=NOW)
        assert result.on_hold is True
        assert result.progress == 33

    def test_entered_at_uses_first_entry(self):
        first = NOW - timedelta(days=10)
        again = NOW - timedelta(days=2)
        log = [
            log_row("DOCUMENTS_PENDING", again, from_status="DOCUMENTS_RECEIVED"),
            log_row("INITIATED", first - timedelta(days=1)),
            log_row("DOCUMENTS_PENDING", first),
        ]
        result = compute_progress(make_filing("DOCUMENTS_PENDING"), log, now=NOW)
        steps = {s.status: s for s in result.status_steps}
        assert steps[FilingStatus.DOCUMENTS_PENDING].entered_at == first
        assert steps[FilingStatus.COMPLETED].entered_at is None

    def test_deadline_feeds_days_remaining(self):
        result = compute_progress(make_filing(deadline=NOW + timedelta(days=7)), now=NOW)
        assert result.days_remaining == 7


class TestServiceType:

    def test_parse_known_types(self):
        assert parse_service_type("individual") == ServiceType.INDIVIDUAL
        assert parse_service_type("NRB") == ServiceType.NRB

    def test_unknown_type_rejected(self):
        with pytest.raises(BadRequestError):
            parse_service_type("partnership")

    @pytest.mark.parametrize("year", ["2025-2026", "1999-2000"])
    def test_valid_assessment_year(self, year):
        assert validate_assessment_year(year) == year

    @pytest.mark.parametrize("year", ["2025", "2025/2026", "25-26", "", "2025-2026x"])
    def test_invalid_assessment_year(self, year):
        with pytest.raises(BadRequestError):
            validate_assessment_year(year)
