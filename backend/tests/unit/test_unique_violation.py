"""Unit tests for unique-constraint detection on IntegrityError"""

import sqlite3

import pytest
from sqlalchemy.exc import IntegrityError

from filingdesk.database import is_unique_violation


def integrity_error(orig):
    return IntegrityError("INSERT INTO ...", {}, orig)


class PgUniqueViolation(Exception):
    pgcode = "23505"


class TestSqliteMessages:

    def test_columns_identify_the_constraint(self):
        exc = integrity_error(sqlite3.IntegrityError(
            "UNIQUE constraint failed: document.chain_root_id, document.version"
        ))
        assert is_unique_violation(exc, "uq_document_chain_version") is True
        assert is_unique_violation(exc, "uq_filing_owner_year") is False

    def test_other_unique_constraint_is_not_the_named_one(self):
        exc = integrity_error(sqlite3.IntegrityError("UNIQUE constraint failed: user.email"))
        assert is_unique_violation(exc) is True
        assert is_unique_violation(exc, "uq_filing_owner_year") is False

    def test_not_null_is_not_unique(self):
        exc = integrity_error(sqlite3.IntegrityError("NOT NULL constraint failed: filing.owner_user_id"))
        assert is_unique_violation(exc, "uq_filing_owner_year") is False


class TestPostgresMessages:

    @pytest.mark.parametrize("name,expected", [
        ("uq_filing_owner_year", True),
        ("uq_document_chain_version", False),
        (None, True),
    ])
    def test_constraint_name_in_message(self, name, expected):
        exc = integrity_error(PgUniqueViolation(
            'duplicate key value violates unique constraint "uq_filing_owner_year"'
        ))
        assert is_unique_violation(exc, name) is expected
