"""Tests for error values and query error classification (budget_kernel.domain.errors)."""

import pytest
from sqlalchemy.exc import OperationalError

from budget_kernel.domain.errors import (
    AnalyticsResult,
    DatabaseError,
    MissingRequiredFilter,
    NormalizationError,
    QueryTimeoutError,
    classify_query_error,
    is_statement_timeout,
)


class _PgError(Exception):
    def __init__(self, message, pgcode=None):
        super().__init__(message)
        self.pgcode = pgcode


class TestAnalyticsResult:
    def test_ok(self):
        result = AnalyticsResult.ok([1, 2])
        assert result.is_ok
        assert not result.is_err
        assert bool(result)
        assert result.unwrap() == [1, 2]

    def test_err(self):
        result = AnalyticsResult.err(MissingRequiredFilter(field="report_type"))
        assert result.is_err
        assert not result
        assert result.error.code == "MISSING_REQUIRED_FILTER"
        with pytest.raises(ValueError, match="MISSING_REQUIRED_FILTER"):
            result.unwrap()

    def test_ok_empty_list_is_still_ok(self):
        assert AnalyticsResult.ok([]).is_ok


class TestErrorValues:
    def test_codes(self):
        assert MissingRequiredFilter.code == "MISSING_REQUIRED_FILTER"
        assert DatabaseError.code == "DATABASE_ERROR"
        assert QueryTimeoutError.code == "TIMEOUT_ERROR"
        assert NormalizationError.code == "NORMALIZATION_ERROR"

    def test_retryable_defaults(self):
        assert DatabaseError("x").retryable
        assert QueryTimeoutError("x").retryable

    def test_missing_filter_message(self):
        assert MissingRequiredFilter("report_type").message == "Missing required filter: report_type"


class TestClassifyQueryError:
    def test_pgcode_on_wrapped_driver_error(self):
        orig = _PgError("canceling statement", pgcode="57014")
        exc = OperationalError("SELECT 1", {}, orig)
        assert is_statement_timeout(exc)
        assert isinstance(classify_query_error(exc), QueryTimeoutError)

    def test_message_signature(self):
        exc = RuntimeError("ERROR: canceling statement due to statement timeout")
        error = classify_query_error(exc, "uat query failed")
        assert isinstance(error, QueryTimeoutError)
        assert error.message == "uat query failed"
        assert error.cause is exc

    def test_timeout_in_cause_chain(self):
        try:
            try:
                raise _PgError("boom", pgcode="57014")
            except _PgError as inner:
                raise RuntimeError("wrapper") from inner
        except RuntimeError as outer:
            assert is_statement_timeout(outer)

    def test_other_errors_are_database_errors(self):
        exc = OperationalError("SELECT 1", {}, _PgError("connection refused", pgcode="08006"))
        error = classify_query_error(exc)
        assert isinstance(error, DatabaseError)
        assert error.retryable

    def test_empty_message_gets_default(self):
        assert classify_query_error(RuntimeError()).message == "Unknown database error"
