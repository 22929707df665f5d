"""Tests for the structured logging system (budget_kernel/logging_config.py)."""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from budget_kernel.domain.values import Currency
from budget_kernel.exceptions import MissingFactorError
from budget_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite config."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "budget_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("aggregated", extra={"row_count": 42, "use_case_kind": "heatmap"})

        record = _parse_log(stream)
        assert record["row_count"] == 42
        assert record["use_case_kind"] == "heatmap"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        with LogContext.bind(use_case="get_heatmap_data"):
            logger.info("test_msg")

        record = _parse_log(stream)
        assert record["use_case"] == "get_heatmap_data"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_kernel_exception_code_extracted(self):
        """Budget kernel exceptions carry a .code attribute and structured fields."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")

        try:
            raise MissingFactorError("cpi", "2021")
        except MissingFactorError:
            logger.error("factor_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "MISSING_FACTOR"
        assert record["exc_type"] == "MissingFactorError"
        assert record["exc_dimension"] == "cpi"
        assert record["exc_period"] == "2021"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "use_case" not in record

    def test_domain_values_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info(
            "with_values",
            extra={
                "request": uid,
                "amount": Decimal("12.50"),
                "currency": Currency.EUR,
                "at": datetime(2024, 1, 1, tzinfo=timezone.utc),
            },
        )

        record = _parse_log(stream)
        assert record["request"] == str(uid)
        assert record["amount"] == "12.50"
        assert record["currency"] == "EUR"
        assert record["at"] == "2024-01-01T00:00:00+00:00"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # Default level is INFO, so the debug record is dropped
        assert len(logs) == 2
        for record in logs:
            assert {"ts", "level", "logger", "message"} <= set(record)


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_bind_nests(self):
        with LogContext.bind(use_case="outer"):
            with LogContext.bind(use_case="inner"):
                assert LogContext.get_all() == {"use_case": "inner"}
            assert LogContext.get_all() == {"use_case": "outer"}

    def test_clear(self):
        with LogContext.bind(use_case="x"):
            LogContext.clear()
            assert LogContext.get_all() == {}

    def test_bind_restores_none(self):
        """bind() restores to None if there was no previous value."""
        assert "use_case" not in LogContext.get_all()
        with LogContext.bind(use_case="temp"):
            assert LogContext.get_all()["use_case"] == "temp"
        assert "use_case" not in LogContext.get_all()

    def test_bind_ignores_unknown_fields(self):
        with LogContext.bind(not_a_field="x", use_case="u"):
            assert LogContext.get_all() == {"use_case": "u"}


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        root = logging.getLogger("budget_kernel")
        assert len(root.handlers) == 1

    def test_get_logger_returns_child(self):
        logger = get_logger("modules.analytics.usecases")
        assert logger.name == "budget_kernel.modules.analytics.usecases"

    def test_logger_hierarchy(self):
        """Child loggers inherit the budget_kernel root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "budget_kernel.deep.nested.module"
