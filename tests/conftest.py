"""
Pytest fixtures for the budget analytics test suite.

Provides:
- Structured logging configured once per session, LogContext cleared per test
- ``captured_logs`` for asserting on structured log records
- A deterministic clock
- A SQLite-backed warehouse for selector and repository tests

No external database is required; selector tests run against a SQLite file
in the test's temporary directory.  Builders live in ``tests.factories``.
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO

import pytest

from budget_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from budget_kernel.domain.clock import DeterministicClock
from budget_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from tests.factories import make_filter, seed_execution_data


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture budget_kernel logs as parsed JSON dicts.

    Usage::

        async def test_something(captured_logs, deps):
            await get_heatmap_data(deps, filter)
            logs = captured_logs()
            assert any(r["message"] == "analytics_aggregated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("budget_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Clock and filters
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def year_filter():
    return make_filter()


# =============================================================================
# Warehouse (SQLite)
# =============================================================================


@pytest.fixture
def warehouse_url(tmp_path):
    """Engine bound to a fresh SQLite file with the warehouse tables."""
    url = f"sqlite:///{tmp_path / 'warehouse.db'}"
    init_engine_from_url(url)
    create_tables()
    yield url
    reset_engine()


@pytest.fixture
def session_factory(warehouse_url):
    return get_session_factory()


@pytest.fixture
def session(session_factory):
    s = session_factory()
    yield s
    s.rollback()
    s.close()


@pytest.fixture
def seeded_session_factory(session_factory):
    """Session factory over a committed copy of ``seed_execution_data``."""
    s = session_factory()
    with s.begin():
        seed_execution_data(s)
    s.close()
    return session_factory
