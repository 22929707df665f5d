"""
Analytics Repository Adapters (``budget_modules.analytics.repository``).

Responsibility
--------------
Implement the repository ports over SQLAlchemy: compile the filter into
WHERE/HAVING text, run the matching kernel selector in a worker thread
inside its own read transaction, and convert database failures into
``DatabaseError`` / ``QueryTimeoutError`` values.

Architecture position
---------------------
**Modules layer -- shell.**  Imports the condition compiler from
``budget_engines`` and the selectors from ``budget_kernel``.  Each call
opens one session from the injected factory and closes it before
returning; the use cases never see a session.

Invariants enforced
-------------------
* Repositories never raise for database failures; the result carries the
  error.
* The selectors run with ``SET LOCAL statement_timeout`` on PostgreSQL, so
  the timeout ends with the read transaction.

Failure modes
-------------
* ``QueryTimeoutError`` -- the statement timeout fired (SQLSTATE 57014).
* ``DatabaseError`` -- any other SQLAlchemy error, or a capped query
  matched more rows than its cap (``uat_max_results``,
  ``county_max_results``, ``entity_max_rows``); partial rows are never
  returned.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budget_engines.conditions import (
    compile_conditions,
    compile_having_conditions,
    get_sum_expression,
    to_having_clause,
    to_where_clause,
)
from budget_engines.normalization import SeriesPoint
from budget_kernel.domain.errors import AnalyticsResult, DatabaseError, classify_query_error
from budget_kernel.domain.filters import (
    AnalyticsFilter,
    SqlBuildContext,
    needs_entity_join,
    needs_uat_join,
)
from budget_kernel.domain.periods import format_period_label
from budget_kernel.domain.values import Frequency
from budget_kernel.logging_config import get_logger
from budget_kernel.selectors import (
    CompiledClauses,
    EntitySelector,
    HeatmapSelector,
    SeriesSelector,
)
from budget_modules.analytics.config import AnalyticsConfig
from budget_modules.analytics.models import (
    EntityAnalyticsRow,
    HeatmapCountyDataPoint,
    HeatmapUATDataPoint,
)

logger = get_logger("modules.analytics.repository")

T = TypeVar("T")

_PERIOD_COLUMNS = {
    Frequency.MONTH: "eli.month",
    Frequency.QUARTER: "eli.quarter",
    Frequency.YEAR: None,
}


def compile_clauses(
    filter: AnalyticsFilter,
    *,
    entity_join: bool,
    uat_join: bool,
    with_having: bool = True,
) -> CompiledClauses:
    """Compile ``filter`` for a query with the given optional joins."""
    context = SqlBuildContext(has_entity_join=entity_join, has_uat_join=uat_join)
    having = to_having_clause(compile_having_conditions(filter)) if with_having else ""
    return CompiledClauses(
        where=to_where_clause(compile_conditions(filter, context)),
        having=having,
        entity_join=entity_join,
        uat_join=uat_join,
    )


class _SelectorRepository:
    """Runs one selector call per request in a worker thread."""

    query_name = "analytics"

    def __init__(
        self,
        session_factory: Callable[[], Session],
        config: AnalyticsConfig | None = None,
    ):
        self._session_factory = session_factory
        self._config = config or AnalyticsConfig()

    def _execute(self, work: Callable[[Session], T]) -> T:
        session = self._session_factory()
        try:
            with session.begin():
                return work(session)
        finally:
            session.close()

    async def _run(
        self,
        work: Callable[[Session], list[Any]],
        row_cap: int | None = None,
    ) -> AnalyticsResult[list[Any]]:
        """Run ``work``; a capped query that returns more than ``row_cap`` rows fails."""
        try:
            rows = await asyncio.to_thread(self._execute, work)
        except SQLAlchemyError as exc:
            error = classify_query_error(exc, f"{self.query_name} query failed: {exc}")
            logger.error(
                "analytics_query_failed",
                extra={"query": self.query_name, "error_code": error.code},
                exc_info=True,
            )
            return AnalyticsResult.err(error)

        if row_cap is not None and len(rows) > row_cap:
            logger.error(
                "analytics_row_cap_exceeded",
                extra={"query": self.query_name, "row_cap": row_cap},
            )
            return AnalyticsResult.err(
                DatabaseError(
                    message=(
                        f"{self.query_name} query matched more than {row_cap} rows;"
                        " narrow the filter"
                    ),
                    retryable=False,
                )
            )

        logger.debug(
            "analytics_query_completed",
            extra={"query": self.query_name, "row_count": len(rows)},
        )
        return AnalyticsResult.ok(rows)


class SqlUATAnalyticsRepository(_SelectorRepository):
    query_name = "uat_heatmap"

    async def get_heatmap_data(
        self, filter: AnalyticsFilter
    ) -> AnalyticsResult[list[HeatmapUATDataPoint]]:
        clauses = compile_clauses(filter, entity_join=needs_entity_join(filter), uat_join=True)
        sum_expression = get_sum_expression(filter.report_period.frequency)
        config = self._config
        return await self._run(
            lambda session: HeatmapSelector(session).uat_rows(
                clauses,
                sum_expression,
                limit=config.uat_max_results + 1,
                timeout_ms=config.query_timeout_ms,
            ),
            row_cap=config.uat_max_results,
        )


class SqlCountyAnalyticsRepository(_SelectorRepository):
    query_name = "county_heatmap"

    async def get_heatmap_data(
        self, filter: AnalyticsFilter
    ) -> AnalyticsResult[list[HeatmapCountyDataPoint]]:
        clauses = compile_clauses(
            filter,
            entity_join=needs_entity_join(filter),
            uat_join=needs_uat_join(filter),
        )
        sum_expression = get_sum_expression(filter.report_period.frequency)
        config = self._config
        return await self._run(
            lambda session: HeatmapSelector(session).county_rows(
                clauses,
                sum_expression,
                limit=config.county_max_results + 1,
                timeout_ms=config.query_timeout_ms,
            ),
            row_cap=config.county_max_results,
        )


class SqlEntityAnalyticsRepository(_SelectorRepository):
    query_name = "entity_analytics"

    async def get_entity_rows(
        self, filter: AnalyticsFilter
    ) -> AnalyticsResult[list[EntityAnalyticsRow]]:
        # Aggregate bounds are applied to normalized totals by the use case.
        clauses = compile_clauses(filter, entity_join=True, uat_join=True, with_having=False)
        sum_expression = get_sum_expression(filter.report_period.frequency)
        config = self._config
        return await self._run(
            lambda session: EntitySelector(session).rows(
                clauses,
                sum_expression,
                limit=config.entity_max_rows + 1,
                timeout_ms=config.query_timeout_ms,
            ),
            row_cap=config.entity_max_rows,
        )


class SqlAnalyticsSeriesRepository(_SelectorRepository):
    query_name = "analytics_series"

    async def get_aggregated_series(
        self, filter: AnalyticsFilter
    ) -> AnalyticsResult[list[SeriesPoint]]:
        frequency = filter.report_period.frequency
        uat_join = needs_uat_join(filter)
        clauses = compile_clauses(
            filter,
            entity_join=needs_entity_join(filter) or uat_join,
            uat_join=uat_join,
        )
        sum_expression = get_sum_expression(frequency)
        timeout_ms = self._config.query_timeout_ms

        def work(session: Session) -> list[SeriesPoint]:
            buckets = SeriesSelector(session).series(
                clauses,
                sum_expression,
                period_column=_PERIOD_COLUMNS[frequency],
                timeout_ms=timeout_ms,
            )
            return [
                SeriesPoint(format_period_label(b.year, b.period, frequency), b.amount)
                for b in buckets
            ]

        return await self._run(work)
