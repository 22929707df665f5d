"""
Pure domain layer.

This module contains the value types of the analytics core with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the injectable Clock)
- I/O

All domain objects are immutable and deterministic.
"""

from budget_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from budget_kernel.domain.errors import (
    AnalyticsError,
    AnalyticsResult,
    DatabaseError,
    MissingRequiredFilter,
    NormalizationError,
    QueryTimeoutError,
    classify_query_error,
)
from budget_kernel.domain.filters import (
    AnalyticsFilter,
    ExclusionFilter,
    ReportPeriod,
    SqlBuildContext,
    needs_entity_join,
    needs_uat_join,
)
from budget_kernel.domain.periods import (
    ParsedPeriod,
    PeriodInterval,
    PeriodSelection,
    YearRange,
    extract_year,
    extract_year_range,
    parse_month,
    parse_month_periods,
    parse_period,
    parse_quarter,
    parse_quarter_periods,
    parse_years,
)
from budget_kernel.domain.values import (
    AccountCategory,
    Currency,
    Frequency,
    NormalizationMode,
    to_numeric_ids,
)

__all__ = [
    "AccountCategory",
    "AnalyticsError",
    "AnalyticsFilter",
    "AnalyticsResult",
    "Clock",
    "Currency",
    "DatabaseError",
    "DeterministicClock",
    "ExclusionFilter",
    "Frequency",
    "MissingRequiredFilter",
    "NormalizationError",
    "NormalizationMode",
    "ParsedPeriod",
    "PeriodInterval",
    "PeriodSelection",
    "QueryTimeoutError",
    "ReportPeriod",
    "SqlBuildContext",
    "SystemClock",
    "YearRange",
    "classify_query_error",
    "extract_year",
    "extract_year_range",
    "needs_entity_join",
    "needs_uat_join",
    "parse_month",
    "parse_month_periods",
    "parse_period",
    "parse_quarter",
    "parse_quarter_periods",
    "parse_years",
    "to_numeric_ids",
]
