"""
Module: budget_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the import surface for budget_services
    and budget_modules.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import budget_kernel.domain, budget_kernel.exceptions and
    budget_kernel.logging_config.  MUST NOT import budget_services or
    budget_modules.

Invariants enforced:
    - Determinism: identical inputs always produce identical outputs.
    - Decimal-only arithmetic for amounts and factors.

Audit relevance:
    Engine invocations are traced via ``@traced_engine`` (see
    ``budget_engines.tracer``), emitting BUDGET_ENGINE_TRACE records.
"""

from budget_engines.conditions import (
    ConditionBuilder,
    compile_conditions,
    compile_having_conditions,
    get_amount_column,
    get_sum_expression,
    period_conditions,
    to_where_clause,
)
from budget_engines.factor_maps import FactorDatasets, generate_factor_map
from budget_engines.normalization import (
    AggregatedPoint,
    NormalizationFactors,
    SeriesPoint,
    TransformationOptions,
    normalize_series,
    transform_points,
)

__all__ = [
    "AggregatedPoint",
    "ConditionBuilder",
    "FactorDatasets",
    "NormalizationFactors",
    "SeriesPoint",
    "TransformationOptions",
    "compile_conditions",
    "compile_having_conditions",
    "generate_factor_map",
    "get_amount_column",
    "get_sum_expression",
    "normalize_series",
    "period_conditions",
    "to_where_clause",
    "transform_points",
]
