"""
Analytics Use Cases (``budget_modules.analytics.usecases``).

Responsibility
--------------
Orchestrate the aggregation queries: validate the filter, fetch raw rows
once through a repository port, generate normalization factors once,
run the transformation pipeline, and return typed results.

Every use case follows the same state machine::

    validate -> fetch -> (empty? ok([])) -> factors -> transform -> ok

Architecture position
---------------------
**Modules layer** -- async orchestration over pure engines.  The only
awaited I/O is the repository fetch and the factor generation, in that
order, each exactly once per call (once per series for
``get_analytics_series``).

Invariants enforced
-------------------
* A missing ``report_type`` returns ``MissingRequiredFilter`` before the
  repository is touched.
* No rows -> ``ok([])`` without calling the factor provider.
* Errors are returned as values.  Provider and pipeline exceptions become
  ``NormalizationError``; repository failures arrive as values already.
* No partial results: one failing period fails the whole call.

Failure modes
-------------
* ``MissingRequiredFilter`` -- filter validation.
* ``DatabaseError`` / ``QueryTimeoutError`` -- passed through from the
  repository.
* ``NormalizationError`` -- provider raised, or a factor was missing.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Generic, TypeVar

from budget_engines.normalization import (
    AggregatedPoint,
    NormalizationFactors,
    TransformationOptions,
    normalize_series,
    transform_points,
)
from budget_kernel.domain.clock import Clock, SystemClock
from budget_kernel.domain.errors import (
    AnalyticsResult,
    MissingRequiredFilter,
    NormalizationError,
)
from budget_kernel.domain.filters import AnalyticsFilter
from budget_kernel.domain.periods import YearRange, extract_year_range
from budget_kernel.domain.values import Frequency
from budget_kernel.exceptions import NormalizationFailure
from budget_kernel.logging_config import LogContext, get_logger
from budget_modules.analytics.config import AnalyticsConfig
from budget_modules.analytics.models import (
    DEFAULT_ENTITY_SORT,
    AnalyticsDataPoint,
    AnalyticsSeries,
    AnalyticsSeriesInput,
    Axis,
    EntityAnalyticsConnection,
    EntityAnalyticsDataPoint,
    EntityAnalyticsInput,
    EntityAnalyticsRow,
    EntityAnalyticsSort,
    EntitySortField,
    HeatmapCountyDataPoint,
    HeatmapUATDataPoint,
    NormalizationParams,
    NormalizedCountyHeatmapDataPoint,
    NormalizedUATHeatmapDataPoint,
    PageInfo,
    SortDirection,
)
from budget_modules.analytics.ports import NormalizationFactorProvider

logger = get_logger("modules.analytics.usecases")

R = TypeVar("R")


@dataclass(frozen=True)
class AnalyticsDeps(Generic[R]):
    """Collaborators of a use case: one repository and the factor provider."""

    repo: R
    normalization: NormalizationFactorProvider
    clock: Clock = field(default_factory=SystemClock)
    config: AnalyticsConfig = field(default_factory=AnalyticsConfig)

    def fallback_year(self) -> int:
        if self.config.fallback_year is not None:
            return self.config.fallback_year
        return self.clock.current_year()


# =============================================================================
# Shared steps
# =============================================================================


def validate_filter(filter: AnalyticsFilter) -> MissingRequiredFilter | None:
    """``report_type`` is optional on the filter type but required here."""
    if filter.report_type is None:
        return MissingRequiredFilter(field="report_type")
    return None


def resolve_transformation_options(
    filter: AnalyticsFilter,
    params: NormalizationParams | None = None,
) -> TransformationOptions:
    """
    Merge root-level normalization params with those nested in the filter.

    A root-level value wins whenever it is set.
    """
    params = params or NormalizationParams()

    def pick(name: str) -> Any:
        root = getattr(params, name)
        return root if root is not None else getattr(filter, name)

    return TransformationOptions.from_normalization(
        pick("normalization"),
        currency=pick("currency"),
        inflation_adjusted=bool(pick("inflation_adjusted")),
        show_period_growth=bool(pick("show_period_growth")),
    )


async def _generate_factors(
    deps: AnalyticsDeps[Any],
    frequency: Frequency,
    years: YearRange,
) -> NormalizationFactors | NormalizationError:
    try:
        return await deps.normalization.generate_factors(
            frequency, years.start_year, years.end_year
        )
    except Exception as exc:
        logger.warning(
            "normalization_factors_failed",
            extra={
                "frequency": frequency.value,
                "start_year": years.start_year,
                "end_year": years.end_year,
            },
            exc_info=True,
        )
        return NormalizationError(
            message=f"Failed to generate normalization factors: {exc}",
            cause=exc,
        )


def _transform(
    rows: Sequence[Any],
    factors: NormalizationFactors,
    options: TransformationOptions,
    key: Callable[[Any], Hashable],
    population_of: Callable[[Any], Any],
) -> list[AggregatedPoint] | NormalizationError:
    try:
        return transform_points(rows, factors, options, key, population_of)
    except NormalizationFailure as exc:
        logger.warning(
            "normalization_pipeline_failed",
            extra={"error_code": exc.code},
        )
        return NormalizationError(
            message=f"Failed to apply normalization factors: {exc}",
            cause=exc,
        )


async def _fetch_and_aggregate(
    deps: AnalyticsDeps[Any],
    filter: AnalyticsFilter,
    options: TransformationOptions,
    fetch: Callable[[AnalyticsFilter], Any],
    key: Callable[[Any], Hashable],
    population_of: Callable[[Any], Any],
) -> AnalyticsResult[list[AggregatedPoint]]:
    missing = validate_filter(filter)
    if missing is not None:
        logger.info("analytics_filter_invalid", extra={"missing_field": missing.field})
        return AnalyticsResult.err(missing)

    fetched = await fetch(filter)
    if fetched.is_err:
        logger.warning("analytics_fetch_failed", extra={"error_code": fetched.error.code})
        return fetched

    rows = fetched.value or []
    if not rows:
        return AnalyticsResult.ok([])

    years = extract_year_range(filter.report_period.selection, deps.fallback_year())
    factors = await _generate_factors(deps, Frequency.YEAR, years)
    if isinstance(factors, NormalizationError):
        return AnalyticsResult.err(factors)

    aggregated = _transform(rows, factors, options, key, population_of)
    if isinstance(aggregated, NormalizationError):
        return AnalyticsResult.err(aggregated)

    logger.info(
        "analytics_aggregated",
        extra={"row_count": len(rows), "entity_count": len(aggregated)},
    )
    return AnalyticsResult.ok(aggregated)


# =============================================================================
# UAT heatmap
# =============================================================================


async def get_heatmap_data(
    deps: AnalyticsDeps[Any],
    filter: AnalyticsFilter,
    options: TransformationOptions | None = None,
) -> AnalyticsResult[list[NormalizedUATHeatmapDataPoint]]:
    """UAT heatmap: one normalized point per UAT, per-capita by UAT population."""
    options = options or resolve_transformation_options(filter)
    with LogContext.bind(use_case="get_heatmap_data"):
        result = await _fetch_and_aggregate(
            deps,
            filter,
            options,
            deps.repo.get_heatmap_data,
            key=lambda row: row.uat_id,
            population_of=lambda row: row.population,
        )
    if result.is_err:
        return result
    return AnalyticsResult.ok([_uat_output(a) for a in result.unwrap()])


def _uat_output(aggregate: AggregatedPoint) -> NormalizedUATHeatmapDataPoint:
    row: HeatmapUATDataPoint = aggregate.source
    return NormalizedUATHeatmapDataPoint(
        uat_id=row.uat_id,
        uat_code=row.uat_code,
        uat_name=row.uat_name,
        siruta_code=row.siruta_code,
        county_code=row.county_code,
        county_name=row.county_name,
        region=row.region,
        population=row.population,
        amount=float(aggregate.amount),
        total_amount=float(aggregate.total_amount),
        per_capita_amount=float(aggregate.per_capita_amount),
    )


# =============================================================================
# County heatmap
# =============================================================================


async def get_county_heatmap_data(
    deps: AnalyticsDeps[Any],
    filter: AnalyticsFilter,
    options: TransformationOptions | None = None,
) -> AnalyticsResult[list[NormalizedCountyHeatmapDataPoint]]:
    """County heatmap: one point per county; also supports percent of GDP."""
    options = options or resolve_transformation_options(filter)
    with LogContext.bind(use_case="get_county_heatmap_data"):
        result = await _fetch_and_aggregate(
            deps,
            filter,
            options,
            deps.repo.get_heatmap_data,
            key=lambda row: row.county_code,
            population_of=lambda row: row.county_population,
        )
    if result.is_err:
        return result
    return AnalyticsResult.ok([_county_output(a) for a in result.unwrap()])


def _county_output(aggregate: AggregatedPoint) -> NormalizedCountyHeatmapDataPoint:
    row: HeatmapCountyDataPoint = aggregate.source
    return NormalizedCountyHeatmapDataPoint(
        county_code=row.county_code,
        county_name=row.county_name,
        county_population=row.county_population,
        county_entity_cui=row.county_entity_cui,
        amount=float(aggregate.amount),
        total_amount=float(aggregate.total_amount),
        per_capita_amount=float(aggregate.per_capita_amount),
    )


# =============================================================================
# Entity analytics
# =============================================================================


_SORT_KEYS: dict[EntitySortField, Callable[[AggregatedPoint], Any]] = {
    EntitySortField.AMOUNT: lambda a: a.amount,
    EntitySortField.TOTAL_AMOUNT: lambda a: a.total_amount,
    EntitySortField.PER_CAPITA_AMOUNT: lambda a: a.per_capita_amount,
    EntitySortField.ENTITY_NAME: lambda a: a.source.entity_name,
    EntitySortField.ENTITY_TYPE: lambda a: a.source.entity_type,
    EntitySortField.POPULATION: lambda a: a.source.population,
    EntitySortField.COUNTY_NAME: lambda a: a.source.county_name,
    EntitySortField.COUNTY_CODE: lambda a: a.source.county_code,
}


def sort_entities(
    aggregates: Sequence[AggregatedPoint],
    sort: EntityAnalyticsSort,
) -> list[AggregatedPoint]:
    """
    Sort by ``sort.by`` in ``sort.order``; ties keep entity_cui order.

    Entities with no value for the sort field come last in both directions.
    """
    key = _SORT_KEYS[sort.by]
    ordered = sorted(aggregates, key=lambda a: a.source.entity_cui)
    present = [a for a in ordered if key(a) is not None]
    absent = [a for a in ordered if key(a) is None]
    present.sort(key=key, reverse=sort.order == SortDirection.DESC)
    return present + absent


def sanitize_pagination(
    limit: int | None,
    offset: int | None,
    config: AnalyticsConfig,
) -> tuple[int, int]:
    raw_limit = config.entity_default_limit if limit is None else limit
    return min(max(raw_limit, 0), config.entity_max_limit), max(offset or 0, 0)


def _within_aggregate_bounds(aggregate: AggregatedPoint, filter: AnalyticsFilter) -> bool:
    total: Decimal = aggregate.total_amount
    if filter.aggregate_min_amount is not None and total < filter.aggregate_min_amount:
        return False
    if filter.aggregate_max_amount is not None and total > filter.aggregate_max_amount:
        return False
    return True


def _entity_output(aggregate: AggregatedPoint) -> EntityAnalyticsDataPoint:
    row: EntityAnalyticsRow = aggregate.source
    return EntityAnalyticsDataPoint(
        entity_cui=row.entity_cui,
        entity_name=row.entity_name,
        entity_type=row.entity_type,
        uat_id=str(row.uat_id) if row.uat_id is not None else None,
        county_code=row.county_code,
        county_name=row.county_name,
        population=row.population,
        amount=float(aggregate.amount),
        total_amount=float(aggregate.total_amount),
        per_capita_amount=float(aggregate.per_capita_amount),
    )


async def get_entity_analytics(
    deps: AnalyticsDeps[Any],
    input: EntityAnalyticsInput,
) -> AnalyticsResult[EntityAnalyticsConnection]:
    """
    Entity ranking with normalization, sorting and pagination.

    Aggregate bounds are checked against the normalized total, after the
    pipeline has run.
    """
    filter = input.filter
    limit, offset = sanitize_pagination(input.limit, input.offset, deps.config)
    sort = input.sort or DEFAULT_ENTITY_SORT
    options = resolve_transformation_options(filter, input.params)

    with LogContext.bind(use_case="get_entity_analytics"):
        result = await _fetch_and_aggregate(
            deps,
            filter,
            options,
            deps.repo.get_entity_rows,
            key=lambda row: row.entity_cui,
            population_of=lambda row: row.population,
        )
        if result.is_err:
            return result

        matching = [a for a in result.unwrap() if _within_aggregate_bounds(a, filter)]
        ordered = sort_entities(matching, sort)
        total_count = len(ordered)
        page = ordered[offset : offset + limit]

        logger.info(
            "entity_analytics_paged",
            extra={
                "total_count": total_count,
                "limit": limit,
                "offset": offset,
                "sort_by": sort.by.value,
                "sort_order": sort.order.value,
            },
        )

    return AnalyticsResult.ok(
        EntityAnalyticsConnection(
            nodes=tuple(_entity_output(a) for a in page),
            page_info=PageInfo(
                total_count=total_count,
                has_next_page=offset + limit < total_count,
                has_previous_page=offset > 0,
            ),
        )
    )


# =============================================================================
# Analytics series
# =============================================================================


def y_axis_for(options: TransformationOptions, cpi_reference_year: int) -> Axis:
    """Growth first, then percent of GDP, then a currency amount."""
    if options.show_period_growth:
        return Axis(name="Growth", type="FLOAT", unit="%")
    if options.percent_gdp:
        return Axis(name="Share of GDP", type="FLOAT", unit="% of GDP")
    capita = "/capita" if options.per_capita else ""
    real = f" (real {cpi_reference_year})" if options.inflation_adjusted else ""
    return Axis(name="Amount", type="FLOAT", unit=f"{options.currency.value}{capita}{real}")


def x_axis_for(frequency: Frequency) -> Axis:
    if frequency == Frequency.YEAR:
        return Axis(name="Year", type="INTEGER", unit="year")
    if frequency == Frequency.QUARTER:
        return Axis(name="Quarter", type="STRING", unit="quarter")
    return Axis(name="Month", type="STRING", unit="month")


async def _build_series(
    deps: AnalyticsDeps[Any],
    series_input: AnalyticsSeriesInput,
) -> AnalyticsResult[AnalyticsSeries]:
    filter = series_input.filter
    frequency = filter.report_period.frequency
    options = resolve_transformation_options(filter, series_input.params)

    missing = validate_filter(filter)
    if missing is not None:
        return AnalyticsResult.err(missing)

    fetched = await deps.repo.get_aggregated_series(filter)
    if fetched.is_err:
        logger.warning("analytics_fetch_failed", extra={"error_code": fetched.error.code})
        return fetched

    raw = fetched.value or []
    processed = []
    if raw:
        years = extract_year_range(filter.report_period.selection, deps.fallback_year())
        factors = await _generate_factors(deps, frequency, years)
        if isinstance(factors, NormalizationError):
            return AnalyticsResult.err(factors)
        try:
            processed = normalize_series(raw, options, factors, frequency)
        except NormalizationFailure as exc:
            return AnalyticsResult.err(
                NormalizationError(
                    message=f"Failed to apply normalization factors: {exc}",
                    cause=exc,
                )
            )

    return AnalyticsResult.ok(
        AnalyticsSeries(
            series_id=series_input.series_id or "default",
            x_axis=x_axis_for(frequency),
            y_axis=y_axis_for(options, deps.config.cpi_reference_year),
            data=tuple(AnalyticsDataPoint(x=p.x, y=float(p.y)) for p in processed),
        )
    )


async def get_analytics_series(
    deps: AnalyticsDeps[Any],
    inputs: Sequence[AnalyticsSeriesInput],
) -> AnalyticsResult[list[AnalyticsSeries]]:
    """
    One normalized series per input, in input order.

    The first failing input fails the whole call.
    """
    results: list[AnalyticsSeries] = []
    with LogContext.bind(use_case="get_analytics_series"):
        for series_input in inputs:
            built = await _build_series(deps, series_input)
            if built.is_err:
                return AnalyticsResult.err(built.error)
            results.append(built.unwrap())
        logger.info("analytics_series_built", extra={"series_count": len(results)})
    return AnalyticsResult.ok(results)
