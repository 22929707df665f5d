"""
Module: budget_engines.normalization
Responsibility:
    Apply the fixed chain of monetary transformations to raw RON amounts:
    inflation adjustment, currency conversion, aggregation across years,
    and per-capita division.  Also provides the series variant used by
    time-series analytics (percent of GDP, period-over-period growth).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes ``NormalizationFactors`` produced by the factor provider and
    ``TransformationOptions`` built by the use cases.

Invariants enforced:
    - Order per data point is inflation -> currency -> sum -> per-capita.
      Conversion happens per year BEFORE summation, because rates differ
      by year.
    - ``total_amount`` is always the summed value, ``per_capita_amount`` is
      always computed, and ``amount`` is whichever of the two the
      ``per_capita`` flag selects.
    - Per-capita with a missing or non-positive population is 0.
    - Decimal arithmetic throughout; floats appear only at the output
      boundary in the use cases.

Failure modes:
    - MissingFactorError if a touched period has no factor, or a zero
      factor, for a transformation that needs it.
    - MalformedFactorsError if the factors object has the wrong shape.
    Both abort the whole computation; there are no partial results.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, fields
from decimal import Decimal
from typing import Any, Protocol

from budget_kernel.domain.periods import previous_period_label
from budget_kernel.domain.values import Currency, Frequency, NormalizationMode
from budget_kernel.exceptions import MalformedFactorsError, MissingFactorError
from budget_engines.tracer import traced_engine

ZERO = Decimal(0)
HUNDRED = Decimal(100)


@dataclass(frozen=True)
class NormalizationFactors:
    """Five maps from period label to factor. Built fresh per request."""

    cpi: Mapping[str, Decimal] = field(default_factory=dict)
    eur: Mapping[str, Decimal] = field(default_factory=dict)
    usd: Mapping[str, Decimal] = field(default_factory=dict)
    gdp: Mapping[str, Decimal] = field(default_factory=dict)
    population: Mapping[str, Decimal] = field(default_factory=dict)

    def rates_for(self, currency: Currency) -> Mapping[str, Decimal]:
        if currency == Currency.EUR:
            return self.eur
        if currency == Currency.USD:
            return self.usd
        raise ValueError(f"No exchange rates for base currency {currency.value}")


@dataclass(frozen=True)
class TransformationOptions:
    """Per-request transformation flags. Immutable for the pipeline run."""

    inflation_adjusted: bool = False
    currency: Currency = Currency.RON
    per_capita: bool = False
    percent_gdp: bool = False
    show_period_growth: bool = False

    @classmethod
    def from_normalization(
        cls,
        mode: NormalizationMode | None,
        currency: Currency | None = None,
        inflation_adjusted: bool = False,
        show_period_growth: bool = False,
    ) -> TransformationOptions:
        """
        Map the single normalization enum onto the flag set.

        The legacy ``total_euro`` / ``per_capita_euro`` modes force EUR.
        """
        mode = mode or NormalizationMode.TOTAL
        if mode.is_legacy:
            currency = Currency.EUR
        return cls(
            inflation_adjusted=bool(inflation_adjusted),
            currency=currency or Currency.RON,
            per_capita=mode in (NormalizationMode.PER_CAPITA, NormalizationMode.PER_CAPITA_EURO),
            percent_gdp=mode == NormalizationMode.PERCENT_GDP,
            show_period_growth=bool(show_period_growth),
        )

    @property
    def normalization(self) -> NormalizationMode:
        if self.percent_gdp:
            return NormalizationMode.PERCENT_GDP
        if self.per_capita:
            return NormalizationMode.PER_CAPITA
        return NormalizationMode.TOTAL


class YearlyAmount(Protocol):
    year: int
    total_amount: Decimal


@dataclass
class AggregatedPoint:
    """
    One entity after aggregation.

    ``source`` is the last raw row seen for the entity; identity and
    metadata are read from it.
    """

    key: Hashable
    source: Any
    total_amount: Decimal
    per_capita_amount: Decimal = ZERO
    amount: Decimal = ZERO
    gdp_total: Decimal | None = None


@dataclass(frozen=True)
class SeriesPoint:
    x: str
    y: Decimal


# ---------------------------------------------------------------------------
# Factor access
# ---------------------------------------------------------------------------


def validate_factors(factors: Any) -> NormalizationFactors:
    """Check that ``factors`` has five label -> Decimal maps."""
    if not isinstance(factors, NormalizationFactors):
        raise MalformedFactorsError(
            f"expected NormalizationFactors, got {type(factors).__name__}"
        )
    for f in fields(factors):
        mapping = getattr(factors, f.name)
        if not isinstance(mapping, Mapping):
            raise MalformedFactorsError(f"{f.name} is not a mapping")
        for label, value in mapping.items():
            if not isinstance(value, Decimal):
                raise MalformedFactorsError(
                    f"{f.name}[{label!r}] is {type(value).__name__}, expected Decimal"
                )
    return factors


def require_factor(mapping: Mapping[str, Decimal], dimension: str, label: str) -> Decimal:
    """Return the non-zero factor for ``label`` or raise MissingFactorError."""
    value = mapping.get(label)
    if value is None or value == ZERO:
        raise MissingFactorError(dimension, label)
    return value


def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _per_capita(total: Decimal, population: Any) -> Decimal:
    if population is None:
        return ZERO
    pop = _as_decimal(population)
    if pop <= ZERO:
        return ZERO
    return total / pop


# ---------------------------------------------------------------------------
# Heatmap pipeline
# ---------------------------------------------------------------------------


def adjust_amount(
    amount: Decimal,
    label: str,
    factors: NormalizationFactors,
    options: TransformationOptions,
) -> Decimal:
    """Steps 1-2 for a single period: inflation, then currency."""
    if options.inflation_adjusted:
        amount = amount * require_factor(factors.cpi, "cpi", label)
    if options.currency != Currency.RON:
        dimension = options.currency.value.lower()
        amount = amount / require_factor(factors.rates_for(options.currency), dimension, label)
    return amount


@traced_engine("normalization", "1.0", fingerprint_fields=("options",))
def transform_points(
    points: Iterable[YearlyAmount],
    factors: NormalizationFactors,
    options: TransformationOptions,
    key: Callable[[Any], Hashable],
    population_of: Callable[[Any], Any],
) -> list[AggregatedPoint]:
    """
    Transform raw (entity, year) rows into one aggregated point per entity.

    Args:
        points: Rows exposing ``year`` and a Decimal ``total_amount``.
        factors: Yearly factor maps keyed by ``str(year)``.
        options: Transformation flags.
        key: Entity key of a row (e.g. ``uat_id``).
        population_of: Population of a row, used for per-capita.

    Returns:
        Aggregated points in first-seen entity order.
    """
    validate_factors(factors)
    aggregates: dict[Hashable, AggregatedPoint] = {}

    for point in points:
        label = str(point.year)
        amount = _as_decimal(point.total_amount)
        gdp: Decimal | None = None

        if options.percent_gdp:
            gdp = require_factor(factors.gdp, "gdp", label)
        else:
            amount = adjust_amount(amount, label, factors, options)

        entity_key = key(point)
        existing = aggregates.get(entity_key)
        if existing is None:
            aggregates[entity_key] = AggregatedPoint(
                key=entity_key,
                source=point,
                total_amount=amount,
                gdp_total=gdp,
            )
        else:
            existing.source = point
            existing.total_amount += amount
            if gdp is not None:
                existing.gdp_total = (existing.gdp_total or ZERO) + gdp

    for aggregate in aggregates.values():
        total = aggregate.total_amount
        aggregate.per_capita_amount = _per_capita(total, population_of(aggregate.source))
        if options.percent_gdp and aggregate.gdp_total:
            aggregate.amount = total / aggregate.gdp_total * HUNDRED
        elif options.per_capita:
            aggregate.amount = aggregate.per_capita_amount
        else:
            aggregate.amount = total

    return list(aggregates.values())


# ---------------------------------------------------------------------------
# Series pipeline
# ---------------------------------------------------------------------------


def apply_growth(points: Sequence[SeriesPoint], frequency: Frequency) -> list[SeriesPoint]:
    """
    Period-over-period growth in percent.

    The previous value is looked up by label, so gaps in the series give 0
    rather than growth against a non-adjacent period.
    """
    lookup = {p.x: p.y for p in points}
    result: list[SeriesPoint] = []
    for point in points:
        prev_label = previous_period_label(point.x, frequency)
        prev = lookup.get(prev_label) if prev_label is not None else None
        if prev is None or prev == ZERO:
            result.append(SeriesPoint(point.x, ZERO))
        else:
            result.append(SeriesPoint(point.x, (point.y - prev) / prev * HUNDRED))
    return result


@traced_engine("normalization_series", "1.0", fingerprint_fields=("options", "frequency"))
def normalize_series(
    points: Sequence[SeriesPoint],
    options: TransformationOptions,
    factors: NormalizationFactors,
    frequency: Frequency,
) -> list[SeriesPoint]:
    """
    Normalize one time series.

    Percent-of-GDP is exclusive with the standard path
    (inflation -> currency -> per-capita).  Growth, when requested, is
    applied last.  The result is sorted by label.
    """
    validate_factors(factors)
    result: list[SeriesPoint] = []

    for point in points:
        y = _as_decimal(point.y)
        if options.percent_gdp:
            y = y / require_factor(factors.gdp, "gdp", point.x) * HUNDRED
        else:
            y = adjust_amount(y, point.x, factors, options)
            if options.per_capita:
                y = _per_capita(y, factors.population.get(point.x))
        result.append(SeriesPoint(point.x, y))

    if options.show_period_growth:
        result = apply_growth(result, frequency)

    return sorted(result, key=lambda p: p.x)
