"""
Module: budget_engines.factor_maps
Responsibility:
    Expand raw normalization datasets (yearly, optionally quarterly or
    monthly) into a complete factor map at a requested frequency: one
    entry for every period label of a year range.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Called by the normalization service once per dataset kind.

Invariants enforced:
    - Lookup order per label: value at the requested frequency, then the
      yearly value of that label's year, then the previous label's value.
    - The carry-forward is seeded from the latest value strictly before
      the range start (sub-yearly dataset first, yearly second).
    - A label with no value and nothing to carry forward is omitted;
      the pipeline reports that as a missing factor.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal

from budget_kernel.domain.periods import extract_year, parse_month, parse_quarter, period_labels
from budget_kernel.domain.values import Frequency

FactorMap = dict[str, Decimal]


@dataclass(frozen=True)
class FactorDatasets:
    """Source data for one factor kind. ``yearly`` is required."""

    yearly: Mapping[str, Decimal]
    quarterly: Mapping[str, Decimal] | None = None
    monthly: Mapping[str, Decimal] | None = None


def dataset_to_factor_map(points: Iterable[tuple[str, Decimal]]) -> FactorMap:
    """Key ``(x, y)`` points by their label; later duplicates win."""
    return {str(x): y for x, y in points}


def _latest_year_value_before(data: Mapping[str, Decimal], start_year: int) -> Decimal | None:
    latest_year: int | None = None
    latest_value: Decimal | None = None
    for label, value in data.items():
        year = extract_year(label)
        if year is None or year >= start_year:
            continue
        if latest_year is None or year > latest_year:
            latest_year = year
            latest_value = value
    return latest_value


def _latest_sub_value_before(
    data: Mapping[str, Decimal],
    start_year: int,
    frequency: Frequency,
) -> Decimal | None:
    per_year = 12 if frequency == Frequency.MONTH else 4
    boundary = start_year * per_year + 1
    latest_index: int | None = None
    latest_value: Decimal | None = None
    for label, value in data.items():
        if frequency == Frequency.MONTH:
            parsed_month = parse_month(label)
            if parsed_month is None:
                continue
            index = parsed_month.year * per_year + parsed_month.month
        else:
            parsed_quarter = parse_quarter(label)
            if parsed_quarter is None:
                continue
            index = parsed_quarter.year * per_year + parsed_quarter.quarter
        if index >= boundary:
            continue
        if latest_index is None or index > latest_index:
            latest_index = index
            latest_value = value
    return latest_value


def _sub_dataset(datasets: FactorDatasets, frequency: Frequency) -> Mapping[str, Decimal] | None:
    if frequency == Frequency.MONTH:
        return datasets.monthly
    if frequency == Frequency.QUARTER:
        return datasets.quarterly
    return None


def generate_factor_map(
    frequency: Frequency,
    start_year: int,
    end_year: int,
    datasets: FactorDatasets,
) -> FactorMap:
    """
    Build a factor map covering ``start_year..end_year`` at ``frequency``.

    >>> cpi = FactorDatasets(yearly={"2023": Decimal("1.1")})
    >>> generate_factor_map(Frequency.YEAR, 2023, 2024, cpi)
    {'2023': Decimal('1.1'), '2024': Decimal('1.1')}
    """
    sub = _sub_dataset(datasets, frequency)

    previous: Decimal | None = None
    if sub is not None:
        previous = _latest_sub_value_before(sub, start_year, frequency)
    if previous is None:
        previous = _latest_year_value_before(datasets.yearly, start_year)

    result: FactorMap = {}
    for label in period_labels(frequency, start_year, end_year):
        value = sub.get(label) if sub is not None else None
        if value is None:
            value = datasets.yearly.get(label[:4])
        if value is None:
            value = previous
        if value is not None:
            result[label] = value
            previous = value
    return result
