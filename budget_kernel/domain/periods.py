"""
Periods -- parsing and formatting of period labels.

Responsibility:
    Parses period strings (``"2024"``, ``"2024-06"``, ``"2024-Q2"``) into
    structured year / sub-period tuples, and produces the canonical labels
    used as keys of normalization factor maps.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Consumed by the condition compiler (period conditions), the factor map
    generator (label ranges) and the use cases (year range of a query).

Invariants enforced:
    - Parsers never raise.  An unparsable label yields ``None``; batch
      parsers drop unparsable entries, keep input order and return ``[]``
      when nothing survives.
    - Only ASCII digits are accepted.

Failure modes:
    None -- callers interpret an empty result as "no matching condition".
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from budget_kernel.domain.values import Frequency

_YEAR_RE = re.compile(r"([0-9]{4})")
_MONTH_RE = re.compile(r"([0-9]{4})-(0[1-9]|1[0-2])")
_QUARTER_RE = re.compile(r"([0-9]{4})-Q([1-4])")


@dataclass(frozen=True, slots=True)
class ParsedPeriod:
    """A parsed label. At most one of ``month`` / ``quarter`` is set."""

    year: int
    month: int | None = None
    quarter: int | None = None


@dataclass(frozen=True, slots=True)
class MonthPeriod:
    year: int
    month: int


@dataclass(frozen=True, slots=True)
class QuarterPeriod:
    year: int
    quarter: int


@dataclass(frozen=True, slots=True)
class PeriodInterval:
    """Inclusive bounds, same lexical format as the selection frequency."""

    start: str
    end: str


@dataclass(frozen=True, slots=True)
class PeriodSelection:
    """
    Either an interval, a list of discrete dates, or both.

    When both are set the compiler emits both condition sets and the
    database ANDs them.
    """

    interval: PeriodInterval | None = None
    dates: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class YearRange:
    start_year: int
    end_year: int


# ---------------------------------------------------------------------------
# Single-label parsers
# ---------------------------------------------------------------------------


def parse_period(label: str) -> ParsedPeriod | None:
    """Parse ``YYYY``, ``YYYY-MM`` or ``YYYY-QN``; anything else is ``None``."""
    if not isinstance(label, str):
        return None
    match = _YEAR_RE.fullmatch(label)
    if match:
        return ParsedPeriod(year=int(match.group(1)))
    match = _MONTH_RE.fullmatch(label)
    if match:
        return ParsedPeriod(year=int(match.group(1)), month=int(match.group(2)))
    match = _QUARTER_RE.fullmatch(label)
    if match:
        return ParsedPeriod(year=int(match.group(1)), quarter=int(match.group(2)))
    return None


def parse_month(label: str) -> MonthPeriod | None:
    parsed = parse_period(label)
    if parsed is None or parsed.month is None:
        return None
    return MonthPeriod(parsed.year, parsed.month)


def parse_quarter(label: str) -> QuarterPeriod | None:
    parsed = parse_period(label)
    if parsed is None or parsed.quarter is None:
        return None
    return QuarterPeriod(parsed.year, parsed.quarter)


def extract_year(label: str) -> int | None:
    """
    Return the year from the first four characters of ``label``.

    Works for any string starting with four digits (``"2024-01-15"``
    included); a shorter or non-numeric prefix yields ``None``.
    """
    if not isinstance(label, str) or len(label) < 4:
        return None
    prefix = label[:4]
    if not _YEAR_RE.fullmatch(prefix):
        return None
    return int(prefix)


# ---------------------------------------------------------------------------
# Batch parsers
# ---------------------------------------------------------------------------


def parse_month_periods(dates: Iterable[str]) -> list[MonthPeriod]:
    return [p for p in (parse_month(d) for d in dates) if p is not None]


def parse_quarter_periods(dates: Iterable[str]) -> list[QuarterPeriod]:
    return [p for p in (parse_quarter(d) for d in dates) if p is not None]


def parse_years(dates: Iterable[str]) -> list[int]:
    return [y for y in (extract_year(d) for d in dates) if y is not None]


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------


def format_period_label(
    year: int,
    sub_period: int | None,
    frequency: Frequency,
) -> str:
    """
    Build the canonical label for a period.

    >>> format_period_label(2024, 3, Frequency.MONTH)
    '2024-03'
    >>> format_period_label(2024, 1, Frequency.QUARTER)
    '2024-Q1'
    """
    if frequency == Frequency.MONTH and sub_period is not None:
        return f"{year:04d}-{sub_period:02d}"
    if frequency == Frequency.QUARTER and sub_period is not None:
        return f"{year:04d}-Q{sub_period}"
    return f"{year:04d}"


def period_labels(frequency: Frequency, start_year: int, end_year: int) -> list[str]:
    """Every label of ``frequency`` from ``start_year`` to ``end_year`` inclusive."""
    labels: list[str] = []
    for year in range(start_year, end_year + 1):
        if frequency == Frequency.MONTH:
            labels.extend(format_period_label(year, m, frequency) for m in range(1, 13))
        elif frequency == Frequency.QUARTER:
            labels.extend(format_period_label(year, q, frequency) for q in range(1, 5))
        else:
            labels.append(format_period_label(year, None, frequency))
    return labels


def previous_period_label(label: str, frequency: Frequency) -> str | None:
    """Label of the period immediately before ``label``, or ``None`` if unparsable."""
    parsed = parse_period(label)
    if parsed is None:
        return None
    if frequency == Frequency.MONTH:
        if parsed.month is None:
            return None
        if parsed.month == 1:
            return format_period_label(parsed.year - 1, 12, frequency)
        return format_period_label(parsed.year, parsed.month - 1, frequency)
    if frequency == Frequency.QUARTER:
        if parsed.quarter is None:
            return None
        if parsed.quarter == 1:
            return format_period_label(parsed.year - 1, 4, frequency)
        return format_period_label(parsed.year, parsed.quarter - 1, frequency)
    return format_period_label(parsed.year - 1, None, frequency)


def extract_year_range(
    selection: PeriodSelection,
    fallback_year: int,
) -> YearRange:
    """
    Year span covered by a selection, used to size factor generation.

    The interval wins over dates.  Unparsable bounds fall back to
    ``fallback_year``.
    """
    start_year = fallback_year
    end_year = fallback_year

    if selection.interval is not None:
        parsed_start = extract_year(selection.interval.start)
        parsed_end = extract_year(selection.interval.end)
        if parsed_start is not None:
            start_year = parsed_start
        if parsed_end is not None:
            end_year = parsed_end
    elif selection.dates:
        years = parse_years(selection.dates)
        if years:
            start_year = min(years)
            end_year = max(years)

    return YearRange(start_year=start_year, end_year=end_year)

