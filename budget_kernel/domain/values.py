"""
Values -- enumerations and scalar coercions shared by the analytics core.

Responsibility:
    Defines the closed vocabularies the filter compiler and the
    transformation pipeline branch on (frequency, account category,
    currency, normalization mode) and the numeric-ID coercion used for
    integer-keyed dimensions.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by filters, periods, the condition compiler and the pipeline.

Invariants enforced:
    - Enum values are the exact literals stored in the fact tables
      (``'ch'`` / ``'vn'``) or accepted at the transport boundary.
    - ``to_numeric_ids`` never raises; invalid tokens are dropped and the
      survivors keep their order and value.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from enum import Enum


class Frequency(str, Enum):
    """Time bucket of the fact rows being queried."""

    MONTH = "MONTH"
    QUARTER = "QUARTER"
    YEAR = "YEAR"


class AccountCategory(str, Enum):
    """Budget side of a line item, as stored in ``account_category``."""

    EXPENSE = "ch"
    INCOME = "vn"


class Currency(str, Enum):
    """Output currency. Amounts are stored in RON."""

    RON = "RON"
    EUR = "EUR"
    USD = "USD"


class NormalizationMode(str, Enum):
    """
    Single-valued normalization selector accepted from callers.

    ``TOTAL_EURO`` and ``PER_CAPITA_EURO`` are legacy aliases kept for
    backward compatibility; they map onto ``TOTAL`` / ``PER_CAPITA`` with
    EUR as the currency.
    """

    TOTAL = "total"
    PER_CAPITA = "per_capita"
    PERCENT_GDP = "percent_gdp"
    TOTAL_EURO = "total_euro"
    PER_CAPITA_EURO = "per_capita_euro"

    @property
    def is_legacy(self) -> bool:
        return self in (NormalizationMode.TOTAL_EURO, NormalizationMode.PER_CAPITA_EURO)


NumericId = int | Decimal


def _coerce_numeric(token: object) -> NumericId | None:
    if isinstance(token, bool):
        return None
    if isinstance(token, int):
        return token
    text = str(token).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    if value == value.to_integral_value():
        return int(value)
    return value


def to_numeric_ids(tokens: Iterable[object] | None) -> list[NumericId]:
    """
    Coerce ID tokens to numbers, dropping blank and non-numeric entries.

    >>> to_numeric_ids(["1", " ", "abc", "42"])
    [1, 42]
    """
    if not tokens:
        return []
    result: list[NumericId] = []
    for token in tokens:
        value = _coerce_numeric(token)
        if value is not None:
            result.append(value)
    return result


def format_number(value: NumericId | float) -> str:
    """Render a number as a SQL numeric literal (integral values without exponent)."""
    if isinstance(value, bool):
        raise TypeError("booleans are not numeric literals")
    if isinstance(value, int):
        return str(value)
    dec = value if isinstance(value, Decimal) else Decimal(str(value))
    if dec == dec.to_integral_value():
        return str(int(dec))
    return format(dec.normalize(), "f")
