"""
Filters -- the typed analytics filter.

Responsibility:
    Holds the declarative, multi-dimensional filter that the condition
    compiler turns into SQL fragments, and the build context that says
    which optional joins a query has.  ``AnalyticsFilter.from_dict``
    converts the loose mapping delivered by a transport layer into this
    structure.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - All collections are tuples; a filter is immutable and hashable.
    - ``is_uat`` is tri-state: ``None`` means "no filter", never ``False``.
    - Amount bounds are ``Decimal``; population bounds are integers or
      ``Decimal``.  Floats never enter the filter.
    - A missing ``report_type`` is NOT a parse error.  It is a validation
      failure raised by the use cases that require it.

Failure modes:
    - InvalidFilterError from ``from_dict`` when an enum value is unknown,
      a required field is absent, or a field has the wrong type.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, TypeVar

from budget_kernel.domain.periods import PeriodInterval, PeriodSelection
from budget_kernel.domain.values import (
    AccountCategory,
    Currency,
    Frequency,
    NormalizationMode,
    NumericId,
    to_numeric_ids,
)
from budget_kernel.exceptions import InvalidFilterError

DEFAULT_LINE_ITEM_ALIAS = "eli"
DEFAULT_ENTITY_ALIAS = "e"
DEFAULT_UAT_ALIAS = "u"


@dataclass(frozen=True, slots=True)
class ReportPeriod:
    frequency: Frequency
    selection: PeriodSelection


@dataclass(frozen=True, slots=True)
class ExclusionFilter:
    """Negated counterparts of the positive dimension fields."""

    report_ids: tuple[str, ...] = ()
    entity_cuis: tuple[str, ...] = ()
    functional_codes: tuple[str, ...] = ()
    functional_prefixes: tuple[str, ...] = ()
    economic_codes: tuple[str, ...] = ()
    economic_prefixes: tuple[str, ...] = ()
    entity_types: tuple[str, ...] = ()
    uat_ids: tuple[str, ...] = ()
    county_codes: tuple[str, ...] = ()
    regions: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, f.name) for f in fields(self))


@dataclass(frozen=True, slots=True)
class AnalyticsFilter:
    """
    Declarative filter over the execution line-item fact table.

    Contract:
        ``account_category`` and ``report_period`` are always present.
        Every other field is optional; an empty tuple or ``None`` means
        the dimension is unconstrained.
    """

    account_category: AccountCategory
    report_period: ReportPeriod
    report_type: str | None = None

    # Dimension arrays
    report_ids: tuple[str, ...] = ()
    entity_cuis: tuple[str, ...] = ()
    functional_codes: tuple[str, ...] = ()
    functional_prefixes: tuple[str, ...] = ()
    economic_codes: tuple[str, ...] = ()
    economic_prefixes: tuple[str, ...] = ()
    program_codes: tuple[str, ...] = ()
    entity_types: tuple[str, ...] = ()
    uat_ids: tuple[str, ...] = ()
    county_codes: tuple[str, ...] = ()
    regions: tuple[str, ...] = ()
    funding_source_ids: tuple[str, ...] = ()
    budget_sector_ids: tuple[str, ...] = ()
    expense_types: tuple[str, ...] = ()

    # Scalars
    main_creditor_cui: str | None = None
    is_uat: bool | None = None
    min_population: NumericId | None = None
    max_population: NumericId | None = None

    # Amount bounds
    item_min_amount: Decimal | None = None
    item_max_amount: Decimal | None = None
    aggregate_min_amount: Decimal | None = None
    aggregate_max_amount: Decimal | None = None

    exclude: ExclusionFilter | None = None

    # Normalization intent
    normalization: NormalizationMode | None = None
    currency: Currency | None = None
    inflation_adjusted: bool | None = None
    show_period_growth: bool | None = None

    @property
    def frequency(self) -> Frequency:
        return self.report_period.frequency

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AnalyticsFilter:
        """
        Build a filter from a loose mapping.

        ``report_period`` accepts either ``frequency`` or ``type`` as the
        frequency key.  Enum fields accept the value (``"ch"``) or the
        member name (``"EXPENSE"``), case-insensitively.
        """
        if not isinstance(data, Mapping):
            raise InvalidFilterError("filter", data, "expected a mapping")

        kwargs: dict[str, Any] = {
            "account_category": _require_enum(data, "account_category", AccountCategory),
            "report_period": _parse_report_period(data.get("report_period")),
            "report_type": _optional_str(data, "report_type"),
            "main_creditor_cui": _optional_str(data, "main_creditor_cui"),
            "is_uat": _optional_bool(data, "is_uat"),
            "min_population": _optional_number(data, "min_population"),
            "max_population": _optional_number(data, "max_population"),
            "normalization": _optional_enum(data, "normalization", NormalizationMode),
            "currency": _optional_enum(data, "currency", Currency),
            "inflation_adjusted": _optional_bool(data, "inflation_adjusted"),
            "show_period_growth": _optional_bool(data, "show_period_growth"),
        }
        for name in _LIST_FIELDS:
            kwargs[name] = _str_tuple(data, name)
        for name in _AMOUNT_FIELDS:
            kwargs[name] = _optional_decimal(data, name)

        raw_exclude = data.get("exclude")
        if raw_exclude is not None:
            if not isinstance(raw_exclude, Mapping):
                raise InvalidFilterError("exclude", raw_exclude, "expected a mapping")
            kwargs["exclude"] = ExclusionFilter(
                **{
                    f.name: _str_tuple(raw_exclude, f.name, prefix="exclude.")
                    for f in fields(ExclusionFilter)
                }
            )

        return cls(**kwargs)


_LIST_FIELDS = (
    "report_ids",
    "entity_cuis",
    "functional_codes",
    "functional_prefixes",
    "economic_codes",
    "economic_prefixes",
    "program_codes",
    "entity_types",
    "uat_ids",
    "county_codes",
    "regions",
    "funding_source_ids",
    "budget_sector_ids",
    "expense_types",
)

_AMOUNT_FIELDS = (
    "item_min_amount",
    "item_max_amount",
    "aggregate_min_amount",
    "aggregate_max_amount",
)


@dataclass(frozen=True, slots=True)
class SqlBuildContext:
    """
    Which optional joins a query has, and the table aliases in use.

    Entity-scoped fields compile only when ``has_entity_join`` is true;
    UAT-scoped fields only when ``has_uat_join`` is true.
    """

    has_entity_join: bool = False
    has_uat_join: bool = False
    line_item_alias: str = DEFAULT_LINE_ITEM_ALIAS
    entity_alias: str = DEFAULT_ENTITY_ALIAS
    uat_alias: str = DEFAULT_UAT_ALIAS


def needs_entity_join(filter: AnalyticsFilter) -> bool:
    """True when any field of the filter is evaluated against the entity table."""
    ex = filter.exclude
    return bool(
        filter.entity_types
        or filter.is_uat is not None
        or filter.uat_ids
        or filter.county_codes
        or filter.regions
        or (ex is not None and (ex.entity_types or ex.uat_ids or ex.county_codes or ex.regions))
    )


def needs_uat_join(filter: AnalyticsFilter) -> bool:
    """True when any field of the filter is evaluated against the UAT table."""
    ex = filter.exclude
    return bool(
        filter.county_codes
        or filter.regions
        or filter.min_population is not None
        or filter.max_population is not None
        or (ex is not None and (ex.county_codes or ex.regions))
    )


# ---------------------------------------------------------------------------
# Loose-input coercion
# ---------------------------------------------------------------------------

E = TypeVar("E", bound=Enum)


def _coerce_enum(name: str, value: Any, enum_cls: type[E]) -> E:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        for member in enum_cls:
            if value == member.value or value.upper() == member.name:
                return member
    allowed = ", ".join(str(m.value) for m in enum_cls)
    raise InvalidFilterError(name, value, f"expected one of {allowed}")


def _require_enum(data: Mapping[str, Any], name: str, enum_cls: type[E]) -> E:
    value = data.get(name)
    if value is None:
        raise InvalidFilterError(name, value, "field is required")
    return _coerce_enum(name, value, enum_cls)


def _optional_enum(data: Mapping[str, Any], name: str, enum_cls: type[E]) -> E | None:
    value = data.get(name)
    if value is None:
        return None
    return _coerce_enum(name, value, enum_cls)


def _optional_str(data: Mapping[str, Any], name: str) -> str | None:
    value = data.get(name)
    if value is None:
        return None
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        return str(value)
    raise InvalidFilterError(name, value, "expected a string")


def _optional_bool(data: Mapping[str, Any], name: str) -> bool | None:
    value = data.get(name)
    if value is None or isinstance(value, bool):
        return value
    raise InvalidFilterError(name, value, "expected a boolean")


def _optional_decimal(data: Mapping[str, Any], name: str) -> Decimal | None:
    value = data.get(name)
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidFilterError(name, value, "expected a number")
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidFilterError(name, value, "expected a number") from None
    if not result.is_finite():
        raise InvalidFilterError(name, value, "expected a finite number")
    return result


def _optional_number(data: Mapping[str, Any], name: str) -> NumericId | None:
    value = data.get(name)
    if value is None:
        return None
    coerced = to_numeric_ids([value])
    if not coerced:
        raise InvalidFilterError(name, value, "expected a number")
    return coerced[0]


def _str_tuple(data: Mapping[str, Any], name: str, prefix: str = "") -> tuple[str, ...]:
    value = data.get(name)
    if value is None:
        return ()
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise InvalidFilterError(f"{prefix}{name}", value, "expected a list")
    return tuple(str(item) for item in value)


def _parse_report_period(raw: Any) -> ReportPeriod:
    if not isinstance(raw, Mapping):
        raise InvalidFilterError("report_period", raw, "field is required")

    freq_value = raw.get("frequency", raw.get("type"))
    if freq_value is None:
        raise InvalidFilterError("report_period.frequency", freq_value, "field is required")
    frequency = _coerce_enum("report_period.frequency", freq_value, Frequency)

    raw_selection = raw.get("selection") or {}
    if not isinstance(raw_selection, Mapping):
        raise InvalidFilterError("report_period.selection", raw_selection, "expected a mapping")

    interval = None
    raw_interval = raw_selection.get("interval")
    if raw_interval is not None:
        if not isinstance(raw_interval, Mapping) or "start" not in raw_interval or "end" not in raw_interval:
            raise InvalidFilterError(
                "report_period.selection.interval", raw_interval, "expected {start, end}"
            )
        interval = PeriodInterval(start=str(raw_interval["start"]), end=str(raw_interval["end"]))

    dates = None
    if raw_selection.get("dates") is not None:
        dates = _str_tuple(raw_selection, "dates", prefix="report_period.selection.")

    return ReportPeriod(frequency=frequency, selection=PeriodSelection(interval=interval, dates=dates))
