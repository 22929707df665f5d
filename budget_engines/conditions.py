"""
Module: budget_engines.conditions
Responsibility:
    Compile an ``AnalyticsFilter`` and a ``SqlBuildContext`` into the ordered
    list of conjunctive SQL condition fragments used by every analytics
    query over the execution line-item fact table.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Imports only budget_kernel.domain.  Selectors join the fragments with
    ``AND`` via ``to_where_clause``.

Invariants enforced:
    - Deterministic: identical (filter, context) always yields an identical
      fragment list, in this fixed category order:
        1. frequency flag
        2. period interval / dates
        3. scalar equality (account_category, report_type, main_creditor_cui)
        4. list membership (string IN, then numeric IN)
        5. code prefixes
        6. entity-join fields   (only when context.has_entity_join)
        7. UAT-join fields      (only when context.has_uat_join)
        8. item amount bounds
        9. exclusions
    - Input arrays keep their order; nothing is sorted or de-duplicated.
    - String literals are single-quoted with embedded quotes doubled.
    - Exclusions on optionally-joined columns (entity_type, uat_id,
      county_code, region) are NULL-safe; fact-table exclusions use plain
      ``NOT IN`` / ``NOT LIKE``.
    - Economic code and prefix exclusions are never emitted for the income
      account category.

Failure modes:
    None.  Unparsable periods and non-numeric IDs are dropped, and a list
    that empties out produces no fragment.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from budget_kernel.domain.filters import (
    DEFAULT_LINE_ITEM_ALIAS,
    AnalyticsFilter,
    ExclusionFilter,
    SqlBuildContext,
)
from budget_kernel.domain.periods import (
    PeriodInterval,
    PeriodSelection,
    extract_year,
    parse_month,
    parse_month_periods,
    parse_quarter,
    parse_quarter_periods,
    parse_years,
)
from budget_kernel.domain.values import (
    AccountCategory,
    Frequency,
    NumericId,
    format_number,
    to_numeric_ids,
)
from budget_engines.tracer import traced_engine

_AMOUNT_COLUMNS = {
    Frequency.MONTH: "monthly_amount",
    Frequency.QUARTER: "quarterly_amount",
    Frequency.YEAR: "ytd_amount",
}


def quote_literal(value: str) -> str:
    """Single-quote a string literal, doubling embedded quotes."""
    return "'" + str(value).replace("'", "''") + "'"


def quote_list(values: Iterable[str]) -> str:
    return ", ".join(quote_literal(v) for v in values)


def number_list(values: Iterable[NumericId]) -> str:
    return ", ".join(format_number(v) for v in values)


class ConditionBuilder:
    """
    Accumulates condition fragments in insertion order.

    Every ``add_*`` method is a no-op when its input is empty, so callers
    can feed optional filter fields straight through.
    """

    def __init__(self) -> None:
        self._conditions: list[str] = []

    def __len__(self) -> int:
        return len(self._conditions)

    def add(self, fragment: str | None) -> ConditionBuilder:
        if fragment:
            self._conditions.append(fragment)
        return self

    def extend(self, fragments: Iterable[str]) -> ConditionBuilder:
        for fragment in fragments:
            self.add(fragment)
        return self

    def add_equals(self, column: str, value: str | None) -> ConditionBuilder:
        if value is not None:
            self.add(f"{column} = {quote_literal(value)}")
        return self

    def add_flag(self, column: str, value: bool | None) -> ConditionBuilder:
        if value is not None:
            self.add(f"{column} = {'true' if value else 'false'}")
        return self

    def add_compare(self, column: str, operator: str, value: NumericId | None) -> ConditionBuilder:
        if value is not None:
            self.add(f"{column} {operator} {format_number(value)}")
        return self

    def add_in(self, column: str, values: Sequence[str]) -> ConditionBuilder:
        if values:
            self.add(f"{column} IN ({quote_list(values)})")
        return self

    def add_numeric_in(self, column: str, tokens: Sequence[str]) -> ConditionBuilder:
        ids = to_numeric_ids(tokens)
        if ids:
            self.add(f"{column} IN ({number_list(ids)})")
        return self

    def add_any_prefix(self, column: str, prefixes: Sequence[str]) -> ConditionBuilder:
        if prefixes:
            ors = " OR ".join(f"{column} LIKE {quote_literal(p + '%')}" for p in prefixes)
            self.add(f"({ors})")
        return self

    def add_not_in(self, column: str, values: Sequence[str], *, null_safe: bool = False) -> ConditionBuilder:
        if values:
            self.add(_negated_membership(column, quote_list(values), null_safe))
        return self

    def add_numeric_not_in(
        self, column: str, tokens: Sequence[str], *, null_safe: bool = False
    ) -> ConditionBuilder:
        ids = to_numeric_ids(tokens)
        if ids:
            self.add(_negated_membership(column, number_list(ids), null_safe))
        return self

    def add_no_prefix(self, column: str, prefixes: Sequence[str]) -> ConditionBuilder:
        if prefixes:
            ands = " AND ".join(f"{column} NOT LIKE {quote_literal(p + '%')}" for p in prefixes)
            self.add(f"({ands})")
        return self

    def build(self) -> list[str]:
        return list(self._conditions)


def _negated_membership(column: str, rendered: str, null_safe: bool) -> str:
    if null_safe:
        return f"({column} IS NULL OR {column} NOT IN ({rendered}))"
    return f"{column} NOT IN ({rendered})"


# ---------------------------------------------------------------------------
# Amount columns
# ---------------------------------------------------------------------------


def get_amount_column(frequency: Frequency, alias: str = DEFAULT_LINE_ITEM_ALIAS) -> str:
    """MONTH -> monthly_amount, QUARTER -> quarterly_amount, YEAR -> ytd_amount."""
    return f"{alias}.{_AMOUNT_COLUMNS[frequency]}"


def get_sum_expression(frequency: Frequency, alias: str = DEFAULT_LINE_ITEM_ALIAS) -> str:
    return f"COALESCE(SUM({get_amount_column(frequency, alias)}), 0)"


# ---------------------------------------------------------------------------
# Period conditions
# ---------------------------------------------------------------------------


def frequency_conditions(frequency: Frequency, alias: str = DEFAULT_LINE_ITEM_ALIAS) -> list[str]:
    if frequency == Frequency.QUARTER:
        return [f"{alias}.is_quarterly = true"]
    if frequency == Frequency.YEAR:
        return [f"{alias}.is_yearly = true"]
    return []


def _interval_conditions(interval: PeriodInterval, frequency: Frequency, alias: str) -> list[str]:
    if frequency == Frequency.MONTH:
        start, end = parse_month(interval.start), parse_month(interval.end)
        if start is not None and end is not None:
            return [
                f"({alias}.year, {alias}.month) >= ({start.year}, {start.month})",
                f"({alias}.year, {alias}.month) <= ({end.year}, {end.month})",
            ]
    elif frequency == Frequency.QUARTER:
        start_q, end_q = parse_quarter(interval.start), parse_quarter(interval.end)
        if start_q is not None and end_q is not None:
            return [
                f"({alias}.year, {alias}.quarter) >= ({start_q.year}, {start_q.quarter})",
                f"({alias}.year, {alias}.quarter) <= ({end_q.year}, {end_q.quarter})",
            ]

    # YEAR, or a sub-yearly interval whose endpoints did not parse
    conditions: list[str] = []
    start_year = extract_year(interval.start)
    end_year = extract_year(interval.end)
    if start_year is not None:
        conditions.append(f"{alias}.year >= {start_year}")
    if end_year is not None:
        conditions.append(f"{alias}.year <= {end_year}")
    return conditions


def _dates_condition(dates: Sequence[str], frequency: Frequency, alias: str) -> str | None:
    if frequency == Frequency.MONTH:
        months = parse_month_periods(dates)
        if not months:
            return None
        ors = " OR ".join(f"({alias}.year = {p.year} AND {alias}.month = {p.month})" for p in months)
        return f"({ors})"
    if frequency == Frequency.QUARTER:
        quarters = parse_quarter_periods(dates)
        if not quarters:
            return None
        ors = " OR ".join(
            f"({alias}.year = {p.year} AND {alias}.quarter = {p.quarter})" for p in quarters
        )
        return f"({ors})"
    years = parse_years(dates)
    if not years:
        return None
    return f"{alias}.year IN ({', '.join(str(y) for y in years)})"


def period_conditions(
    selection: PeriodSelection,
    frequency: Frequency,
    alias: str = DEFAULT_LINE_ITEM_ALIAS,
) -> list[str]:
    """
    Conditions for a period selection.

    Interval and dates are independent; when both are present both sets
    are returned and end up ANDed.
    """
    conditions: list[str] = []
    if selection.interval is not None:
        conditions.extend(_interval_conditions(selection.interval, frequency, alias))
    if selection.dates:
        date_condition = _dates_condition(selection.dates, frequency, alias)
        if date_condition is not None:
            conditions.append(date_condition)
    return conditions


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------


def _add_exclusions(
    builder: ConditionBuilder,
    exclude: ExclusionFilter,
    account_category: AccountCategory,
    context: SqlBuildContext,
) -> None:
    eli = context.line_item_alias
    e = context.entity_alias
    u = context.uat_alias

    builder.add_not_in(f"{eli}.report_id", exclude.report_ids)
    builder.add_not_in(f"{eli}.entity_cui", exclude.entity_cuis)
    builder.add_not_in(f"{eli}.functional_code", exclude.functional_codes)
    builder.add_no_prefix(f"{eli}.functional_code", exclude.functional_prefixes)

    if account_category != AccountCategory.INCOME:
        builder.add_not_in(f"{eli}.economic_code", exclude.economic_codes)
        builder.add_no_prefix(f"{eli}.economic_code", exclude.economic_prefixes)

    if context.has_entity_join:
        builder.add_not_in(f"{e}.entity_type", exclude.entity_types, null_safe=True)
        builder.add_numeric_not_in(f"{e}.uat_id", exclude.uat_ids, null_safe=True)

    if context.has_uat_join:
        builder.add_not_in(f"{u}.county_code", exclude.county_codes, null_safe=True)
        builder.add_not_in(f"{u}.region", exclude.regions, null_safe=True)


@traced_engine("conditions", "1.0", fingerprint_fields=("filter", "context"))
def compile_conditions(
    filter: AnalyticsFilter,
    context: SqlBuildContext,
) -> list[str]:
    """Compile ``filter`` into ordered, conjunctive condition fragments."""
    eli = context.line_item_alias
    e = context.entity_alias
    u = context.uat_alias
    frequency = filter.report_period.frequency

    builder = ConditionBuilder()

    # 1-2. Frequency flag and period
    builder.extend(frequency_conditions(frequency, eli))
    builder.extend(period_conditions(filter.report_period.selection, frequency, eli))

    # 3. Scalars
    builder.add_equals(f"{eli}.account_category", filter.account_category.value)
    builder.add_equals(f"{eli}.report_type", filter.report_type)
    builder.add_equals(f"{eli}.main_creditor_cui", filter.main_creditor_cui)

    # 4. Lists
    builder.add_in(f"{eli}.report_id", filter.report_ids)
    builder.add_in(f"{eli}.entity_cui", filter.entity_cuis)
    builder.add_in(f"{eli}.expense_type", filter.expense_types)
    builder.add_in(f"{eli}.functional_code", filter.functional_codes)
    builder.add_in(f"{eli}.economic_code", filter.economic_codes)
    builder.add_in(f"{eli}.program_code", filter.program_codes)
    builder.add_numeric_in(f"{eli}.funding_source_id", filter.funding_source_ids)
    builder.add_numeric_in(f"{eli}.budget_sector_id", filter.budget_sector_ids)

    # 5. Prefixes
    builder.add_any_prefix(f"{eli}.functional_code", filter.functional_prefixes)
    builder.add_any_prefix(f"{eli}.economic_code", filter.economic_prefixes)

    # 6. Entity join
    if context.has_entity_join:
        builder.add_in(f"{e}.entity_type", filter.entity_types)
        builder.add_flag(f"{e}.is_uat", filter.is_uat)
        builder.add_numeric_in(f"{e}.uat_id", filter.uat_ids)

    # 7. UAT join
    if context.has_uat_join:
        builder.add_in(f"{u}.county_code", filter.county_codes)
        builder.add_in(f"{u}.region", filter.regions)
        builder.add_compare(f"{u}.population", ">=", filter.min_population)
        builder.add_compare(f"{u}.population", "<=", filter.max_population)

    # 8. Item amount bounds
    amount_column = get_amount_column(frequency, eli)
    builder.add_compare(amount_column, ">=", filter.item_min_amount)
    builder.add_compare(amount_column, "<=", filter.item_max_amount)

    # 9. Exclusions
    if filter.exclude is not None:
        _add_exclusions(builder, filter.exclude, filter.account_category, context)

    return builder.build()


def compile_having_conditions(
    filter: AnalyticsFilter,
    alias: str = DEFAULT_LINE_ITEM_ALIAS,
) -> list[str]:
    """Aggregate bounds against ``COALESCE(SUM(<amount column>), 0)``."""
    sum_expression = get_sum_expression(filter.report_period.frequency, alias)
    builder = ConditionBuilder()
    builder.add_compare(sum_expression, ">=", filter.aggregate_min_amount)
    builder.add_compare(sum_expression, "<=", filter.aggregate_max_amount)
    return builder.build()


def to_where_clause(conditions: Sequence[str]) -> str:
    """``''`` for no conditions, otherwise ``WHERE a AND b ...``."""
    if not conditions:
        return ""
    return "WHERE " + " AND ".join(conditions)


def to_having_clause(conditions: Sequence[str]) -> str:
    if not conditions:
        return ""
    return "HAVING " + " AND ".join(conditions)
