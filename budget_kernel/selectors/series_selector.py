"""
Module: budget_kernel.selectors.series_selector
Responsibility: Read-only time series: the frequency's amount column summed
    per period bucket (year, year+quarter or year+month).
Architecture position: Kernel > Selectors.  May import from selectors/base.py.

Invariants enforced:
    - One row per bucket, ordered chronologically.
    - Buckets come back as numbers; labels are formatted by the caller.
"""

from dataclasses import dataclass
from decimal import Decimal

from budget_kernel.selectors.base import BaseSelector, CompiledClauses, to_decimal


@dataclass(frozen=True)
class SeriesBucket:
    year: int
    period: int | None
    amount: Decimal


class SeriesSelector(BaseSelector):
    def series(
        self,
        clauses: CompiledClauses,
        sum_expression: str,
        period_column: str | None = None,
        timeout_ms: int | None = None,
    ) -> list[SeriesBucket]:
        """
        Sum per bucket.

        Args:
            clauses: Compiled WHERE/HAVING text and join flags.
            sum_expression: Aggregate over the frequency's amount column.
            period_column: ``eli.month`` or ``eli.quarter``; ``None`` for
                yearly buckets.
            timeout_ms: Statement timeout (PostgreSQL only).
        """
        joins = []
        if clauses.entity_join or clauses.uat_join:
            joins.append("LEFT JOIN entities e ON eli.entity_cui = e.cui")
        if clauses.uat_join:
            joins.append("LEFT JOIN uats u ON e.uat_id = u.id")
        period_select = f"{period_column} AS period" if period_column else "NULL AS period"
        group_by = f"eli.year, {period_column}" if period_column else "eli.year"
        sql = f"""
            SELECT eli.year AS year, {period_select}, {sum_expression} AS amount
            FROM executionlineitems eli
            {" ".join(joins)}
            {clauses.where_sql}
            GROUP BY {group_by}
            {clauses.having_sql}
            ORDER BY {group_by}
        """
        self.apply_statement_timeout(timeout_ms)
        return [
            SeriesBucket(
                year=int(row["year"]),
                period=int(row["period"]) if row["period"] is not None else None,
                amount=to_decimal(row["amount"]),
            )
            for row in self.fetch_all(sql)
        ]
