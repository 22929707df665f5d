"""
Module: budget_kernel.selectors.heatmap_selector
Responsibility: Read-only heatmap queries.  Sums the frequency's amount
    column per (UAT, year) and per (county, year); the analytics layer then
    normalizes and aggregates across years.
Architecture position: Kernel > Selectors.  May import from selectors/base.py.

Invariants enforced:
    - One row per (UAT, year) / (county, year), ordered by key then year.
    - Amounts are nominal RON Decimals; no normalization happens here.
    - County population is the population of the county seat UAT (the
      municipality of Bucharest for county code 'B'); county_entity_cui is
      that UAT's code.
    - Result size is capped by the caller's limit.

Failure modes:
    - DBAPIError propagates (statement timeout included).
"""

from dataclasses import dataclass
from decimal import Decimal

from budget_kernel.selectors.base import BaseSelector, CompiledClauses, to_decimal

BUCHAREST_COUNTY_CODE = "B"
BUCHAREST_SIRUTA_CODE = "179132"


@dataclass(frozen=True)
class HeatmapUATDataPoint:
    """One UAT in one year, amount in nominal RON."""

    uat_id: int
    uat_code: str
    uat_name: str
    siruta_code: str
    county_code: str | None
    county_name: str | None
    region: str | None
    population: int | None
    year: int
    total_amount: Decimal


@dataclass(frozen=True)
class HeatmapCountyDataPoint:
    """One county in one year, amount in nominal RON."""

    county_code: str
    county_name: str
    county_population: int | None
    county_entity_cui: str | None
    year: int
    total_amount: Decimal


_COUNTY_SEAT = (
    f"((u.county_code = '{BUCHAREST_COUNTY_CODE}' AND u.siruta_code = '{BUCHAREST_SIRUTA_CODE}')"
    f" OR (u.county_code <> '{BUCHAREST_COUNTY_CODE}' AND u.siruta_code = u.county_code))"
)


class HeatmapSelector(BaseSelector):
    """UAT and county heatmap rows."""

    def uat_rows(
        self,
        clauses: CompiledClauses,
        sum_expression: str,
        limit: int,
        timeout_ms: int | None = None,
    ) -> list[HeatmapUATDataPoint]:
        """
        Sum per (UAT, year).  UATs are matched to line items by uat_code.

        The entity table is joined only when ``clauses.entity_join`` is set.
        """
        entity_join = "LEFT JOIN entities e ON eli.entity_cui = e.cui" if clauses.entity_join else ""
        sql = f"""
            SELECT
                u.id AS uat_id,
                u.uat_code,
                u.name AS uat_name,
                u.siruta_code,
                u.county_code,
                u.county_name,
                u.region,
                u.population,
                eli.year,
                {sum_expression} AS total_amount
            FROM executionlineitems eli
            INNER JOIN uats u ON eli.entity_cui = u.uat_code
            {entity_join}
            {clauses.where_sql}
            GROUP BY u.id, u.uat_code, u.name, u.siruta_code, u.county_code,
                     u.county_name, u.region, u.population, eli.year
            {clauses.having_sql}
            ORDER BY u.id, eli.year
            LIMIT :limit
        """
        self.apply_statement_timeout(timeout_ms)
        return [
            HeatmapUATDataPoint(
                uat_id=int(row["uat_id"]),
                uat_code=row["uat_code"],
                uat_name=row["uat_name"],
                siruta_code=row["siruta_code"],
                county_code=row["county_code"],
                county_name=row["county_name"],
                region=row["region"],
                population=row["population"],
                year=int(row["year"]),
                total_amount=to_decimal(row["total_amount"]),
            )
            for row in self.fetch_all(sql, {"limit": limit})
        ]

    def county_rows(
        self,
        clauses: CompiledClauses,
        sum_expression: str,
        limit: int,
        timeout_ms: int | None = None,
    ) -> list[HeatmapCountyDataPoint]:
        """
        Sum per (county, year).

        Line items are summed per (entity, year) first, with the HAVING
        clause applied at that level, then rolled up to the county of the
        UAT whose code matches the entity.
        """
        joins = []
        if clauses.entity_join:
            joins.append("LEFT JOIN entities e ON eli.entity_cui = e.cui")
        if clauses.uat_join:
            joins.append("LEFT JOIN uats u ON eli.entity_cui = u.uat_code")
        sql = f"""
            WITH filtered_aggregates AS (
                SELECT eli.entity_cui, eli.year, {sum_expression} AS total_amount
                FROM executionlineitems eli
                {" ".join(joins)}
                {clauses.where_sql}
                GROUP BY eli.entity_cui, eli.year
                {clauses.having_sql}
            ),
            county_info AS (
                SELECT
                    u.county_code,
                    MAX(u.county_name) AS county_name,
                    MAX(CASE WHEN {_COUNTY_SEAT} THEN u.population ELSE 0 END) AS county_population,
                    MAX(CASE WHEN {_COUNTY_SEAT} THEN u.uat_code END) AS county_entity_cui
                FROM uats u
                GROUP BY u.county_code
            )
            SELECT
                ci.county_code,
                ci.county_name,
                COALESCE(ci.county_population, 0) AS county_population,
                ci.county_entity_cui,
                fa.year,
                COALESCE(SUM(fa.total_amount), 0) AS total_amount
            FROM county_info ci
            INNER JOIN uats cu ON ci.county_code = cu.county_code
            INNER JOIN filtered_aggregates fa ON cu.uat_code = fa.entity_cui
            GROUP BY ci.county_code, ci.county_name, ci.county_population,
                     ci.county_entity_cui, fa.year
            ORDER BY ci.county_code, fa.year
            LIMIT :limit
        """
        self.apply_statement_timeout(timeout_ms)
        return [
            HeatmapCountyDataPoint(
                county_code=row["county_code"],
                county_name=row["county_name"],
                county_population=int(row["county_population"]),
                county_entity_cui=row["county_entity_cui"],
                year=int(row["year"]),
                total_amount=to_decimal(row["total_amount"]),
            )
            for row in self.fetch_all(sql, {"limit": limit})
        ]
