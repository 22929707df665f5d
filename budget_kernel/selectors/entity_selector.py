"""
Module: budget_kernel.selectors.entity_selector
Responsibility: Read-only per-entity rows for entity analytics: one row per
    (entity, year) with the entity's metadata and the population used for
    per-capita amounts.
Architecture position: Kernel > Selectors.  May import from selectors/base.py.

Invariants enforced:
    - The entities table is always joined (INNER); the UAT table is joined
      through entities.uat_id.
    - population is the UAT's own population for UAT entities, the county
      population for county councils, NULL otherwise.
    - No HAVING clause: aggregate bounds apply to normalized totals later.
"""

from dataclasses import dataclass
from decimal import Decimal

from budget_kernel.selectors.base import BaseSelector, CompiledClauses, to_decimal
from budget_kernel.selectors.heatmap_selector import BUCHAREST_COUNTY_CODE, BUCHAREST_SIRUTA_CODE

COUNTY_COUNCIL_ENTITY_TYPE = "admin_county_council"


@dataclass(frozen=True)
class EntityAnalyticsRow:
    """One entity in one year, amount in nominal RON."""

    entity_cui: str
    entity_name: str
    entity_type: str | None
    uat_id: int | None
    county_code: str | None
    county_name: str | None
    population: int | None
    year: int
    total_amount: Decimal


class EntitySelector(BaseSelector):
    def rows(
        self,
        clauses: CompiledClauses,
        sum_expression: str,
        limit: int,
        timeout_ms: int | None = None,
    ) -> list[EntityAnalyticsRow]:
        sql = f"""
            WITH county_populations AS (
                SELECT
                    county_code,
                    MAX(CASE
                        WHEN county_code = '{BUCHAREST_COUNTY_CODE}'
                             AND siruta_code = '{BUCHAREST_SIRUTA_CODE}' THEN population
                        WHEN siruta_code = county_code THEN population
                        ELSE 0
                    END) AS county_population
                FROM uats
                GROUP BY county_code
            )
            SELECT
                e.cui AS entity_cui,
                e.name AS entity_name,
                e.entity_type,
                e.uat_id,
                u.county_code,
                u.county_name,
                CASE
                    WHEN e.is_uat = true THEN u.population
                    WHEN e.entity_type = '{COUNTY_COUNCIL_ENTITY_TYPE}' THEN cp.county_population
                    ELSE NULL
                END AS population,
                eli.year,
                {sum_expression} AS total_amount
            FROM executionlineitems eli
            INNER JOIN entities e ON eli.entity_cui = e.cui
            LEFT JOIN uats u ON e.uat_id = u.id
            LEFT JOIN county_populations cp ON u.county_code = cp.county_code
            {clauses.where_sql}
            GROUP BY e.cui, e.name, e.entity_type, e.uat_id, e.is_uat,
                     u.county_code, u.county_name, u.population,
                     cp.county_population, eli.year
            ORDER BY e.cui, eli.year
            LIMIT :limit
        """
        self.apply_statement_timeout(timeout_ms)
        return [
            EntityAnalyticsRow(
                entity_cui=row["entity_cui"],
                entity_name=row["entity_name"],
                entity_type=row["entity_type"],
                uat_id=row["uat_id"],
                county_code=row["county_code"],
                county_name=row["county_name"],
                population=row["population"],
                year=int(row["year"]),
                total_amount=to_decimal(row["total_amount"]),
            )
            for row in self.fetch_all(sql, {"limit": limit})
        ]
