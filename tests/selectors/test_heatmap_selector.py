"""Tests for HeatmapSelector against the SQLite warehouse."""

from decimal import Decimal

from budget_kernel.selectors import CompiledClauses, HeatmapSelector
from tests.selectors.conftest import YEARLY_2023_2024, YTD_SUM


class TestUATRows:
    def test_one_row_per_uat_and_year(self, seeded_session):
        rows = HeatmapSelector(seeded_session).uat_rows(
            CompiledClauses(where=YEARLY_2023_2024, uat_join=True), YTD_SUM, limit=100
        )
        assert [(r.uat_id, r.year, r.total_amount) for r in rows] == [
            (1, 2023, Decimal("1000")),
            (1, 2024, Decimal("2000")),
            (2, 2024, Decimal("500")),
            (3, 2024, Decimal("3000")),
        ]
        assert rows[0].uat_code == "4305857"
        assert rows[0].county_code == "CJ"
        assert rows[0].population == 700000

    def test_entity_join_fields(self, seeded_session):
        clauses = CompiledClauses(
            where=YEARLY_2023_2024 + " AND e.is_uat = true",
            entity_join=True,
            uat_join=True,
        )
        rows = HeatmapSelector(seeded_session).uat_rows(clauses, YTD_SUM, limit=100)
        assert [r.uat_id for r in rows] == [2, 3]

    def test_having_applies_per_uat_year(self, seeded_session):
        clauses = CompiledClauses(
            where=YEARLY_2023_2024,
            having=f"HAVING {YTD_SUM} >= 1500",
            uat_join=True,
        )
        rows = HeatmapSelector(seeded_session).uat_rows(clauses, YTD_SUM, limit=100)
        assert [(r.uat_id, r.year) for r in rows] == [(1, 2024), (3, 2024)]

    def test_limit(self, seeded_session):
        rows = HeatmapSelector(seeded_session).uat_rows(
            CompiledClauses(where=YEARLY_2023_2024), YTD_SUM, limit=2
        )
        assert len(rows) == 2

    def test_no_match(self, seeded_session):
        clauses = CompiledClauses(where="WHERE eli.year = 1999")
        assert HeatmapSelector(seeded_session).uat_rows(clauses, YTD_SUM, limit=10) == []


class TestCountyRows:
    def test_rolls_up_to_county(self, seeded_session):
        rows = HeatmapSelector(seeded_session).county_rows(
            CompiledClauses(where=YEARLY_2023_2024), YTD_SUM, limit=100
        )
        assert [(r.county_code, r.year, r.total_amount) for r in rows] == [
            ("B", 2024, Decimal("3000")),
            ("CJ", 2023, Decimal("1000")),
            ("CJ", 2024, Decimal("2500")),
        ]

    def test_county_seat_population_and_cui(self, seeded_session):
        rows = HeatmapSelector(seeded_session).county_rows(
            CompiledClauses(where=YEARLY_2023_2024), YTD_SUM, limit=100
        )
        by_code = {r.county_code: r for r in rows}
        assert by_code["CJ"].county_population == 700000
        assert by_code["CJ"].county_entity_cui == "4305857"
        assert by_code["B"].county_population == 1700000
        assert by_code["B"].county_entity_cui == "4267117"
        assert by_code["B"].county_name == "Bucuresti"

    def test_uat_filter(self, seeded_session):
        clauses = CompiledClauses(
            where=YEARLY_2023_2024 + " AND u.county_code IN ('B')",
            uat_join=True,
        )
        rows = HeatmapSelector(seeded_session).county_rows(clauses, YTD_SUM, limit=100)
        assert [r.county_code for r in rows] == ["B"]

    def test_statement_timeout_is_postgres_only(self, seeded_session):
        rows = HeatmapSelector(seeded_session).county_rows(
            CompiledClauses(where=YEARLY_2023_2024), YTD_SUM, limit=100, timeout_ms=10
        )
        assert len(rows) == 3
