"""Tests for the selector base: colon escaping and clause rendering."""

import pytest

from budget_kernel.selectors import CompiledClauses, EntitySelector
from budget_kernel.selectors.base import BaseSelector, escape_bind_markers
from tests.selectors.conftest import YEARLY_2023_2024, YTD_SUM


class TestEscapeBindMarkers:
    def test_bind_like_colon_escaped(self):
        assert escape_bind_markers("eli.entity_cui IN ('RO :abc')") == r"eli.entity_cui IN ('RO \:abc')"

    @pytest.mark.parametrize(
        "fragment",
        [
            "eli.functional_code LIKE '65:%'",
            "eli.year::text = '2024'",
            "eli.report_type = 'a :b: c'",
            "eli.report_type = 'ratio 3 : 4'",
        ],
    )
    def test_other_colons_unchanged(self, fragment):
        assert escape_bind_markers(fragment) == fragment

    def test_backslash_before_colon_doubled(self):
        assert escape_bind_markers(r"'a\:b'") == r"'a\\:b'"
        assert escape_bind_markers("'a\\:'") == "'a\\\\:'"

    def test_clause_properties_escape(self):
        clauses = CompiledClauses(where="WHERE x = ':a'", having="HAVING y = ':b'")
        assert clauses.where_sql == r"WHERE x = '\:a'"
        assert clauses.having_sql == r"HAVING y = '\:b'"
        assert clauses.where == "WHERE x = ':a'"


class TestLiteralsReachDatabase:
    """Escaped literals come back from the database byte-for-byte."""

    @pytest.mark.parametrize(
        "literal",
        ["RO :abc", "Raport :limit", "x:y", "a :b: c", r"a\:b", "a\\:", r"\\:ab", "::x"],
    )
    def test_select_literal(self, session, literal):
        quoted = "'" + literal.replace("'", "''") + "'"
        rows = BaseSelector(session).fetch_all(f"SELECT {escape_bind_markers(quoted)} AS v")
        assert rows[0]["v"] == literal

    def test_selector_with_colon_literal(self, seeded_session):
        clauses = CompiledClauses(
            where=f"{YEARLY_2023_2024} AND eli.entity_cui IN ('4305857', 'RO :abc')",
            entity_join=True,
            uat_join=True,
        )
        rows = EntitySelector(seeded_session).rows(clauses, YTD_SUM, limit=100)
        assert [(r.entity_cui, r.year) for r in rows] == [("4305857", 2023), ("4305857", 2024)]
