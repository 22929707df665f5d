"""Tests for AnalyticsConfig validation."""

import pytest

from budget_modules.analytics.config import AnalyticsConfig


class TestAnalyticsConfig:
    def test_defaults(self):
        config = AnalyticsConfig.with_defaults()
        assert config.uat_max_results == 50_000
        assert config.county_max_results == 5_000
        assert config.query_timeout_ms == 45_000
        assert config.fallback_year is None

    def test_from_dict(self):
        config = AnalyticsConfig.from_dict({"entity_max_limit": 200, "fallback_year": 2022})
        assert config.entity_max_limit == 200
        assert config.fallback_year == 2022

    def test_unknown_key(self):
        with pytest.raises(TypeError):
            AnalyticsConfig.from_dict({"nope": 1})

    @pytest.mark.parametrize("name", ["uat_max_results", "query_timeout_ms", "entity_max_limit"])
    def test_positive_limits(self, name):
        with pytest.raises(ValueError, match=name):
            AnalyticsConfig(**{name: 0})

    def test_default_limit_bounds(self):
        with pytest.raises(ValueError):
            AnalyticsConfig(entity_default_limit=-1)
        with pytest.raises(ValueError):
            AnalyticsConfig(entity_default_limit=10, entity_max_limit=5)
