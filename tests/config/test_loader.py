"""Tests for settings loading (budget_config.loader)."""

from pathlib import Path

import pytest
import yaml

from budget_config import Settings, load_settings
from budget_config.loader import load_yaml_file, parse_section
from budget_kernel.exceptions import ConfigurationError


def _write(tmp_path, document) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump(document), encoding="utf-8")
    return path


class TestDefaults:
    def test_no_file_no_env(self):
        settings = load_settings(env={})
        assert settings == Settings()
        assert settings.database.url == "postgresql://localhost:5432/budget"
        assert settings.analytics.query_timeout_ms == 45_000
        assert settings.normalization.dataset_dir == Path("datasets")
        assert settings.log_level == "INFO"


class TestYaml:
    def test_sections(self, tmp_path):
        path = _write(
            tmp_path,
            {
                "database": {"url": "postgresql://db/warehouse", "pool_size": 5, "echo": True},
                "analytics": {"query_timeout_ms": 1000, "fallback_year": 2023},
                "normalization": {"dataset_dir": "/srv/datasets"},
                "log_level": "debug",
            },
        )
        settings = load_settings(path, env={})
        assert settings.database.url == "postgresql://db/warehouse"
        assert settings.database.pool_size == 5
        assert settings.database.echo is True
        assert settings.analytics.query_timeout_ms == 1000
        assert settings.analytics.fallback_year == 2023
        assert settings.normalization.dataset_dir == Path("/srv/datasets")
        assert settings.log_level == "DEBUG"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(path, env={}) == Settings()

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_yaml_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml", env={})

    def test_logs_source(self, tmp_path, captured_logs):
        path = _write(tmp_path, {"log_level": "WARNING"})
        load_settings(path, env={"BUDGET_ANALYTICS_FALLBACK_YEAR": "2020"})
        record = next(r for r in captured_logs() if r["message"] == "settings_loaded")
        assert record["source"] == str(path)
        assert record["env_overrides"] == ["analytics.fallback_year"]
        assert record["log_level"] == "WARNING"


class TestEnvironment:
    def test_env_beats_yaml(self, tmp_path):
        path = _write(tmp_path, {"analytics": {"query_timeout_ms": 1000}})
        settings = load_settings(path, env={"BUDGET_ANALYTICS_QUERY_TIMEOUT_MS": "2500"})
        assert settings.analytics.query_timeout_ms == 2500

    def test_database_url_precedence(self):
        env = {"DATABASE_URL": "postgresql://plain/db"}
        assert load_settings(env=env).database.url == "postgresql://plain/db"
        env["BUDGET_DATABASE_URL"] = "postgresql://prefixed/db"
        assert load_settings(env=env).database.url == "postgresql://prefixed/db"

    def test_bool_and_path(self):
        settings = load_settings(
            env={"BUDGET_DATABASE_ECHO": "yes", "BUDGET_NORMALIZATION_DATASET_DIR": "/tmp/ds"}
        )
        assert settings.database.echo is True
        assert settings.normalization.dataset_dir == Path("/tmp/ds")

    def test_blank_fallback_year_is_none(self):
        assert load_settings(env={"BUDGET_ANALYTICS_FALLBACK_YEAR": ""}).analytics.fallback_year is None

    def test_log_level(self):
        assert load_settings(env={"BUDGET_LOG_LEVEL": "error"}).log_level == "ERROR"


class TestValidation:
    @pytest.mark.parametrize(
        "document,key",
        [
            ({"cache": {}}, "cache"),
            ({"analytics": {"page_size": 3}}, "analytics.page_size"),
            ({"analytics": {"query_timeout_ms": 0}}, "analytics.query_timeout_ms"),
            ({"analytics": {"entity_default_limit": -1}}, "analytics.entity_default_limit"),
            ({"database": {"pool_size": "many"}}, "database.pool_size"),
            ({"database": {"echo": "sometimes"}}, "database.echo"),
            ({"database": {"pool_size": True}}, "database.pool_size"),
            ({"database": ["url"]}, "database"),
            ({"log_level": "chatty"}, "log_level"),
        ],
    )
    def test_rejected(self, tmp_path, document, key):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(_write(tmp_path, document), env={})
        assert exc_info.value.key == key

    def test_zero_allowed_where_non_negative(self):
        section = parse_section("database", {"max_overflow": 0})
        assert section.max_overflow == 0

    def test_invalid_env_value(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(env={"BUDGET_ANALYTICS_UAT_MAX_RESULTS": "-5"})
        assert exc_info.value.key == "analytics.uat_max_results"
