"""
Settings Loader (``budget_config.loader``).

Responsibility
--------------
Builds a ``Settings`` instance from an optional YAML file overlaid by
environment variables.  Precedence, lowest first: dataclass defaults, YAML
file, environment.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on the kernel only for
``ConfigurationError`` and logging.  MUST NOT import from modules or
services.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Unknown sections or keys are rejected, never silently ignored.
* Integer limits and timeouts must be positive.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key, wrong type or out-of-range value  -> ``ConfigurationError``.

Environment variables
---------------------
``DATABASE_URL`` and ``BUDGET_DATABASE_URL`` set the database URL (the
prefixed one wins).  Every other field is ``BUDGET_<SECTION>_<FIELD>``,
e.g. ``BUDGET_ANALYTICS_QUERY_TIMEOUT_MS`` or
``BUDGET_NORMALIZATION_DATASET_DIR``; ``BUDGET_LOG_LEVEL`` sets the log
level.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from budget_config.schema import (
    AnalyticsSettings,
    DatabaseSettings,
    NormalizationSettings,
    Settings,
)
from budget_kernel.exceptions import ConfigurationError
from budget_kernel.logging_config import get_logger

logger = get_logger("config.loader")

ENV_PREFIX = "BUDGET_"

_SECTIONS: dict[str, type] = {
    "database": DatabaseSettings,
    "analytics": AnalyticsSettings,
    "normalization": NormalizationSettings,
}

_NULLABLE_INT_FIELDS = {"fallback_year"}
_NON_NEGATIVE_FIELDS = {"entity_default_limit", "max_overflow"}
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "settings file must contain a mapping")
    return data


def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigurationError(key, f"expected a boolean, got {value!r}")


def _parse_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(key, f"expected an integer, got {value!r}")
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ConfigurationError(key, f"expected an integer, got {value!r}") from None
    return number


def _coerce(key: str, name: str, default: Any, value: Any) -> Any:
    if name in _NULLABLE_INT_FIELDS:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return _parse_int(key, value)
    if isinstance(default, bool):
        return _parse_bool(key, value)
    if isinstance(default, int):
        number = _parse_int(key, value)
        minimum = 0 if name in _NON_NEGATIVE_FIELDS else 1
        if number < minimum:
            raise ConfigurationError(key, f"must be >= {minimum}, got {number}")
        return number
    if isinstance(default, Path):
        return Path(str(value)).expanduser()
    if value is None:
        raise ConfigurationError(key, "must not be empty")
    return str(value)


def parse_section(section: str, data: Mapping[str, Any]) -> Any:
    """Parse one settings section into its dataclass."""
    cls = _SECTIONS[section]
    if not isinstance(data, Mapping):
        raise ConfigurationError(section, "section must be a mapping")
    known = {f.name: f for f in fields(cls)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ConfigurationError(f"{section}.{unknown[0]}", "unknown setting")

    defaults = cls()
    values = {
        name: _coerce(f"{section}.{name}", name, getattr(defaults, name), value)
        for name, value in data.items()
    }
    return cls(**values)


def _env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if "DATABASE_URL" in env:
        overrides.setdefault("database", {})["url"] = env["DATABASE_URL"]
    for section, cls in _SECTIONS.items():
        for f in fields(cls):
            var = f"{ENV_PREFIX}{section.upper()}_{f.name.upper()}"
            if var in env:
                overrides.setdefault(section, {})[f.name] = env[var]
    if f"{ENV_PREFIX}LOG_LEVEL" in env:
        overrides["log_level"] = env[f"{ENV_PREFIX}LOG_LEVEL"]
    return overrides


def _override_keys(overrides: Mapping[str, Any]) -> list[str]:
    keys = [
        f"{section}.{name}"
        for section, values in overrides.items()
        if isinstance(values, dict)
        for name in values
    ]
    if "log_level" in overrides:
        keys.append("log_level")
    return sorted(keys)


def _parse_log_level(value: Any) -> str:
    level = str(value).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError("log_level", f"unknown log level {value!r}")
    return level


def load_settings(
    path: Path | str | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """
    Load settings from ``path`` (optional) and ``env``.

    Args:
        path: YAML file with ``database``, ``analytics``, ``normalization``
            sections and a top-level ``log_level``.
        env: Environment mapping; defaults to ``os.environ``.

    Raises:
        ConfigurationError: on unknown keys or invalid values.
    """
    env = os.environ if env is None else env
    data: dict[str, Any] = load_yaml_file(Path(path)) if path is not None else {}

    unknown = sorted(set(data) - set(_SECTIONS) - {"log_level"})
    if unknown:
        raise ConfigurationError(unknown[0], "unknown settings section")

    overrides = _env_overrides(env)
    merged: dict[str, Any] = {}
    for section in _SECTIONS:
        raw = data.get(section) or {}
        if not isinstance(raw, Mapping):
            raise ConfigurationError(section, "section must be a mapping")
        section_data = dict(raw)
        section_data.update(overrides.get(section, {}))
        merged[section] = parse_section(section, section_data)

    settings = Settings(
        database=merged["database"],
        analytics=merged["analytics"],
        normalization=merged["normalization"],
        log_level=_parse_log_level(overrides.get("log_level", data.get("log_level", "INFO"))),
    )

    logger.info(
        "settings_loaded",
        extra={
            "source": str(path) if path is not None else None,
            "env_overrides": _override_keys(overrides),
            "log_level": settings.log_level,
        },
    )
    return settings
