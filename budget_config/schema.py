"""
Settings schema.

Frozen dataclasses for everything the analytics engine reads at startup:
database connection and pool, analytics limits and timeout, the normalization
dataset directory and the log level.  The loader parses YAML and environment
overrides into these types; nothing else constructs them from raw input.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = "postgresql://localhost:5432/budget"
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    echo: bool = False


@dataclass(frozen=True)
class AnalyticsSettings:
    """Field names match ``AnalyticsConfig`` so they can be passed through."""

    uat_max_results: int = 50_000
    county_max_results: int = 5_000
    entity_max_rows: int = 100_000
    query_timeout_ms: int = 45_000
    entity_default_limit: int = 50
    entity_max_limit: int = 1_000
    fallback_year: int | None = None
    cpi_reference_year: int = 2024

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NormalizationSettings:
    dataset_dir: Path = Path("datasets")


@dataclass(frozen=True)
class Settings:
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    analytics: AnalyticsSettings = field(default_factory=AnalyticsSettings)
    normalization: NormalizationSettings = field(default_factory=NormalizationSettings)
    log_level: str = "INFO"
