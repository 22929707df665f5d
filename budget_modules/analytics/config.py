"""
Analytics Configuration Schema.

Result limits, the query timeout, pagination bounds and the year used as
fallback when a period selection carries no parsable year.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Self

from budget_kernel.logging_config import get_logger

logger = get_logger("modules.analytics.config")


@dataclass
class AnalyticsConfig:
    """
    Configuration schema for the analytics module.

    ``fallback_year`` of ``None`` means "the current year of the injected
    clock".
    """

    # Repository safety limits
    uat_max_results: int = 50_000
    county_max_results: int = 5_000
    entity_max_rows: int = 100_000

    # PostgreSQL statement timeout for analytics queries
    query_timeout_ms: int = 45_000

    # Entity analytics pagination
    entity_default_limit: int = 50
    entity_max_limit: int = 1_000

    fallback_year: int | None = None

    # Base year of the CPI dataset, shown in axis units ("RON (real 2024)")
    cpi_reference_year: int = 2024

    def __post_init__(self):
        for name in (
            "uat_max_results",
            "county_max_results",
            "entity_max_rows",
            "query_timeout_ms",
            "entity_max_limit",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.entity_default_limit < 0:
            raise ValueError("entity_default_limit cannot be negative")
        if self.entity_default_limit > self.entity_max_limit:
            raise ValueError("entity_default_limit cannot exceed entity_max_limit")

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("analytics_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary."""
        logger.info(
            "analytics_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
