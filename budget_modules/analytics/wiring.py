"""
Dependency wiring for the analytics use cases.

``build_dependencies(settings)`` turns loaded settings into one
``AnalyticsDeps`` per use case, sharing the session factory, the factor
provider and the clock.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.orm import Session

from budget_config.schema import Settings
from budget_kernel.db.engine import get_session_factory, init_engine_from_url
from budget_kernel.domain.clock import Clock, SystemClock
from budget_kernel.logging_config import configure_logging, get_logger
from budget_modules.analytics.config import AnalyticsConfig
from budget_modules.analytics.ports import NormalizationFactorProvider
from budget_modules.analytics.repository import (
    SqlAnalyticsSeriesRepository,
    SqlCountyAnalyticsRepository,
    SqlEntityAnalyticsRepository,
    SqlUATAnalyticsRepository,
)
from budget_modules.analytics.usecases import AnalyticsDeps
from budget_services.normalization_service import NormalizationService, YamlDatasetSource

logger = get_logger("modules.analytics.wiring")


@dataclass(frozen=True)
class AnalyticsDependencies:
    uat: AnalyticsDeps[SqlUATAnalyticsRepository]
    county: AnalyticsDeps[SqlCountyAnalyticsRepository]
    entity: AnalyticsDeps[SqlEntityAnalyticsRepository]
    series: AnalyticsDeps[SqlAnalyticsSeriesRepository]


def build_dependencies(
    settings: Settings,
    session_factory: Callable[[], Session] | None = None,
    normalization: NormalizationFactorProvider | None = None,
    clock: Clock | None = None,
) -> AnalyticsDependencies:
    """
    Wire repositories, the factor provider and the clock from ``settings``.

    Without a ``session_factory`` the module-level engine is initialized
    from ``settings.database``.  Without a ``normalization`` provider the
    YAML datasets under ``settings.normalization.dataset_dir`` are
    validated; a missing required dataset raises
    ``NormalizationDatasetError``.
    """
    configure_logging(level=logging.getLevelName(settings.log_level))

    if session_factory is None:
        db = settings.database
        init_engine_from_url(
            db.url,
            echo=db.echo,
            pool_size=db.pool_size,
            max_overflow=db.max_overflow,
            pool_timeout=db.pool_timeout,
        )
        session_factory = get_session_factory()

    if normalization is None:
        normalization = NormalizationService.create(
            YamlDatasetSource(settings.normalization.dataset_dir)
        )

    config = AnalyticsConfig.from_dict(settings.analytics.as_dict())
    clock = clock or SystemClock()

    def deps(repo):
        return AnalyticsDeps(repo=repo, normalization=normalization, clock=clock, config=config)

    logger.info(
        "analytics_dependencies_built",
        extra={"query_timeout_ms": config.query_timeout_ms},
    )
    return AnalyticsDependencies(
        uat=deps(SqlUATAnalyticsRepository(session_factory, config)),
        county=deps(SqlCountyAnalyticsRepository(session_factory, config)),
        entity=deps(SqlEntityAnalyticsRepository(session_factory, config)),
        series=deps(SqlAnalyticsSeriesRepository(session_factory, config)),
    )
