"""
Ports consumed by the analytics use cases.

Repositories return ``AnalyticsResult`` values and never raise; the factor
provider is allowed to raise and is always called inside a ``try`` by the
use cases.
"""

from __future__ import annotations

from typing import Protocol

from budget_engines.normalization import NormalizationFactors, SeriesPoint
from budget_kernel.domain.errors import AnalyticsResult
from budget_kernel.domain.filters import AnalyticsFilter
from budget_kernel.domain.values import Frequency
from budget_modules.analytics.models import (
    EntityAnalyticsRow,
    HeatmapCountyDataPoint,
    HeatmapUATDataPoint,
)


class UATAnalyticsRepository(Protocol):
    async def get_heatmap_data(
        self, filter: AnalyticsFilter
    ) -> AnalyticsResult[list[HeatmapUATDataPoint]]: ...


class CountyAnalyticsRepository(Protocol):
    async def get_heatmap_data(
        self, filter: AnalyticsFilter
    ) -> AnalyticsResult[list[HeatmapCountyDataPoint]]: ...


class EntityAnalyticsRepository(Protocol):
    async def get_entity_rows(
        self, filter: AnalyticsFilter
    ) -> AnalyticsResult[list[EntityAnalyticsRow]]: ...


class AnalyticsSeriesRepository(Protocol):
    async def get_aggregated_series(
        self, filter: AnalyticsFilter
    ) -> AnalyticsResult[list[SeriesPoint]]: ...


class NormalizationFactorProvider(Protocol):
    async def generate_factors(
        self,
        frequency: Frequency,
        start_year: int,
        end_year: int,
    ) -> NormalizationFactors: ...
