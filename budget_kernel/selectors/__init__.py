"""Read-only aggregation selectors over the budget execution warehouse."""

from budget_kernel.selectors.base import BaseSelector, CompiledClauses
from budget_kernel.selectors.entity_selector import EntityAnalyticsRow, EntitySelector
from budget_kernel.selectors.heatmap_selector import (
    HeatmapCountyDataPoint,
    HeatmapSelector,
    HeatmapUATDataPoint,
)
from budget_kernel.selectors.series_selector import SeriesBucket, SeriesSelector

__all__ = [
    "BaseSelector",
    "CompiledClauses",
    "EntityAnalyticsRow",
    "EntitySelector",
    "HeatmapCountyDataPoint",
    "HeatmapSelector",
    "HeatmapUATDataPoint",
    "SeriesBucket",
    "SeriesSelector",
]
