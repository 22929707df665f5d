"""
Analytics module: UAT and county heatmaps, entity analytics and time series
over budget execution data, with inflation, currency, per-capita and
percent-of-GDP normalization.
"""

from budget_modules.analytics.config import AnalyticsConfig
from budget_modules.analytics.models import (
    AnalyticsSeries,
    AnalyticsSeriesInput,
    EntityAnalyticsConnection,
    EntityAnalyticsInput,
    EntityAnalyticsSort,
    EntitySortField,
    NormalizationParams,
    NormalizedCountyHeatmapDataPoint,
    NormalizedUATHeatmapDataPoint,
    SortDirection,
)
from budget_modules.analytics.usecases import (
    AnalyticsDeps,
    get_analytics_series,
    get_county_heatmap_data,
    get_entity_analytics,
    get_heatmap_data,
    resolve_transformation_options,
)

__all__ = [
    "AnalyticsConfig",
    "AnalyticsDeps",
    "AnalyticsSeries",
    "AnalyticsSeriesInput",
    "EntityAnalyticsConnection",
    "EntityAnalyticsInput",
    "EntityAnalyticsSort",
    "EntitySortField",
    "NormalizationParams",
    "NormalizedCountyHeatmapDataPoint",
    "NormalizedUATHeatmapDataPoint",
    "SortDirection",
    "get_analytics_series",
    "get_county_heatmap_data",
    "get_entity_analytics",
    "get_heatmap_data",
    "resolve_transformation_options",
]
