"""
Analytics Domain Models (``budget_modules.analytics.models``).

Responsibility
--------------
Frozen dataclass value objects for the analytics use cases.  Raw rows (one
row per entity per period, amounts in nominal RON as ``Decimal``) are the
selector DTOs, re-exported here; normalized outputs are defined here.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* Raw rows carry ``Decimal`` amounts.
* Normalized outputs carry ``float`` amounts; the Decimal -> float
  conversion happens once, when the output model is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from budget_engines.normalization import SeriesPoint
from budget_kernel.domain.filters import AnalyticsFilter
from budget_kernel.domain.values import Currency, NormalizationMode
from budget_kernel.selectors import (
    EntityAnalyticsRow,
    HeatmapCountyDataPoint,
    HeatmapUATDataPoint,
)


# =========================================================================
# Normalization parameters
# =========================================================================


@dataclass(frozen=True)
class NormalizationParams:
    """
    Normalization parameters supplied next to a filter.

    Every field is optional; ``None`` defers to the value nested in the
    filter.
    """

    normalization: NormalizationMode | None = None
    currency: Currency | None = None
    inflation_adjusted: bool | None = None
    show_period_growth: bool | None = None


# =========================================================================
# Heatmaps
# =========================================================================


@dataclass(frozen=True)
class NormalizedUATHeatmapDataPoint:
    uat_id: int
    uat_code: str
    uat_name: str
    siruta_code: str
    county_code: str | None
    county_name: str | None
    region: str | None
    population: int | None
    amount: float
    total_amount: float
    per_capita_amount: float


@dataclass(frozen=True)
class NormalizedCountyHeatmapDataPoint:
    county_code: str
    county_name: str
    county_population: int | None
    county_entity_cui: str | None
    amount: float
    total_amount: float
    per_capita_amount: float


# =========================================================================
# Entity analytics
# =========================================================================


class EntitySortField(str, Enum):
    AMOUNT = "AMOUNT"
    TOTAL_AMOUNT = "TOTAL_AMOUNT"
    PER_CAPITA_AMOUNT = "PER_CAPITA_AMOUNT"
    ENTITY_NAME = "ENTITY_NAME"
    ENTITY_TYPE = "ENTITY_TYPE"
    POPULATION = "POPULATION"
    COUNTY_NAME = "COUNTY_NAME"
    COUNTY_CODE = "COUNTY_CODE"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class EntityAnalyticsSort:
    by: EntitySortField = EntitySortField.TOTAL_AMOUNT
    order: SortDirection = SortDirection.DESC


DEFAULT_ENTITY_SORT = EntityAnalyticsSort()


@dataclass(frozen=True)
class EntityAnalyticsInput:
    filter: AnalyticsFilter
    sort: EntityAnalyticsSort | None = None
    limit: int | None = None
    offset: int | None = None
    params: NormalizationParams | None = None


@dataclass(frozen=True)
class EntityAnalyticsDataPoint:
    entity_cui: str
    entity_name: str
    entity_type: str | None
    uat_id: str | None
    county_code: str | None
    county_name: str | None
    population: int | None
    amount: float
    total_amount: float
    per_capita_amount: float


@dataclass(frozen=True)
class PageInfo:
    total_count: int
    has_next_page: bool
    has_previous_page: bool


@dataclass(frozen=True)
class EntityAnalyticsConnection:
    nodes: tuple[EntityAnalyticsDataPoint, ...]
    page_info: PageInfo


# =========================================================================
# Analytics series
# =========================================================================


@dataclass(frozen=True)
class AnalyticsSeriesInput:
    filter: AnalyticsFilter
    series_id: str | None = None
    params: NormalizationParams | None = None


@dataclass(frozen=True)
class Axis:
    name: str
    type: str
    unit: str


@dataclass(frozen=True)
class AnalyticsDataPoint:
    x: str
    y: float


@dataclass(frozen=True)
class AnalyticsSeries:
    series_id: str
    x_axis: Axis
    y_axis: Axis
    data: tuple[AnalyticsDataPoint, ...] = field(default_factory=tuple)


RawSeries = list[SeriesPoint]

__all__ = [
    "AnalyticsDataPoint",
    "AnalyticsSeries",
    "AnalyticsSeriesInput",
    "Axis",
    "DEFAULT_ENTITY_SORT",
    "EntityAnalyticsConnection",
    "EntityAnalyticsDataPoint",
    "EntityAnalyticsInput",
    "EntityAnalyticsRow",
    "EntityAnalyticsSort",
    "EntitySortField",
    "HeatmapCountyDataPoint",
    "HeatmapUATDataPoint",
    "NormalizationParams",
    "NormalizedCountyHeatmapDataPoint",
    "NormalizedUATHeatmapDataPoint",
    "PageInfo",
    "RawSeries",
    "SortDirection",
]
