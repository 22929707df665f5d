"""
Normalization Factor Service (``budget_services.normalization_service``).

Responsibility
--------------
Supplies ``NormalizationFactors`` (CPI, EUR rate, USD rate, GDP, population)
for a frequency and year range.  Raw datasets are read once through a
``DatasetSource`` and cached inside the service; every call to
``generate_factors`` builds fresh factor maps from that cache with
``budget_engines.factor_maps.generate_factor_map``.

Architecture position
---------------------
**Services layer** -- the concrete implementation of the analytics
``NormalizationFactorProvider`` port.  Reads files (via the dataset
source); the engines it calls stay pure.

Invariants enforced
-------------------
* The yearly dataset of every dimension is required.  ``create()``
  validates them all and fails with one error listing every missing id.
* Quarterly / monthly datasets are optional and only refine the yearly
  values.
* Factor maps are never shared between requests.

Failure modes
-------------
* Missing required dataset at construction -> ``NormalizationDatasetError``.
* Dataset file unreadable or malformed -> ``DatasetUnavailableError``.
* ``generate_factors`` propagates both; the use cases convert them into
  ``NormalizationError`` values.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Protocol

import yaml

from budget_engines.factor_maps import FactorDatasets, dataset_to_factor_map, generate_factor_map
from budget_engines.normalization import NormalizationFactors
from budget_kernel.domain.values import Frequency
from budget_kernel.exceptions import DatasetUnavailableError, NormalizationDatasetError
from budget_kernel.logging_config import get_logger

logger = get_logger("services.normalization")

DIMENSIONS = ("cpi", "eur", "usd", "gdp", "population")


@dataclass(frozen=True)
class DimensionDatasets:
    """Dataset ids for one dimension. Only ``yearly`` is required."""

    yearly: str
    quarterly: str | None = None
    monthly: str | None = None


NORMALIZATION_DATASETS: dict[str, DimensionDatasets] = {
    "cpi": DimensionDatasets(yearly="ro.economics.cpi.yearly"),
    "eur": DimensionDatasets(yearly="ro.economics.exchange.ron_eur.yearly"),
    "usd": DimensionDatasets(yearly="ro.economics.exchange.ron_usd.yearly"),
    "gdp": DimensionDatasets(yearly="ro.economics.gdp.yearly"),
    "population": DimensionDatasets(yearly="ro.demographics.population.yearly"),
}


def required_dataset_ids(registry: Mapping[str, DimensionDatasets]) -> list[str]:
    return [registry[dimension].yearly for dimension in DIMENSIONS]


# =============================================================================
# Dataset sources
# =============================================================================


class DatasetSource(Protocol):
    """Reads one dataset as ``(label, value)`` points."""

    def load(self, dataset_id: str) -> list[tuple[str, Decimal]]:
        """Raise DatasetUnavailableError when the dataset cannot be produced."""
        ...


def parse_points(dataset_id: str, raw: Any) -> list[tuple[str, Decimal]]:
    """Validate a ``{points: [{x, y}, ...]}`` document."""
    if not isinstance(raw, Mapping) or not isinstance(raw.get("points"), list):
        raise DatasetUnavailableError(dataset_id, "expected a mapping with a 'points' list")
    points: list[tuple[str, Decimal]] = []
    for index, item in enumerate(raw["points"]):
        if not isinstance(item, Mapping) or "x" not in item or "y" not in item:
            raise DatasetUnavailableError(dataset_id, f"point {index} must have 'x' and 'y'")
        try:
            value = Decimal(str(item["y"]))
        except InvalidOperation:
            raise DatasetUnavailableError(
                dataset_id, f"point {index} has non-numeric y {item['y']!r}"
            ) from None
        points.append((str(item["x"]), value))
    return points


class YamlDatasetSource:
    """
    Reads ``<directory>/<dataset_id>.yaml``.

    File layout::

        id: ro.economics.cpi.yearly
        unit: index
        points:
          - {x: "2023", y: 1.104}
          - {x: "2024", y: 1.0}
    """

    def __init__(self, directory: Path | str):
        self._directory = Path(directory)

    def path_for(self, dataset_id: str) -> Path:
        return self._directory / f"{dataset_id}.yaml"

    def load(self, dataset_id: str) -> list[tuple[str, Decimal]]:
        path = self.path_for(dataset_id)
        if not path.is_file():
            raise DatasetUnavailableError(dataset_id, f"file not found: {path}")
        try:
            with path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise DatasetUnavailableError(dataset_id, f"invalid YAML: {exc}") from exc
        return parse_points(dataset_id, raw)


class InMemoryDatasetSource:
    """Dataset source over a dict of ``dataset_id -> {label: value}``."""

    def __init__(self, datasets: Mapping[str, Mapping[str, Any]]):
        self._datasets = {k: dict(v) for k, v in datasets.items()}

    def load(self, dataset_id: str) -> list[tuple[str, Decimal]]:
        if dataset_id not in self._datasets:
            raise DatasetUnavailableError(dataset_id, "not registered")
        return parse_points(
            dataset_id,
            {"points": [{"x": x, "y": y} for x, y in self._datasets[dataset_id].items()]},
        )


# =============================================================================
# Service
# =============================================================================


class NormalizationService:
    """
    Factor provider backed by a ``DatasetSource``.

    Contract
    --------
    * Build with ``NormalizationService.create(source)``; the constructor
      does not validate.
    * ``generate_factors`` is awaitable and may raise.

    Guarantees
    ----------
    * Raw datasets are loaded at most once until ``invalidate_cache()``.
    * Returned factor maps cover every label of the requested range for
      which a value or carry-forward exists.
    """

    def __init__(
        self,
        source: DatasetSource,
        registry: Mapping[str, DimensionDatasets] | None = None,
    ):
        self._source = source
        self._registry = dict(registry or NORMALIZATION_DATASETS)
        self._cache: dict[str, FactorDatasets] | None = None

    @classmethod
    def create(
        cls,
        source: DatasetSource,
        registry: Mapping[str, DimensionDatasets] | None = None,
    ) -> NormalizationService:
        """Build a service, failing if any required dataset is missing."""
        service = cls(source, registry)
        service.validate_required_datasets()
        return service

    def validate_required_datasets(self) -> None:
        missing: list[str] = []
        errors: dict[str, str] = {}
        for dataset_id in required_dataset_ids(self._registry):
            try:
                self._source.load(dataset_id)
            except DatasetUnavailableError as exc:
                missing.append(dataset_id)
                errors[dataset_id] = exc.reason
        if missing:
            logger.error(
                "normalization_datasets_missing",
                extra={"missing_datasets": missing},
            )
            raise NormalizationDatasetError(missing, errors)
        logger.info(
            "normalization_datasets_validated",
            extra={"dataset_count": len(self._registry)},
        )

    def invalidate_cache(self) -> None:
        self._cache = None
        logger.debug("normalization_cache_invalidated")

    def _load_optional(self, dataset_id: str | None) -> dict[str, Decimal] | None:
        if dataset_id is None:
            return None
        return dataset_to_factor_map(self._source.load(dataset_id))

    def _load_datasets(self) -> dict[str, FactorDatasets]:
        if self._cache is not None:
            return self._cache
        loaded: dict[str, FactorDatasets] = {}
        for dimension in DIMENSIONS:
            config = self._registry[dimension]
            loaded[dimension] = FactorDatasets(
                yearly=dataset_to_factor_map(self._source.load(config.yearly)),
                quarterly=self._load_optional(config.quarterly),
                monthly=self._load_optional(config.monthly),
            )
        self._cache = loaded
        logger.info("normalization_datasets_loaded", extra={"dimensions": list(DIMENSIONS)})
        return loaded

    def build_factors(
        self,
        frequency: Frequency,
        start_year: int,
        end_year: int,
    ) -> NormalizationFactors:
        """Synchronous core of ``generate_factors``."""
        datasets = self._load_datasets()
        return NormalizationFactors(
            **{
                dimension: generate_factor_map(frequency, start_year, end_year, datasets[dimension])
                for dimension in DIMENSIONS
            }
        )

    async def generate_factors(
        self,
        frequency: Frequency,
        start_year: int,
        end_year: int,
    ) -> NormalizationFactors:
        factors = await asyncio.to_thread(self.build_factors, frequency, start_year, end_year)
        logger.debug(
            "normalization_factors_generated",
            extra={
                "frequency": frequency.value,
                "start_year": start_year,
                "end_year": end_year,
            },
        )
        return factors
