"""Tests for the dataset-backed factor provider (budget_services.normalization_service)."""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from budget_engines.normalization import NormalizationFactors
from budget_kernel.domain.values import Frequency
from budget_kernel.exceptions import DatasetUnavailableError, NormalizationDatasetError
from budget_services.normalization_service import (
    NORMALIZATION_DATASETS,
    DimensionDatasets,
    InMemoryDatasetSource,
    NormalizationService,
    YamlDatasetSource,
    parse_points,
    required_dataset_ids,
)

D = Decimal

YEARLY = {
    "ro.economics.cpi.yearly": {"2023": "1.104", "2024": "1.0"},
    "ro.economics.exchange.ron_eur.yearly": {"2023": "4.9465", "2024": "4.9746"},
    "ro.economics.exchange.ron_usd.yearly": {"2023": "4.5743", "2024": "4.5984"},
    "ro.economics.gdp.yearly": {"2023": "1604000000000", "2024": "1722000000000"},
    "ro.demographics.population.yearly": {"2023": "19055228"},
}


class CountingSource(InMemoryDatasetSource):
    def __init__(self, datasets):
        super().__init__(datasets)
        self.loads: list[str] = []

    def load(self, dataset_id):
        self.loads.append(dataset_id)
        return super().load(dataset_id)


def _write_yaml_datasets(directory, datasets):
    for dataset_id, values in datasets.items():
        document = {
            "id": dataset_id,
            "points": [{"x": x, "y": y} for x, y in values.items()],
        }
        (directory / f"{dataset_id}.yaml").write_text(yaml.safe_dump(document), encoding="utf-8")


class TestCreate:
    def test_all_required_present(self, captured_logs):
        NormalizationService.create(InMemoryDatasetSource(YEARLY))
        assert any(r["message"] == "normalization_datasets_validated" for r in captured_logs())

    def test_lists_every_missing_dataset(self):
        partial = {k: v for k, v in YEARLY.items() if "exchange" not in k}
        with pytest.raises(NormalizationDatasetError) as exc_info:
            NormalizationService.create(InMemoryDatasetSource(partial))
        assert exc_info.value.missing_datasets == [
            "ro.economics.exchange.ron_eur.yearly",
            "ro.economics.exchange.ron_usd.yearly",
        ]
        assert set(exc_info.value.errors) == set(exc_info.value.missing_datasets)

    def test_required_ids_are_yearly(self):
        assert required_dataset_ids(NORMALIZATION_DATASETS) == list(YEARLY)


class TestGenerateFactors:
    async def test_yearly_factors(self):
        service = NormalizationService.create(InMemoryDatasetSource(YEARLY))
        factors = await service.generate_factors(Frequency.YEAR, 2023, 2025)
        assert isinstance(factors, NormalizationFactors)
        assert factors.cpi == {"2023": D("1.104"), "2024": D("1.0"), "2025": D("1.0")}
        assert factors.population["2025"] == D("19055228")

    async def test_monthly_from_yearly(self):
        service = NormalizationService.create(InMemoryDatasetSource(YEARLY))
        factors = await service.generate_factors(Frequency.MONTH, 2024, 2024)
        assert len(factors.eur) == 12
        assert factors.eur["2024-07"] == D("4.9746")

    def test_optional_monthly_dataset(self):
        datasets = dict(YEARLY, **{"ro.economics.exchange.ron_eur.monthly": {"2024-03": "4.97"}})
        registry = dict(
            NORMALIZATION_DATASETS,
            eur=DimensionDatasets(
                yearly="ro.economics.exchange.ron_eur.yearly",
                monthly="ro.economics.exchange.ron_eur.monthly",
            ),
        )
        service = NormalizationService.create(InMemoryDatasetSource(datasets), registry)
        factors = service.build_factors(Frequency.MONTH, 2024, 2024)
        assert factors.eur["2024-03"] == D("4.97")
        assert factors.eur["2024-02"] == D("4.9746")

    async def test_maps_are_fresh_per_call(self):
        service = NormalizationService.create(InMemoryDatasetSource(YEARLY))
        first = await service.generate_factors(Frequency.YEAR, 2023, 2024)
        second = await service.generate_factors(Frequency.YEAR, 2023, 2024)
        assert first == second
        assert first.cpi is not second.cpi


class TestCaching:
    def test_datasets_loaded_once(self):
        source = CountingSource(YEARLY)
        service = NormalizationService(source)
        service.build_factors(Frequency.YEAR, 2023, 2024)
        service.build_factors(Frequency.QUARTER, 2023, 2024)
        assert len(source.loads) == len(YEARLY)

    def test_invalidate_reloads(self):
        source = CountingSource(YEARLY)
        service = NormalizationService(source)
        service.build_factors(Frequency.YEAR, 2023, 2024)
        service.invalidate_cache()
        service.build_factors(Frequency.YEAR, 2023, 2024)
        assert len(source.loads) == 2 * len(YEARLY)


class TestYamlSource:
    def test_reads_directory(self, tmp_path):
        _write_yaml_datasets(tmp_path, YEARLY)
        service = NormalizationService.create(YamlDatasetSource(tmp_path))
        factors = service.build_factors(Frequency.YEAR, 2024, 2024)
        assert factors.gdp == {"2024": D("1722000000000")}

    def test_missing_file(self, tmp_path):
        with pytest.raises(DatasetUnavailableError, match="file not found"):
            YamlDatasetSource(tmp_path).load("ro.economics.cpi.yearly")

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "bad.yaml").write_text("points: [unclosed", encoding="utf-8")
        with pytest.raises(DatasetUnavailableError, match="invalid YAML"):
            YamlDatasetSource(tmp_path).load("bad")

    def test_missing_dataset_fails_create(self, tmp_path):
        _write_yaml_datasets(tmp_path, {k: v for k, v in YEARLY.items() if "gdp" not in k})
        with pytest.raises(NormalizationDatasetError) as exc_info:
            NormalizationService.create(YamlDatasetSource(tmp_path))
        assert exc_info.value.missing_datasets == ["ro.economics.gdp.yearly"]


class TestParsePoints:
    @pytest.mark.parametrize(
        "raw",
        [None, [], {"points": "x"}, {"points": [{"x": "2024"}]}, {"points": [{"x": "2024", "y": "abc"}]}],
    )
    def test_rejects_malformed(self, raw):
        with pytest.raises(DatasetUnavailableError):
            parse_points("ds", raw)

    def test_labels_are_strings(self):
        assert parse_points("ds", {"points": [{"x": 2024, "y": 1.5}]}) == [("2024", D("1.5"))]


class TestShippedDatasets:
    def test_repository_datasets_validate(self):
        dataset_dir = Path(__file__).resolve().parents[2] / "datasets"
        service = NormalizationService.create(YamlDatasetSource(dataset_dir))
        factors = service.build_factors(Frequency.YEAR, 2016, 2024)
        assert factors.cpi["2024"] == D("1.0")
        assert len(factors.population) == 9
