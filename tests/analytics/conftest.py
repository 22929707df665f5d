"""Fakes for the analytics ports: recording repositories and factor providers."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import pytest

from budget_engines.normalization import NormalizationFactors
from budget_kernel.domain.errors import AnalyticsResult
from budget_kernel.domain.periods import period_labels
from budget_kernel.domain.values import Frequency
from budget_modules.analytics.config import AnalyticsConfig
from budget_modules.analytics.usecases import AnalyticsDeps


@dataclass
class FakeRepository:
    """Returns a canned result for every port method and records the filters."""

    result: AnalyticsResult = field(default_factory=lambda: AnalyticsResult.ok([]))
    calls: list[Any] = field(default_factory=list)

    async def _answer(self, filter):
        self.calls.append(filter)
        return self.result

    async def get_heatmap_data(self, filter):
        return await self._answer(filter)

    async def get_entity_rows(self, filter):
        return await self._answer(filter)

    async def get_aggregated_series(self, filter):
        return await self._answer(filter)


@dataclass
class FakeFactorProvider:
    """
    Uniform factors for every label of the requested range.

    ``error`` makes ``generate_factors`` raise instead.
    """

    cpi: Decimal = Decimal("1")
    eur: Decimal = Decimal("5")
    usd: Decimal = Decimal("4")
    gdp: Decimal = Decimal("1000000")
    population: Decimal = Decimal("19000000")
    error: Exception | None = None
    calls: list[tuple[Frequency, int, int]] = field(default_factory=list)
    skip_labels: tuple[str, ...] = ()

    async def generate_factors(self, frequency, start_year, end_year):
        self.calls.append((frequency, start_year, end_year))
        if self.error is not None:
            raise self.error
        labels = [
            label for label in period_labels(frequency, start_year, end_year)
            if label not in self.skip_labels
        ]

        def uniform(value):
            return {label: value for label in labels}

        return NormalizationFactors(
            cpi=uniform(self.cpi),
            eur=uniform(self.eur),
            usd=uniform(self.usd),
            gdp=uniform(self.gdp),
            population=uniform(self.population),
        )


@pytest.fixture
def provider():
    return FakeFactorProvider()


@pytest.fixture
def make_deps(provider, deterministic_clock):
    def _make(result=None, config=None, normalization=None):
        repo = FakeRepository(result=result if result is not None else AnalyticsResult.ok([]))
        return AnalyticsDeps(
            repo=repo,
            normalization=normalization or provider,
            clock=deterministic_clock,
            config=config or AnalyticsConfig(),
        )

    return _make
