"""
Services layer: stateful collaborators of the analytics use cases.

Currently hosts the normalization factor provider.
"""

from budget_services.normalization_service import (
    DatasetSource,
    InMemoryDatasetSource,
    NormalizationService,
    YamlDatasetSource,
)

__all__ = [
    "DatasetSource",
    "InMemoryDatasetSource",
    "NormalizationService",
    "YamlDatasetSource",
]
