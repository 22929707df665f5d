"""
Typed Exception Hierarchy for the Budget Kernel.

===============================================================================
EXCEPTIONS VS ERROR VALUES
===============================================================================

The analytics use cases return errors as VALUES (see
``budget_kernel.domain.errors``).  Exceptions are reserved for the few places
that are allowed to raise internally:

  - Filter parsing from loose input (``AnalyticsFilter.from_dict``)
  - The normalization factor provider (dataset loading)
  - The transformation pipeline (missing / malformed factors)
  - Settings loading

Every exception raised from those places is caught at the use-case boundary
and converted into a typed error value, so callers never have to write
``try/except`` around a use case.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BudgetKernelError (base)
    |
    +-- FilterError
    |   +-- InvalidFilterError
    |
    +-- NormalizationFailure
    |   +-- DatasetUnavailableError
    |   +-- NormalizationDatasetError
    |   +-- MissingFactorError
    |   +-- MalformedFactorsError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Filter          | INVALID_FILTER              | Unknown enum value / wrong type in input
----------------|-----------------------------|-----------------------------------------
Normalization   | DATASET_UNAVAILABLE         | One dataset cannot be read or parsed
                | NORMALIZATION_DATASET_MISSING | Required dataset absent at startup
                | MISSING_FACTOR              | No usable factor for a touched period
                | MALFORMED_FACTORS           | Provider returned the wrong shape
----------------|-----------------------------|-----------------------------------------
Config          | CONFIGURATION_ERROR         | Settings file or env value invalid
"""


class BudgetKernelError(Exception):
    """
    Base exception for all budget kernel errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BUDGET_KERNEL_ERROR"


# Filter exceptions


class FilterError(BudgetKernelError):
    """Base exception for filter construction errors."""

    code: str = "FILTER_ERROR"


class InvalidFilterError(FilterError):
    """A filter field holds a value that cannot be interpreted."""

    code: str = "INVALID_FILTER"

    def __init__(self, field: str, value: object, reason: str | None = None):
        self.field = field
        self.value = value
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invalid value for filter field {field!r}: {value!r}{detail}")


# Normalization exceptions


class NormalizationFailure(BudgetKernelError):
    """Base exception for normalization factor failures."""

    code: str = "NORMALIZATION_FAILURE"


class DatasetUnavailableError(NormalizationFailure):
    """A single normalization dataset cannot be read or parsed."""

    code: str = "DATASET_UNAVAILABLE"

    def __init__(self, dataset_id: str, reason: str):
        self.dataset_id = dataset_id
        self.reason = reason
        super().__init__(f"Dataset {dataset_id!r} is unavailable: {reason}")


class NormalizationDatasetError(NormalizationFailure):
    """
    One or more required normalization datasets are missing.

    Raised by the factor provider at construction so that a misconfigured
    deployment fails at startup, not on the first request.
    """

    code: str = "NORMALIZATION_DATASET_MISSING"

    def __init__(self, missing_datasets: list[str], errors: dict[str, str]):
        self.missing_datasets = list(missing_datasets)
        self.errors = dict(errors)
        details = "\n".join(
            f"  - {dataset_id}: {self.errors.get(dataset_id, 'Unknown error')}"
            for dataset_id in self.missing_datasets
        )
        super().__init__(f"Required normalization datasets are missing:\n{details}")


class MissingFactorError(NormalizationFailure):
    """No usable (present, non-zero) factor exists for a period."""

    code: str = "MISSING_FACTOR"

    def __init__(self, dimension: str, period: str):
        self.dimension = dimension
        self.period = period
        super().__init__(f"No {dimension} factor available for period {period}")


class MalformedFactorsError(NormalizationFailure):
    """The factor provider returned data of the wrong shape."""

    code: str = "MALFORMED_FACTORS"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Malformed normalization factors: {reason}")


# Configuration exceptions


class ConfigurationError(BudgetKernelError):
    """Settings could not be loaded or hold an invalid value."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for {key!r}: {reason}")
