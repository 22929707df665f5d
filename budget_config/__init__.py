"""
budget_config -- settings for the analytics engine.

Responsibility:
    Provides ``load_settings()``, the single way to read database,
    analytics and normalization settings from a YAML file and the
    environment.

Architecture position:
    Configuration -- sits above ``budget_kernel`` and below
    ``budget_services`` / ``budget_modules``.  The kernel MUST NEVER import
    from ``budget_config``.

Failure modes:
    - ``ConfigurationError`` -- unknown key or invalid value.
    - ``FileNotFoundError`` / ``yaml.YAMLError`` -- unreadable settings file.
"""

from budget_config.loader import load_settings
from budget_config.schema import (
    AnalyticsSettings,
    DatabaseSettings,
    NormalizationSettings,
    Settings,
)

__all__ = [
    "AnalyticsSettings",
    "DatabaseSettings",
    "NormalizationSettings",
    "Settings",
    "load_settings",
]
