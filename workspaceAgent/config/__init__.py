"""Configuration exports."""

from .settings import (
    ContextSettings,
    ExecutionSettings,
    ModelProviderSettings,
    ObservabilitySettings,
    PlannerSettings,
    RoutingSettings,
    Settings,
    get_settings,
)

__all__ = [
    "ContextSettings",
    "ExecutionSettings",
    "ModelProviderSettings",
    "ObservabilitySettings",
    "PlannerSettings",
    "RoutingSettings",
    "Settings",
    "get_settings",
]
