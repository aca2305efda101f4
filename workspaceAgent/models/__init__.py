"""Model registry exports."""

from .registry import (
    DEFAULT_MODELS,
    ModelCapability,
    ModelConfig,
    ModelCost,
    ModelRegistry,
    build_default_registry,
    calculate_cost,
    format_cost,
    load_model_registry,
)

__all__ = [
    "DEFAULT_MODELS",
    "ModelCapability",
    "ModelConfig",
    "ModelCost",
    "ModelRegistry",
    "build_default_registry",
    "calculate_cost",
    "format_cost",
    "load_model_registry",
]
