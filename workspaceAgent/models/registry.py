"""Capability-based model catalog.

Platform code asks for a capability (``tool_use``, ``large_context``...) and
never for a concrete model name. Swapping a backend model only means editing the
catalog, either the in-code defaults below or a YAML file passed to
``load_model_registry``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Literal, Optional, Union

import yaml

LOGGER = logging.getLogger("workspaceagent.models")

ModelCapability = Literal[
    "default",
    "large_context",
    "tool_use",
    "quality",
    "cost_effective",
    "speed",
    "reasoning",
    "realtime",
    "vision",
]

MODEL_CAPABILITIES = frozenset(
    {
        "default",
        "large_context",
        "tool_use",
        "quality",
        "cost_effective",
        "speed",
        "reasoning",
        "realtime",
        "vision",
    }
)


@dataclass(frozen=True, slots=True)
class ModelCost:
    """USD price per one million tokens."""

    input: float
    output: float


@dataclass(frozen=True, slots=True)
class ModelConfig:
    """Normalized description of a backend model endpoint."""

    key: str
    model_id: str
    display_name: str
    capabilities: tuple[str, ...]
    context_limit: int
    compact_at: int
    cost_per_1m: ModelCost
    provider: str = "openrouter"
    icon: str = ""
    role: str = "chat"  # chat | vision
    is_slow_model: bool = False
    provider_settings: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def has_capability(self, capability: str) -> bool:
        return capability in self.capabilities


class ModelRegistry:
    """Registry of model configs addressed by key or capability."""

    def __init__(self, models: Iterable[ModelConfig]) -> None:
        self._models: Dict[str, ModelConfig] = {}
        for model in models:
            if model.key in self._models:
                raise ValueError(f"Duplicate model key: {model.key}")
            unknown = set(model.capabilities) - MODEL_CAPABILITIES
            if unknown:
                raise ValueError(f"Model {model.key} declares unknown capabilities: {sorted(unknown)}")
            self._models[model.key] = model

        defaults = [m for m in self._models.values() if m.has_capability("default")]
        if len(defaults) != 1:
            raise ValueError(
                f"Exactly one model must carry the 'default' capability, found {len(defaults)}"
            )
        self._default = defaults[0]

    def get(self, key: str) -> Optional[ModelConfig]:
        """Return the model registered under ``key`` or None."""

        return self._models.get(key)

    def get_default(self) -> ModelConfig:
        return self._default

    def get_by_capability(self, capability: str) -> Optional[ModelConfig]:
        """Return the first model (in registration order) declaring ``capability``."""

        for model in self._models.values():
            if model.has_capability(capability):
                return model
        return None

    def get_all_by_capability(self, capability: str) -> List[ModelConfig]:
        return [m for m in self._models.values() if m.has_capability(capability)]

    def get_best_for_capability(self, capability: str) -> ModelConfig:
        """Return the model for ``capability``, falling back to the default model."""

        model = self.get_by_capability(capability)
        if model is None:
            LOGGER.debug(f"No model declares '{capability}', using default {self._default.key}")
            return self._default
        return model

    def get_vision_model(self) -> Optional[ModelConfig]:
        return self.get_by_capability("vision")

    def get_chat_models(self) -> List[ModelConfig]:
        return [m for m in self._models.values() if m.role == "chat"]

    def list_all(self) -> List[ModelConfig]:
        return list(self._models.values())

    def keys(self) -> List[str]:
        return list(self._models.keys())

    def __contains__(self, key: object) -> bool:
        return key in self._models

    def __len__(self) -> int:
        return len(self._models)

    def get_model_options_for_ui(self) -> List[Dict[str, str]]:
        """Model selector entries, with the automatic routing option first."""

        options = [
            {
                "id": "auto",
                "name": "Auto",
                "description": "Smart selection (recommended)",
                "icon": "🤖",
            }
        ]
        for model in self.get_chat_models():
            options.append(
                {
                    "id": model.key,
                    "name": model.display_name,
                    "description": f"{round(model.context_limit / 1000)}K context",
                    "icon": model.icon,
                }
            )
        return options


def calculate_cost(model: ModelConfig, input_tokens: int, output_tokens: int) -> float:
    """Estimated USD cost of one request."""

    input_cost = (input_tokens / 1_000_000) * model.cost_per_1m.input
    output_cost = (output_tokens / 1_000_000) * model.cost_per_1m.output
    return input_cost + output_cost


def format_cost(cost: float) -> str:
    if cost < 0.01:
        return f"${cost * 100:.4f}¢"
    return f"${cost:.4f}"


DEFAULT_MODELS: tuple[ModelConfig, ...] = (
    # Cheapest, good reasoning
    ModelConfig(
        key="kimi-k2",
        model_id="moonshotai/kimi-k2-thinking:nitro",
        display_name="Kimi K2 Thinking",
        icon="🧠",
        capabilities=("default", "cost_effective", "reasoning"),
        context_limit=262_000,
        compact_at=210_000,
        cost_per_1m=ModelCost(input=0.15, output=2.5),
        is_slow_model=True,
        provider_settings={"data_collection": "deny"},
    ),
    # Best for tool use / agentic workflows
    ModelConfig(
        key="deepseek-v3",
        model_id="deepseek/deepseek-v3.2:nitro",
        display_name="DeepSeek V3.2",
        icon="🔮",
        capabilities=("tool_use", "reasoning"),
        context_limit=163_000,
        compact_at=130_000,
        cost_per_1m=ModelCost(input=0.28, output=0.4),
        provider_settings={"data_collection": "deny"},
    ),
    ModelConfig(
        key="grok-4",
        model_id="x-ai/grok-4-fast:nitro",
        display_name="Grok 4 Fast",
        icon="🚀",
        capabilities=("large_context", "speed", "realtime"),
        context_limit=2_000_000,
        compact_at=1_600_000,
        cost_per_1m=ModelCost(input=0.2, output=0.5),
        provider_settings={"data_collection": "deny"},
    ),
    ModelConfig(
        key="claude-haiku",
        model_id="anthropic/claude-haiku-4.5:nitro",
        display_name="Claude Haiku 4.5",
        icon="⚡",
        capabilities=("quality", "reasoning"),
        context_limit=200_000,
        compact_at=160_000,
        cost_per_1m=ModelCost(input=1.0, output=5.0),
    ),
    # Internal image analysis only, never answers the user directly
    ModelConfig(
        key="gemini-flash",
        model_id="google/gemini-3-flash-preview",
        display_name="Gemini 3 Flash",
        icon="👁️",
        capabilities=("vision", "speed"),
        context_limit=1_000_000,
        compact_at=800_000,
        cost_per_1m=ModelCost(input=0.5, output=3.0),
        role="vision",
    ),
)


def build_default_registry() -> ModelRegistry:
    """Instantiate the registry with the built-in model catalog."""

    return ModelRegistry(DEFAULT_MODELS)


def _model_from_dict(raw: Dict[str, Any]) -> ModelConfig:
    try:
        context_limit = int(raw["context_limit"])
        cost = raw.get("cost_per_1m") or {}
        return ModelConfig(
            key=str(raw["key"]),
            model_id=str(raw["model_id"]),
            display_name=str(raw.get("display_name", raw["key"])),
            icon=str(raw.get("icon", "")),
            capabilities=tuple(raw.get("capabilities", [])),
            context_limit=context_limit,
            # 80% of the limit unless configured
            compact_at=int(raw.get("compact_at", context_limit * 0.8)),
            cost_per_1m=ModelCost(
                input=float(cost.get("input", 0.0)),
                output=float(cost.get("output", 0.0)),
            ),
            provider=str(raw.get("provider", "openrouter")),
            role=str(raw.get("role", "chat")),
            is_slow_model=bool(raw.get("is_slow_model", False)),
            provider_settings=dict(raw.get("provider_settings") or {}),
        )
    except KeyError as exc:
        raise ValueError(f"Model entry is missing required field {exc}: {raw}") from exc


def load_model_registry(path: Union[str, Path]) -> ModelRegistry:
    """Build a registry from a YAML catalog.

    The file holds a top-level ``models`` list; each entry mirrors the fields of
    :class:`ModelConfig`.
    """

    config_path = Path(path)
    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    entries = data.get("models") or []
    if not entries:
        raise ValueError(f"No models declared in {config_path}")

    registry = ModelRegistry(_model_from_dict(entry) for entry in entries)
    LOGGER.info(f"Loaded {len(registry)} models from {config_path}")
    return registry
