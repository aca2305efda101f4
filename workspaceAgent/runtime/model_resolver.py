"""Model resolver wiring from the model catalog and provider settings.

The resolver pattern allows lazy instantiation of chat models and supports
dependency injection for testing: components receive a ``ModelResolver`` and
call it with a ``model_id`` only when they actually need a model.

Example:
    >>> resolver = build_model_resolver(registry, settings.models)
    >>> chat_model = resolver("deepseek/deepseek-v3.2:nitro")
    >>> response = await chat_model.ainvoke("Hello!")
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, Protocol

from langchain_openai import ChatOpenAI

from workspaceAgent.config.settings import ModelProviderSettings
from workspaceAgent.models.registry import ModelConfig, ModelRegistry
from workspaceAgent.utils.error_handler import ModelInvocationError


class ModelResolver(Protocol):
    """Callable that returns a LangChain-compatible chat model."""

    def __call__(self, model_id: str):
        ...


def _chat_kwargs(model: ModelConfig, settings: ModelProviderSettings) -> Dict[str, object]:
    if not settings.api_key:
        raise ModelInvocationError(
            f"Missing API key for model {model.model_id}. Set OPENROUTER_API_KEY in .env.",
            user_message="The model API key is missing, contact an administrator",
        )
    kwargs: Dict[str, object] = {
        "model": model.model_id,
        "api_key": settings.api_key,
        "base_url": settings.base_url,
        "temperature": settings.temperature,
    }
    if model.provider_settings:
        # OpenRouter provider routing preferences
        kwargs["extra_body"] = {"provider": dict(model.provider_settings)}
    return kwargs


def build_model_resolver(
    registry: ModelRegistry,
    settings: Optional[ModelProviderSettings] = None,
) -> ModelResolver:
    """Construct a resolver that returns ChatOpenAI clients for registered models.

    Args:
        registry: Model catalog; only its ``model_id`` values resolve.
        settings: Gateway credentials (defaults to the environment).

    Returns:
        ModelResolver: Function that takes a model_id and returns a ChatOpenAI instance

    Raises:
        KeyError: If the requested model_id is not in the catalog
        ModelInvocationError: If the API key is missing (raised on first use)
    """
    settings = settings or ModelProviderSettings()

    catalog: Dict[str, Callable[[], ChatOpenAI]] = {}
    for model in registry.list_all():
        catalog[model.model_id] = lambda cfg=model: ChatOpenAI(**_chat_kwargs(cfg, settings))

    def resolver(model_id: str):
        if model_id not in catalog:
            raise KeyError(f"Model {model_id} is not registered in the model catalog.")
        return catalog[model_id]()

    return resolver
