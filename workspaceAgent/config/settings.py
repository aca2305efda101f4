"""Environment-bound configuration objects.

This module provides Pydantic BaseSettings-based configuration loading from .env files.
Every settings group reads its own environment variables; the root ``Settings`` object
nests them and ``get_settings()`` caches a single instance per process.

Example:
    from workspaceAgent.config.settings import get_settings

    settings = get_settings()  # Cached singleton
    api_key = settings.models.api_key
    ceiling = settings.execution.max_execution_seconds
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()


class ModelProviderSettings(BaseSettings):
    """Credentials and catalog location for the model backends.

    All models are reached through an OpenAI-compatible gateway (OpenRouter by
    default). Supported variables:
    - OPENROUTER_API_KEY / MODEL_API_KEY
    - OPENROUTER_BASE_URL / MODEL_BASE_URL
    - MODELS_CONFIG_PATH: optional YAML file replacing the built-in model catalog
    """

    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("OPENROUTER_API_KEY", "MODEL_API_KEY"),
    )
    base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        validation_alias=AliasChoices("OPENROUTER_BASE_URL", "MODEL_BASE_URL"),
    )
    catalog_path: Optional[str] = Field(default=None, alias="MODELS_CONFIG_PATH")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, alias="MODEL_TEMPERATURE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class ExecutionSettings(BaseSettings):
    """Plan executor limits.

    - max_execution_seconds: wall-clock ceiling for one plan run (default: 300)
    - step_delay_seconds: pause between steps and before the single retry (default: 0.5)
    """

    max_execution_seconds: float = Field(default=300.0, gt=0, alias="AGENT_MAX_EXECUTION_SECONDS")
    step_delay_seconds: float = Field(default=0.5, ge=0, alias="AGENT_STEP_DELAY_SECONDS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class PlannerSettings(BaseSettings):
    """Planner output limits."""

    max_steps: int = Field(default=10, ge=1, le=10, alias="PLANNER_MAX_STEPS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class RoutingSettings(BaseSettings):
    """Message router thresholds."""

    large_context_threshold: int = Field(default=200_000, ge=1, alias="LARGE_CONTEXT_THRESHOLD")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class ContextSettings(BaseSettings):
    """Context compaction configuration.

    - recent_turns: messages kept verbatim after compaction (default: 10)
    - image_tokens: flat token cost charged per image part (default: 765)
    - summary_max_tokens: output budget of the summarization call (default: 800)
    """

    recent_turns: int = Field(default=10, ge=1, le=100, alias="CONTEXT_RECENT_TURNS")
    image_tokens: int = Field(default=765, ge=0, alias="CONTEXT_IMAGE_TOKENS")
    summary_max_tokens: int = Field(default=800, ge=100, le=8000, alias="CONTEXT_SUMMARY_MAX_TOKENS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class ObservabilitySettings(BaseSettings):
    """Logging configuration."""

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="logs", alias="LOG_DIR")
    log_prompt_max_length: int = Field(default=500, ge=100, le=5000, alias="LOG_PROMPT_MAX_LENGTH")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class Settings(BaseSettings):
    """Root application settings loaded from .env file.

    Nested settings groups:
    - models: Gateway credentials and model catalog (ModelProviderSettings)
    - execution: Executor ceiling and step delay (ExecutionSettings)
    - planner: Planner limits (PlannerSettings)
    - routing: Router thresholds (RoutingSettings)
    - context: Compaction settings (ContextSettings)
    - observability: Logging (ObservabilitySettings)

    Use get_settings() to obtain a cached singleton instance.
    """

    models: ModelProviderSettings = Field(default_factory=ModelProviderSettings)
    execution: ExecutionSettings = Field(default_factory=ExecutionSettings)
    planner: PlannerSettings = Field(default_factory=PlannerSettings)
    routing: RoutingSettings = Field(default_factory=RoutingSettings)
    context: ContextSettings = Field(default_factory=ContextSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
        case_sensitive=False,
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance.

    Returns:
        Settings: Cached application settings instance
    """
    return Settings()
