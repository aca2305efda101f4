"""Runtime assembly: every component built once from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterator, Optional, Sequence

from workspaceAgent.config import Settings, get_settings
from workspaceAgent.context import ContextCompactor
from workspaceAgent.execution import (
    ExecutionResult,
    PlanExecutor,
    ProgressCallback,
    ProgressEvent,
    stream_task_plan,
)
from workspaceAgent.hitl import ApprovalQueue
from workspaceAgent.models import ModelRegistry, build_default_registry, load_model_registry
from workspaceAgent.planning import CreatePlanResult, TaskPlan, TaskPlanner
from workspaceAgent.routing import AnalysisResult, ChatMode, FileAttachment, analyze_message
from workspaceAgent.tools import CancelSignal, InMemoryWorkspaceStore, ToolRegistry, WorkspaceStore
from workspaceAgent.tools.builtin import build_default_tool_registry

from .model_resolver import ModelResolver, build_model_resolver

LOGGER = logging.getLogger("workspaceagent.runtime")


def _create_model_registry(settings: Settings) -> ModelRegistry:
    catalog_path = settings.models.catalog_path
    if catalog_path:
        LOGGER.info(f"Loading model catalog from {catalog_path}")
        return load_model_registry(Path(catalog_path))
    return build_default_registry()


@dataclass
class AgentRuntime:
    """Wired components sharing one tool registry and one model registry."""

    settings: Settings
    model_registry: ModelRegistry
    tool_registry: ToolRegistry
    store: WorkspaceStore
    model_resolver: ModelResolver
    planner: TaskPlanner
    executor: PlanExecutor
    compactor: ContextCompactor
    approvals: ApprovalQueue = field(default_factory=ApprovalQueue)

    def analyze(
        self,
        message: str,
        files: Sequence[FileAttachment] = (),
        mode: ChatMode = "chat",
        context_tokens: int = 0,
        dev_override_model: Optional[str] = None,
    ) -> AnalysisResult:
        return analyze_message(
            message,
            files,
            mode,
            context_tokens,
            dev_override_model,
            registry=self.model_registry,
            large_context_threshold=self.settings.routing.large_context_threshold,
        )

    async def plan(
        self,
        goal: str,
        *,
        team_id: str,
        workspace_id: str,
        conversation_context: Optional[str] = None,
    ) -> CreatePlanResult:
        return await self.planner.create_task_plan(
            goal,
            team_id=team_id,
            workspace_id=workspace_id,
            conversation_context=conversation_context,
        )

    async def execute(
        self,
        plan: TaskPlan,
        *,
        on_progress: Optional[ProgressCallback] = None,
        cancel_signal: Optional[CancelSignal] = None,
    ) -> ExecutionResult:
        return await self.executor.execute_task_plan(plan, on_progress=on_progress, cancel_signal=cancel_signal)

    def stream(self, plan: TaskPlan, *, cancel_signal: Optional[CancelSignal] = None) -> AsyncIterator[ProgressEvent]:
        return stream_task_plan(self.executor, plan, cancel_signal=cancel_signal)


def build_runtime(
    settings: Optional[Settings] = None,
    *,
    model_resolver: Optional[ModelResolver] = None,
    store: Optional[WorkspaceStore] = None,
) -> AgentRuntime:
    """Build the registries, planner, executor and compactor.

    Args:
        settings: Application settings (defaults to ``get_settings()``).
        model_resolver: Injected resolver, e.g. a mock in tests. By default
            ChatOpenAI clients pointed at the configured gateway.
        store: Workspace backend for the builtin tools (in-memory by default).
    """
    settings = settings or get_settings()
    store = store if store is not None else InMemoryWorkspaceStore()

    model_registry = _create_model_registry(settings)
    tool_registry = build_default_tool_registry(store)
    resolver = model_resolver or build_model_resolver(model_registry, settings.models)

    runtime = AgentRuntime(
        settings=settings,
        model_registry=model_registry,
        tool_registry=tool_registry,
        store=store,
        model_resolver=resolver,
        planner=TaskPlanner(
            tool_registry,
            model_registry,
            resolver,
            settings.planner,
            prompt_log_max_length=settings.observability.log_prompt_max_length,
        ),
        executor=PlanExecutor(tool_registry, settings.execution),
        compactor=ContextCompactor(model_registry, resolver, settings.context),
        approvals=ApprovalQueue(tool_registry),
    )
    LOGGER.info(
        f"Runtime ready: {len(model_registry)} models (default {model_registry.get_default().key}), "
        f"{len(tool_registry)} tools"
    )
    return runtime
