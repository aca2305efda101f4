"""Task planner: natural-language goal to a validated, dependency-ordered plan."""

from __future__ import annotations

import logging
import time
from typing import Dict, Iterable, List, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from workspaceAgent.config.settings import PlannerSettings
from workspaceAgent.models.registry import ModelRegistry
from workspaceAgent.runtime.model_resolver import ModelResolver
from workspaceAgent.tools.registry import ToolRegistry
from workspaceAgent.utils.error_handler import handle_model_error
from workspaceAgent.utils.logging_utils import log_error, log_model_selection, log_plan_created, log_prompt

from .schema import MAX_PLAN_STEPS, CreatePlanResult, PlanDraft, PlanValidation, TaskPlan, TaskStep

LOGGER = logging.getLogger("workspaceagent.planner")


def build_planner_prompt(tool_catalog: str) -> str:
    return f"""You are a task planner that breaks down user requests into executable steps.

{tool_catalog}

## Rules
1. Break down the request into clear, atomic steps
2. Each step should use exactly one tool
3. Order steps logically - dependencies before dependents
4. Use tool names exactly as listed above
5. Provide all required parameters for each tool (team_id and workspace_id are filled in for you)
6. Keep plans under {MAX_PLAN_STEPS} steps (if more needed, focus on essentials)
7. Estimate duration based on step count: 1-3 steps = fast, 4-6 = medium, 7+ = slow
8. Steps are numbered step_1, step_2, ... in the order you list them; reference those IDs in depends_on

## Example
User: "Analyze our customer feedback and then create work items for the top issues"
Plan:
- step_1: analyze_feedback with sentiment "negative"
- step_2: create_work_item for the first issue (depends_on: ["step_1"])
- step_3: create_work_item for the second issue (depends_on: ["step_1"])

Generate a plan for the user's request."""


def reconcile_tool_name(name: str, registered: Iterable[str]) -> str:
    """Map an unregistered tool name onto the first registered name that contains
    it or is contained by it (case-insensitive). Blank and unmatched names are
    returned unchanged so validation still rejects them.
    """
    registered = list(registered)
    if name in registered:
        return name
    if not name.strip():
        return name
    lowered = name.lower()
    for candidate in registered:
        if lowered in candidate.lower() or candidate.lower() in lowered:
            return candidate
    return name


def _normalize_dependency(dep: str) -> str:
    dep = str(dep).strip()
    if dep.isdigit():
        return f"step_{dep}"
    return dep


def _find_cycle(plan: TaskPlan) -> Optional[List[str]]:
    """Return the step ids forming a dependency cycle, if any."""
    graph: Dict[str, List[str]] = {s.id: [d for d in s.depends_on if d != s.id] for s in plan.steps}
    visiting: List[str] = []
    done = set()

    def visit(node: str) -> Optional[List[str]]:
        if node in done:
            return None
        if node in visiting:
            return visiting[visiting.index(node):]
        visiting.append(node)
        for dep in graph.get(node, []):
            if dep in graph:
                cycle = visit(dep)
                if cycle:
                    return cycle
        visiting.pop()
        done.add(node)
        return None

    for step_id in graph:
        cycle = visit(step_id)
        if cycle:
            return cycle
    return None


def validate_plan(plan: TaskPlan, tool_registry: ToolRegistry) -> PlanValidation:
    """Check a plan before execution; problems are reported, never raised."""
    errors: List[str] = []

    if not plan.steps:
        errors.append("Plan has no steps")
    if len(plan.steps) > MAX_PLAN_STEPS:
        errors.append(f"Plan exceeds maximum of {MAX_PLAN_STEPS} steps")

    seen = set()
    for step in plan.steps:
        if step.id in seen:
            errors.append(f"Duplicate step id {step.id}")
        seen.add(step.id)

    for step in plan.steps:
        for dep in step.depends_on:
            if dep == step.id:
                errors.append(f"Step {step.id} depends on itself")
            elif dep not in seen:
                errors.append(f"Step {step.id} depends on non-existent step {dep}")

    cycle = _find_cycle(plan)
    if cycle:
        errors.append(f"Plan has a dependency cycle: {' -> '.join(cycle + cycle[:1])}")

    for step in plan.steps:
        if not tool_registry.has(step.tool_name):
            errors.append(f"Step {step.id} uses unknown tool: {step.tool_name}")

    return PlanValidation(valid=not errors, errors=errors)


class TaskPlanner:
    """Decomposes a goal into a ``TaskPlan`` with the default model."""

    def __init__(
        self,
        tool_registry: ToolRegistry,
        model_registry: ModelRegistry,
        model_resolver: ModelResolver,
        settings: Optional[PlannerSettings] = None,
        prompt_log_max_length: Optional[int] = None,
    ) -> None:
        self.tool_registry = tool_registry
        self.model_registry = model_registry
        self.model_resolver = model_resolver
        self.settings = settings or PlannerSettings()
        self.prompt_log_max_length = prompt_log_max_length

    async def create_task_plan(
        self,
        user_message: str,
        *,
        team_id: str,
        workspace_id: str,
        conversation_context: Optional[str] = None,
        max_steps: Optional[int] = None,
    ) -> CreatePlanResult:
        """Generate a draft plan for ``user_message``.

        Generation failures come back as ``CreatePlanResult(success=False)``.
        A model that cannot be resolved (unknown id, missing credentials) raises.
        """
        max_steps = min(max_steps or self.settings.max_steps, MAX_PLAN_STEPS)
        model = self.model_registry.get_default()
        log_model_selection(LOGGER, "plan", model.model_id, "default")
        chat_model = self.model_resolver(model.model_id)

        system_prompt = build_planner_prompt(self.tool_registry.get_tool_descriptions_with_examples())
        log_prompt(LOGGER, "planner", system_prompt, self.prompt_log_max_length)
        request = (
            f"Context:\n{conversation_context}\n\nUser request: {user_message}"
            if conversation_context
            else f"User request: {user_message}"
        )

        try:
            structured = chat_model.with_structured_output(PlanDraft)
            draft = await structured.ainvoke([SystemMessage(content=system_prompt), HumanMessage(content=request)])
            if not isinstance(draft, PlanDraft):
                draft = PlanDraft.model_validate(draft)
        except Exception as exc:
            log_error(LOGGER, exc, "plan generation")
            return CreatePlanResult(success=False, error=handle_model_error(exc))

        plan = self._build_plan(draft, team_id=team_id, workspace_id=workspace_id, max_steps=max_steps)
        log_plan_created(LOGGER, plan.model_dump())
        return CreatePlanResult(success=True, plan=plan)

    def _build_plan(self, draft: PlanDraft, *, team_id: str, workspace_id: str, max_steps: int) -> TaskPlan:
        registered = self.tool_registry.get_all_names()
        steps: List[TaskStep] = []
        for index, step in enumerate(draft.steps[:max_steps], start=1):
            tool_name = reconcile_tool_name(step.tool_name, registered)
            if tool_name != step.tool_name:
                LOGGER.warning(f"Remapped unknown tool '{step.tool_name}' to '{tool_name}'")
            elif tool_name not in registered:
                LOGGER.warning(f"Plan references unknown tool '{tool_name}'")
            steps.append(
                TaskStep(
                    id=f"step_{index}",
                    order=index,
                    description=step.description,
                    tool_name=tool_name,
                    params={**step.params, "team_id": team_id, "workspace_id": workspace_id},
                    depends_on=[_normalize_dependency(d) for d in step.depends_on],
                )
            )

        now_ms = int(time.time() * 1000)
        return TaskPlan(
            id=f"plan_{now_ms}",
            goal=draft.goal,
            steps=steps,
            estimated_duration=draft.estimated_duration,
            requires_approval=True,
            created_at=now_ms,
            status="draft",
        )
