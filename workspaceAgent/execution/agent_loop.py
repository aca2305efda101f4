"""Plan executor built on a LangGraph state machine.

Architecture:

    START → select_step ─┬─→ run_step ─┬─→ select_step ...
                         │             │
                         └─→ END       └─→ END

- select_step: honours cancellation and the wall-clock ceiling, picks the next
  ready step (first pending step whose dependencies are completed) or decides
  the terminal plan status when none is left.
- run_step: invokes the step's tool, auto-confirming previews, retries once
  after ``step_delay`` and fails the plan on a second failure.

Steps run strictly one at a time. Tool errors never escape: they end up in
``ExecutionResult.errors`` and in the failed step.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Literal, Optional

from langgraph.graph import END, START, StateGraph

from workspaceAgent.config.settings import ExecutionSettings
from workspaceAgent.planning.plan_ops import (
    format_plan_summary,
    get_next_pending_step,
    update_plan_status,
    update_step_status,
)
from workspaceAgent.planning.schema import TaskPlan, TaskStep
from workspaceAgent.tools.contract import CancelSignal, NeedsConfirmation, ToolCallContext
from workspaceAgent.tools.registry import ToolRegistry
from workspaceAgent.utils.error_handler import ToolValidationError
from workspaceAgent.utils.logging_utils import log_step_execution

from .state import ExecutionResult, ExecutionState, ProgressCallback, StepExecutionResult

LOGGER = logging.getLogger("workspaceagent.executor")

MAX_RETRIES = 1


@dataclass
class ToolRun:
    """Outcome of one tool invocation inside the executor."""

    success: bool
    result: Any = None
    error: Optional[str] = None
    retryable: bool = True


def _step_snapshot(plan: TaskPlan, step_id: str) -> TaskStep:
    step = plan.get_step(step_id)
    if step is None:
        raise RuntimeError(f"Step {step_id} vanished from plan {plan.id}")
    return step


class PlanExecutor:
    """Runs approved plans against a tool registry."""

    def __init__(self, tool_registry: ToolRegistry, settings: Optional[ExecutionSettings] = None) -> None:
        self.tool_registry = tool_registry
        self.settings = settings or ExecutionSettings()

    async def invoke_tool(self, step: TaskStep, cancel_signal: CancelSignal) -> ToolRun:
        """Run the step's tool once; a confirmation request is confirmed on the spot."""
        tool = self.tool_registry.get(step.tool_name)
        if tool is None:
            return ToolRun(False, error=f"Tool not found: {step.tool_name}", retryable=False)

        context = ToolCallContext(call_id=f"agent_{step.id}_{uuid.uuid4().hex[:8]}", cancel_signal=cancel_signal)
        try:
            outcome = await tool.execute(step.params, context)
            if isinstance(outcome, NeedsConfirmation):
                # The plan itself was approved, so previews are confirmed here
                LOGGER.info(f"Tool {step.tool_name} returned a confirmation request, auto-confirming")
                if outcome.confirmed_execute is not None:
                    return ToolRun(True, result=await outcome.confirmed_execute())
                return ToolRun(True, result=outcome.preview.data)
            return ToolRun(True, result=outcome.data)
        except ToolValidationError as exc:
            LOGGER.warning(f"Tool {step.tool_name} rejected its parameters: {exc}")
            return ToolRun(False, error=exc.user_message, retryable=False)
        except Exception as exc:
            LOGGER.warning(f"Tool {step.tool_name} failed: {type(exc).__name__}: {exc}")
            return ToolRun(False, error=str(exc) or type(exc).__name__)

    def build_graph(
        self,
        *,
        cancel_signal: CancelSignal,
        on_progress: Optional[ProgressCallback],
        max_execution_time: float,
        step_delay: float,
    ):
        """Compile the select/run state machine for one execution."""

        def report(plan: TaskPlan, step_id: str, message: str) -> None:
            if on_progress is not None:
                on_progress(_step_snapshot(plan, step_id), plan, message)

        async def select_step(state: ExecutionState) -> dict:
            plan = state["plan"]

            if cancel_signal.cancelled:
                LOGGER.info(f"Execution of {plan.id} cancelled")
                return {"plan": update_plan_status(plan, "cancelled"), "finished": True}

            if time.monotonic() - state["started_at"] > max_execution_time:
                LOGGER.warning(f"Execution of {plan.id} timed out")
                errors = [*state["errors"], f"Execution timed out after {round(max_execution_time)} seconds"]
                return {"plan": update_plan_status(plan, "failed"), "errors": errors, "finished": True}

            step = get_next_pending_step(plan)
            if step is None:
                done = all(s.status in ("completed", "skipped") for s in plan.steps)
                status = "completed" if done else "failed"
                LOGGER.info(f"No runnable step left in {plan.id}, finishing as {status}")
                return {"plan": update_plan_status(plan, status), "finished": True}

            plan = update_step_status(plan, step.id, "running")
            report(plan, step.id, f"Executing: {step.description}")
            return {"plan": plan, "current_step_id": step.id}

        async def run_step(state: ExecutionState) -> dict:
            plan = state["plan"]
            step = _step_snapshot(plan, state["current_step_id"])

            attempts = 1 + MAX_RETRIES
            log_step_execution(LOGGER, step.model_dump(), 1, attempts)
            run = await self.invoke_tool(step, cancel_signal)
            if not run.success and run.retryable:
                LOGGER.info(f"Step {step.id} failed, retrying once")
                await asyncio.sleep(step_delay)
                log_step_execution(LOGGER, step.model_dump(), 2, attempts)
                run = await self.invoke_tool(step, cancel_signal)

            if run.success:
                plan = update_step_status(plan, step.id, "completed", run.result)
                results = {**state["results"], step.id: run.result}
                report(plan, step.id, f"Completed: {step.description}")
                await asyncio.sleep(step_delay)
                return {"plan": plan, "results": results, "current_step_id": None}

            plan = update_step_status(plan, step.id, "failed", error=run.error)
            errors = [*state["errors"], f"Step {step.order} ({step.tool_name}): {run.error}"]
            report(plan, step.id, f"Failed: {step.description}")
            # Fail fast: dependents of a failed step can never run
            plan = update_plan_status(plan, "failed")
            return {"plan": plan, "errors": errors, "current_step_id": None, "finished": True}

        def route(state: ExecutionState) -> Literal["next", "end"]:
            return "end" if state.get("finished") else "next"

        graph = StateGraph(ExecutionState)
        graph.add_node("select_step", select_step)
        graph.add_node("run_step", run_step)
        graph.add_edge(START, "select_step")
        graph.add_conditional_edges("select_step", route, {"next": "run_step", "end": END})
        graph.add_conditional_edges("run_step", route, {"next": "select_step", "end": END})
        return graph.compile()

    async def execute_task_plan(
        self,
        plan: TaskPlan,
        *,
        on_progress: Optional[ProgressCallback] = None,
        cancel_signal: Optional[CancelSignal] = None,
        max_execution_time: Optional[float] = None,
        step_delay: Optional[float] = None,
    ) -> ExecutionResult:
        """Execute ``plan`` step by step and report the outcome.

        Args:
            plan: The plan to run (normally approved).
            on_progress: Called with (step, plan, message) when a step starts,
                completes or fails.
            cancel_signal: Polled before every step and passed to each tool call.
            max_execution_time: Wall-clock ceiling in seconds.
            step_delay: Seconds to wait between steps and before the retry.
        """
        cancel_signal = cancel_signal or CancelSignal()
        max_execution_time = self.settings.max_execution_seconds if max_execution_time is None else max_execution_time
        step_delay = self.settings.step_delay_seconds if step_delay is None else step_delay

        LOGGER.info(
            f"Starting execution of plan {plan.id}: {len(plan.steps)} steps, max time {max_execution_time}s"
        )
        app = self.build_graph(
            cancel_signal=cancel_signal,
            on_progress=on_progress,
            max_execution_time=max_execution_time,
            step_delay=step_delay,
        )
        started_at = time.monotonic()
        final_state = await app.ainvoke(
            {
                "plan": update_plan_status(plan, "executing"),
                "results": {},
                "errors": [],
                "current_step_id": None,
                "started_at": started_at,
                "finished": False,
            },
            config={"recursion_limit": 2 * len(plan.steps) + 10},
        )

        final_plan: TaskPlan = final_state["plan"]
        final_plan = final_plan.model_copy(update={"summary": format_plan_summary(final_plan)})
        completed = sum(1 for s in final_plan.steps if s.status == "completed")
        execution_time = int((time.monotonic() - started_at) * 1000)

        LOGGER.info(
            f"Execution finished: {completed}/{len(final_plan.steps)} steps in {execution_time}ms ({final_plan.status})"
        )
        return ExecutionResult(
            success=final_plan.status == "completed",
            completed_steps=completed,
            total_steps=len(final_plan.steps),
            results=final_state["results"],
            errors=final_state["errors"],
            execution_time=execution_time,
            plan=final_plan,
        )

    async def execute_step(
        self,
        plan: TaskPlan,
        step_id: str,
        cancel_signal: Optional[CancelSignal] = None,
    ) -> StepExecutionResult:
        """Run a single ready step once, without retry."""
        step = plan.get_step(step_id)
        if step is None:
            return StepExecutionResult(success=False, plan=plan, error="Step not found")
        if step.status != "pending":
            return StepExecutionResult(success=False, plan=plan, error=f"Step already {step.status}")

        statuses = {s.id: s.status for s in plan.steps}
        if not all(statuses.get(dep) == "completed" for dep in step.depends_on):
            return StepExecutionResult(success=False, plan=plan, error="Dependencies not completed")

        updated = update_step_status(plan, step_id, "running")
        run = await self.invoke_tool(step, cancel_signal or CancelSignal())
        if run.success:
            updated = update_step_status(updated, step_id, "completed", run.result)
        else:
            updated = update_step_status(updated, step_id, "failed", error=run.error)
        return StepExecutionResult(success=run.success, plan=updated, error=run.error)


def format_execution_results(result: ExecutionResult) -> str:
    lines = ["✅ **Plan Completed Successfully**" if result.success else "❌ **Plan Execution Failed**"]
    lines.append("")
    lines.append(f"**Progress**: {result.completed_steps}/{result.total_steps} steps")
    lines.append(f"**Time**: {result.execution_time / 1000:.1f}s")

    if result.errors:
        lines.append("")
        lines.append("**Errors**:")
        lines.extend(f"- {error}" for error in result.errors)

    created = get_created_items(result)
    if created:
        lines.append("")
        lines.append(f"**Created**: {len(created)} item(s)")

    return "\n".join(lines)


_ENTITY_HINTS = (
    ("work_item", "work_item"),
    ("task", "task"),
    ("insight", "insight"),
    ("dependency", "dependency"),
)


def get_created_items(result: ExecutionResult) -> list[dict]:
    """Records with a string ``id`` produced by the run, tagged with an entity type."""
    items = []
    for step_id, step_result in result.results.items():
        if not isinstance(step_result, dict) or not isinstance(step_result.get("id"), str):
            continue
        step = result.plan.get_step(step_id)
        tool_name = step.tool_name.lower() if step else ""
        entity = next((kind for hint, kind in _ENTITY_HINTS if hint in tool_name), "unknown")
        items.append({"type": entity, "id": step_result["id"]})
    return items
