"""Tests for the plan executor: retry, failure, cancellation and timeout."""

import asyncio
from typing import Optional

import pytest
from langchain_core.runnables import RunnableConfig
from langchain_core.tools import tool
from pydantic import BaseModel

from workspaceAgent.config import ExecutionSettings
from workspaceAgent.execution import (
    PlanExecutor,
    cancel_execution,
    create_cancel_signal,
    format_execution_results,
    get_created_items,
)
from workspaceAgent.execution.agent_loop import _step_snapshot
from workspaceAgent.tools import ToolMeta, ToolRegistry
from workspaceAgent.utils import ToolValidationError


class ValueInput(BaseModel):
    value: str = "ok"
    team_id: Optional[str] = None
    workspace_id: Optional[str] = None


def build_registry(calls):
    """Registry of scripted tools; ``calls`` counts invocations per tool."""

    @tool("echo", args_schema=ValueInput)
    async def echo(value: str = "ok", team_id: Optional[str] = None, workspace_id: Optional[str] = None) -> dict:
        """Return the value."""
        calls["echo"] = calls.get("echo", 0) + 1
        return {"value": value}

    @tool("always_fails", args_schema=ValueInput)
    async def always_fails(value: str = "ok", team_id: Optional[str] = None, workspace_id: Optional[str] = None):
        """Fail every time."""
        calls["always_fails"] = calls.get("always_fails", 0) + 1
        raise RuntimeError("backend unavailable")

    @tool("flaky", args_schema=ValueInput)
    async def flaky(value: str = "ok", team_id: Optional[str] = None, workspace_id: Optional[str] = None) -> str:
        """Fail on the first call only."""
        calls["flaky"] = calls.get("flaky", 0) + 1
        if calls["flaky"] == 1:
            raise ConnectionError("connection reset")
        return "recovered"

    @tool("rejects_input", args_schema=ValueInput)
    async def rejects_input(value: str = "ok", team_id: Optional[str] = None, workspace_id: Optional[str] = None):
        """Reject its parameters."""
        calls["rejects_input"] = calls.get("rejects_input", 0) + 1
        raise ToolValidationError("rejects_input", f"value {value!r} is not allowed")

    @tool("slow", args_schema=ValueInput)
    async def slow(value: str = "ok", team_id: Optional[str] = None, workspace_id: Optional[str] = None) -> str:
        """Take a while."""
        calls["slow"] = calls.get("slow", 0) + 1
        await asyncio.sleep(0.2)
        return "done"

    @tool("observe_signal", args_schema=ValueInput)
    async def observe_signal(
        value: str = "ok",
        team_id: Optional[str] = None,
        workspace_id: Optional[str] = None,
        *,
        config: RunnableConfig,
    ) -> dict:
        """Report the call context it received."""
        configurable = config.get("configurable") or {}
        calls["signals"] = calls.get("signals", []) + [configurable.get("cancel_signal")]
        return {"call_id": configurable.get("call_id")}

    registry = ToolRegistry()
    for item in (echo, always_fails, flaky, rejects_input, slow, observe_signal):
        registry.register(
            item,
            ToolMeta(
                name=item.name,
                display_name=item.name,
                description=item.description,
                category="analysis",
                action_type="analyze",
            ),
        )
    return registry


@pytest.fixture
def calls():
    return {}


@pytest.fixture
def executor(calls):
    return PlanExecutor(build_registry(calls), ExecutionSettings(step_delay_seconds=0))


class TestExecuteTaskPlan:
    @pytest.mark.asyncio
    async def test_all_steps_complete(self, executor, plan_factory):
        plan = plan_factory([("echo", {"value": "a"}, []), ("echo", {"value": "b"}, ["step_1"])])

        result = await executor.execute_task_plan(plan)

        assert result.success
        assert result.completed_steps == 2
        assert result.total_steps == 2
        assert result.errors == []
        assert result.results == {"step_1": {"value": "a"}, "step_2": {"value": "b"}}
        assert result.plan.status == "completed"
        assert result.plan.summary == "✅ Completed 2/2 steps successfully."
        assert result.execution_time >= 0
        assert plan.status == "approved"

    @pytest.mark.asyncio
    async def test_failure_after_retry_fails_the_plan(self, executor, plan_factory, calls):
        plan = plan_factory(
            [
                ("echo", {}, []),
                ("always_fails", {}, ["step_1"]),
                ("echo", {}, ["step_2"]),
            ]
        )

        result = await executor.execute_task_plan(plan)

        assert not result.success
        assert result.completed_steps == 1
        assert result.plan.status == "failed"
        assert result.errors == ["Step 2 (always_fails): backend unavailable"]
        assert calls["always_fails"] == 2
        assert calls["echo"] == 1
        assert [s.status for s in result.plan.steps] == ["completed", "failed", "pending"]
        assert result.plan.steps[1].error == "backend unavailable"

    @pytest.mark.asyncio
    async def test_transient_failure_recovers_on_retry(self, executor, plan_factory, calls):
        result = await executor.execute_task_plan(plan_factory([("flaky", {}, [])]))

        assert result.success
        assert result.results == {"step_1": "recovered"}
        assert calls["flaky"] == 2

    @pytest.mark.asyncio
    async def test_validation_error_is_not_retried(self, executor, plan_factory, calls):
        result = await executor.execute_task_plan(plan_factory([("rejects_input", {"value": "x"}, [])]))

        assert result.plan.status == "failed"
        assert calls["rejects_input"] == 1
        assert result.errors == ["Step 1 (rejects_input): value 'x' is not allowed"]

    @pytest.mark.asyncio
    async def test_unknown_tool(self, executor, plan_factory):
        result = await executor.execute_task_plan(plan_factory([("ghost", {}, [])]))

        assert result.plan.status == "failed"
        assert result.errors == ["Step 1 (ghost): Tool not found: ghost"]

    @pytest.mark.asyncio
    async def test_cancel_between_steps(self, executor, plan_factory, calls):
        signal = create_cancel_signal()
        plan = plan_factory([("echo", {}, []), ("echo", {}, ["step_1"]), ("echo", {}, ["step_2"])])

        def on_progress(step, _plan, message):
            if step.id == "step_1" and message.startswith("Completed"):
                cancel_execution(signal)

        result = await executor.execute_task_plan(plan, on_progress=on_progress, cancel_signal=signal)

        assert result.completed_steps == 1
        assert result.plan.status == "cancelled"
        assert not result.success
        assert result.errors == []
        assert calls["echo"] == 1
        assert [s.status for s in result.plan.steps] == ["completed", "pending", "pending"]
        assert result.plan.summary == "⏹️ Plan cancelled. Completed 1/3 steps."

    @pytest.mark.asyncio
    async def test_cancel_before_start_runs_nothing(self, executor, plan_factory, calls):
        signal = create_cancel_signal()
        signal.cancel()

        result = await executor.execute_task_plan(plan_factory([("echo", {}, [])]), cancel_signal=signal)

        assert result.plan.status == "cancelled"
        assert result.completed_steps == 0
        assert calls == {}

    @pytest.mark.asyncio
    async def test_timeout(self, executor, plan_factory):
        plan = plan_factory([("slow", {}, []), ("slow", {}, ["step_1"])])

        result = await executor.execute_task_plan(plan, max_execution_time=0.05)

        assert result.plan.status == "failed"
        assert result.completed_steps == 1
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Execution timed out after")
        assert result.plan.steps[1].status == "pending"

    @pytest.mark.asyncio
    async def test_progress_messages(self, executor, plan_factory):
        messages = []
        plan = plan_factory([("echo", {}, []), ("always_fails", {}, ["step_1"])])

        await executor.execute_task_plan(plan, on_progress=lambda step, _p, message: messages.append((step.status, message)))

        assert messages == [
            ("running", "Executing: Step 1 with echo"),
            ("completed", "Completed: Step 1 with echo"),
            ("running", "Executing: Step 2 with always_fails"),
            ("failed", "Failed: Step 2 with always_fails"),
        ]

    @pytest.mark.asyncio
    async def test_cancel_signal_reaches_tools(self, executor, plan_factory, calls):
        signal = create_cancel_signal()

        result = await executor.execute_task_plan(plan_factory([("observe_signal", {}, [])]), cancel_signal=signal)

        assert calls["signals"] == [signal]
        assert result.results["step_1"]["call_id"].startswith("agent_step_1_")

    @pytest.mark.asyncio
    async def test_unsatisfiable_dependencies_fail(self, executor, plan_factory):
        plan = plan_factory([("echo", {}, ["step_2"]), ("echo", {}, ["step_1"])])

        result = await executor.execute_task_plan(plan)

        assert result.plan.status == "failed"
        assert result.completed_steps == 0

    @pytest.mark.asyncio
    async def test_step_counts_add_up(self, executor, plan_factory):
        plan = plan_factory(
            [("echo", {}, []), ("always_fails", {}, []), ("echo", {}, ["step_2"]), ("echo", {}, [])]
        )

        result = await executor.execute_task_plan(plan)

        statuses = [s.status for s in result.plan.steps]
        assert result.plan.status in ("completed", "failed", "cancelled")
        assert result.completed_steps + sum(1 for s in statuses if s != "completed") == result.total_steps
        assert "running" not in statuses


class TestNeedsConfirmation:
    @pytest.mark.asyncio
    async def test_previews_are_auto_confirmed(self, tool_registry, store, plan_factory):
        executor = PlanExecutor(tool_registry, ExecutionSettings(step_delay_seconds=0))
        scope = {"team_id": "team_1", "workspace_id": "ws_1"}
        plan = plan_factory(
            [
                ("create_work_item", {**scope, "name": "Dark mode", "type": "feature"}, []),
                ("create_task", {**scope, "work_item_id": "wi_1", "name": "Build toggle"}, ["step_1"]),
            ]
        )

        result = await executor.execute_task_plan(plan)

        assert result.success
        items = await store.list_work_items("team_1", "ws_1")
        assert [item["name"] for item in items] == ["Dark mode"]
        assert store.tasks("team_1", "ws_1")[0]["work_item_id"] == "wi_1"
        assert get_created_items(result) == [
            {"type": "work_item", "id": result.results["step_1"]["id"]},
            {"type": "task", "id": result.results["step_2"]["id"]},
        ]


class TestExecuteStep:
    @pytest.mark.asyncio
    async def test_runs_ready_step_once(self, executor, plan_factory, calls):
        plan = plan_factory([("always_fails", {}, [])])

        outcome = await executor.execute_step(plan, "step_1")

        assert not outcome.success
        assert outcome.error == "backend unavailable"
        assert outcome.plan.steps[0].status == "failed"
        assert calls["always_fails"] == 1

    @pytest.mark.asyncio
    async def test_guards(self, executor, plan_factory):
        plan = plan_factory([("echo", {}, []), ("echo", {}, ["step_1"])])

        assert (await executor.execute_step(plan, "step_9")).error == "Step not found"
        assert (await executor.execute_step(plan, "step_2")).error == "Dependencies not completed"

        done = await executor.execute_step(plan, "step_1")
        assert done.success
        assert done.plan.steps[0].result == {"value": "ok"}
        assert (await executor.execute_step(done.plan, "step_1")).error == "Step already completed"


class TestStepLookup:
    def test_missing_step_raises_runtime_error(self, plan_factory):
        plan = plan_factory([("analyze_feedback", {}, [])])

        assert _step_snapshot(plan, "step_1").tool_name == "analyze_feedback"
        with pytest.raises(RuntimeError, match="Step step_9 vanished"):
            _step_snapshot(plan, "step_9")


class TestFormatting:
    @pytest.mark.asyncio
    async def test_format_execution_results(self, executor, plan_factory):
        result = await executor.execute_task_plan(plan_factory([("echo", {}, []), ("always_fails", {}, [])]))

        text = format_execution_results(result)

        assert text.startswith("❌ **Plan Execution Failed**")
        assert "**Progress**: 1/2 steps" in text
        assert "- Step 2 (always_fails): backend unavailable" in text
