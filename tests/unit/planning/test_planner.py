"""Tests for plan generation and validation."""

from unittest.mock import AsyncMock, Mock

import pytest

from workspaceAgent.planning import (
    PlanDraft,
    PlanStepDraft,
    TaskPlanner,
    build_planner_prompt,
    reconcile_tool_name,
    validate_plan,
)


def planner_with_draft(tool_registry, model_registry, draft=None, error=None):
    structured = Mock()
    structured.ainvoke = AsyncMock(return_value=draft, side_effect=error)
    chat_model = Mock()
    chat_model.with_structured_output.return_value = structured
    resolver = Mock(return_value=chat_model)
    return TaskPlanner(tool_registry, model_registry, resolver), resolver, structured


def draft(*steps, goal="Triage feedback"):
    return PlanDraft(
        goal=goal,
        steps=[PlanStepDraft(description=d, tool_name=t, params=p, depends_on=deps) for d, t, p, deps in steps],
        estimated_duration="medium",
    )


class TestReconcileToolName:
    REGISTERED = ["create_work_item", "create_task", "analyze_feedback"]

    def test_exact_name_unchanged(self):
        assert reconcile_tool_name("create_task", self.REGISTERED) == "create_task"

    def test_case_insensitive_substring(self):
        assert reconcile_tool_name("Work_Item", self.REGISTERED) == "create_work_item"
        assert reconcile_tool_name("ANALYZE", self.REGISTERED) == "analyze_feedback"

    def test_registered_name_inside_generated_one(self):
        assert reconcile_tool_name("create_task_now", self.REGISTERED) == "create_task"

    def test_no_plausible_match(self):
        assert reconcile_tool_name("send_email", self.REGISTERED) == "send_email"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_stays_unresolved(self, name):
        assert reconcile_tool_name(name, self.REGISTERED) == name


class TestValidatePlan:
    def test_valid_plan(self, plan_factory, tool_registry):
        plan = plan_factory([("analyze_feedback", {}, []), ("create_work_item", {}, ["step_1"])])
        result = validate_plan(plan, tool_registry)
        assert result.valid
        assert result.errors == []

    def test_empty_plan(self, plan_factory, tool_registry):
        assert validate_plan(plan_factory([]), tool_registry).errors == ["Plan has no steps"]

    def test_too_many_steps(self, plan_factory, tool_registry):
        plan = plan_factory([("analyze_feedback", {}, [])] * 11)
        assert "Plan exceeds maximum of 10 steps" in validate_plan(plan, tool_registry).errors

    def test_dependency_errors(self, plan_factory, tool_registry):
        plan = plan_factory(
            [
                ("analyze_feedback", {}, ["step_1"]),
                ("create_work_item", {}, ["step_9"]),
            ]
        )
        errors = validate_plan(plan, tool_registry).errors
        assert "Step step_1 depends on itself" in errors
        assert "Step step_2 depends on non-existent step step_9" in errors

    def test_cycle(self, plan_factory, tool_registry):
        plan = plan_factory([("analyze_feedback", {}, ["step_2"]), ("create_work_item", {}, ["step_1"])])
        errors = validate_plan(plan, tool_registry).errors
        assert errors == ["Plan has a dependency cycle: step_1 -> step_2 -> step_1"]

    def test_duplicate_ids(self, plan_factory, tool_registry):
        plan = plan_factory([("analyze_feedback", {}, []), ("create_task", {}, [])])
        plan.steps[1].id = "step_1"
        assert "Duplicate step id step_1" in validate_plan(plan, tool_registry).errors

    def test_unknown_tool(self, plan_factory, tool_registry):
        plan = plan_factory([("send_email", {}, [])])
        assert validate_plan(plan, tool_registry).errors == ["Step step_1 uses unknown tool: send_email"]


class TestTaskPlanner:
    def test_prompt_embeds_catalog_and_limit(self, tool_registry):
        prompt = build_planner_prompt(tool_registry.get_tool_descriptions_with_examples())
        assert "### create_work_item (creation)" in prompt
        assert "Keep plans under 10 steps" in prompt

    @pytest.mark.asyncio
    async def test_builds_draft_plan(self, tool_registry, model_registry):
        planner, resolver, structured = planner_with_draft(
            tool_registry,
            model_registry,
            draft(
                ("Find negative feedback", "analyze_feedback", {"sentiment": "negative"}, []),
                ("File a bug", "create_work_item", {"name": "Crash on upload", "type": "bug"}, ["1"]),
            ),
        )

        result = await planner.create_task_plan("Analyze feedback and then file bugs", team_id="t1", workspace_id="w1")

        assert result.success
        plan = result.plan
        assert plan.status == "draft"
        assert plan.requires_approval is True
        assert plan.id.startswith("plan_")
        assert [s.id for s in plan.steps] == ["step_1", "step_2"]
        assert [s.order for s in plan.steps] == [1, 2]
        assert plan.steps[1].depends_on == ["step_1"]
        assert plan.steps[0].params == {"sentiment": "negative", "team_id": "t1", "workspace_id": "w1"}
        assert all(s.status == "pending" for s in plan.steps)
        resolver.assert_called_once_with(model_registry.get_default().model_id)

        messages = structured.ainvoke.await_args.args[0]
        assert messages[1].content == "User request: Analyze feedback and then file bugs"

    @pytest.mark.asyncio
    async def test_prompt_log_respects_length_limit(self, tool_registry, model_registry, monkeypatch):
        logged = Mock()
        monkeypatch.setattr("workspaceAgent.planning.planner.log_prompt", logged)
        structured = Mock()
        structured.ainvoke = AsyncMock(return_value=draft(("Review", "analyze_feedback", {}, [])))
        chat_model = Mock()
        chat_model.with_structured_output.return_value = structured
        planner = TaskPlanner(tool_registry, model_registry, Mock(return_value=chat_model), prompt_log_max_length=200)

        await planner.create_task_plan("Review feedback", team_id="t1", workspace_id="w1")

        _, phase, prompt, max_length = logged.call_args.args
        assert phase == "planner"
        assert "### create_work_item (creation)" in prompt
        assert max_length == 200

    @pytest.mark.asyncio
    async def test_conversation_context_is_prepended(self, tool_registry, model_registry):
        planner, _, structured = planner_with_draft(
            tool_registry, model_registry, draft(("Analyze", "analyze_feedback", {}, []))
        )

        await planner.create_task_plan("do it", team_id="t", workspace_id="w", conversation_context="We ship Friday")

        messages = structured.ainvoke.await_args.args[0]
        assert messages[1].content == "Context:\nWe ship Friday\n\nUser request: do it"

    @pytest.mark.asyncio
    async def test_remaps_and_flags_unknown_tools(self, tool_registry, model_registry):
        planner, _, _ = planner_with_draft(
            tool_registry,
            model_registry,
            draft(
                ("Create the item", "Work_Item", {"name": "Dark mode", "type": "feature"}, []),
                ("Tell the team", "send_email", {}, ["step_1"]),
            ),
        )

        result = await planner.create_task_plan("create and email", team_id="t", workspace_id="w")

        assert result.plan.steps[0].tool_name == "create_work_item"
        assert result.plan.steps[1].tool_name == "send_email"
        validation = validate_plan(result.plan, tool_registry)
        assert not validation.valid
        assert validation.errors == ["Step step_2 uses unknown tool: send_email"]

    @pytest.mark.asyncio
    async def test_blank_tool_name_fails_validation(self, tool_registry, model_registry):
        planner, _, _ = planner_with_draft(tool_registry, model_registry, draft(("Do something", "", {}, [])))

        result = await planner.create_task_plan("do something", team_id="t", workspace_id="w")

        assert result.plan.steps[0].tool_name == ""
        assert validate_plan(result.plan, tool_registry).errors == ["Step step_1 uses unknown tool: "]

    @pytest.mark.asyncio
    async def test_truncates_to_max_steps(self, tool_registry, model_registry):
        steps = [(f"Analyze {i}", "analyze_feedback", {}, []) for i in range(12)]
        planner, _, _ = planner_with_draft(tool_registry, model_registry, draft(*steps))

        result = await planner.create_task_plan("lots", team_id="t", workspace_id="w")
        assert len(result.plan.steps) == 10

        result = await planner.create_task_plan("lots", team_id="t", workspace_id="w", max_steps=3)
        assert len(result.plan.steps) == 3

    @pytest.mark.asyncio
    async def test_model_failure_is_reported(self, tool_registry, model_registry):
        planner, _, _ = planner_with_draft(
            tool_registry, model_registry, error=RuntimeError("Error code: 429 - rate_limit exceeded")
        )

        result = await planner.create_task_plan("anything", team_id="t", workspace_id="w")

        assert not result.success
        assert result.plan is None
        assert result.error == "Too many requests, please try again shortly"

    @pytest.mark.asyncio
    async def test_dict_output_is_validated(self, tool_registry, model_registry):
        raw = {
            "goal": "Analyze",
            "steps": [{"description": "Analyze", "tool_name": "analyze_feedback"}],
            "estimated_duration": "fast",
        }
        planner, _, _ = planner_with_draft(tool_registry, model_registry, raw)

        result = await planner.create_task_plan("analyze", team_id="t", workspace_id="w")

        assert result.success
        assert result.plan.goal == "Analyze"
        assert result.plan.estimated_duration == "fast"
