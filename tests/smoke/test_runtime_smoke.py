"""
Smoke tests: the wired runtime end to end with a mocked model backend.

Run with: pytest tests/smoke/ -v
"""

import json
from unittest.mock import AsyncMock, Mock

import pytest

from workspaceAgent import build_runtime
from workspaceAgent import cli
from workspaceAgent.config import ExecutionSettings, ModelProviderSettings, ObservabilitySettings, Settings
from workspaceAgent.hitl import approve_plan
from workspaceAgent.planning import PlanDraft, PlanStepDraft, validate_plan
from workspaceAgent.runtime import build_model_resolver
from workspaceAgent.utils import ModelInvocationError, handle_model_error


def planner_backend(draft):
    structured = Mock()
    structured.ainvoke = AsyncMock(return_value=draft)
    chat_model = Mock()
    chat_model.with_structured_output.return_value = structured
    return Mock(return_value=chat_model)


FEATURE_DRAFT = PlanDraft(
    goal="Capture dark mode and check feedback",
    steps=[
        PlanStepDraft(
            description="Create the dark mode feature",
            tool_name="create_work_item",
            params={"name": "Dark mode", "type": "feature"},
        ),
        PlanStepDraft(description="Review negative feedback", tool_name="analyze_feedback", depends_on=["step_1"]),
    ],
    estimated_duration="fast",
)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        execution=ExecutionSettings(step_delay_seconds=0),
        observability=ObservabilitySettings(log_dir=str(tmp_path / "logs")),
    )


def test_settings_defaults():
    settings = Settings()
    assert settings.planner.max_steps == 10
    assert settings.routing.large_context_threshold == 200_000
    assert settings.context.recent_turns == 10


def test_runtime_wiring(settings):
    runtime = build_runtime(settings, model_resolver=Mock())

    assert runtime.model_registry.get_default().key == "kimi-k2"
    assert runtime.tool_registry.has("create_work_item")
    assert runtime.analyze("hi", mode="agentic").selected_model.key == "deepseek-v3"
    assert runtime.analyze("x", context_tokens=300_000).routing_reason == "large_context"


def test_runtime_passes_observability_and_registry_through(tmp_path):
    settings = Settings(
        observability=ObservabilitySettings(log_dir=str(tmp_path / "logs"), log_prompt_max_length=300),
    )
    runtime = build_runtime(settings, model_resolver=Mock())

    assert runtime.planner.prompt_log_max_length == 300
    assert runtime.approvals.tool_registry is runtime.tool_registry


def test_missing_api_key_is_a_model_error(model_registry):
    resolver = build_model_resolver(model_registry, ModelProviderSettings(api_key=None))

    with pytest.raises(ModelInvocationError) as exc_info:
        resolver(model_registry.get_default().model_id)

    assert "OPENROUTER_API_KEY" in str(exc_info.value)
    assert handle_model_error(exc_info.value) == "The model API key is missing, contact an administrator"

@pytest.mark.asyncio
async def test_plan_approve_execute(settings):
    runtime = build_runtime(settings, model_resolver=planner_backend(FEATURE_DRAFT))

    created = await runtime.plan("Add dark mode and check feedback", team_id="team_1", workspace_id="ws_1")
    assert created.success
    assert validate_plan(created.plan, runtime.tool_registry).valid

    result = await runtime.execute(approve_plan(created.plan))

    assert result.success
    assert result.completed_steps == 2
    items = await runtime.store.list_work_items("team_1", "ws_1")
    assert [item["name"] for item in items] == ["Dark mode"]


@pytest.mark.asyncio
async def test_stream_reports_every_step(settings):
    runtime = build_runtime(settings, model_resolver=planner_backend(FEATURE_DRAFT))
    created = await runtime.plan("Add dark mode", team_id="team_1", workspace_id="ws_1")

    events = [event async for event in runtime.stream(approve_plan(created.plan))]

    assert [e.type for e in events][-1] == "execution-complete"
    assert sum(1 for e in events if e.type == "step-complete") == 2


def test_cli_route(settings, monkeypatch, capsys):
    monkeypatch.setattr(cli, "build_runtime", lambda: build_runtime(settings, model_resolver=Mock()))

    exit_code = cli.main(["route", "explain in detail how scoring works"])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["routing_reason"] == "deep_reasoning"
    assert payload["selected_model"] == "kimi-k2"


def test_cli_plan_with_auto_approval(settings, monkeypatch, capsys):
    monkeypatch.setattr(
        cli, "build_runtime", lambda: build_runtime(settings, model_resolver=planner_backend(FEATURE_DRAFT))
    )

    exit_code = cli.main(["plan", "Add dark mode", "--team", "team_1", "--workspace", "ws_1", "--yes"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "📋 **Task Plan**: Capture dark mode and check feedback" in out
    assert "🔄 Executing: Create the dark mode feature" in out
    assert "✅ **Plan Completed Successfully**" in out
