"""Unit tests for ToolRegistry and AgenticTool."""

import pytest
from langchain_core.tools import tool
from pydantic import BaseModel, Field

from workspaceAgent.tools import (
    CancelSignal,
    NeedsConfirmation,
    ToolCallContext,
    ToolExample,
    ToolFilter,
    ToolMeta,
    ToolRegistry,
    ToolResult,
)
from workspaceAgent.utils import ToolValidationError


class EchoInput(BaseModel):
    text: str = Field(min_length=1)


@tool("echo", args_schema=EchoInput)
async def echo(text: str) -> str:
    """Echo the text back."""
    return text


@tool("shout", args_schema=EchoInput)
async def shout(text: str) -> ToolResult:
    """Return the text in upper case."""
    return ToolResult(data=text.upper())


def echo_meta(name="echo", **overrides):
    fields = dict(
        name=name,
        display_name="Echo",
        description="Repeat the given text",
        category="analysis",
        action_type="analyze",
    )
    fields.update(overrides)
    return ToolMeta(**fields)


class TestRegistration:
    """Registration, lookup and indexes."""

    def test_register_and_lookup(self):
        registry = ToolRegistry()
        registry.register(echo, echo_meta())

        assert registry.has("echo")
        assert "echo" in registry
        assert len(registry) == 1
        assert registry.get("echo").meta.display_name == "Echo"
        assert registry.get("missing") is None

    def test_get_or_raise_unknown(self):
        with pytest.raises(KeyError):
            ToolRegistry().get_or_raise("missing")

    def test_overwrite_replaces_entry_and_indexes(self):
        registry = ToolRegistry()
        registry.register(echo, echo_meta(category="analysis"))
        registry.register(echo, echo_meta(category="strategy", action_type="suggest"))

        assert len(registry) == 1
        assert registry.get_by_category("analysis") == []
        assert [t.name for t in registry.get_by_category("strategy")] == ["echo"]
        assert registry.get_by_action_type("analyze") == []

    def test_indexes_keep_registration_order(self, tool_registry):
        creation = [t.name for t in tool_registry.get_by_category("creation")]
        assert creation == ["create_work_item", "create_task", "create_dependency"]
        assert [t.name for t in tool_registry.get_by_entity("work_item")] == [
            "create_work_item",
            "prioritize_features",
        ]

    def test_category_counts(self, tool_registry):
        assert tool_registry.get_category_counts() == {
            "creation": 3,
            "analysis": 1,
            "optimization": 1,
            "strategy": 0,
        }

    def test_approval_and_reversible_views(self, tool_registry):
        approval = {t.name for t in tool_registry.get_approval_required()}
        assert approval == {"create_work_item", "create_task", "create_dependency", "prioritize_features"}
        assert "analyze_feedback" not in {t.name for t in tool_registry.get_reversible()}

    def test_clear(self, tool_registry):
        tool_registry.clear()
        assert len(tool_registry) == 0
        assert tool_registry.get_by_category("creation") == []


class TestFilter:
    def test_unset_criteria_match_everything(self, tool_registry):
        assert len(tool_registry.filter(ToolFilter())) == len(tool_registry)

    def test_combined_criteria(self, tool_registry):
        result = tool_registry.filter(ToolFilter(category="creation", target_entity="product_task"))
        assert [t.name for t in result] == ["create_task"]

    def test_keyword_matches_keywords_and_description(self, tool_registry):
        assert [t.name for t in tool_registry.filter(ToolFilter(keyword="RICE"))] == ["prioritize_features"]
        assert [t.name for t in tool_registry.filter(ToolFilter(keyword="sentiment"))] == ["analyze_feedback"]

    def test_to_langchain_tools(self, tool_registry):
        tools = tool_registry.to_langchain_tools(ToolFilter(requires_approval=False))
        assert [t.name for t in tools] == ["analyze_feedback"]


class TestDescriptions:
    def test_empty_registry(self):
        assert ToolRegistry().get_tool_descriptions_with_examples() == "## Available Tools\n\nNo tools available."

    def test_markdown_layout(self):
        registry = ToolRegistry()
        registry.register(
            echo,
            echo_meta(
                requires_approval=True,
                keywords=("repeat", "say"),
                input_examples=(ToolExample("Repeat a word", "say hello", {"text": "hello"}),),
            ),
        )
        registry.register(shout, echo_meta(name="shout", is_reversible=False))

        text = registry.get_tool_descriptions_with_examples()

        assert text.startswith("## Available Tools\n\n### echo (analysis)\nRepeat the given text")
        assert "\nKeywords: repeat, say" in text
        assert '\n- Repeat a word\n  User says: "say hello"\n  → Use with: {\n    "text": "hello"\n  }' in text
        assert "\n[requires approval, reversible]" in text
        assert "\n\n---\n\n### shout (analysis)\nRepeat the given text" in text
        assert text.endswith("### shout (analysis)\nRepeat the given text")

    def test_compact_examples(self, tool_registry):
        compact = tool_registry.get_tool_examples_compact()
        assert compact["analyze_feedback"]["example"] == (
            '"Analyze all the customer feedback we have collected" → {"sentiment": "all", "limit": 50}'
        )
        assert set(compact) == set(tool_registry.get_all_names())


class TestAgenticToolExecute:
    @pytest.mark.asyncio
    async def test_plain_return_is_wrapped(self):
        registry = ToolRegistry()
        agentic = registry.register(echo, echo_meta())

        outcome = await agentic.execute({"text": "hi"}, ToolCallContext())

        assert isinstance(outcome, ToolResult)
        assert outcome.kind == "result"
        assert outcome.data == "hi"

    @pytest.mark.asyncio
    async def test_tool_result_passes_through(self):
        agentic = ToolRegistry().register(shout, echo_meta(name="shout"))
        outcome = await agentic.execute({"text": "hi"}, ToolCallContext())
        assert outcome.data == "HI"

    @pytest.mark.asyncio
    async def test_schema_violation_raises_validation_error(self):
        agentic = ToolRegistry().register(echo, echo_meta())

        with pytest.raises(ToolValidationError) as exc_info:
            await agentic.execute({"text": ""}, ToolCallContext())

        assert exc_info.value.tool_name == "echo"
        assert "Invalid parameters for echo" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_confirmation_outcome(self, tool_registry, store):
        outcome = await tool_registry.get("create_work_item").execute(
            {"team_id": "team_1", "workspace_id": "ws_1", "name": "Dark mode", "type": "feature"},
            ToolCallContext(cancel_signal=CancelSignal()),
        )

        assert isinstance(outcome, NeedsConfirmation)
        assert outcome.preview.description == 'Create feature: "Dark mode"'
        assert await store.list_work_items("team_1", "ws_1") == []
