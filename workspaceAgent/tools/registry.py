"""Tool metadata management and registration.

The registry is an explicit object built at startup and handed to the planner
and executor. It keeps LangChain tools together with the governance metadata
the planner needs (category, approval, reversibility, examples) and indexes
them for filtered lookups.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Set

from langchain_core.tools import BaseTool
from pydantic import ValidationError

from workspaceAgent.utils.error_handler import ToolValidationError
from workspaceAgent.utils.logging_utils import log_tool_call, log_tool_result

from .contract import NeedsConfirmation, ToolCallContext, ToolOutcome, ToolResult

LOGGER = logging.getLogger("workspaceagent.tools")

ToolCategory = Literal["creation", "analysis", "optimization", "strategy"]
ActionType = Literal["create", "update", "delete", "analyze", "suggest"]
DurationClass = Literal["fast", "medium", "slow"]


@dataclass(frozen=True)
class ToolExample:
    """Worked example shown to the planner for a tool."""

    description: str
    user_message: str
    input: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolMeta:
    """Describes governance attributes for a tool."""

    name: str
    display_name: str
    description: str
    category: ToolCategory
    action_type: ActionType
    requires_approval: bool = False
    is_reversible: bool = True
    estimated_duration: DurationClass = "fast"
    target_entity: Optional[str] = None
    keywords: tuple[str, ...] = ()
    input_examples: tuple[ToolExample, ...] = ()


@dataclass
class ToolFilter:
    """Criteria for ``ToolRegistry.filter``; unset fields match everything."""

    category: Optional[ToolCategory] = None
    action_type: Optional[ActionType] = None
    requires_approval: Optional[bool] = None
    is_reversible: Optional[bool] = None
    target_entity: Optional[str] = None
    keyword: Optional[str] = None


class AgenticTool:
    """A LangChain tool paired with its metadata."""

    def __init__(self, tool: BaseTool, meta: ToolMeta) -> None:
        self.tool = tool
        self.meta = meta

    @property
    def name(self) -> str:
        return self.meta.name

    async def execute(self, params: Dict[str, Any], context: ToolCallContext) -> ToolOutcome:
        """Invoke the tool and normalize its return value into a ``ToolOutcome``.

        The call context travels in the runnable config, so tools that declare a
        ``RunnableConfig`` parameter can read ``configurable["cancel_signal"]``.

        Raises:
            ToolValidationError: The parameters do not satisfy the tool's schema.
        """
        log_tool_call(LOGGER, self.name, params)
        config = {
            "run_name": self.name,
            "configurable": {
                "call_id": context.call_id,
                "cancel_signal": context.cancel_signal,
            },
        }
        try:
            output = await self.tool.ainvoke(params, config=config)
        except ValidationError as exc:
            log_tool_result(LOGGER, self.name, exc, success=False)
            raise ToolValidationError(
                self.name,
                f"Invalid parameters for {self.name}: {exc.error_count()} validation error(s)",
                user_message=str(exc),
            ) from exc
        except Exception as exc:
            log_tool_result(LOGGER, self.name, exc, success=False)
            raise

        log_tool_result(LOGGER, self.name, output)
        if isinstance(output, (ToolResult, NeedsConfirmation)):
            return output
        return ToolResult(data=output)

    def __repr__(self) -> str:
        return f"AgenticTool(name={self.name!r}, category={self.meta.category!r})"


class ToolRegistry:
    """Tracks tool instances and their metadata, indexed for lookup."""

    def __init__(self) -> None:
        self._tools: Dict[str, AgenticTool] = {}
        self._by_category: Dict[str, Set[str]] = {}
        self._by_action_type: Dict[str, Set[str]] = {}
        self._by_entity: Dict[str, Set[str]] = {}

    def register(self, tool: BaseTool, meta: ToolMeta) -> AgenticTool:
        """Register ``tool`` under ``meta.name``; an existing entry is replaced."""

        if meta.name in self._tools:
            LOGGER.warning(f"Tool '{meta.name}' is already registered. Overwriting.")
            self._unindex(self._tools[meta.name].meta)

        agentic = AgenticTool(tool, meta)
        self._tools[meta.name] = agentic
        self._by_category.setdefault(meta.category, set()).add(meta.name)
        self._by_action_type.setdefault(meta.action_type, set()).add(meta.name)
        if meta.target_entity:
            self._by_entity.setdefault(meta.target_entity, set()).add(meta.name)
        return agentic

    def _unindex(self, meta: ToolMeta) -> None:
        self._by_category.get(meta.category, set()).discard(meta.name)
        self._by_action_type.get(meta.action_type, set()).discard(meta.name)
        if meta.target_entity:
            self._by_entity.get(meta.target_entity, set()).discard(meta.name)

    def get(self, name: str) -> Optional[AgenticTool]:
        return self._tools.get(name)

    def get_or_raise(self, name: str) -> AgenticTool:
        if name not in self._tools:
            raise KeyError(f"Unknown tool: {name}")
        return self._tools[name]

    def has(self, name: str) -> bool:
        return name in self._tools

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def _lookup(self, index: Dict[str, Set[str]], key: str) -> List[AgenticTool]:
        # Keep registration order rather than set order
        names = index.get(key, set())
        return [tool for name, tool in self._tools.items() if name in names]

    def get_by_category(self, category: ToolCategory) -> List[AgenticTool]:
        return self._lookup(self._by_category, category)

    def get_by_action_type(self, action_type: ActionType) -> List[AgenticTool]:
        return self._lookup(self._by_action_type, action_type)

    def get_by_entity(self, entity: str) -> List[AgenticTool]:
        return self._lookup(self._by_entity, entity)

    def filter(self, criteria: ToolFilter) -> List[AgenticTool]:
        """Return tools matching every criterion that is set."""

        results = self.get_all()

        if criteria.category is not None:
            results = [t for t in results if t.meta.category == criteria.category]
        if criteria.action_type is not None:
            results = [t for t in results if t.meta.action_type == criteria.action_type]
        if criteria.requires_approval is not None:
            results = [t for t in results if t.meta.requires_approval == criteria.requires_approval]
        if criteria.is_reversible is not None:
            results = [t for t in results if t.meta.is_reversible == criteria.is_reversible]
        if criteria.target_entity is not None:
            results = [t for t in results if t.meta.target_entity == criteria.target_entity]
        if criteria.keyword:
            needle = criteria.keyword.lower()
            results = [
                t
                for t in results
                if needle in t.meta.name.lower()
                or needle in t.meta.display_name.lower()
                or needle in t.meta.description.lower()
                or any(needle in k.lower() for k in t.meta.keywords)
            ]
        return results

    def get_all(self) -> List[AgenticTool]:
        return list(self._tools.values())

    def get_all_names(self) -> List[str]:
        return list(self._tools.keys())

    def get_all_metadata(self) -> List[ToolMeta]:
        return [t.meta for t in self._tools.values()]

    def get_approval_required(self) -> List[AgenticTool]:
        return [t for t in self._tools.values() if t.meta.requires_approval]

    def get_reversible(self) -> List[AgenticTool]:
        return [t for t in self._tools.values() if t.meta.is_reversible]

    def get_category_counts(self) -> Dict[str, int]:
        counts = {"creation": 0, "analysis": 0, "optimization": 0, "strategy": 0}
        for tool in self._tools.values():
            counts[tool.meta.category] = counts.get(tool.meta.category, 0) + 1
        return counts

    def to_langchain_tools(self, criteria: Optional[ToolFilter] = None) -> List[BaseTool]:
        """Bare LangChain tools, ready for ``bind_tools``."""

        tools = self.filter(criteria) if criteria else self.get_all()
        return [t.tool for t in tools]

    def get_tool_descriptions_with_examples(self, criteria: Optional[ToolFilter] = None) -> str:
        """Render the tool catalog as Markdown for the planner prompt."""

        tools = self.filter(criteria) if criteria else self.get_all()
        if not tools:
            return "## Available Tools\n\nNo tools available."

        sections = []
        for tool in tools:
            meta = tool.meta
            section = f"### {meta.name} ({meta.category})\n{meta.description}"

            if meta.keywords:
                section += f"\nKeywords: {', '.join(meta.keywords)}"

            if meta.input_examples:
                section += "\n\nExamples:"
                for example in meta.input_examples:
                    rendered = json.dumps(example.input, indent=2, ensure_ascii=False)
                    section += f"\n- {example.description}"
                    section += f'\n  User says: "{example.user_message}"'
                    section += f"\n  → Use with: {rendered.replace(chr(10), chr(10) + '  ')}"

            flags = []
            if meta.requires_approval:
                flags.append("requires approval")
            if meta.is_reversible:
                flags.append("reversible")
            if flags:
                section += f"\n[{', '.join(flags)}]"

            sections.append(section)

        return "## Available Tools\n\n" + "\n\n---\n\n".join(sections)

    def get_tool_examples_compact(self) -> Dict[str, Dict[str, Optional[str]]]:
        """One representative example per tool, for token-constrained prompts."""

        result: Dict[str, Dict[str, Optional[str]]] = {}
        for tool in self._tools.values():
            meta = tool.meta
            first = meta.input_examples[0] if meta.input_examples else None
            result[meta.name] = {
                "description": meta.description,
                "example": (
                    f'"{first.user_message}" → {json.dumps(first.input, ensure_ascii=False)}'
                    if first
                    else None
                ),
            }
        return result

    def clear(self) -> None:
        self._tools.clear()
        self._by_category.clear()
        self._by_action_type.clear()
        self._by_entity.clear()
