"""Tool registry, call contract and builtin tools."""

from .contract import (
    ActionPreview,
    CancelSignal,
    NeedsConfirmation,
    ToolCallContext,
    ToolOutcome,
    ToolResult,
)
from .registry import AgenticTool, ToolExample, ToolFilter, ToolMeta, ToolRegistry
from .store import InMemoryWorkspaceStore, WorkspaceStore
from .builtin import build_default_tool_registry

__all__ = [
    "ActionPreview",
    "AgenticTool",
    "CancelSignal",
    "InMemoryWorkspaceStore",
    "NeedsConfirmation",
    "ToolCallContext",
    "ToolExample",
    "ToolFilter",
    "ToolMeta",
    "ToolOutcome",
    "ToolRegistry",
    "ToolResult",
    "WorkspaceStore",
    "build_default_tool_registry",
]
