"""Builtin workspace tools and the default registry assembly."""

from __future__ import annotations

import logging
from typing import Optional

from workspaceAgent.tools.registry import ToolRegistry
from workspaceAgent.tools.store import InMemoryWorkspaceStore, WorkspaceStore

from .analysis import build_analysis_tools
from .creation import build_creation_tools
from .optimization import build_optimization_tools

LOGGER = logging.getLogger("workspaceagent.tools")


def build_default_tool_registry(store: Optional[WorkspaceStore] = None) -> ToolRegistry:
    """Create a registry holding every builtin tool bound to ``store``."""

    store = store if store is not None else InMemoryWorkspaceStore()
    registry = ToolRegistry()
    for builder in (build_creation_tools, build_analysis_tools, build_optimization_tools):
        for tool, meta in builder(store):
            registry.register(tool, meta)

    LOGGER.info(f"Registered {len(registry)} builtin tools: {registry.get_all_names()}")
    return registry


__all__ = [
    "build_analysis_tools",
    "build_creation_tools",
    "build_default_tool_registry",
    "build_optimization_tools",
]
