"""Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and ensures proper test environment setup.
"""

import sys
import time
from pathlib import Path
from typing import Iterable, List, Tuple

import pytest

# Ensure project root is in PYTHONPATH for imports to work
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from workspaceAgent.models import build_default_registry  # noqa: E402
from workspaceAgent.planning import TaskPlan, TaskStep  # noqa: E402
from workspaceAgent.tools import InMemoryWorkspaceStore, build_default_tool_registry  # noqa: E402


def make_plan(
    steps: Iterable[Tuple[str, dict, List[str]]],
    *,
    status: str = "approved",
    goal: str = "Test goal",
) -> TaskPlan:
    """Build a plan from ``(tool_name, params, depends_on)`` triples."""
    return TaskPlan(
        id=f"plan_{int(time.time() * 1000)}",
        goal=goal,
        steps=[
            TaskStep(
                id=f"step_{index}",
                order=index,
                description=f"Step {index} with {tool_name}",
                tool_name=tool_name,
                params=params,
                depends_on=depends_on,
            )
            for index, (tool_name, params, depends_on) in enumerate(steps, start=1)
        ],
        created_at=int(time.time() * 1000),
        status=status,
    )


@pytest.fixture
def store():
    return InMemoryWorkspaceStore()


@pytest.fixture
def tool_registry(store):
    return build_default_tool_registry(store)


@pytest.fixture
def model_registry():
    return build_default_registry()


@pytest.fixture
def plan_factory():
    return make_plan
