"""State and result types of the plan executor graph."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field

from workspaceAgent.planning.schema import TaskPlan, TaskStep
from workspaceAgent.tools.contract import CancelSignal

# (step, plan snapshot, human-readable message)
ProgressCallback = Callable[[TaskStep, TaskPlan, str], None]


class ExecutionState(TypedDict, total=False):
    """State carried between the ``select_step`` and ``run_step`` nodes.

    The plan is replaced (never mutated) at every transition.
    """

    plan: TaskPlan
    results: Dict[str, Any]
    errors: List[str]
    current_step_id: Optional[str]
    started_at: float  # time.monotonic() at start
    finished: bool


class ExecutionResult(BaseModel):
    """Final report of one plan run."""

    model_config = ConfigDict(frozen=True)

    success: bool
    completed_steps: int
    total_steps: int
    results: Dict[str, Any] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)
    execution_time: int  # milliseconds
    plan: TaskPlan


class StepExecutionResult(BaseModel):
    success: bool
    plan: TaskPlan
    error: Optional[str] = None


def create_cancel_signal() -> CancelSignal:
    return CancelSignal()


def cancel_execution(signal: CancelSignal) -> None:
    signal.cancel()
