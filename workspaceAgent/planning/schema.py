"""Plan data model.

``PlanDraft`` is what the planner model is asked to produce; ``TaskPlan`` is the
normalized, executable plan built from it. Plans are treated as values: every
state change goes through ``model_copy`` and returns a new plan.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

StepStatus = Literal["pending", "running", "completed", "failed", "skipped"]
PlanStatus = Literal["draft", "approved", "executing", "completed", "failed", "cancelled"]
DurationClass = Literal["fast", "medium", "slow"]

TERMINAL_PLAN_STATUSES = frozenset({"completed", "failed", "cancelled"})
MAX_PLAN_STEPS = 10


class TaskStep(BaseModel):
    """One tool invocation inside a plan."""

    id: str
    order: int = Field(ge=1)
    description: str
    tool_name: str
    params: Dict[str, Any] = Field(default_factory=dict)
    depends_on: List[str] = Field(default_factory=list)
    status: StepStatus = "pending"
    result: Any = None
    error: Optional[str] = None


class TaskPlan(BaseModel):
    """A dependency-ordered list of steps derived from one user goal."""

    id: str
    goal: str
    steps: List[TaskStep] = Field(default_factory=list)
    estimated_duration: DurationClass = "fast"
    requires_approval: bool = True
    created_at: int
    status: PlanStatus = "draft"
    summary: Optional[str] = None

    def get_step(self, step_id: str) -> Optional[TaskStep]:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_PLAN_STATUSES


class PlanStepDraft(BaseModel):
    description: str = Field(description="What this step does")
    tool_name: str = Field(description="The tool to use, exactly as listed in Available Tools")
    params: Dict[str, Any] = Field(default_factory=dict, description="Parameters for the tool")
    depends_on: List[str] = Field(
        default_factory=list,
        description="IDs of steps this depends on (step_1, step_2, ... in plan order)",
    )


class PlanDraft(BaseModel):
    """Structured output requested from the planner model."""

    goal: str = Field(description="The main goal of the task plan")
    steps: List[PlanStepDraft] = Field(description="Ordered steps to execute")
    estimated_duration: DurationClass = Field(description="How long this will take")


class CreatePlanResult(BaseModel):
    success: bool
    plan: Optional[TaskPlan] = None
    error: Optional[str] = None


class PlanValidation(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
