"""Task planning: multi-step detection, plan generation and plan helpers."""

from .detection import MULTI_STEP_PATTERNS, get_task_complexity, is_multi_step_task
from .plan_ops import (
    format_plan_for_display,
    format_plan_summary,
    get_next_pending_step,
    get_plan_progress,
    update_plan_status,
    update_step_status,
)
from .planner import TaskPlanner, build_planner_prompt, reconcile_tool_name, validate_plan
from .schema import (
    CreatePlanResult,
    PlanDraft,
    PlanStepDraft,
    PlanValidation,
    TaskPlan,
    TaskStep,
)

__all__ = [
    "CreatePlanResult",
    "MULTI_STEP_PATTERNS",
    "PlanDraft",
    "PlanStepDraft",
    "PlanValidation",
    "TaskPlan",
    "TaskPlanner",
    "TaskStep",
    "build_planner_prompt",
    "format_plan_for_display",
    "format_plan_summary",
    "get_next_pending_step",
    "get_plan_progress",
    "get_task_complexity",
    "is_multi_step_task",
    "reconcile_tool_name",
    "update_plan_status",
    "update_step_status",
    "validate_plan",
]
