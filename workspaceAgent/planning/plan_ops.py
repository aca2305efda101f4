"""Pure helpers over ``TaskPlan`` values.

Nothing here mutates its input; every update returns a new plan.
"""

from __future__ import annotations

from typing import Any, Optional

from .schema import PlanStatus, StepStatus, TaskPlan, TaskStep

STEP_STATUS_ICONS = {
    "pending": "⏳",
    "running": "🔄",
    "completed": "✅",
    "failed": "❌",
    "skipped": "⏭️",
}

_UNSET = object()


def update_plan_status(plan: TaskPlan, status: PlanStatus, summary: Optional[str] = None) -> TaskPlan:
    return plan.model_copy(update={"status": status, "summary": summary or plan.summary})


def update_step_status(
    plan: TaskPlan,
    step_id: str,
    status: StepStatus,
    result: Any = _UNSET,
    error: Optional[str] = None,
) -> TaskPlan:
    """Return a copy of ``plan`` where step ``step_id`` has the new status.

    ``result`` is kept from the previous step state when not given; ``error``
    is always replaced.
    """
    steps = []
    for step in plan.steps:
        if step.id == step_id:
            update = {"status": status, "error": error}
            if result is not _UNSET:
                update["result"] = result
            step = step.model_copy(update=update)
        steps.append(step)
    return plan.model_copy(update={"steps": steps})


def get_plan_progress(plan: TaskPlan) -> int:
    """Percentage (0-100) of completed steps."""
    if not plan.steps:
        return 0
    completed = sum(1 for s in plan.steps if s.status == "completed")
    return round(completed / len(plan.steps) * 100)


def get_next_pending_step(plan: TaskPlan) -> Optional[TaskStep]:
    """First pending step (in plan order) whose dependencies are all completed."""
    statuses = {s.id: s.status for s in plan.steps}
    for step in plan.steps:
        if step.status != "pending":
            continue
        if all(statuses.get(dep) == "completed" for dep in step.depends_on):
            return step
    return None


def count_steps(plan: TaskPlan, status: StepStatus) -> int:
    return sum(1 for s in plan.steps if s.status == status)


def format_plan_for_display(plan: TaskPlan) -> str:
    lines = [
        f"📋 **Task Plan**: {plan.goal}",
        "",
        f"**Steps** ({len(plan.steps)}):",
    ]
    for step in plan.steps:
        lines.append(f"{step.order}. {STEP_STATUS_ICONS[step.status]} {step.description}")
    lines.append("")
    lines.append(f"⏱️ Estimated: {plan.estimated_duration}")
    return "\n".join(lines)


def format_plan_summary(plan: TaskPlan) -> str:
    completed = count_steps(plan, "completed")
    failed = count_steps(plan, "failed")
    total = len(plan.steps)

    if plan.status == "completed":
        return f"✅ Completed {completed}/{total} steps successfully."
    if plan.status == "failed":
        return f"❌ Plan failed. Completed {completed}/{total} steps. {failed} failed."
    if plan.status == "cancelled":
        return f"⏹️ Plan cancelled. Completed {completed}/{total} steps."
    return f"Plan status: {plan.status}"
