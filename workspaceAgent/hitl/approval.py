"""Human approval gates.

Two gates exist:

- the plan gate: a draft ``TaskPlan`` must be approved before it runs;
- the action gate: a ``NeedsConfirmation`` returned by a write tool outside a
  plan waits in an ``ApprovalQueue`` until someone approves or rejects it.

A completed action whose tool is reversible can later be rolled back.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from workspaceAgent.planning.plan_ops import update_plan_status
from workspaceAgent.planning.schema import TaskPlan
from workspaceAgent.tools.contract import ActionPreview, NeedsConfirmation
from workspaceAgent.tools.registry import ToolRegistry
from workspaceAgent.utils.logging_utils import log_error

LOGGER = logging.getLogger("workspaceagent.hitl")

ActionStatus = Literal["pending", "approved", "executing", "completed", "failed", "cancelled", "rolled_back"]


def approve_plan(plan: TaskPlan) -> TaskPlan:
    """Move a draft plan to ``approved``."""
    if plan.status != "draft":
        raise ValueError(f"Only draft plans can be approved (plan {plan.id} is {plan.status})")
    LOGGER.info(f"Plan {plan.id} approved")
    return update_plan_status(plan, "approved")


def reject_plan(plan: TaskPlan, reason: Optional[str] = None) -> TaskPlan:
    """Cancel a plan that has not started; the summary records why."""
    if plan.status not in ("draft", "approved"):
        raise ValueError(f"Plan {plan.id} cannot be rejected while {plan.status}")
    summary = f"Rejected: {reason}" if reason else "Rejected by user"
    LOGGER.info(f"Plan {plan.id} rejected: {summary}")
    return update_plan_status(plan, "cancelled", summary)


class PendingAction(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    tool_name: str
    preview: ActionPreview
    status: ActionStatus = "pending"
    result: Any = None
    error: Optional[str] = None
    rejection_reason: Optional[str] = None
    is_reversible: bool = False
    rollback_reason: Optional[str] = None
    confirmation: Optional[NeedsConfirmation] = Field(default=None, exclude=True)


class ApprovalQueue:
    """In-memory queue of tool actions waiting for confirmation."""

    def __init__(self, tool_registry: Optional[ToolRegistry] = None) -> None:
        self._actions: Dict[str, PendingAction] = {}
        self.tool_registry = tool_registry

    def submit(self, tool_name: str, confirmation: NeedsConfirmation) -> PendingAction:
        action = PendingAction(
            id=f"action_{uuid.uuid4().hex[:12]}",
            tool_name=tool_name,
            preview=confirmation.preview,
            confirmation=confirmation,
            is_reversible=self._is_reversible(tool_name, confirmation),
        )
        self._actions[action.id] = action
        LOGGER.info(f"Queued {tool_name} for approval as {action.id}: {confirmation.preview.description}")
        return action

    def get(self, action_id: str) -> Optional[PendingAction]:
        return self._actions.get(action_id)

    def list_pending(self) -> List[PendingAction]:
        return [a for a in self._actions.values() if a.status == "pending"]

    def _require_pending(self, action_id: str) -> PendingAction:
        action = self._actions.get(action_id)
        if action is None:
            raise KeyError(f"Unknown action: {action_id}")
        if action.status != "pending":
            raise ValueError(f"Action {action_id} is already {action.status}")
        return action

    def _store(self, action: PendingAction, **update: Any) -> PendingAction:
        action = action.model_copy(update=update)
        self._actions[action.id] = action
        return action

    async def approve(self, action_id: str) -> PendingAction:
        """Run the confirmed write; the action ends ``completed`` or ``failed``."""
        action = self._require_pending(action_id)
        action = self._store(action, status="executing")

        execute = action.confirmation.confirmed_execute if action.confirmation else None
        if execute is None:
            return self._store(action, status="completed", result=action.preview.data)

        try:
            result = await execute()
        except Exception as exc:
            log_error(LOGGER, exc, f"approved action {action_id}")
            return self._store(action, status="failed", error=str(exc) or type(exc).__name__)

        LOGGER.info(f"Action {action_id} ({action.tool_name}) completed")
        return self._store(action, status="completed", result=result)

    async def approve_all(self) -> List[PendingAction]:
        """Approve every pending action in submission order."""
        return [await self.approve(action.id) for action in self.list_pending()]

    def reject(self, action_id: str, reason: Optional[str] = None) -> PendingAction:
        action = self._require_pending(action_id)
        LOGGER.info(f"Action {action_id} rejected: {reason or 'no reason given'}")
        return self._store(action, status="cancelled", rejection_reason=reason)

    def _is_reversible(self, tool_name: str, confirmation: NeedsConfirmation) -> bool:
        if confirmation.rollback is None:
            return False
        if self.tool_registry is None:
            return True
        registered = self.tool_registry.get(tool_name)
        return registered is not None and registered.meta.is_reversible

    async def rollback(self, action_id: str, reason: Optional[str] = None) -> PendingAction:
        """Undo a completed action.

        Only ``completed`` actions of reversible tools qualify; anything else
        raises ``ValueError``. A failing undo leaves the action ``completed``
        and records the failure in ``error``.
        """
        action = self._actions.get(action_id)
        if action is None:
            raise KeyError(f"Unknown action: {action_id}")
        if action.status != "completed":
            raise ValueError(
                f"Cannot rollback action with status: {action.status}. Only completed actions can be rolled back."
            )
        undo = action.confirmation.rollback if action.confirmation else None
        if not action.is_reversible or undo is None:
            raise ValueError(f'Action "{action.tool_name}" is not reversible')

        try:
            await undo(action.result)
        except Exception as exc:
            log_error(LOGGER, exc, f"rollback of action {action_id}")
            return self._store(action, error=f"Rollback failed: {str(exc) or type(exc).__name__}")

        note = f"Rolled back by user. Reason: {reason}" if reason else "Rolled back by user"
        LOGGER.info(f"Action {action_id} ({action.tool_name}) rolled back")
        return self._store(action, status="rolled_back", rollback_reason=note, error=None)
