"""Human-in-the-loop approval for plans and write actions."""

from .approval import ActionStatus, ApprovalQueue, PendingAction, approve_plan, reject_plan

__all__ = [
    "ActionStatus",
    "ApprovalQueue",
    "PendingAction",
    "approve_plan",
    "reject_plan",
]
