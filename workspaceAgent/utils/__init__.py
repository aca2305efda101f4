"""Utility exports."""

from .error_handler import (
    ModelInvocationError,
    ToolExecutionError,
    ToolValidationError,
    WorkspaceAgentError,
    handle_model_error,
)
from .logging_utils import (
    log_error,
    log_model_selection,
    log_plan_created,
    log_prompt,
    log_routing_decision,
    log_step_execution,
    log_tool_call,
    log_tool_result,
    setup_logging,
)

__all__ = [
    "ModelInvocationError",
    "ToolExecutionError",
    "ToolValidationError",
    "WorkspaceAgentError",
    "handle_model_error",
    "log_error",
    "log_model_selection",
    "log_plan_created",
    "log_prompt",
    "log_routing_decision",
    "log_step_execution",
    "log_tool_call",
    "log_tool_result",
    "setup_logging",
]
