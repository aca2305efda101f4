"""Sequential plan execution with retry, cancellation and progress streaming."""

from .agent_loop import MAX_RETRIES, PlanExecutor, ToolRun, format_execution_results, get_created_items
from .events import ProgressEvent, format_sse, stream_task_plan, to_sse
from .state import (
    ExecutionResult,
    ExecutionState,
    ProgressCallback,
    StepExecutionResult,
    cancel_execution,
    create_cancel_signal,
)

__all__ = [
    "ExecutionResult",
    "ExecutionState",
    "MAX_RETRIES",
    "PlanExecutor",
    "ProgressCallback",
    "ProgressEvent",
    "StepExecutionResult",
    "ToolRun",
    "cancel_execution",
    "create_cancel_signal",
    "format_execution_results",
    "format_sse",
    "get_created_items",
    "stream_task_plan",
    "to_sse",
]
