"""Unified error types for workspaceAgent tools, planner and model calls."""

from __future__ import annotations

import logging
from typing import Optional

LOGGER = logging.getLogger("workspaceagent.errors")


class WorkspaceAgentError(Exception):
    """Base exception for workspaceAgent errors."""

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.user_message = user_message or message


class ToolExecutionError(WorkspaceAgentError):
    """Error during tool execution."""

    def __init__(self, tool_name: str, message: str, user_message: Optional[str] = None):
        super().__init__(message, user_message)
        self.tool_name = tool_name


class ToolValidationError(ToolExecutionError):
    """Tool parameters were rejected before any side effect happened.

    The executor surfaces these immediately instead of retrying them.
    """


class ModelInvocationError(WorkspaceAgentError):
    """Error during model invocation."""
    pass


def handle_model_error(error: Exception) -> str:
    """Convert model invocation errors to user-friendly messages.

    Args:
        error: Exception raised during model invocation

    Returns:
        User-friendly error message
    """
    if isinstance(error, WorkspaceAgentError):
        return error.user_message

    error_str = str(error).lower()

    if "rate_limit" in error_str or "429" in error_str:
        return "Too many requests, please try again shortly"

    if "timeout" in error_str or "timed out" in error_str:
        return "The model took too long to respond, please retry"

    if "context_length" in error_str or "maximum context" in error_str:
        return "The conversation is too long for this model, start a new thread"

    if "invalid_api_key" in error_str or "authentication" in error_str or "401" in error_str:
        return "The model API key is invalid, contact an administrator"

    if "quota" in error_str or "insufficient" in error_str:
        return "The model provider quota is exhausted, contact an administrator"

    LOGGER.debug(f"Unmapped model error: {type(error).__name__}: {error}")
    return f"The AI service is temporarily unavailable: {error}"
