"""Logging utilities for workspaceAgent."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

ROOT_LOGGER_NAME = "workspaceagent"


def setup_logging(level: int = logging.INFO, log_dir: Union[str, Path] = "logs") -> logging.Logger:
    """Setup logging configuration for workspaceAgent.

    Args:
        level: Logging level of the file handler (default: INFO)
        log_dir: Directory receiving the timestamped session log

    Returns:
        Configured logger instance
    """
    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"workspaceagent_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)  # Child loggers filter at the handlers
    logger.propagate = False

    # Clear existing handlers
    logger.handlers = []

    # File handler (detailed logs)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(level)
    file_formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    file_handler.setFormatter(file_formatter)

    # Console handler (user-friendly)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logger.info("=" * 80)
    logger.info("workspaceAgent session started")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 80)

    return logger


def _truncate(text: str, limit: int = 500) -> str:
    if len(text) > limit:
        return text[:limit] + "... (truncated)"
    return text


def log_tool_call(logger: logging.Logger, tool_name: str, args: Dict[str, Any]) -> None:
    """Log tool invocation.

    Args:
        logger: Logger instance
        tool_name: Name of the tool being called
        args: Tool arguments
    """
    logger.info(f"Tool call: {tool_name}")
    logger.debug(f"  Arguments: {json.dumps(args, ensure_ascii=False, indent=2, default=str)}")


def log_tool_result(logger: logging.Logger, tool_name: str, result: Any, success: bool = True) -> None:
    """Log tool execution result.

    Args:
        logger: Logger instance
        tool_name: Name of the tool
        result: Tool execution result
        success: Whether the tool executed successfully
    """
    status = "✓ Success" if success else "✗ Failed"
    logger.info(f"Tool result: {tool_name} - {status}")
    logger.debug(f"  Result: {_truncate(str(result))}")


def log_model_selection(logger: logging.Logger, phase: str, model_id: str, reason: str = "") -> None:
    """Log model selection decision.

    Args:
        logger: Logger instance
        phase: Phase the model is selected for (route/plan/summarize)
        model_id: Selected model ID
        reason: Reason for selection
    """
    logger.info(f"Model selected for {phase}: {model_id}")
    if reason:
        logger.debug(f"  Reason: {reason}")


def log_routing_decision(logger: logging.Logger, model_key: str, reason: str, explanation: str = "") -> None:
    """Log a routing decision of the message analyzer."""
    logger.info(f"Routing decision: {model_key} ({reason})")
    if explanation:
        logger.debug(f"  → {explanation}")


def log_plan_created(logger: logging.Logger, plan: Dict[str, Any]) -> None:
    """Log plan creation details.

    Args:
        logger: Logger instance
        plan: Plan dictionary (``TaskPlan.model_dump()``)
    """
    logger.info(f"\n{'='*80}")
    logger.info("Plan created:")
    logger.info(f"  ID: {plan.get('id', 'N/A')}")
    logger.info(f"  Goal: {plan.get('goal', 'N/A')}")
    logger.info(f"  Estimated duration: {plan.get('estimated_duration', 'N/A')}")
    logger.info(f"  Total steps: {len(plan.get('steps', []))}")
    for step in plan.get("steps", []):
        logger.info(f"  Step {step.get('order')}:")
        logger.info(f"    - ID: {step.get('id')}")
        logger.info(f"    - Tool: {step.get('tool_name')}")
        logger.info(f"    - Description: {step.get('description')}")
        logger.info(f"    - Depends on: {step.get('depends_on', [])}")
    logger.info(f"{'='*80}\n")


def log_step_execution(logger: logging.Logger, step: Dict[str, Any], attempt: int, max_attempts: int) -> None:
    """Log step execution details.

    Args:
        logger: Logger instance
        step: Step dictionary (``TaskStep.model_dump()``)
        attempt: Current attempt number (1-based)
        max_attempts: Attempts allowed for the step
    """
    logger.info(f"Executing step {step.get('order')} ({step.get('id')}) attempt {attempt}/{max_attempts}")
    logger.info(f"  Tool: {step.get('tool_name')}")
    logger.info(f"  Description: {step.get('description')}")
    logger.debug(f"  Params: {json.dumps(step.get('params', {}), ensure_ascii=False, default=str)}")


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Log error with context.

    Args:
        logger: Logger instance
        error: Exception instance
        context: Additional context about where the error occurred
    """
    logger.error(f"Error occurred: {type(error).__name__}: {str(error)}")
    if context:
        logger.error(f"  Context: {context}")
    logger.exception("Full traceback:", exc_info=error)


def log_prompt(logger: logging.Logger, phase: str, prompt: str, max_length: Optional[int] = None) -> None:
    """Log system prompt being used.

    Args:
        logger: Logger instance
        phase: Phase name (planner/summarizer)
        prompt: System prompt content
        max_length: Optional cut-off for long prompts
    """
    logger.info(f"\n{'='*80}")
    logger.info(f"System Prompt for {phase}:")
    logger.info(f"{'='*80}")
    logger.info(_truncate(prompt, max_length) if max_length else prompt)
    logger.info(f"{'='*80}\n")
