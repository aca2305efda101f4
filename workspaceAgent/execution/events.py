"""Streaming view of plan execution as progress events and SSE frames."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncIterator, Literal, Optional

from pydantic import BaseModel

from workspaceAgent.planning.schema import TaskPlan, TaskStep
from workspaceAgent.tools.contract import CancelSignal

from .agent_loop import PlanExecutor
from .state import ExecutionResult

LOGGER = logging.getLogger("workspaceagent.executor.events")

ProgressEventType = Literal["step-start", "step-complete", "execution-complete", "execution-failed"]


class ProgressEvent(BaseModel):
    type: ProgressEventType
    step_index: Optional[int] = None  # 0-based position in plan.steps
    step_id: Optional[str] = None
    message: Optional[str] = None
    result: Optional[ExecutionResult] = None


async def stream_task_plan(
    executor: PlanExecutor,
    plan: TaskPlan,
    *,
    cancel_signal: Optional[CancelSignal] = None,
    max_execution_time: Optional[float] = None,
    step_delay: Optional[float] = None,
) -> AsyncIterator[ProgressEvent]:
    """Run ``plan`` and yield one event per step transition, then a final event.

    The last event is ``execution-complete`` when the plan completed and
    ``execution-failed`` otherwise (failure, timeout or cancellation).

    Closing the stream early sets the cancel signal; the step already in
    flight finishes and the executor stops at its next poll.
    """
    signal = cancel_signal if cancel_signal is not None else CancelSignal()
    queue: asyncio.Queue = asyncio.Queue()
    positions = {step.id: index for index, step in enumerate(plan.steps)}

    def on_progress(step: TaskStep, _plan: TaskPlan, message: str) -> None:
        if step.status == "running":
            event_type = "step-start"
        elif step.status == "completed":
            event_type = "step-complete"
        else:
            return
        queue.put_nowait(
            ProgressEvent(type=event_type, step_index=positions.get(step.id), step_id=step.id, message=message)
        )

    task = asyncio.create_task(
        executor.execute_task_plan(
            plan,
            on_progress=on_progress,
            cancel_signal=signal,
            max_execution_time=max_execution_time,
            step_delay=step_delay,
        )
    )

    getter: Optional[asyncio.Future] = None
    try:
        while not task.done() or not queue.empty():
            getter = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
            if getter in done:
                yield getter.result()
            else:
                getter.cancel()
    finally:
        if getter is not None and not getter.done():
            getter.cancel()
        if not task.done():
            LOGGER.info(f"Stream for plan {plan.id} closed early, stopping after the current step")
            signal.cancel()
            # shield: an outer cancellation must not abort a write in flight
            stopped = await asyncio.shield(task)
            LOGGER.info(f"Plan {plan.id} stopped as {stopped.plan.status}")

    result = task.result()
    if result.success:
        yield ProgressEvent(type="execution-complete", result=result)
    else:
        message = "; ".join(result.errors) if result.errors else result.plan.summary
        yield ProgressEvent(type="execution-failed", message=message, result=result)


def format_sse(event: ProgressEvent) -> str:
    payload = event.model_dump(exclude_none=True)
    return f"data: {json.dumps(payload, default=str, ensure_ascii=False)}\n\n"


async def to_sse(events: AsyncIterator[ProgressEvent]) -> AsyncIterator[str]:
    """Render events as ``data: <json>`` frames terminated by ``data: [DONE]``."""
    async for event in events:
        yield format_sse(event)
    yield "data: [DONE]\n\n"
