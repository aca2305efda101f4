"""Call contract shared by tools and the plan executor.

A tool call returns exactly one of two outcomes:

- ``ToolResult``: the action ran, ``data`` holds its output.
- ``NeedsConfirmation``: the tool stopped at a preview; ``confirmed_execute``
  performs the real write once a human (or the executor) confirms. A reversible
  write also carries ``rollback``, which undoes it given the write's result.

Every call also receives a ``ToolCallContext`` carrying the caller's
``CancelSignal`` so long-running tools can stop early.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Annotated, Any, Awaitable, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CancelSignal:
    """Cooperative cancellation flag shared by an executor run and its tool calls."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def __repr__(self) -> str:
        return f"CancelSignal(cancelled={self._cancelled})"


@dataclass(frozen=True)
class ToolCallContext:
    """Per-invocation context handed to a tool."""

    call_id: str = field(default_factory=lambda: f"call_{uuid.uuid4().hex[:12]}")
    cancel_signal: CancelSignal = field(default_factory=CancelSignal)


class ActionPreview(BaseModel):
    """What a write-type tool is about to do, shown before it does it."""

    action: Literal["create", "update", "delete", "bulk"]
    entity_type: str
    data: Dict[str, Any] = Field(default_factory=dict)
    description: str
    affected_items: List[Dict[str, Any]] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ToolResult(BaseModel):
    kind: Literal["result"] = "result"
    data: Any = None


class NeedsConfirmation(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: Literal["needs_confirmation"] = "needs_confirmation"
    preview: ActionPreview
    confirmed_execute: Optional[Callable[[], Awaitable[Any]]] = Field(default=None, exclude=True)
    rollback: Optional[Callable[[Any], Awaitable[Any]]] = Field(default=None, exclude=True)


ToolOutcome = Annotated[Union[ToolResult, NeedsConfirmation], Field(discriminator="kind")]
