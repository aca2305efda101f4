"""Rule-based model routing.

Each turn is inspected synchronously (no model call) and mapped to the backend
model best suited for it. First match wins:

1. developer override naming a registered chat model
2. large context (accumulated + message tokens above the threshold)
3. agentic mode → tool-use model
4. deep-reasoning phrasing → reasoning model
5. image attachments → default model, vision model analyses the images
6. default model
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Literal, Optional, Sequence, Tuple

from workspaceAgent.context.tokens import estimate_tokens
from workspaceAgent.models.registry import ModelConfig, ModelRegistry
from workspaceAgent.planning.detection import TaskComplexity, get_task_complexity, is_multi_step_task
from workspaceAgent.utils.logging_utils import log_routing_decision

LOGGER = logging.getLogger("workspaceagent.routing")

ChatMode = Literal["chat", "agentic"]
RoutingReason = Literal[
    "default",
    "image_detected",
    "tool_required",
    "deep_reasoning",
    "large_context",
    "dev_override",
]

LARGE_CONTEXT_THRESHOLD = 200_000

SUPPORTED_IMAGE_TYPES = (
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/gif",
    "image/webp",
)

DEEP_REASONING_PATTERNS = [
    re.compile(r"analyze\s+deeply", re.IGNORECASE),
    re.compile(r"think\s+(through|carefully|step\s*by\s*step)", re.IGNORECASE),
    re.compile(r"reason\s+(about|through)", re.IGNORECASE),
    re.compile(r"in[\s-]depth\s+(analysis|review)", re.IGNORECASE),
    re.compile(r"comprehensive\s+(analysis|review|assessment)", re.IGNORECASE),
    re.compile(r"thoroughly\s+(analyze|examine|review)", re.IGNORECASE),
    re.compile(r"detailed\s+(breakdown|analysis|explanation)", re.IGNORECASE),
    re.compile(r"complex\s+(problem|question|issue)", re.IGNORECASE),
    re.compile(r"help\s+me\s+understand\s+deeply", re.IGNORECASE),
    re.compile(r"explain\s+in\s+detail", re.IGNORECASE),
]


@dataclass(frozen=True)
class FileAttachment:
    name: str
    type: str  # MIME type
    size: int = 0
    data: str = ""  # base64 payload or URL


@dataclass(frozen=True)
class AnalysisResult:
    """Routing decision for one turn."""

    selected_model: ModelConfig
    routing_reason: RoutingReason
    has_images: bool = False
    images: Tuple[FileAttachment, ...] = ()
    needs_tools: bool = False
    needs_deep_reasoning: bool = False
    is_multi_step_task: bool = False
    multi_step_complexity: TaskComplexity = "simple"
    estimated_tokens: int = 0
    vision_model: Optional[ModelConfig] = None


@dataclass
class RoutingDebugInfo:
    selected_model: str
    model_display_name: str
    routing_reason: RoutingReason
    explanation: str
    has_images: bool
    image_count: int
    needs_tools: bool
    needs_deep_reasoning: bool
    is_multi_step_task: bool
    multi_step_complexity: TaskComplexity
    estimated_tokens: int
    is_slow_model: bool
    vision_model: Optional[str] = None


def is_image_file(file: FileAttachment) -> bool:
    return file.type.lower() in SUPPORTED_IMAGE_TYPES


def extract_images(files: Sequence[FileAttachment]) -> List[FileAttachment]:
    return [f for f in files if is_image_file(f)]


def detect_deep_reasoning(message: str) -> bool:
    return any(pattern.search(message) for pattern in DEEP_REASONING_PATTERNS)


def analyze_message(
    message: str,
    files: Sequence[FileAttachment] = (),
    mode: ChatMode = "chat",
    context_tokens: int = 0,
    dev_override_model: Optional[str] = None,
    *,
    registry: ModelRegistry,
    large_context_threshold: int = LARGE_CONTEXT_THRESHOLD,
) -> AnalysisResult:
    """Pick the backend model for a turn.

    Args:
        message: The user's text.
        files: Attachments; images among them trigger the vision pipeline.
        mode: ``agentic`` enables tools and multi-step planning.
        context_tokens: Tokens already accumulated in the conversation.
        dev_override_model: Model key forced from the debug panel.
        registry: Capability registry to choose from.
        large_context_threshold: Total token count above which the
            large-context model is used.

    Returns:
        AnalysisResult describing the chosen model and the detected traits.
    """
    images = tuple(extract_images(files))
    has_images = bool(images)
    needs_tools = mode == "agentic"
    needs_deep_reasoning = detect_deep_reasoning(message)
    multi_step = needs_tools and is_multi_step_task(message)
    complexity: TaskComplexity = get_task_complexity(message) if multi_step else "simple"
    estimated = context_tokens + estimate_tokens(message)
    vision_model = registry.get_vision_model() if has_images else None

    def result(model: ModelConfig, reason: RoutingReason) -> AnalysisResult:
        analysis = AnalysisResult(
            selected_model=model,
            routing_reason=reason,
            has_images=has_images,
            images=images,
            needs_tools=needs_tools,
            needs_deep_reasoning=needs_deep_reasoning,
            is_multi_step_task=multi_step,
            multi_step_complexity=complexity,
            estimated_tokens=estimated,
            vision_model=vision_model,
        )
        log_routing_decision(LOGGER, model.key, reason, get_routing_explanation(analysis))
        return analysis

    if dev_override_model:
        override = registry.get(dev_override_model)
        if override is not None and override.role == "chat":
            return result(override, "dev_override")
        LOGGER.warning(f"Ignoring dev override '{dev_override_model}': not a registered chat model")

    # Context size outranks every other signal
    if estimated > large_context_threshold:
        large = registry.get_by_capability("large_context")
        if large is not None:
            return result(large, "large_context")
        return result(registry.get_default(), "default")

    if needs_tools:
        return result(registry.get_best_for_capability("tool_use"), "tool_required")

    if needs_deep_reasoning:
        return result(registry.get_best_for_capability("reasoning"), "deep_reasoning")

    if has_images:
        return result(registry.get_default(), "image_detected")

    return result(registry.get_default(), "default")


def get_routing_explanation(result: AnalysisResult) -> str:
    name = result.selected_model.display_name
    reason = result.routing_reason

    if reason == "dev_override":
        return f"Dev override: Using {name}"
    if reason == "image_detected":
        analyst = result.vision_model.display_name if result.vision_model else "Vision model"
        return f"Image detected: {analyst} analyzes → {name} responds"
    if reason == "tool_required":
        return f"Agentic mode: Using {name} for tool execution"
    if reason == "deep_reasoning":
        return f"Deep reasoning: Using {name} (may take longer)"
    if reason == "large_context":
        return f"Large context ({round(result.estimated_tokens / 1000)}K tokens): Using {name}"
    return f"Default routing: {name}"


def get_routing_debug_info(result: AnalysisResult) -> RoutingDebugInfo:
    return RoutingDebugInfo(
        selected_model=result.selected_model.key,
        model_display_name=result.selected_model.display_name,
        routing_reason=result.routing_reason,
        explanation=get_routing_explanation(result),
        has_images=result.has_images,
        image_count=len(result.images),
        needs_tools=result.needs_tools,
        needs_deep_reasoning=result.needs_deep_reasoning,
        is_multi_step_task=result.is_multi_step_task,
        multi_step_complexity=result.multi_step_complexity,
        estimated_tokens=result.estimated_tokens,
        is_slow_model=result.selected_model.is_slow_model,
        vision_model=result.vision_model.key if result.vision_model else None,
    )
