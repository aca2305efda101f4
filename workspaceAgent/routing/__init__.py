"""Per-turn model routing."""

from .message_analyzer import (
    DEEP_REASONING_PATTERNS,
    LARGE_CONTEXT_THRESHOLD,
    SUPPORTED_IMAGE_TYPES,
    AnalysisResult,
    ChatMode,
    FileAttachment,
    RoutingDebugInfo,
    RoutingReason,
    analyze_message,
    detect_deep_reasoning,
    extract_images,
    get_routing_debug_info,
    get_routing_explanation,
    is_image_file,
)

__all__ = [
    "AnalysisResult",
    "ChatMode",
    "DEEP_REASONING_PATTERNS",
    "FileAttachment",
    "LARGE_CONTEXT_THRESHOLD",
    "RoutingDebugInfo",
    "RoutingReason",
    "SUPPORTED_IMAGE_TYPES",
    "analyze_message",
    "detect_deep_reasoning",
    "extract_images",
    "get_routing_debug_info",
    "get_routing_explanation",
    "is_image_file",
]
