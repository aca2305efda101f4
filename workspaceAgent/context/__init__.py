"""
Context management

Token estimation for conversations and summarization-based compaction that
keeps a thread inside the selected model's context budget.
"""

from .tokens import (
    TokenEstimate,
    chars_per_token,
    estimate_conversation_tokens,
    estimate_message_tokens,
    estimate_tokens,
)
from .compactor import (
    CompactionResult,
    ContextCompactor,
    get_overflow_model,
    needs_larger_context,
)

__all__ = [
    "CompactionResult",
    "ContextCompactor",
    "TokenEstimate",
    "chars_per_token",
    "estimate_conversation_tokens",
    "estimate_message_tokens",
    "estimate_tokens",
    "get_overflow_model",
    "needs_larger_context",
]
