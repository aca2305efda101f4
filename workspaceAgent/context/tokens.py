"""Character-based token estimation.

No tokenizer is loaded: estimates are ``ceil(len / chars_per_token)`` with a
ratio picked from the apparent content type. Code and JSON tokenize denser
than prose, so they get a smaller ratio.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from typing import List, Sequence

from langchain_core.messages import BaseMessage

from workspaceAgent.models.registry import ModelConfig

ROLE_OVERHEAD_TOKENS = 4
IMAGE_TOKENS = 765

CHARS_PER_TOKEN_TEXT = 4.0
CHARS_PER_TOKEN_CODE = 3.5
CHARS_PER_TOKEN_JSON = 3.0

_CODE_FENCE_RE = re.compile(r"```[\s\S]*```")
_CODE_LINE_RE = re.compile(r"^\s*(const|let|var|function|class|import|export|def)\s", re.MULTILINE)
_JSON_START_RE = re.compile(r"^\s*[\[{]")
_JSON_END_RE = re.compile(r"[\]}]\s*$")


@dataclass
class TokenEstimate:
    """Token usage of a conversation against one model."""

    total: int
    per_message: List[int] = field(default_factory=list)
    near_limit: bool = False
    usage_percent: float = 0.0


def _parses_as_json(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


def chars_per_token(text: str) -> float:
    """Return the characters-per-token ratio for ``text``."""
    ratio = CHARS_PER_TOKEN_TEXT
    if _CODE_FENCE_RE.search(text) or _CODE_LINE_RE.search(text):
        ratio = CHARS_PER_TOKEN_CODE
    if _JSON_START_RE.search(text) and _JSON_END_RE.search(text) and _parses_as_json(text):
        ratio = CHARS_PER_TOKEN_JSON
    return ratio


def estimate_tokens(text: str) -> int:
    """Estimate the token count of ``text`` (0 for empty input)."""
    if not text:
        return 0
    return math.ceil(len(text) / chars_per_token(text))


def _is_image_part(part: dict) -> bool:
    return part.get("type") in ("image", "image_url") or "image" in part or "image_url" in part


def estimate_message_tokens(message: BaseMessage, image_tokens: int = IMAGE_TOKENS) -> int:
    """Role overhead plus content; each image part costs a flat ``image_tokens``."""
    content_tokens = 0
    content = message.content

    if isinstance(content, str):
        content_tokens = estimate_tokens(content)
    elif isinstance(content, list):
        for part in content:
            if isinstance(part, str):
                content_tokens += estimate_tokens(part)
            elif isinstance(part, dict):
                if isinstance(part.get("text"), str):
                    content_tokens += estimate_tokens(part["text"])
                elif _is_image_part(part):
                    content_tokens += image_tokens

    return ROLE_OVERHEAD_TOKENS + content_tokens


def estimate_conversation_tokens(
    messages: Sequence[BaseMessage],
    model: ModelConfig,
    image_tokens: int = IMAGE_TOKENS,
) -> TokenEstimate:
    """Sum per-message estimates and compare against ``model.compact_at``."""
    per_message = [estimate_message_tokens(m, image_tokens) for m in messages]
    total = sum(per_message)
    return TokenEstimate(
        total=total,
        per_message=per_message,
        near_limit=total >= model.compact_at,
        usage_percent=(total / model.context_limit) * 100 if model.context_limit else 0.0,
    )
