"""Heuristic multi-step intent detection.

Advisory only: the result decides whether a plan is offered, never whether a
tool runs. Patterns are plain regular expressions, no model call.
"""

from __future__ import annotations

import re
from typing import Iterable, Literal

TaskComplexity = Literal["simple", "medium", "complex"]

MULTI_STEP_PATTERNS = [
    # Sequencing
    re.compile(r"and\s+then", re.IGNORECASE),
    re.compile(r"after\s+that", re.IGNORECASE),
    re.compile(r"first[,.]?\s+.*then", re.IGNORECASE),
    re.compile(r"next[,.]?\s+", re.IGNORECASE),
    re.compile(r"finally[,.]?\s+", re.IGNORECASE),
    re.compile(r"step\s+\d", re.IGNORECASE),
    # Combined actions
    re.compile(r"analyze.*(?:and|then).*create", re.IGNORECASE),
    re.compile(r"research.*(?:and|then).*summarize", re.IGNORECASE),
    re.compile(r"find.*(?:and|then).*update", re.IGNORECASE),
    re.compile(r"search.*(?:and|then).*create", re.IGNORECASE),
    re.compile(r"review.*(?:and|then).*prioritize", re.IGNORECASE),
    re.compile(r"gather.*(?:and|then).*organize", re.IGNORECASE),
    # Quantity
    re.compile(r"(?:create|add|make)\s+(?:multiple|several|all|each|\d+)", re.IGNORECASE),
    re.compile(r"for\s+(?:each|every|all)", re.IGNORECASE),
    re.compile(r"batch\s+", re.IGNORECASE),
    re.compile(r"one\s+by\s+one", re.IGNORECASE),
    re.compile(r"bulk", re.IGNORECASE),
    re.compile(r"multiple|several|all\s+of", re.IGNORECASE),
    re.compile(r"step\s*by\s*step", re.IGNORECASE),
    # Derived work
    re.compile(r"(?:based\s+on|using)\s+.*(?:create|generate|make)", re.IGNORECASE),
    re.compile(r"compare.*(?:and|then)", re.IGNORECASE),
]

ENUMERATION_RE = re.compile(r"(?:^|\n)\s*(?:\d+[.):]|-|\*)\s+\w", re.MULTILINE)
GOAL_INDICATOR_RE = re.compile(r"(?:and|also|plus|as well as)", re.IGNORECASE)


def is_multi_step_task(message: str, tool_names: Iterable[str] = ()) -> bool:
    """Return True if ``message`` looks like a request needing several tool calls.

    Triggers on any sequencing/combination/quantity pattern, on two or more
    tool names mentioned (underscores read as spaces), or on a numbered or
    bulleted list.
    """
    if any(pattern.search(message) for pattern in MULTI_STEP_PATTERNS):
        return True

    lowered = message.lower()
    mentioned = {name for name in tool_names if name.lower().replace("_", " ") in lowered}
    if len(mentioned) >= 2:
        return True

    return bool(ENUMERATION_RE.search(message))


def get_task_complexity(message: str) -> TaskComplexity:
    word_count = len(message.split())
    goal_indicators = len(GOAL_INDICATOR_RE.findall(message))

    if word_count > 100 or goal_indicators >= 3:
        return "complex"
    if word_count > 50 or goal_indicators >= 1:
        return "medium"
    return "simple"
