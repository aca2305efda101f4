"""Context compaction.

When a conversation approaches the selected model's compaction threshold, the
older turns are replaced by a single summary message while the most recent
turns are kept verbatim:

    [system messages] + [summary (assistant)] + [last N turns]

Summarization is one call to the registry's ``cost_effective`` model. A failed
call never blocks the conversation: a placeholder summary is used instead.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from workspaceAgent.config.settings import ContextSettings
from workspaceAgent.models.registry import ModelConfig, ModelRegistry
from workspaceAgent.runtime.model_resolver import ModelResolver
from workspaceAgent.utils.logging_utils import log_error, log_model_selection

from .tokens import estimate_conversation_tokens

LOGGER = logging.getLogger("workspaceagent.context")

SUMMARY_SYSTEM_PROMPT = """You are a conversation summarizer. Create a concise summary of the conversation that preserves:
1. Key decisions and conclusions
2. Important context and facts discussed
3. Any pending questions or action items

Keep the summary under 500 words. Focus on information that would be useful for continuing the conversation."""

SUMMARY_HEADER = "[Previous conversation summary]"
SUMMARY_FOOTER = "[End of summary - recent messages follow]"


@dataclass
class CompactionResult:
    """Outcome of ``ContextCompactor.compact_context``."""

    messages: List[BaseMessage]
    estimated_tokens: int
    was_compacted: bool
    summary: Optional[str] = None
    summarized_count: int = 0


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    return json.dumps(content, ensure_ascii=False, default=str)


def format_for_summary(messages: Sequence[BaseMessage]) -> str:
    lines = []
    for message in messages:
        role = "User" if isinstance(message, HumanMessage) else "Assistant"
        lines.append(f"{role}: {_content_text(message.content)}")
    return "\n\n".join(lines)


def fallback_summary(count: int) -> str:
    return f"Previous conversation covered: {count} messages discussing various topics."


class ContextCompactor:
    """Keeps a conversation inside the selected model's context budget."""

    def __init__(
        self,
        model_registry: ModelRegistry,
        model_resolver: ModelResolver,
        settings: Optional[ContextSettings] = None,
    ) -> None:
        self.model_registry = model_registry
        self.model_resolver = model_resolver
        self.settings = settings or ContextSettings()

    async def summarize_messages(self, messages: Sequence[BaseMessage]) -> str:
        """Summarize ``messages`` with the cost-effective model, or fall back."""
        if not messages:
            return ""

        summary_model = self.model_registry.get_best_for_capability("cost_effective")
        log_model_selection(LOGGER, "summarize", summary_model.model_id, "cost_effective")

        try:
            chat_model = self.model_resolver(summary_model.model_id)
            response = await chat_model.ainvoke(
                [
                    SystemMessage(content=SUMMARY_SYSTEM_PROMPT),
                    HumanMessage(content=f"Summarize this conversation:\n\n{format_for_summary(messages)}"),
                ],
                max_tokens=self.settings.summary_max_tokens,
            )
            summary = _content_text(response.content).strip()
        except Exception as exc:
            log_error(LOGGER, exc, "conversation summarization")
            return fallback_summary(len(messages))

        if not summary:
            LOGGER.warning("Summarization returned empty text, using placeholder summary")
            return fallback_summary(len(messages))
        return summary

    async def compact_context(self, messages: Sequence[BaseMessage], model: ModelConfig) -> CompactionResult:
        """Compact ``messages`` for ``model`` if they reach its compaction threshold."""
        messages = list(messages)
        estimate = estimate_conversation_tokens(messages, model, self.settings.image_tokens)

        if not estimate.near_limit:
            return CompactionResult(messages=messages, estimated_tokens=estimate.total, was_compacted=False)

        system_messages = [m for m in messages if isinstance(m, SystemMessage)]
        conversation = [m for m in messages if not isinstance(m, SystemMessage)]
        keep = self.settings.recent_turns

        if len(conversation) <= keep:
            LOGGER.info(
                f"Context near limit ({estimate.total} tokens) but only {len(conversation)} turns, nothing to compact"
            )
            return CompactionResult(messages=messages, estimated_tokens=estimate.total, was_compacted=False)

        cutoff = len(conversation) - keep
        to_summarize = conversation[:cutoff]
        to_keep = conversation[cutoff:]

        LOGGER.info(
            f"Compacting context for {model.key}: {estimate.total}/{model.compact_at} tokens, "
            f"summarizing {len(to_summarize)} messages"
        )
        summary = await self.summarize_messages(to_summarize)

        compacted: List[BaseMessage] = [
            *system_messages,
            AIMessage(content=f"{SUMMARY_HEADER}\n{summary}\n{SUMMARY_FOOTER}"),
            *to_keep,
        ]
        new_estimate = estimate_conversation_tokens(compacted, model, self.settings.image_tokens)

        LOGGER.info(
            f"Compaction complete: {len(messages)} → {len(compacted)} messages, "
            f"~{estimate.total} → ~{new_estimate.total} tokens"
        )
        return CompactionResult(
            messages=compacted,
            estimated_tokens=new_estimate.total,
            was_compacted=True,
            summary=summary,
            summarized_count=len(to_summarize),
        )


def needs_larger_context(estimated_tokens: int, model: ModelConfig) -> bool:
    """True once usage reaches 90% of the model's hard limit."""
    return estimated_tokens >= model.context_limit * 0.9


def get_overflow_model(model_registry: ModelRegistry) -> Optional[ModelConfig]:
    return model_registry.get_by_capability("large_context")
