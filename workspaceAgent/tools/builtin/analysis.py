"""Read-only analysis tools."""

from __future__ import annotations

import re
from collections import Counter
from typing import List, Literal, Tuple

from langchain_core.runnables import RunnableConfig
from langchain_core.tools import BaseTool, tool
from pydantic import BaseModel, Field

from workspaceAgent.tools.contract import ToolResult
from workspaceAgent.tools.registry import ToolExample, ToolMeta
from workspaceAgent.tools.store import WorkspaceStore

POSITIVE_WORDS = frozenset(
    {"love", "great", "awesome", "excellent", "fast", "easy", "helpful", "intuitive", "nice", "good"}
)
NEGATIVE_WORDS = frozenset(
    {"bug", "slow", "crash", "crashes", "broken", "hate", "confusing", "error", "bad", "missing", "annoying"}
)
STOPWORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "is", "are", "was", "it", "to", "of", "in", "on",
        "for", "with", "this", "that", "i", "we", "you", "my", "our", "be", "when", "so", "very",
        "not", "have", "has", "can", "would", "should", "there", "they", "at", "as", "its",
    }
)
WORD_RE = re.compile(r"[a-z']+")


class AnalyzeFeedbackInput(BaseModel):
    team_id: str = Field(description="Team ID for multi-tenancy")
    workspace_id: str = Field(description="Workspace ID to analyze")
    sentiment: Literal["positive", "neutral", "negative", "all"] = Field(
        default="all", description="Filter by sentiment"
    )
    limit: int = Field(default=50, ge=1, le=100, description="Maximum feedback items to analyze")
    preview_only: bool = Field(
        default=False, description="If true, returns only the scope without running analysis"
    )


def classify_sentiment(text: str) -> str:
    words = WORD_RE.findall(text.lower())
    score = sum(1 for w in words if w in POSITIVE_WORDS) - sum(1 for w in words if w in NEGATIVE_WORDS)
    if score > 0:
        return "positive"
    if score < 0:
        return "negative"
    return "neutral"


def build_analysis_tools(store: WorkspaceStore) -> List[Tuple[BaseTool, ToolMeta]]:
    """Build the analysis tools bound to ``store``."""

    @tool("analyze_feedback", args_schema=AnalyzeFeedbackInput)
    async def analyze_feedback(
        team_id: str,
        workspace_id: str,
        sentiment: str = "all",
        limit: int = 50,
        preview_only: bool = False,
        *,
        config: RunnableConfig,
    ) -> ToolResult:
        """Analyze customer feedback in the workspace. Performs sentiment analysis, identifies common themes, and reports counts. Use this to understand customer voice and prioritize features."""
        feedback = await store.list_feedback(team_id, workspace_id)

        if preview_only:
            return ToolResult(
                data={
                    "type": "scope_preview",
                    "entity_count": min(len(feedback), limit),
                    "description": f"Will analyze up to {limit} feedback items"
                    + (f" with {sentiment} sentiment" if sentiment != "all" else ""),
                }
            )

        cancel_signal = (config.get("configurable") or {}).get("cancel_signal")
        distribution: Counter = Counter()
        themes: Counter = Counter()
        analyzed = 0
        for item in feedback:
            if cancel_signal is not None and cancel_signal.cancelled:
                break
            if analyzed >= limit:
                break
            label = classify_sentiment(item["text"])
            if sentiment != "all" and label != sentiment:
                continue
            analyzed += 1
            distribution[label] += 1
            themes.update(
                w for w in WORD_RE.findall(item["text"].lower()) if w not in STOPWORDS and len(w) > 2
            )

        return ToolResult(
            data={
                "type": "analysis_result",
                "analyzed": analyzed,
                "sentiment": dict(distribution),
                "themes": [word for word, _ in themes.most_common(5)],
                "summary": f"Analyzed {analyzed} feedback items",
                "partial": bool(cancel_signal is not None and cancel_signal.cancelled),
            }
        )

    return [
        (
            analyze_feedback,
            ToolMeta(
                name="analyze_feedback",
                display_name="Analyze Customer Feedback",
                description="Perform sentiment analysis and theme extraction on customer feedback",
                category="analysis",
                action_type="analyze",
                requires_approval=False,
                is_reversible=False,
                estimated_duration="medium",
                target_entity="insight",
                keywords=("analyze", "feedback", "sentiment", "customer", "voice", "themes", "insights"),
                input_examples=(
                    ToolExample(
                        description="User wants to understand overall customer sentiment",
                        user_message="Analyze all the customer feedback we have collected",
                        input={"sentiment": "all", "limit": 50},
                    ),
                    ToolExample(
                        description="User wants to focus on negative feedback to find issues",
                        user_message="Show me only the negative feedback so I can prioritize fixes",
                        input={"sentiment": "negative", "limit": 30},
                    ),
                ),
            ),
        ),
    ]
