"""Optimization tools: scoring and re-prioritizing work items."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Tuple

from langchain_core.tools import BaseTool, tool
from pydantic import BaseModel, Field

from workspaceAgent.tools.contract import ActionPreview, NeedsConfirmation, ToolResult
from workspaceAgent.tools.registry import ToolExample, ToolMeta
from workspaceAgent.tools.store import WorkspaceStore

# Baselines used when a work item carries no scoring factors of its own
# Effort and job size below 1 are scored as 1
RICE_DEFAULTS = {"reach": 50.0, "impact": 1.0, "confidence": 80.0, "effort": 5.0}
WSJF_DEFAULTS = {"business_value": 5.0, "time_criticality": 5.0, "risk_reduction": 3.0, "job_size": 5.0}


class RiceFactors(BaseModel):
    reach: Optional[float] = Field(default=None, ge=0, le=100, description="RICE: How many users affected")
    impact: Optional[float] = Field(default=None, ge=0, le=3, description="RICE: Impact level (0.25, 0.5, 1, 2, 3)")
    confidence: Optional[float] = Field(default=None, ge=0, le=100, description="RICE: Confidence percentage")
    effort: Optional[float] = Field(default=None, ge=1, le=100, description="RICE: Person-weeks")


class PrioritizeFeaturesInput(BaseModel):
    team_id: str = Field(description="Team ID for multi-tenancy")
    workspace_id: str = Field(description="Workspace ID")
    framework: Literal["rice", "wsjf", "auto"] = Field(
        description="Prioritization framework: rice, wsjf, or auto (picks the best fit)"
    )
    work_item_ids: Optional[List[str]] = Field(
        default=None, description="Specific work items to prioritize (default: all)"
    )
    factors: Optional[RiceFactors] = Field(default=None, description="Baseline RICE factors")
    apply_changes: bool = Field(
        default=True, description="If true, returns a preview for approval. If false, returns analysis only."
    )


def rice_score(item: Dict[str, Any], baseline: Dict[str, float]) -> float:
    values = {key: float(item.get(key, baseline[key])) for key in RICE_DEFAULTS}
    return round(values["reach"] * values["impact"] * values["confidence"] / max(values["effort"], 1.0), 2)


def wsjf_score(item: Dict[str, Any]) -> float:
    values = {key: float(item.get(key, default)) for key, default in WSJF_DEFAULTS.items()}
    cost_of_delay = values["business_value"] + values["time_criticality"] + values["risk_reduction"]
    return round(cost_of_delay / max(values["job_size"], 1.0), 2)


def rank_priorities(count: int) -> List[str]:
    """Priority labels for ``count`` items sorted by descending score (thirds)."""
    labels = []
    for index in range(count):
        share = index / count
        labels.append("high" if share < 1 / 3 else "medium" if share < 2 / 3 else "low")
    return labels


def build_optimization_tools(store: WorkspaceStore) -> List[Tuple[BaseTool, ToolMeta]]:
    """Build the optimization tools bound to ``store``."""

    @tool("prioritize_features", args_schema=PrioritizeFeaturesInput)
    async def prioritize_features(
        team_id: str,
        workspace_id: str,
        framework: str,
        work_item_ids: Optional[List[str]] = None,
        factors: Optional[RiceFactors] = None,
        apply_changes: bool = True,
    ):
        """Apply a prioritization framework (RICE or WSJF) to rank and score work items. Updates priority fields based on calculated scores so the team works on the highest-value items first."""
        items = await store.list_work_items(team_id, workspace_id)
        if work_item_ids:
            wanted = set(work_item_ids)
            items = [item for item in items if item["id"] in wanted]

        # auto: WSJF needs job sizing, fall back to RICE without it
        chosen = framework
        if framework == "auto":
            chosen = "wsjf" if items and all("job_size" in item for item in items) else "rice"

        baseline = dict(RICE_DEFAULTS)
        if factors is not None:
            baseline.update({k: v for k, v in factors.model_dump().items() if v is not None})

        scored = sorted(
            (
                (rice_score(item, baseline) if chosen == "rice" else wsjf_score(item), item)
                for item in items
            ),
            key=lambda pair: pair[0],
            reverse=True,
        )
        changes = [
            {
                "id": item["id"],
                "type": "work_item",
                "name": item.get("name"),
                "before": {"priority": item.get("priority"), "score": item.get("score")},
                "after": {"priority": label, "score": score},
                "change": "update",
            }
            for (score, item), label in zip(scored, rank_priorities(len(scored)))
        ]

        if not apply_changes:
            return ToolResult(data={"framework": chosen, "ranking": changes})

        async def confirmed_execute() -> dict:
            updated = []
            for change in changes:
                updated.append(
                    await store.update_work_item(
                        team_id,
                        workspace_id,
                        change["id"],
                        {"priority": change["after"]["priority"], "score": change["after"]["score"]},
                    )
                )
            return {"framework": chosen, "updated": updated}

        async def rollback(applied: dict) -> None:
            for change in changes:
                await store.update_work_item(team_id, workspace_id, change["id"], dict(change["before"]))

        return NeedsConfirmation(
            preview=ActionPreview(
                action="update",
                entity_type="work_item",
                data={"framework": chosen, "changes": changes},
                description=f"Apply {chosen.upper()} prioritization to {len(changes)} work items",
                affected_items=changes,
                warnings=(
                    ["Framework was chosen automatically based on the available data"]
                    if framework == "auto"
                    else []
                ),
            ),
            confirmed_execute=confirmed_execute,
            rollback=rollback,
        )

    return [
        (
            prioritize_features,
            ToolMeta(
                name="prioritize_features",
                display_name="Prioritize Features",
                description="Apply RICE/WSJF scoring to rank and prioritize features",
                category="optimization",
                action_type="update",
                requires_approval=True,
                is_reversible=True,
                estimated_duration="medium",
                target_entity="work_item",
                keywords=("prioritize", "rice", "wsjf", "score", "rank", "value", "effort"),
                input_examples=(
                    ToolExample(
                        description="User wants to rank all features using RICE framework",
                        user_message="Prioritize our features using RICE scoring",
                        input={"framework": "rice", "apply_changes": True},
                    ),
                    ToolExample(
                        description="User asks how to prioritize without changing anything",
                        user_message="What is the best way to prioritize our backlog?",
                        input={"framework": "auto", "apply_changes": False},
                    ),
                ),
            ),
        ),
    ]
