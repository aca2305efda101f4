"""Creation tools: work items, tasks and dependency links.

Each tool validates its input and stops at a preview. The actual write happens
in ``confirmed_execute`` once the action is approved; ``rollback`` deletes the
created record again.
"""

from __future__ import annotations

from typing import List, Literal, Optional, Tuple

from langchain_core.tools import BaseTool, tool
from pydantic import BaseModel, Field

from workspaceAgent.tools.contract import ActionPreview, NeedsConfirmation
from workspaceAgent.tools.registry import ToolExample, ToolMeta
from workspaceAgent.tools.store import WorkspaceStore
from workspaceAgent.utils.error_handler import ToolValidationError

Priority = Literal["critical", "high", "medium", "low"]


class ScopedInput(BaseModel):
    team_id: str = Field(description="Team ID for multi-tenancy")
    workspace_id: str = Field(description="Workspace ID")


class CreateWorkItemInput(ScopedInput):
    name: str = Field(min_length=3, max_length=100, description="Work item name (3-100 characters). Be descriptive but concise.")
    type: Literal["concept", "feature", "bug", "enhancement"] = Field(
        description="Type of work item: concept (idea), feature, bug, or enhancement"
    )
    purpose: Optional[str] = Field(default=None, max_length=500, description="Why this work item matters")
    priority: Optional[Priority] = Field(default=None, description="Priority level")
    tags: Optional[List[str]] = Field(default=None, max_length=5, description="Tags for categorization (max 5)")
    phase: Optional[Literal["research", "planning", "development", "testing", "complete"]] = Field(
        default=None, description="Initial phase for the work item"
    )


class CreateTaskInput(ScopedInput):
    work_item_id: str = Field(description="ID of the parent work item this task belongs to")
    name: str = Field(min_length=3, max_length=100, description="Task name (3-100 characters). Should be actionable.")
    description: Optional[str] = Field(default=None, max_length=500, description="What needs to be done")
    priority: Optional[Priority] = Field(default=None, description="Task priority level")
    assignee_id: Optional[str] = Field(default=None, description="User ID to assign this task to")
    due_date: Optional[str] = Field(default=None, description="Due date in ISO format (e.g., 2025-12-31)")


class CreateDependencyInput(ScopedInput):
    source_id: str = Field(description="Source work item ID (the item that has the dependency)")
    target_id: str = Field(description="Target work item ID (the item being depended on or related to)")
    connection_type: Literal["dependency", "blocks", "complements", "relates_to"] = Field(
        description="dependency (source depends on target), blocks, complements, or relates_to"
    )
    reason: Optional[str] = Field(default=None, max_length=300, description="Why this dependency exists")
    strength: Optional[float] = Field(default=None, ge=0, le=1, description="Dependency strength (0-1)")


def _payload(**fields) -> dict:
    return {key: value for key, value in fields.items() if value is not None}


def build_creation_tools(store: WorkspaceStore) -> List[Tuple[BaseTool, ToolMeta]]:
    """Build the creation tools bound to ``store``."""

    @tool("create_work_item", args_schema=CreateWorkItemInput)
    async def create_work_item(
        team_id: str,
        workspace_id: str,
        name: str,
        type: str,
        purpose: Optional[str] = None,
        priority: Optional[str] = None,
        tags: Optional[List[str]] = None,
        phase: Optional[str] = None,
    ) -> NeedsConfirmation:
        """Create a new work item in the workspace. Work items can be concepts (ideas), features, bugs, or enhancements. Returns a preview for user approval before creation."""
        data = _payload(name=name, type=type, purpose=purpose, priority=priority, tags=tags, phase=phase)

        async def confirmed_execute() -> dict:
            return await store.create_work_item(team_id, workspace_id, data)

        async def rollback(created: dict) -> None:
            await store.delete_work_item(team_id, workspace_id, created["id"])

        return NeedsConfirmation(
            preview=ActionPreview(
                action="create",
                entity_type="work_item",
                data=data,
                description=f'Create {type}: "{name}"',
                affected_items=[{"id": "new", "type": "work_item", "name": name, "change": "create"}],
                warnings=(
                    ["Critical priority items will appear at the top of the backlog"]
                    if priority == "critical"
                    else []
                ),
            ),
            confirmed_execute=confirmed_execute,
            rollback=rollback,
        )

    @tool("create_task", args_schema=CreateTaskInput)
    async def create_task(
        team_id: str,
        workspace_id: str,
        work_item_id: str,
        name: str,
        description: Optional[str] = None,
        priority: Optional[str] = None,
        assignee_id: Optional[str] = None,
        due_date: Optional[str] = None,
    ) -> NeedsConfirmation:
        """Create a task under an existing work item. Tasks represent specific executable work needed to complete the parent work item. Returns a preview for user approval."""
        data = _payload(
            work_item_id=work_item_id,
            name=name,
            description=description,
            priority=priority,
            assignee_id=assignee_id,
            due_date=due_date,
        )

        async def confirmed_execute() -> dict:
            return await store.create_task(team_id, workspace_id, data)

        async def rollback(created: dict) -> None:
            await store.delete_task(team_id, workspace_id, created["id"])

        return NeedsConfirmation(
            preview=ActionPreview(
                action="create",
                entity_type="product_task",
                data=data,
                description=f'Create task: "{name}" under work item {work_item_id}',
                affected_items=[
                    {"id": "new", "type": "product_task", "name": name, "change": "create"},
                    {"id": work_item_id, "type": "work_item", "change": "update"},
                ],
                warnings=[f"Due date set to {due_date}"] if due_date else [],
            ),
            confirmed_execute=confirmed_execute,
            rollback=rollback,
        )

    @tool("create_dependency", args_schema=CreateDependencyInput)
    async def create_dependency(
        team_id: str,
        workspace_id: str,
        source_id: str,
        target_id: str,
        connection_type: str,
        reason: Optional[str] = None,
        strength: Optional[float] = None,
    ) -> NeedsConfirmation:
        """Create a dependency or relationship between two work items: blocks (A must finish before B), dependency, complements (work better together), or relates_to."""
        if source_id == target_id:
            raise ToolValidationError(
                "create_dependency", "Cannot create a dependency from a work item to itself"
            )

        data = _payload(
            source_id=source_id,
            target_id=target_id,
            connection_type=connection_type,
            reason=reason,
            strength=strength,
        )
        verb = {
            "dependency": "depends on",
            "blocks": "blocks",
            "complements": "complements",
            "relates_to": "relates to",
        }[connection_type]

        async def confirmed_execute() -> dict:
            return await store.create_link(team_id, workspace_id, data)

        async def rollback(created: dict) -> None:
            await store.delete_link(team_id, workspace_id, created["id"])

        return NeedsConfirmation(
            preview=ActionPreview(
                action="create",
                entity_type="linked_item",
                data=data,
                description=f'Create {connection_type} link: "{source_id}" {verb} "{target_id}"',
                affected_items=[
                    {"id": source_id, "type": "work_item", "change": "update"},
                    {"id": target_id, "type": "work_item", "change": "update"},
                ],
                warnings=(
                    ["Blocking dependencies may affect timeline scheduling"]
                    if connection_type == "blocks"
                    else []
                ),
            ),
            confirmed_execute=confirmed_execute,
            rollback=rollback,
        )

    return [
        (
            create_work_item,
            ToolMeta(
                name="create_work_item",
                display_name="Create Work Item",
                description="Create a new concept, feature, bug, or enhancement in the workspace",
                category="creation",
                action_type="create",
                requires_approval=True,
                is_reversible=True,
                estimated_duration="fast",
                target_entity="work_item",
                keywords=("create", "add", "new", "feature", "bug", "enhancement", "concept", "idea"),
                input_examples=(
                    ToolExample(
                        description="User wants to add a new feature for dark mode",
                        user_message="Add a feature for dark mode support in the application",
                        input={
                            "name": "Dark Mode Support",
                            "type": "feature",
                            "purpose": "Allow users to switch to a dark color theme for reduced eye strain",
                            "priority": "medium",
                            "tags": ["ui", "theme", "accessibility"],
                        },
                    ),
                    ToolExample(
                        description="User reports a critical authentication bug",
                        user_message="There is a bug where users get logged out randomly, this is urgent",
                        input={
                            "name": "Random Session Logout Bug",
                            "type": "bug",
                            "priority": "critical",
                            "tags": ["auth", "session"],
                        },
                    ),
                ),
            ),
        ),
        (
            create_task,
            ToolMeta(
                name="create_task",
                display_name="Create Task",
                description="Create a task under an existing work item",
                category="creation",
                action_type="create",
                requires_approval=True,
                is_reversible=True,
                estimated_duration="fast",
                target_entity="product_task",
                keywords=("create", "add", "new", "task", "todo", "action", "work"),
                input_examples=(
                    ToolExample(
                        description="User wants to break down a feature into implementation tasks",
                        user_message="Add a task to implement the login API endpoint for the auth feature",
                        input={
                            "work_item_id": "wi_1",
                            "name": "Implement login API endpoint",
                            "description": "Create POST /api/auth/login endpoint with JWT token generation",
                            "priority": "high",
                        },
                    ),
                ),
            ),
        ),
        (
            create_dependency,
            ToolMeta(
                name="create_dependency",
                display_name="Create Dependency",
                description="Link two work items with a dependency or relationship",
                category="creation",
                action_type="create",
                requires_approval=True,
                is_reversible=True,
                estimated_duration="fast",
                target_entity="linked_item",
                keywords=("dependency", "link", "blocks", "relates", "connect"),
                input_examples=(
                    ToolExample(
                        description="User says one feature blocks another",
                        user_message="The payments API has to ship before the checkout redesign",
                        input={
                            "source_id": "wi_2",
                            "target_id": "wi_1",
                            "connection_type": "dependency",
                            "reason": "Checkout redesign calls the new payments API",
                        },
                    ),
                ),
            ),
        ),
    ]
