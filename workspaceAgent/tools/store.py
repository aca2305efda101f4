"""Storage seam for the builtin workspace tools.

Real deployments back the tools with their own database; the in-memory store
keeps the tools runnable in the CLI and in tests. Every record is scoped by
``(team_id, workspace_id)``.
"""

from __future__ import annotations

import itertools
import time
from typing import Any, Dict, List, Optional, Protocol, Tuple


class WorkspaceStore(Protocol):
    """Persistence operations the builtin tools rely on."""

    async def create_work_item(self, team_id: str, workspace_id: str, data: Dict[str, Any]) -> Dict[str, Any]: ...

    async def update_work_item(
        self, team_id: str, workspace_id: str, item_id: str, changes: Dict[str, Any]
    ) -> Dict[str, Any]: ...

    async def delete_work_item(self, team_id: str, workspace_id: str, item_id: str) -> None: ...

    async def list_work_items(self, team_id: str, workspace_id: str) -> List[Dict[str, Any]]: ...

    async def create_task(self, team_id: str, workspace_id: str, data: Dict[str, Any]) -> Dict[str, Any]: ...

    async def delete_task(self, team_id: str, workspace_id: str, task_id: str) -> None: ...

    async def create_link(self, team_id: str, workspace_id: str, data: Dict[str, Any]) -> Dict[str, Any]: ...

    async def delete_link(self, team_id: str, workspace_id: str, link_id: str) -> None: ...

    async def list_feedback(self, team_id: str, workspace_id: str) -> List[Dict[str, Any]]: ...


Scope = Tuple[str, str]


def _remove(records: Dict[Scope, List[Dict[str, Any]]], scope: Scope, record_id: str, label: str) -> None:
    rows = records.get(scope, [])
    kept = [row for row in rows if row["id"] != record_id]
    if len(kept) == len(rows):
        raise KeyError(f"{label} {record_id} not found in workspace {scope[1]}")
    records[scope] = kept


class InMemoryWorkspaceStore:
    """Dictionary-backed ``WorkspaceStore``."""

    def __init__(self) -> None:
        self._work_items: Dict[Scope, Dict[str, Dict[str, Any]]] = {}
        self._tasks: Dict[Scope, List[Dict[str, Any]]] = {}
        self._links: Dict[Scope, List[Dict[str, Any]]] = {}
        self._feedback: Dict[Scope, List[Dict[str, Any]]] = {}
        self._ids = itertools.count(1)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}_{next(self._ids)}"

    async def create_work_item(self, team_id: str, workspace_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        record = {
            "id": self._next_id("wi"),
            "team_id": team_id,
            "workspace_id": workspace_id,
            "created_at": int(time.time() * 1000),
            **data,
        }
        self._work_items.setdefault((team_id, workspace_id), {})[record["id"]] = record
        return dict(record)

    async def update_work_item(
        self, team_id: str, workspace_id: str, item_id: str, changes: Dict[str, Any]
    ) -> Dict[str, Any]:
        items = self._work_items.get((team_id, workspace_id), {})
        if item_id not in items:
            raise KeyError(f"Work item {item_id} not found in workspace {workspace_id}")
        items[item_id].update(changes)
        return dict(items[item_id])

    async def delete_work_item(self, team_id: str, workspace_id: str, item_id: str) -> None:
        items = self._work_items.get((team_id, workspace_id), {})
        if items.pop(item_id, None) is None:
            raise KeyError(f"Work item {item_id} not found in workspace {workspace_id}")

    async def list_work_items(self, team_id: str, workspace_id: str) -> List[Dict[str, Any]]:
        return [dict(item) for item in self._work_items.get((team_id, workspace_id), {}).values()]

    async def create_task(self, team_id: str, workspace_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        record = {"id": self._next_id("task"), "team_id": team_id, "workspace_id": workspace_id, **data}
        self._tasks.setdefault((team_id, workspace_id), []).append(record)
        return dict(record)

    async def delete_task(self, team_id: str, workspace_id: str, task_id: str) -> None:
        _remove(self._tasks, (team_id, workspace_id), task_id, "Task")

    async def create_link(self, team_id: str, workspace_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        record = {"id": self._next_id("link"), "team_id": team_id, "workspace_id": workspace_id, **data}
        self._links.setdefault((team_id, workspace_id), []).append(record)
        return dict(record)

    async def delete_link(self, team_id: str, workspace_id: str, link_id: str) -> None:
        _remove(self._links, (team_id, workspace_id), link_id, "Link")

    async def list_feedback(self, team_id: str, workspace_id: str) -> List[Dict[str, Any]]:
        return [dict(item) for item in self._feedback.get((team_id, workspace_id), [])]

    def add_feedback(self, team_id: str, workspace_id: str, text: str, source: Optional[str] = None) -> Dict[str, Any]:
        """Seed a feedback entry (feedback is collected outside the agent)."""
        record = {"id": self._next_id("fb"), "text": text, "source": source}
        self._feedback.setdefault((team_id, workspace_id), []).append(record)
        return record

    def tasks(self, team_id: str, workspace_id: str) -> List[Dict[str, Any]]:
        return list(self._tasks.get((team_id, workspace_id), []))

    def links(self, team_id: str, workspace_id: str) -> List[Dict[str, Any]]:
        return list(self._links.get((team_id, workspace_id), []))
