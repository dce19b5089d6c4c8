"""Flat task list adapter (Asana)."""

from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Sequence

from ..envelope import ToolResult
from ..models import CanonicalStatus, PlatformKind, RawTask, ResourceKind, ResourceNode
from .base import PlatformAdapter, format_due, nodes

LIST_TOOL = "asana_task_management"
UPDATE_TOOL = "asana_update_task"
CREATE_TOOL = "asana_create_task"
PROJECTS_TOOL = "asana_list_projects"

LIST_LIMIT = 20

# Asana only knows complete/incomplete, so these are the native labels.
COMPLETED = "completed"
OPEN = "open"


class AsanaAdapter(PlatformAdapter):
    kind = PlatformKind.FLAT_LIST
    display_name = "Asana"
    chain = (ResourceKind.PROJECT,)

    async def list(self) -> list[RawTask]:
        result = await self._call(LIST_TOOL, {"operation": "list", "limit": LIST_LIMIT})
        return [self._parse_task(t) for t in result.items("data") if isinstance(t, dict)]

    def _parse_task(self, task: dict) -> RawTask:
        projects = task.get("projects") or []
        project = None
        if projects and isinstance(projects[0], dict):
            project = projects[0].get("name")
        assignee = task.get("assignee")
        if isinstance(assignee, dict):
            assignee = assignee.get("name")
        return RawTask(
            id=str(task.get("gid") or task.get("id", "")),
            description=task.get("name") or "Task",
            project=project or "Asana",
            native_status=COMPLETED if task.get("completed") else OPEN,
            due_date=format_due(task.get("due_on")),
            assignee=assignee or None,
        )

    async def move(
        self,
        task_id: str,
        target: CanonicalStatus,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        # Every column except Done maps to an incomplete task.
        await self._call_confirmed(
            UPDATE_TOOL,
            {"task_id": task_id, "completed": target is CanonicalStatus.DONE},
        )

    async def create(
        self,
        location: Sequence[ResourceNode],
        title: str,
        description: str = "",
        due: date | None = None,
    ) -> ToolResult:
        project = self._target(location)
        args = {"project_id": project.id, "name": title, "notes": description}
        if due:
            args["due_on"] = due.isoformat()
        return await self._call_confirmed(CREATE_TOOL, args)

    async def list_children(self, path: Sequence[ResourceNode] = ()) -> list[ResourceNode]:
        if path:
            return []
        result = await self._call(PROJECTS_TOOL, {})
        return nodes(result.items("data"), ResourceKind.PROJECT, id_key="gid")
