"""Hierarchical task tool adapter (ClickUp)."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Mapping, Sequence

from ..envelope import ToolResult
from ..models import CanonicalStatus, PlatformKind, Priority, RawTask, ResourceKind, ResourceNode
from ..status import native_status_name
from .base import InvalidLocationError, PlatformAdapter, format_due, nodes

logger = logging.getLogger(__name__)

TASK_TOOL = "clickup_task_management"
RESOURCE_TOOL = "clickup_resource_management"

FOLDERLESS_ID = "__folderless__"
FOLDERLESS_NODE = ResourceNode(
    id=FOLDERLESS_ID, name="(No Folder - Direct Lists)", kind=ResourceKind.FOLDER
)


class ClickUpAdapter(PlatformAdapter):
    kind = PlatformKind.HIERARCHICAL_TOOL
    display_name = "ClickUp"
    chain = (ResourceKind.TEAM, ResourceKind.SPACE, ResourceKind.FOLDER, ResourceKind.LIST)

    async def teams(self) -> list[ResourceNode]:
        result = await self._call(TASK_TOOL, {"operation": "get_teams"})
        return nodes(result.items("teams"), ResourceKind.TEAM)

    async def list(self) -> list[RawTask]:
        teams = await self.teams()
        if not teams:
            logger.info("ClickUp returned no teams; nothing to list")
            return []
        team_id = teams[0].id
        logger.debug("Fetching ClickUp tasks for team %s", team_id)
        result = await self._call(
            TASK_TOOL,
            {"operation": "get_team_tasks", "team_id": team_id, "include_closed": True},
        )
        return [self._parse_task(t) for t in result.items("tasks") if isinstance(t, dict)]

    def _parse_task(self, task: dict) -> RawTask:
        status = task.get("status")
        if isinstance(status, dict):
            status = status.get("status")
        assignees = task.get("assignees") or []
        assignee = None
        if assignees and isinstance(assignees[0], dict):
            assignee = assignees[0].get("username") or assignees[0].get("email")
        priority = task.get("priority")
        if isinstance(priority, dict):
            priority = priority.get("priority")
        return RawTask(
            id=str(task.get("id", "")),
            description=task.get("name") or "Task",
            project=(task.get("list") or {}).get("name") or "ClickUp",
            native_status=str(status or ""),
            due_date=format_due(task.get("due_date")),
            assignee=assignee,
            priority=Priority.from_native(priority),
        )

    async def move(
        self,
        task_id: str,
        target: CanonicalStatus,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        await self._call_confirmed(
            TASK_TOOL,
            {
                "operation": "update_task",
                "task_id": task_id,
                "status": native_status_name(self.kind, target),
            },
        )

    async def create(
        self,
        location: Sequence[ResourceNode],
        title: str,
        description: str = "",
        due: date | None = None,
    ) -> ToolResult:
        target = self._target(location)
        args: dict = {
            "operation": "create_task",
            "list_id": target.id,
            "name": title,
            "description": description,
        }
        if due:
            stamp = datetime.combine(due, time(), tzinfo=timezone.utc)
            args["due_date"] = int(stamp.timestamp() * 1000)
        return await self._call_confirmed(TASK_TOOL, args)

    async def list_children(self, path: Sequence[ResourceNode] = ()) -> list[ResourceNode]:
        depth = len(path)
        if depth == 0:
            return await self.teams()
        if depth == 1:
            result = await self._call(
                RESOURCE_TOOL, {"operation": "get_spaces", "team_id": path[0].id}
            )
            return nodes(result.items("spaces"), ResourceKind.SPACE)
        if depth == 2:
            result = await self._call(
                RESOURCE_TOOL, {"operation": "get_folders", "space_id": path[1].id}
            )
            return [FOLDERLESS_NODE] + nodes(result.items("folders"), ResourceKind.FOLDER)
        if depth == 3:
            space, folder = path[1], path[2]
            if folder.id == FOLDERLESS_ID:
                args = {"operation": "get_folderless_lists", "space_id": space.id}
            else:
                args = {"operation": "get_lists", "folder_id": folder.id}
            result = await self._call(RESOURCE_TOOL, args)
            return nodes(result.items("lists"), ResourceKind.LIST)
        return []

    def _target(self, location: Sequence[ResourceNode]) -> ResourceNode:
        # Creation only needs the list; accept a bare list node as well as
        # the full team/space/folder/list chain.
        if len(location) == 1 and location[0].kind is ResourceKind.LIST and location[0].id:
            return location[0]
        if not location:
            raise InvalidLocationError("ClickUp needs a list to create a task in")
        return super()._target(location)
