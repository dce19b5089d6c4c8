"""Ticket tracker adapter (Jira)."""

from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Sequence

from ..envelope import ToolResult
from ..models import CanonicalStatus, PlatformKind, Priority, RawTask, ResourceKind, ResourceNode
from ..status import native_status_name
from .base import PlatformAdapter, format_due, nodes

TOOL = "jira_issue_tracking"
SEARCH_JQL = "updated >= -30d order by updated DESC"


class JiraAdapter(PlatformAdapter):
    kind = PlatformKind.TICKET_TRACKER
    display_name = "Jira"
    chain = (ResourceKind.PROJECT,)

    def __init__(self, executor, issue_type: str = "Task", initial_status: str = "To Do") -> None:
        super().__init__(executor)
        self.issue_type = issue_type
        self.initial_status = initial_status

    async def list(self) -> list[RawTask]:
        result = await self._call(TOOL, {"action": "search_issues", "jql": SEARCH_JQL})
        return [self._parse_issue(i) for i in result.items("issues") if isinstance(i, dict)]

    def _parse_issue(self, issue: dict) -> RawTask:
        # Search results come back flattened, but tolerate the REST shape too.
        fields = issue.get("fields") or {}
        status = issue.get("status") or (fields.get("status") or {}).get("name") or ""
        project = issue.get("project") or (fields.get("project") or {}).get("name")
        priority = issue.get("priority") or (fields.get("priority") or {}).get("name")
        assignee = issue.get("assignee") or (fields.get("assignee") or {}).get("displayName")
        if isinstance(status, dict):
            status = status.get("name") or ""
        if isinstance(project, dict):
            project = project.get("name")
        if isinstance(priority, dict):
            priority = priority.get("name")
        if isinstance(assignee, dict):
            assignee = assignee.get("displayName") or assignee.get("name")
        return RawTask(
            id=str(issue.get("key") or issue.get("id", "")),
            description=issue.get("summary") or fields.get("summary") or "Issue",
            project=project or "Jira",
            native_status=str(status),
            due_date=format_due(
                issue.get("duedate") or fields.get("duedate") or issue.get("created")
            ),
            assignee=assignee or None,
            priority=Priority.from_native(priority),
        )

    async def move(
        self,
        task_id: str,
        target: CanonicalStatus,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        await self._call_confirmed(
            TOOL,
            {
                "action": "update_issue",
                "issue_key": task_id,
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
        project = self._target(location)
        args = {
            "action": "create_issue",
            "project_key": project.id,
            "summary": title,
            "description": description,
            "issuetype": self.issue_type,
            "status": self.initial_status,
        }
        if due:
            args["duedate"] = due.isoformat()
        return await self._call_confirmed(TOOL, args)

    async def list_children(self, path: Sequence[ResourceNode] = ()) -> list[ResourceNode]:
        if path:
            return []
        result = await self._call(TOOL, {"action": "get_projects"})
        return nodes(result.items("projects"), ResourceKind.PROJECT, id_key="key")
