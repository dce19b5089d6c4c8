"""Data models for the unified task board."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class PlatformKind(str, Enum):
    """A connected project-management platform. Values are connection slugs."""

    TICKET_TRACKER = "jira"
    CARD_BOARD = "trello"
    HIERARCHICAL_TOOL = "clickup"
    FLAT_LIST = "asana"

    @classmethod
    def from_slug(cls, slug: str) -> PlatformKind | None:
        try:
            return cls(slug.strip().lower())
        except ValueError:
            return None


class CanonicalStatus(str, Enum):
    """The four board columns, declared in left-to-right order."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"

    @property
    def column(self) -> int:
        return list(CanonicalStatus).index(self)


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_native(cls, raw: str | None) -> Priority:
        lowered = (raw or "").strip().lower()
        if lowered in ("high", "urgent", "highest"):
            return cls.HIGH
        if lowered in ("low", "lowest"):
            return cls.LOW
        return cls.MEDIUM


class ResourceKind(str, Enum):
    TEAM = "team"
    SPACE = "space"
    FOLDER = "folder"
    LIST = "list"
    BOARD = "board"
    PROJECT = "project"


NO_DATE = "No Date"


@dataclass(frozen=True)
class ResourceNode:
    """One selectable location while resolving where a new task goes."""

    id: str
    name: str
    kind: ResourceKind


@dataclass
class RawTask:
    """An adapter's view of a native item, before status normalization."""

    id: str
    description: str
    project: str
    native_status: str
    due_date: str = NO_DATE
    assignee: str | None = None
    priority: Priority | None = None
    board_ref: str | None = None


@dataclass
class Task:
    """A single work item on the unified board."""

    id: str
    description: str
    project: str
    platform: PlatformKind
    status: CanonicalStatus
    due_date: str = NO_DATE
    assignee: str | None = None
    priority: Priority | None = None
    board_ref: str | None = None  # card board only, needed to resolve move targets
    placeholder: bool = False  # stands in for a platform that failed to load

    @property
    def key(self) -> tuple[PlatformKind, str]:
        return (self.platform, self.id)

    def to_dict(self) -> dict:
        """Return a JSON-friendly dict, omitting unset optional fields."""
        d: dict = {
            "id": self.id,
            "description": self.description,
            "project": self.project,
            "platform": self.platform.value,
            "status": self.status.value,
            "due_date": self.due_date,
        }
        if self.assignee:
            d["assignee"] = self.assignee
        if self.priority:
            d["priority"] = self.priority.value
        if self.board_ref:
            d["board_ref"] = self.board_ref
        if self.placeholder:
            d["placeholder"] = True
        return d


@dataclass
class TaskCollection:
    """The merged result of one refresh pass."""

    tasks: list[Task] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.tasks)

    def __iter__(self):
        return iter(self.tasks)

    @property
    def by_key(self) -> dict[tuple[PlatformKind, str], Task]:
        return {t.key: t for t in self.tasks}

    @property
    def by_status(self) -> dict[CanonicalStatus, list[Task]]:
        groups: dict[CanonicalStatus, list[Task]] = {s: [] for s in CanonicalStatus}
        for task in self.tasks:
            groups[task.status].append(task)
        return groups

    @property
    def by_platform(self) -> dict[PlatformKind, list[Task]]:
        groups: dict[PlatformKind, list[Task]] = {}
        for task in self.tasks:
            groups.setdefault(task.platform, []).append(task)
        return groups
