"""Board state store: the single owner of the in-memory task collection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Callable, Iterable, Mapping, Sequence

from .adapters.base import AdapterError, PlatformAdapter
from .aggregator import Aggregator, RefreshReport
from .envelope import ToolResult
from .models import (
    CanonicalStatus,
    PlatformKind,
    ResourceNode,
    Task,
    TaskCollection,
)

logger = logging.getLogger(__name__)

ConnectedPlatforms = Callable[[], Awaitable[Iterable[PlatformKind]]]


class TaskNotFoundError(KeyError):
    """No task with the given key is on the board."""


class MoveInFlightError(RuntimeError):
    """A move of the same task has not settled yet."""


@dataclass(frozen=True)
class MoveToken:
    """A tentatively applied status change, awaiting commit or rollback."""

    task: Task
    previous: CanonicalStatus
    target: CanonicalStatus

    @property
    def key(self) -> tuple[PlatformKind, str]:
        return self.task.key


@dataclass
class MoveOutcome:
    ok: bool
    task: Task | None = None
    previous: CanonicalStatus | None = None
    error: str | None = None


@dataclass
class CreateOutcome:
    ok: bool
    error: str | None = None
    data: dict = field(default_factory=dict)
    refresh: RefreshReport | None = None


class BoardStore:
    """Holds the board's tasks and applies user actions to them.

    Only :meth:`replace` (full refresh) and the move token methods write the
    collection. A move is two-phase: :meth:`tentative_apply` sets the new
    status, then :meth:`commit` or :meth:`rollback` settles it, so a task's
    status is always either its pre-move or its post-move value.
    """

    def __init__(
        self,
        adapters: Mapping[PlatformKind, PlatformAdapter],
        connected_platforms: ConnectedPlatforms | None = None,
        aggregator: Aggregator | None = None,
    ) -> None:
        self.adapters = dict(adapters)
        self.connected_platforms = connected_platforms
        self.aggregator = aggregator or Aggregator(self.adapters)
        self._collection = TaskCollection()
        self._in_flight: dict[tuple[PlatformKind, str], MoveToken] = {}
        self.last_refresh: RefreshReport | None = None

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    @property
    def tasks(self) -> list[Task]:
        return list(self._collection.tasks)

    def replace(self, collection: TaskCollection) -> None:
        """Swap in a freshly aggregated collection."""
        self._collection = collection

    async def refresh(self) -> RefreshReport:
        """Re-fetch every connected platform and replace the collection.

        If the connected platforms cannot be determined the current tasks are
        kept and the report carries the error.
        """
        connected: Iterable[PlatformKind] = ()
        if self.connected_platforms is not None:
            try:
                connected = await self.connected_platforms()
            except Exception as e:
                msg = f"Failed to fetch connections: {e}"
                logger.error(msg)
                report = RefreshReport(collection=self._collection, error=msg)
                self.last_refresh = report
                return report
        report = await self.aggregator.refresh(connected)
        self.replace(report.collection)
        self.last_refresh = report
        return report

    def get(self, task_id: str, platform: PlatformKind | None = None) -> Task:
        """Find a task by id, scoped to ``platform`` when given."""
        matches = [
            t
            for t in self._collection.tasks
            if t.id == task_id and (platform is None or t.platform is platform)
        ]
        if not matches:
            raise TaskNotFoundError(task_id)
        if len(matches) > 1:
            raise ValueError(
                f"Task id {task_id!r} matches {len(matches)} tasks: "
                f"{sorted(t.platform.value for t in matches)}; name the platform"
            )
        return matches[0]

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def tentative_apply(
        self, task_id: str, status: CanonicalStatus, platform: PlatformKind | None = None
    ) -> MoveToken:
        task = self.get(task_id, platform)
        if task.key in self._in_flight:
            raise MoveInFlightError(f"Move of {task.platform.value}:{task.id} is in flight")
        token = MoveToken(task=task, previous=task.status, target=status)
        task.status = status
        self._in_flight[task.key] = token
        return token

    def commit(self, token: MoveToken) -> None:
        self._settle(token)

    def rollback(self, token: MoveToken) -> None:
        self._settle(token)
        current = self._collection.by_key.get(token.key)
        if current is not token.task:
            # A refresh replaced the task while the move was in flight; the
            # fresh copy already reflects the platform.
            logger.debug("Skipping rollback of %s: task was refreshed", token.key)
            return
        token.task.status = token.previous

    def _settle(self, token: MoveToken) -> None:
        if self._in_flight.get(token.key) is not token:
            raise ValueError(f"Move token for {token.key} is not in flight")
        del self._in_flight[token.key]

    def is_moving(self, task_id: str, platform: PlatformKind) -> bool:
        return (platform, task_id) in self._in_flight

    async def move_task(
        self,
        task_id: str,
        new_status: CanonicalStatus,
        platform: PlatformKind | None = None,
    ) -> MoveOutcome:
        """Optimistically move a task, rolling back if the platform refuses."""
        try:
            task = self.get(task_id, platform)
        except (TaskNotFoundError, ValueError) as e:
            logger.warning("Cannot move task %s: %s", task_id, e)
            return MoveOutcome(ok=False, error=f"Cannot move task {task_id}: {e}")

        if task.placeholder:
            return MoveOutcome(ok=False, task=task, error="Placeholder tasks cannot be moved")
        if task.status is new_status:
            return MoveOutcome(ok=True, task=task, previous=task.status)

        adapter = self.adapters.get(task.platform)
        if adapter is None:
            return MoveOutcome(
                ok=False, task=task, error=f"No adapter for {task.platform.value}"
            )

        try:
            token = self.tentative_apply(task.id, new_status, task.platform)
        except MoveInFlightError as e:
            return MoveOutcome(ok=False, task=task, error=str(e))

        logger.info(
            "Moving %s task %s: %s -> %s",
            adapter.display_name, task.id, token.previous.value, new_status.value,
        )
        context = {"board_ref": task.board_ref, "project": task.project}
        try:
            await adapter.move(task.id, new_status, context)
        except Exception as e:
            self.rollback(token)
            msg = f"Failed to update task status: {e}"
            logger.error(msg)
            return MoveOutcome(ok=False, task=task, previous=token.previous, error=msg)

        self.commit(token)
        return MoveOutcome(ok=True, task=task, previous=token.previous)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_task(
        self,
        platform: PlatformKind,
        location: Sequence[ResourceNode],
        title: str,
        description: str = "",
        due: date | None = None,
    ) -> CreateOutcome:
        """Create a task at a resolved location, then refresh the board."""
        if not title.strip():
            return CreateOutcome(ok=False, error="A title is required")
        adapter = self.adapters.get(platform)
        if adapter is None:
            return CreateOutcome(ok=False, error=f"No adapter for {platform.value}")

        try:
            result: ToolResult = await adapter.create(location, title.strip(), description, due)
        except Exception as e:
            msg = f"Failed to create task: {e}"
            logger.error(msg)
            return CreateOutcome(ok=False, error=msg)

        # A success flag can arrive alongside an embedded error.
        if not (result.confirmed and result.error is None):
            msg = f"Failed to create task: {result.describe_error()}"
            logger.error(msg)
            return CreateOutcome(ok=False, error=msg, data=result.data)

        logger.info("Created %s task '%s'", adapter.display_name, title.strip())
        # The task exists remotely now; a failed refresh does not undo that.
        report = await self.refresh()
        if report.error:
            logger.warning("Task created but the board was not refreshed: %s", report.error)
        return CreateOutcome(ok=True, data=result.data, refresh=report)

    # ------------------------------------------------------------------
    # Read-side projections
    # ------------------------------------------------------------------

    def filtered_view(
        self, platform: PlatformKind | None = None, text: str | None = None
    ) -> list[Task]:
        needle = (text or "").lower()
        return [
            t
            for t in self._collection.tasks
            if (platform is None or t.platform is platform)
            and (needle in t.description.lower() or needle in t.project.lower())
        ]

    def columns(
        self, platform: PlatformKind | None = None, text: str | None = None
    ) -> dict[CanonicalStatus, list[Task]]:
        """The four-column board view, in column order."""
        return TaskCollection(self.filtered_view(platform, text)).by_status

    def status_counts(self) -> dict[CanonicalStatus, int]:
        return {status: len(tasks) for status, tasks in self._collection.by_status.items()}
