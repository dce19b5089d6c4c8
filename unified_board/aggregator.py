"""Aggregator: fetches every connected platform and merges the results."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .adapters.base import PlatformAdapter
from .models import CanonicalStatus, PlatformKind, RawTask, Task, TaskCollection
from .status import normalize

logger = logging.getLogger(__name__)

# Platforms whose fetch failure shows up on the board as a placeholder task
# instead of silently contributing nothing.
ERROR_TASK_PLATFORMS = frozenset({PlatformKind.TICKET_TRACKER})


@dataclass
class RefreshReport:
    """Summary of one refresh pass."""

    collection: TaskCollection = field(default_factory=TaskCollection)
    fetched: dict[PlatformKind, int] = field(default_factory=dict)  # platform -> task count
    errors: dict[PlatformKind, str] = field(default_factory=dict)
    # Set when the pass could not run at all; the collection is then the
    # previous one, unchanged.
    error: str | None = None

    @property
    def tasks(self) -> list[Task]:
        return self.collection.tasks


def to_task(raw: RawTask, platform: PlatformKind) -> Task:
    """Normalize one adapter item into a board task."""
    return Task(
        id=raw.id,
        description=raw.description,
        project=raw.project,
        platform=platform,
        status=normalize(raw.native_status),
        due_date=raw.due_date,
        assignee=raw.assignee,
        priority=raw.priority,
        board_ref=raw.board_ref if platform is PlatformKind.CARD_BOARD else None,
    )


def dedupe(tasks: list[Task]) -> list[Task]:
    """Keep the first task for each (platform, id) key."""
    seen: set[tuple[PlatformKind, str]] = set()
    unique: list[Task] = []
    for task in tasks:
        if task.key in seen:
            continue
        seen.add(task.key)
        unique.append(task)
    return unique


def error_task(adapter: PlatformAdapter, error: str) -> Task:
    return Task(
        id=f"{adapter.kind.value}-error",
        description=f"Failed to load {adapter.display_name} items: {error}",
        project=adapter.display_name,
        platform=adapter.kind,
        status=CanonicalStatus.TODO,
        placeholder=True,
    )


class Aggregator:
    """Fans out ``list()`` to the connected adapters and merges the results."""

    def __init__(self, adapters: Mapping[PlatformKind, PlatformAdapter]) -> None:
        self.adapters = dict(adapters)

    async def refresh(self, connected: Iterable[PlatformKind]) -> RefreshReport:
        connected_set = set(connected)
        # Keep the registry order so the merged collection is stable.
        active = [a for kind, a in self.adapters.items() if kind in connected_set]
        skipped = connected_set - set(self.adapters)
        if skipped:
            logger.warning(
                "No adapter for connected platform(s): %s",
                sorted(k.value for k in skipped),
            )

        logger.info("Fetching tasks from %d platform(s)...", len(active))
        # Every list() is started before any is awaited; one failure does not
        # cancel the others.
        outcomes = await asyncio.gather(
            *(adapter.list() for adapter in active), return_exceptions=True
        )

        report = RefreshReport()
        for adapter, outcome in zip(active, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                msg = str(outcome) or type(outcome).__name__
                logger.error("Failed to fetch %s tasks: %s", adapter.display_name, msg)
                report.errors[adapter.kind] = msg
                if adapter.kind in ERROR_TASK_PLATFORMS:
                    report.collection.tasks.append(error_task(adapter, msg))
                continue

            tasks = dedupe([to_task(raw, adapter.kind) for raw in outcome])
            if len(tasks) < len(outcome):
                logger.warning(
                    "Dropped %d repeated item(s) from %s",
                    len(outcome) - len(tasks),
                    adapter.display_name,
                )
            report.collection.tasks.extend(tasks)
            report.fetched[adapter.kind] = len(tasks)
            logger.info("Fetched %d task(s) from %s", len(tasks), adapter.display_name)

        logger.info(
            "Refresh complete: %d task(s), %d platform error(s)",
            len(report.collection),
            len(report.errors),
        )
        return report
