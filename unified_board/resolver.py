"""Cascading resolution of the location a new task is created in."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .adapters.base import PlatformAdapter
from .models import ResourceKind, ResourceNode

logger = logging.getLogger(__name__)


@dataclass
class CascadeLevel:
    """One selector in the cascade: its options, selection and load state."""

    kind: ResourceKind
    options: list[ResourceNode] = field(default_factory=list)
    selected: ResourceNode | None = None
    loading: bool = False
    error: str | None = None

    def clear(self) -> None:
        self.options = []
        self.selected = None
        self.loading = False
        self.error = None


class ResourceResolver:
    """Resolves a platform's location chain one level at a time.

    A level is fetched only after its parent has a selection. Selecting a
    value clears every level below it. A failed fetch leaves its level empty
    and the cascade stops there until the parent is selected again.
    """

    def __init__(self, adapter: PlatformAdapter) -> None:
        self.adapter = adapter
        self.levels = [CascadeLevel(kind) for kind in adapter.chain]
        self._cache: dict[tuple[str, ...], list[ResourceNode]] = {}

    @property
    def loading(self) -> bool:
        return any(level.loading for level in self.levels)

    def options(self, index: int) -> list[ResourceNode]:
        return list(self.levels[index].options)

    def path(self, depth: int) -> list[ResourceNode]:
        """The selected nodes of the first ``depth`` levels."""
        return [level.selected for level in self.levels[:depth] if level.selected]

    def chain(self) -> list[ResourceNode] | None:
        """The fully resolved location, or None while any level is unset."""
        if any(level.selected is None for level in self.levels):
            return None
        return self.path(len(self.levels))

    async def open(self) -> list[ResourceNode]:
        """Reset the cascade and load the top level."""
        for level in self.levels:
            level.clear()
        await self._fetch(0)
        return self.options(0)

    async def select(self, index: int, node_id: str | None) -> list[ResourceNode]:
        """Select ``node_id`` at level ``index`` and load the next level.

        Returns the next level's options (empty at the last level, when the
        selection is cleared, or when the fetch fails).
        """
        if not 0 <= index < len(self.levels):
            raise IndexError(f"No level {index} in {self.adapter.display_name} cascade")

        for level in self.levels[index + 1:]:
            level.clear()

        level = self.levels[index]
        if not node_id:
            level.selected = None
            return []

        node = next((opt for opt in level.options if opt.id == node_id), None)
        if node is None:
            raise ValueError(f"{node_id!r} is not an option for {level.kind.value}")
        level.selected = node

        if index + 1 == len(self.levels):
            return []
        await self._fetch(index + 1)
        return self.options(index + 1)

    async def _fetch(self, index: int) -> None:
        level = self.levels[index]
        parent_path = self.path(index)
        if len(parent_path) != index:
            return
        cache_key = tuple(node.id for node in parent_path)

        cached = self._cache.get(cache_key)
        if cached is not None:
            level.options = list(cached)
            return

        level.loading = True
        level.error = None
        children: list[ResourceNode] | None = None
        error: str | None = None
        try:
            children = await self.adapter.list_children(parent_path)
        except Exception as e:
            logger.error(
                "Failed to load %s %s options: %s",
                self.adapter.display_name, level.kind.value, e,
            )
            error = str(e)

        # Drop the response if the parent selection changed while waiting;
        # the level now belongs to the newer selection.
        if self.path(index) != parent_path:
            logger.debug("Discarding stale %s options", level.kind.value)
            return
        level.loading = False
        if children is None:
            level.options = []
            level.error = error
            return
        self._cache[cache_key] = list(children)
        level.options = list(children)
