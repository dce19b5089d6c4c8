"""Platform adapter contract shared by every connected platform."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Any, Mapping, Sequence

from ..envelope import ToolResult
from ..executor import ToolExecutor
from ..models import (
    NO_DATE,
    CanonicalStatus,
    PlatformKind,
    RawTask,
    ResourceKind,
    ResourceNode,
)

RE_ISO_DATE = re.compile(r"^(\d{4}-\d{2}-\d{2})")


class AdapterError(RuntimeError):
    """Raised when a platform operation fails or reports failure."""


class NoMatchingListError(AdapterError):
    """No container on the board corresponds to the requested status."""


class MissingContextError(AdapterError):
    """The move needs platform state that the caller did not supply."""


class InvalidLocationError(AdapterError):
    """A creation target chain does not fit the platform's hierarchy."""


class PlatformAdapter(ABC):
    """Translates between one platform's native items and board tasks.

    Every method is a remote call through the tool executor. Writes (moves
    and creates) only count when the platform sends an explicit success
    flag. Adapters never retry; a failed call raises :class:`AdapterError`.
    """

    kind: PlatformKind
    display_name: str
    # Levels a creation target is resolved through, top level first. The
    # last entry is the kind of node tasks are created in.
    chain: tuple[ResourceKind, ...]

    def __init__(self, executor: ToolExecutor) -> None:
        self.executor = executor

    async def _call(self, tool_name: str, args: dict) -> ToolResult:
        """Invoke a tool and normalize its response. Raises on failure."""
        try:
            raw = await self.executor.invoke(tool_name, args)
        except AdapterError:
            raise
        except Exception as e:
            raise AdapterError(f"{self.display_name} {tool_name} failed: {e}") from e
        result = ToolResult.from_response(raw)
        if not result.success:
            raise AdapterError(
                f"{self.display_name} {tool_name} failed: {result.describe_error()}"
            )
        return result

    async def _call_confirmed(self, tool_name: str, args: dict) -> ToolResult:
        """Like :meth:`_call`, but also require an explicit success flag."""
        result = await self._call(tool_name, args)
        if not result.confirmed:
            raise AdapterError(
                f"{self.display_name} {tool_name} did not confirm success"
            )
        return result

    def _target(self, location: Sequence[ResourceNode]) -> ResourceNode:
        """Return the node a task is created in, validating the chain."""
        kinds = tuple(node.kind for node in location)
        if kinds != self.chain or not all(node.id for node in location):
            raise InvalidLocationError(
                f"{self.display_name} needs a location chain of "
                f"{[k.value for k in self.chain]}, got {[k.value for k in kinds]}"
            )
        return location[-1]

    @abstractmethod
    async def list(self) -> list[RawTask]:
        """Fetch the platform's current items."""

    @abstractmethod
    async def move(
        self,
        task_id: str,
        target: CanonicalStatus,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        """Move an item so that it lands in the ``target`` column."""

    @abstractmethod
    async def create(
        self,
        location: Sequence[ResourceNode],
        title: str,
        description: str = "",
        due: date | None = None,
    ) -> ToolResult:
        """Create an item at the fully resolved ``location``."""

    @abstractmethod
    async def list_children(
        self, path: Sequence[ResourceNode] = ()
    ) -> list[ResourceNode]:
        """List the selectable nodes below ``path`` (the root when empty)."""


def format_due(value: Any) -> str:
    """Render a platform date as ``YYYY-MM-DD``.

    Accepts epoch milliseconds (as int or digit string) and ISO dates or
    date-times. Anything else renders as ``"No Date"``.
    """
    if value is None or value == "":
        return NO_DATE
    if isinstance(value, (int, float)) or (isinstance(value, str) and value.isdigit()):
        try:
            stamp = datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return NO_DATE
        return stamp.date().isoformat()
    if isinstance(value, str):
        m = RE_ISO_DATE.match(value.strip())
        if m:
            try:
                return date.fromisoformat(m.group(1)).isoformat()
            except ValueError:
                return NO_DATE
    return NO_DATE


def nodes(items: list, kind: ResourceKind, id_key: str = "id") -> list[ResourceNode]:
    """Build resource nodes from ``{id, name}`` dicts, skipping malformed ones."""
    out: list[ResourceNode] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        node_id = item.get(id_key) or item.get("id")
        if not node_id:
            continue
        out.append(ResourceNode(id=str(node_id), name=str(item.get("name", node_id)), kind=kind))
    return out
