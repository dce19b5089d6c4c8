"""Adapter lookup by platform."""

from __future__ import annotations

from ..executor import ToolExecutor
from ..models import PlatformKind
from .asana import AsanaAdapter
from .base import PlatformAdapter
from .clickup import ClickUpAdapter
from .jira import JiraAdapter
from .trello import TrelloAdapter

ADAPTER_TYPES: dict[PlatformKind, type[PlatformAdapter]] = {
    PlatformKind.TICKET_TRACKER: JiraAdapter,
    PlatformKind.CARD_BOARD: TrelloAdapter,
    PlatformKind.HIERARCHICAL_TOOL: ClickUpAdapter,
    PlatformKind.FLAT_LIST: AsanaAdapter,
}


def build_adapters(executor: ToolExecutor) -> dict[PlatformKind, PlatformAdapter]:
    """Create one adapter per platform, all sharing ``executor``."""
    return {kind: cls(executor) for kind, cls in ADAPTER_TYPES.items()}
