"""Card board adapter (Trello)."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping, Sequence

from ..envelope import ToolResult
from ..models import CanonicalStatus, PlatformKind, RawTask, ResourceKind, ResourceNode
from ..status import label_matches
from .base import (
    AdapterError,
    MissingContextError,
    NoMatchingListError,
    PlatformAdapter,
    format_due,
    nodes,
)

logger = logging.getLogger(__name__)

TOOL = "trello_project_management"
SEARCH_QUERY = "is:open"


class TrelloAdapter(PlatformAdapter):
    kind = PlatformKind.CARD_BOARD
    display_name = "Trello"
    chain = (ResourceKind.BOARD, ResourceKind.LIST)

    async def list(self) -> list[RawTask]:
        result = await self._call(TOOL, {"action": "search_cards", "query": SEARCH_QUERY})
        return [self._parse_card(c) for c in result.items("cards") if isinstance(c, dict)]

    def _parse_card(self, card: dict) -> RawTask:
        card_list = card.get("list") or {}
        board = card.get("board") or {}
        board_ref = card.get("board_id") or card.get("idBoard") or board.get("id")
        return RawTask(
            id=str(card.get("id", "")),
            description=card.get("name") or "Card",
            project=board.get("name") or "Trello",
            native_status=card_list.get("name") or card.get("listName") or "",
            due_date=format_due(card.get("due")),
            board_ref=str(board_ref) if board_ref else None,
        )

    async def board_lists(self, board_id: str) -> list[ResourceNode]:
        result = await self._call(TOOL, {"action": "get_lists", "board_id": board_id})
        return nodes(result.items("lists"), ResourceKind.LIST)

    async def move(
        self,
        task_id: str,
        target: CanonicalStatus,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        board_ref = (context or {}).get("board_ref")
        if not board_ref:
            raise MissingContextError(f"Missing board ID for Trello card {task_id}")

        lists = await self.board_lists(board_ref)
        if not lists:
            raise AdapterError(f"Could not fetch lists for board {board_ref}")

        # First list whose name carries a keyword of the target column; list
        # position is never used as a fallback.
        match = next((lst for lst in lists if label_matches(lst.name, target)), None)
        if match is None:
            raise NoMatchingListError(
                f"No list on board {board_ref} matching {target.value!r}: "
                f"{[lst.name for lst in lists]}"
            )
        logger.debug("Moving card %s to list %s (%s)", task_id, match.name, match.id)
        await self._call_confirmed(
            TOOL, {"action": "update_card", "card_id": task_id, "list_id": match.id}
        )

    async def create(
        self,
        location: Sequence[ResourceNode],
        title: str,
        description: str = "",
        due: date | None = None,
    ) -> ToolResult:
        target = self._target(location)
        return await self._call_confirmed(
            TOOL,
            {
                "action": "create_card",
                "list_id": target.id,
                "name": title,
                "desc": description,
                "due": due.isoformat() if due else "",
            },
        )

    async def list_children(self, path: Sequence[ResourceNode] = ()) -> list[ResourceNode]:
        if not path:
            result = await self._call(TOOL, {"action": "get_boards"})
            return nodes(result.items("boards"), ResourceKind.BOARD)
        if len(path) == 1:
            return await self.board_lists(path[0].id)
        return []
