"""Shared fixtures: an in-memory tool executor."""

from __future__ import annotations

import pytest

from unified_board.executor import ToolExecutor, ToolExecutorError


class FakeExecutor(ToolExecutor):
    """Routes tool calls to canned responses and records every call."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str | None], object] = {}
        self.calls: list[tuple[str, dict]] = []
        self.platforms: list = []

    def on(self, tool: str, op: str | None = None, response: object = None) -> None:
        """Answer ``tool`` (optionally only for action/operation ``op``).

        ``response`` may be a dict, an exception to raise, or a callable
        taking the call args.
        """
        self.routes[(tool, op)] = response

    async def invoke(self, tool_name: str, args: dict):
        self.calls.append((tool_name, dict(args)))
        op = args.get("action") or args.get("operation")
        key = (tool_name, op) if (tool_name, op) in self.routes else (tool_name, None)
        if key not in self.routes:
            raise ToolExecutorError(f"unrouted call {tool_name} {op}")
        response = self.routes[key]
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return response(args)
        return response

    async def connected_platforms(self):
        return list(self.platforms)

    def ops(self) -> list[tuple[str, str | None]]:
        return [
            (tool, args.get("action") or args.get("operation"))
            for tool, args in self.calls
        ]


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()
