"""Tool executor: the single I/O boundary between the board and the platforms."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from .models import PlatformKind

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class ToolExecutorError(RuntimeError):
    """Raised when the executor cannot deliver a tool call."""


class ToolExecutor(ABC):
    """Performs named remote operations on behalf of the platform adapters."""

    @abstractmethod
    async def invoke(self, tool_name: str, args: dict) -> Any:
        """Run ``tool_name`` with ``args`` and return the raw response body."""

    @abstractmethod
    async def connected_platforms(self) -> list[PlatformKind]:
        """Return the platforms that currently have valid credentials."""


class HttpToolExecutor(ToolExecutor):
    """Tool executor backed by the application's REST API."""

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise ToolExecutorError(f"{method} {path} failed: {e}") from e
        try:
            return resp.json()
        except ValueError as e:
            raise ToolExecutorError(f"{method} {path} returned invalid JSON") from e

    async def invoke(self, tool_name: str, args: dict) -> Any:
        logger.debug("Invoking %s with %s", tool_name, args)
        return await self._request(
            "POST", "/mcp/call", json={"name": tool_name, "arguments": args}
        )

    async def connected_platforms(self) -> list[PlatformKind]:
        body = await self._request("GET", "/connections")
        entries = body.get("data") if isinstance(body, dict) else body
        platforms: list[PlatformKind] = []
        for entry in entries or []:
            if not isinstance(entry, dict):
                continue
            kind = PlatformKind.from_slug(str(entry.get("platform", "")))
            if kind is None:
                logger.debug("Ignoring connection for unsupported platform %r", entry.get("platform"))
                continue
            if kind not in platforms:
                platforms.append(kind)
        return platforms

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
