"""Canonical envelope for tool executor responses.

The backend wraps tool output inconsistently: the success flag, the error and
the payload can each sit at the top level, under ``data``, under ``result`` or
under ``result.data``. Adapters convert every raw response into a
:class:`ToolResult` so callers only ever look in one place.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

_META_KEYS = ("success", "error")


@dataclass
class ToolResult:
    """A normalized tool response."""

    success: bool
    data: dict = field(default_factory=dict)
    error: str | None = None
    confirmed: bool = False  # an explicit success flag was present somewhere

    @classmethod
    def from_response(cls, raw: Any) -> ToolResult:
        if not isinstance(raw, dict):
            return cls(success=False, error=f"Unexpected response: {raw!r}")

        layers = _layers(raw)
        error = None
        for layer in reversed(layers):
            error = _error_text(layer.get("error"))
            if error:
                break

        flags = [layer["success"] for layer in layers if "success" in layer]
        explicit_ok = any(flag is True for flag in flags)
        explicit_fail = any(flag is False for flag in flags) and not explicit_ok

        data: dict = {}
        for layer in layers:
            data.update({k: v for k, v in layer.items() if k not in _META_KEYS})

        success = error is None and not explicit_fail and (explicit_ok or bool(data))
        return cls(
            success=success,
            data=data,
            error=error,
            confirmed=error is None and explicit_ok,
        )

    @classmethod
    def failure(cls, error: str) -> ToolResult:
        return cls(success=False, error=error)

    def items(self, key: str) -> list:
        """Return the list stored under ``key``, or an empty list."""
        value = self.data.get(key)
        return value if isinstance(value, list) else []

    def describe_error(self) -> str:
        return self.error or "Unknown error"


def _layers(raw: dict) -> list[dict]:
    """Return the nested containers from outermost to innermost."""
    layers = [raw]
    data = raw.get("data")
    if isinstance(data, dict):
        layers.append(data)
    result = raw.get("result")
    if isinstance(result, dict):
        layers.append(result)
        inner = result.get("data")
        if isinstance(inner, dict):
            layers.append(inner)
    return layers


def _error_text(value: Any) -> str | None:
    if not value:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        message = value.get("message") or value.get("detail")
        if message:
            return str(message)
    return json.dumps(value, default=str)
