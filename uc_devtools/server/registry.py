"""Tool name to handler table used by the MCP server."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .types import HandlerFunc, ToolResult

if TYPE_CHECKING:
    from .connection import ChromeConnection

logger = logging.getLogger("uc_devtools.server.registry")


class ToolRegistry:
    def __init__(self, handlers: Mapping[str, HandlerFunc] | None = None) -> None:
        self._handlers: dict[str, HandlerFunc] = dict(handlers or {})

    def register(self, name: str, handler: HandlerFunc) -> None:
        if name in self._handlers:
            logger.debug("replacing handler for tool %s", name)
        self._handlers[name] = handler

    def has(self, name: str) -> bool:
        return name in self._handlers

    def dispatch(self, name: str, connection: ChromeConnection, arguments: dict[str, Any]) -> ToolResult:
        """Run the handler for ``name``; KeyError when no such tool is registered."""
        return self._handlers[name](connection, arguments)

    @property
    def tool_names(self) -> list[str]:
        return sorted(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)


def create_default_registry() -> ToolRegistry:
    """Registry holding a handler for every advertised tool."""
    from .definitions import TOOL_DEFINITIONS
    from .handlers import HANDLERS

    unhandled = {tool["name"] for tool in TOOL_DEFINITIONS} - set(HANDLERS)
    if unhandled:
        raise RuntimeError(f"Tools advertised without a handler: {sorted(unhandled)}")
    return ToolRegistry(HANDLERS)


__all__ = ["ToolRegistry", "create_default_registry"]
