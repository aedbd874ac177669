"""MCP server internals.

Importing the package stays cheap: the names below resolve on first access so
that `uc_devtools.server.types` can be used without opening the tool modules.
"""

from __future__ import annotations

import importlib
from typing import Any

_LAZY = {
    "ChromeConnection": ".connection",
    "ToolRegistry": ".registry",
    "ToolResult": ".types",
    "create_default_registry": ".registry",
}

__all__ = sorted(_LAZY)


def __getattr__(name: str) -> Any:
    module = _LAZY.get(name)
    if module is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(importlib.import_module(module, __name__), name)
