"""Tool results as the MCP server reports them."""

from __future__ import annotations

import json as _json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .connection import ChromeConnection

PNG_MIME = "image/png"


@dataclass(slots=True)
class ToolContent:
    kind: str  # "text" | "image"
    body: str
    mime_type: str = PNG_MIME

    def to_wire(self) -> dict[str, Any]:
        if self.kind == "image":
            return {"type": "image", "data": self.body, "mimeType": self.mime_type}
        return {"type": "text", "text": self.body}


@dataclass(slots=True)
class ToolResult:
    """Outcome of one ``tools/call``.

    ``data`` keeps the structured payload that the text content was rendered
    from, so callers in-process do not have to parse it back.
    """

    content: list[ToolContent] = field(default_factory=list)
    is_error: bool = False
    data: Any | None = None

    @classmethod
    def json(cls, data: Any) -> ToolResult:
        return cls(content=[ToolContent("text", _json.dumps(data, indent=2, ensure_ascii=False))], data=data)

    @classmethod
    def failure(cls, message: str, *, tool: str | None = None, error_type: str | None = None) -> ToolResult:
        payload: dict[str, Any] = {"ok": False, "error": message}
        if tool:
            payload["tool"] = tool
        if error_type:
            payload["details"] = {"type": error_type}
        return cls(content=[ToolContent("text", _json.dumps(payload, ensure_ascii=False))], is_error=True, data=payload)

    @classmethod
    def screenshot(cls, summary: str, png_b64: str, data: dict[str, Any]) -> ToolResult:
        content = [ToolContent("text", summary)]
        if png_b64:
            content.append(ToolContent("image", png_b64))
        return cls(content=content, data=data)

    def to_wire(self) -> dict[str, Any]:
        """``result`` member of the JSON-RPC response."""
        return {"content": [item.to_wire() for item in self.content], "isError": self.is_error}


HandlerFunc = Callable[["ChromeConnection", dict[str, Any]], ToolResult]
