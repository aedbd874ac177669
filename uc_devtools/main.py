"""
Stdio MCP server for the chrome-context tooling.

Reads newline-delimited JSON-RPC requests from stdin and answers on stdout.
Tool calls go through the registry in server/registry.py and share one
Marionette session (server/connection.py).
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any

from .config import DevtoolsConfig
from .errors import DevtoolsError
from .server.connection import ChromeConnection
from .server.contract import PROTOCOL_VERSIONS, initialize_result
from .server.definitions import TOOL_DEFINITIONS
from .server.registry import ToolRegistry, create_default_registry
from .server.types import ToolResult

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(message)s",
)
logger = logging.getLogger("uc_devtools.mcp")

__all__ = ["PROTOCOL_VERSIONS", "McpServer", "main", "redact_tool_arguments"]

METHOD_NOT_FOUND = -32601

# Arguments that can carry whole stylesheets or scripts.
_BULKY_ARGUMENTS = frozenset({"css", "script"})
_LOG_PREVIEW_CHARS = 80


def redact_tool_arguments(arguments: dict[str, Any]) -> dict[str, Any]:
    """Shorten bulky arguments for logging."""
    return {
        key: (
            f"{value[:_LOG_PREVIEW_CHARS]}... ({len(value)} chars)"
            if key in _BULKY_ARGUMENTS and isinstance(value, str) and len(value) > _LOG_PREVIEW_CHARS
            else value
        )
        for key, value in arguments.items()
    }


def _trace_enabled() -> bool:
    return bool(os.environ.get("UC_DEVTOOLS_TRACE"))


def _write_message(payload: dict[str, Any]) -> None:
    if _trace_enabled():
        logger.info("send %s", payload)
    sys.stdout.buffer.write(json.dumps(payload, ensure_ascii=False).encode() + b"\n")
    sys.stdout.buffer.flush()


def _read_message() -> dict[str, Any] | None:
    """Next JSON-RPC object from stdin; None at EOF. Blank and unparsable lines are skipped."""
    for raw in iter(sys.stdin.buffer.readline, b""):
        raw = raw.strip()
        if not raw:
            continue
        try:
            message = json.loads(raw)
        except ValueError:
            logger.warning("dropping malformed JSON-RPC line (%d bytes)", len(raw))
            continue
        if _trace_enabled():
            logger.info("recv %s", message)
        return message if isinstance(message, dict) else {}
    return None


def _reply(request_id: Any, result: dict[str, Any]) -> None:
    _write_message({"jsonrpc": "2.0", "id": request_id, "result": result})


class McpServer:
    """Routes JSON-RPC methods; owns the shared browser connection."""

    def __init__(
        self,
        config: DevtoolsConfig | None = None,
        *,
        registry: ToolRegistry | None = None,
        connection: ChromeConnection | None = None,
    ) -> None:
        self.config = config or DevtoolsConfig.from_env()
        self.registry = registry or create_default_registry()
        self.connection = connection or ChromeConnection(self.config)

    def run_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        logger.info("tool=%s args=%s", name, redact_tool_arguments(arguments))
        if not name:
            return ToolResult.failure("Missing tool name")
        if not self.registry.has(name):
            return ToolResult.failure(f"Unknown tool: {name}", tool=name)
        try:
            return self.registry.dispatch(name, self.connection, arguments)
        except DevtoolsError as exc:
            logger.info("tool_error tool=%s %s: %s", name, type(exc).__name__, exc)
            return ToolResult.failure(str(exc), tool=name, error_type=type(exc).__name__)
        except OSError as exc:
            logger.info("os_error tool=%s %s", name, exc)
            return ToolResult.failure(str(exc), tool=name, error_type=type(exc).__name__)
        except Exception as exc:
            logger.exception("tool_call_failed tool=%s", name)
            return ToolResult.failure(str(exc), tool=name)

    def handle_call_tool(self, request_id: Any, name: str, arguments: dict[str, Any]) -> None:
        _reply(request_id, self.run_tool(name, arguments).to_wire())

    def dispatch(self, message: dict[str, Any]) -> None:
        method = message.get("method")
        if not isinstance(method, str) or method.startswith("notifications/"):
            return
        request_id = message.get("id")
        params = message.get("params")
        if not isinstance(params, dict):
            params = {}

        if method == "initialize":
            _reply(request_id, initialize_result(params.get("protocolVersion")))
        elif method == "tools/list":
            _reply(request_id, {"tools": TOOL_DEFINITIONS})
        elif method == "tools/call":
            arguments = params.get("arguments")
            self.handle_call_tool(request_id, params.get("name") or "", arguments if isinstance(arguments, dict) else {})
        elif method == "ping":
            _reply(request_id, {})
        else:
            _write_message(
                {
                    "jsonrpc": "2.0",
                    "id": request_id,
                    "error": {"code": METHOD_NOT_FOUND, "message": f"Method {method} not found"},
                }
            )

    def close(self) -> None:
        self.connection.close()


def main() -> None:
    server = McpServer()
    logger.info("serving MCP on stdio (Marionette at %s)", server.config.address)
    try:
        while (message := _read_message()) is not None:
            server.dispatch(message)
    except KeyboardInterrupt:
        pass
    finally:
        server.close()


if __name__ == "__main__":
    main()
