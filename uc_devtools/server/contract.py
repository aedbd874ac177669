"""What the MCP server announces during ``initialize``."""

from __future__ import annotations

from typing import Any

SERVER_NAME = "userchrome-devtools"
SERVER_VERSION = "0.1.0"

# Newest first; the first entry answers clients asking for anything else.
PROTOCOL_VERSIONS = ("2025-06-18", "2024-11-05")

INSTRUCTIONS = (
    "Tools act on the browser's privileged chrome UI through Marionette "
    "(start Firefox with --marionette). Stylesheets loaded with load_css stay "
    "registered until unload_css or clear_css, across server restarts."
)


def negotiate_protocol(requested: Any) -> str:
    if requested in PROTOCOL_VERSIONS:
        return requested
    return PROTOCOL_VERSIONS[0]


def initialize_result(requested: Any = None) -> dict[str, Any]:
    return {
        "protocolVersion": negotiate_protocol(requested),
        "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        "capabilities": {"tools": {"listChanged": False}},
        "instructions": INSTRUCTIONS,
    }
