"""Tool schema definitions."""

from __future__ import annotations

from typing import Any

_SCHEMA = "http://json-schema.org/draft-07/schema#"

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": "execute_script",
        "description": """Execute JavaScript in the browser's chrome context.
The script has access to Services, Cc, Ci and the rest of the privileged APIs.
Arguments are available as arguments[0], arguments[1], ...

RESPONSE EXAMPLE:
{"result": {"version": "128.0"}}""",
        "inputSchema": {
            "$schema": _SCHEMA,
            "type": "object",
            "properties": {
                "script": {"type": "string", "description": "Script body; use `return` to produce a value"},
                "args": {"type": "array", "description": "Arguments passed to the script", "default": []},
            },
            "required": ["script"],
        },
    },
    {
        "name": "load_css",
        "description": """Load CSS as a user sheet into the browser UI.
Reusing an id replaces the sheet previously loaded under it.

RESPONSE EXAMPLE:
{"id": "sheet-1718000000000"}""",
        "inputSchema": {
            "$schema": _SCHEMA,
            "type": "object",
            "properties": {
                "css": {"type": "string", "description": "CSS source"},
                "id": {"type": "string", "description": "Optional stylesheet id (generated when omitted)"},
            },
            "required": ["css"],
        },
    },
    {
        "name": "unload_css",
        "description": "Unload a previously loaded stylesheet by id.",
        "inputSchema": {
            "$schema": _SCHEMA,
            "type": "object",
            "properties": {"id": {"type": "string", "description": "Stylesheet id"}},
            "required": ["id"],
        },
    },
    {
        "name": "list_css",
        "description": "List the ids of loaded stylesheets.",
        "inputSchema": {"$schema": _SCHEMA, "type": "object", "properties": {}},
    },
    {
        "name": "clear_css",
        "description": "Unload every stylesheet loaded through this tool.",
        "inputSchema": {"$schema": _SCHEMA, "type": "object", "properties": {}},
    },
    {
        "name": "register_manifest",
        "description": "Register a chrome.manifest file so stylesheets can @import chrome:// URIs.",
        "inputSchema": {
            "$schema": _SCHEMA,
            "type": "object",
            "properties": {"path": {"type": "string", "description": "Path to chrome.manifest"}},
            "required": ["path"],
        },
    },
    {
        "name": "screenshot",
        "description": "Capture the most recent browser window, or one UI element, as PNG.",
        "inputSchema": {
            "$schema": _SCHEMA,
            "type": "object",
            "properties": {
                "selector": {"type": "string", "description": "CSS selector of the element to capture"},
            },
        },
    },
]
