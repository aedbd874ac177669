"""Tool handlers. Each takes the shared connection and the call arguments."""

from __future__ import annotations

from typing import Any

from ..screenshot import ScreenshotCapture, decode_data_url, image_size
from .connection import ChromeConnection
from .types import ToolResult


def _string_arg(arguments: dict[str, Any], key: str) -> str | None:
    value = arguments.get(key)
    return value if isinstance(value, str) and value else None


def handle_execute_script(conn: ChromeConnection, args: dict[str, Any]) -> ToolResult:
    script = _string_arg(args, "script")
    if script is None:
        return ToolResult.failure("Missing required argument: script", tool="execute_script")
    script_args = args.get("args") or []
    if not isinstance(script_args, list):
        return ToolResult.failure("args must be an array", tool="execute_script")
    with conn.manager() as manager:
        result = manager.session.execute_script(script, script_args)
    return ToolResult.json({"result": result})


def handle_load_css(conn: ChromeConnection, args: dict[str, Any]) -> ToolResult:
    css = args.get("css")
    if not isinstance(css, str):
        return ToolResult.failure("Missing required argument: css", tool="load_css")
    with conn.manager() as manager:
        sheet_id = manager.load(css, _string_arg(args, "id"))
    return ToolResult.json({"id": sheet_id})


def handle_unload_css(conn: ChromeConnection, args: dict[str, Any]) -> ToolResult:
    sheet_id = _string_arg(args, "id")
    if sheet_id is None:
        return ToolResult.failure("Missing required argument: id", tool="unload_css")
    with conn.manager() as manager:
        unloaded = manager.unload(sheet_id)
    return ToolResult.json({"id": sheet_id, "unloaded": unloaded})


def handle_list_css(conn: ChromeConnection, args: dict[str, Any]) -> ToolResult:  # noqa: ARG001
    with conn.manager() as manager:
        return ToolResult.json({"ids": manager.list()})


def handle_clear_css(conn: ChromeConnection, args: dict[str, Any]) -> ToolResult:  # noqa: ARG001
    with conn.manager() as manager:
        cleared = manager.clear()
    return ToolResult.json({"cleared": True, "ids": cleared})


def handle_register_manifest(conn: ChromeConnection, args: dict[str, Any]) -> ToolResult:
    path = _string_arg(args, "path")
    if path is None:
        return ToolResult.failure("Missing required argument: path", tool="register_manifest")
    with conn.manager() as manager:
        registered = manager.register_manifest(path)
    return ToolResult.json({"path": str(registered)})


def handle_screenshot(conn: ChromeConnection, args: dict[str, Any]) -> ToolResult:
    selector = _string_arg(args, "selector")
    with conn.manager() as manager:
        data_url = ScreenshotCapture(manager.session).capture(selector)
    png = decode_data_url(data_url)
    size = image_size(png)
    summary: dict[str, Any] = {"bytes": len(png), "selector": selector}
    if size:
        summary["width"], summary["height"] = size
    target = f"element '{selector}'" if selector else "browser window"
    return ToolResult.screenshot(f"Screenshot of {target} ({len(png)} bytes)", data_url.partition(",")[2], summary)


HANDLERS = {
    "execute_script": handle_execute_script,
    "load_css": handle_load_css,
    "unload_css": handle_unload_css,
    "list_css": handle_list_css,
    "clear_css": handle_clear_css,
    "register_manifest": handle_register_manifest,
    "screenshot": handle_screenshot,
}
