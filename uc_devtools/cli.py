"""Command-line front end: ``uc-devtools <command>``."""

from __future__ import annotations

import argparse
import json
import logging
import shlex
import sys
from pathlib import Path
from typing import Any, TextIO

from .config import DevtoolsConfig
from .errors import DevtoolsError, RegistryMismatch
from .imports import resolve_imports
from .screenshot import ScreenshotCapture, image_size
from .session import open_chrome_session
from .stylesheets import StylesheetManager
from .watcher import DEFAULT_SHEET_ID, watch_and_reload

logger = logging.getLogger("uc_devtools.cli")

REPL_HELP = "Commands: load [filepath] [id], unload <id>, clear, list, screenshot [file] [selector], help, quit"


def _read_input(path: str | None, prompt: str) -> str:
    if path:
        return Path(path).read_text(encoding="utf-8")
    if sys.stdin.isatty():
        print(prompt, file=sys.stderr)
    return sys.stdin.read()


def _connect(config: DevtoolsConfig) -> StylesheetManager:
    manager = StylesheetManager.connect(config)
    try:
        manager.ensure_bootstrap()
    except Exception:
        manager.close()
        raise
    return manager


def cmd_load(args: argparse.Namespace, config: DevtoolsConfig) -> int:
    css = _read_input(args.file, "Enter CSS content (Ctrl+D to finish):")
    if args.resolve_imports:
        base = Path(args.file).parent if args.file else Path.cwd()
        css = resolve_imports(css, base)
    with _connect(config) as manager:
        print(manager.load(css, args.id))
    return 0


def cmd_unload(args: argparse.Namespace, config: DevtoolsConfig) -> int:
    with _connect(config) as manager:
        if manager.unload(args.id):
            print(f"CSS unloaded: {args.id}")
            return 0
    print(f"Failed to unload CSS: {args.id}")
    return 1


def cmd_clear(args: argparse.Namespace, config: DevtoolsConfig) -> int:
    with _connect(config) as manager:
        manager.clear()
    print("All CSS cleared")
    return 0


def cmd_list(args: argparse.Namespace, config: DevtoolsConfig) -> int:
    with _connect(config) as manager:
        for sheet_id in manager.list():
            print(sheet_id)
    return 0


def cmd_watch(args: argparse.Namespace, config: DevtoolsConfig) -> int:
    with _connect(config) as manager:
        print(f"Watching {args.file} for changes (Ctrl+C to stop)...", file=sys.stderr)
        watch_and_reload(
            manager,
            args.file,
            args.id,
            debounce=config.debounce,
            poll_interval=config.poll_interval,
        )


def cmd_register_manifest(args: argparse.Namespace, config: DevtoolsConfig) -> int:
    with _connect(config) as manager:
        path = manager.register_manifest(args.manifest)
    print(f"chrome.manifest registered: {path}")
    return 0


def _describe_screenshot(path: Path, selector: str | None) -> str:
    size = image_size(path.read_bytes())
    dims = f" ({size[0]}x{size[1]})" if size else ""
    if selector:
        return f"Screenshot of element '{selector}' saved to: {path}{dims}"
    return f"Full-screen screenshot saved to: {path}{dims}"


def cmd_screenshot(args: argparse.Namespace, config: DevtoolsConfig) -> int:
    with open_chrome_session(config) as session:
        path = ScreenshotCapture(session).screenshot_to_file(args.output, args.selector)
    print(_describe_screenshot(path, args.selector))
    return 0


def _parse_script_args(raw: str | None) -> list[Any] | None:
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except ValueError as exc:
        raise DevtoolsError(f"Arguments must be a JSON array: {exc}") from exc
    if not isinstance(value, list):
        raise DevtoolsError("Arguments must be a JSON array")
    return value


def cmd_exec(args: argparse.Namespace, config: DevtoolsConfig) -> int:
    script_args = _parse_script_args(args.args)
    script = _read_input(args.file, "Enter JavaScript code (Ctrl+D to finish):")
    if not script.strip():
        raise DevtoolsError("No JavaScript code provided")
    with open_chrome_session(config) as session:
        result = session.execute_script(script, script_args)
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


def _read_css_lines(stdin: TextIO, stdout: TextIO) -> str:
    print("Enter CSS content (empty line to finish):", file=stdout)
    lines: list[str] = []
    while True:
        line = stdin.readline()
        if not line or not line.strip():
            break
        lines.append(line.rstrip())
    return "\n".join(lines)


def run_interactive(manager: StylesheetManager, stdin: TextIO = sys.stdin, stdout: TextIO = sys.stdout) -> None:
    """Line-oriented REPL over one connection."""
    print("Firefox Chrome CSS Interactive Mode", file=stdout)
    print(REPL_HELP, file=stdout)
    while True:
        stdout.write("> ")
        stdout.flush()
        line = stdin.readline()
        if not line:
            break
        try:
            parts = shlex.split(line)
        except ValueError as exc:
            print(f"Error: {exc}", file=stdout)
            continue
        if not parts:
            continue
        command, rest = parts[0], parts[1:]

        if command in {"quit", "exit"}:
            print("Goodbye!", file=stdout)
            break
        if command == "help":
            print(REPL_HELP, file=stdout)
            continue

        try:
            if command == "load":
                if rest and Path(rest[0]).is_file():
                    css = Path(rest[0]).read_text(encoding="utf-8")
                else:
                    css = _read_css_lines(stdin, stdout)
                if css:
                    sheet_id = manager.load(css, rest[1] if len(rest) > 1 else None)
                    print(f"CSS loaded with ID: {sheet_id}", file=stdout)
            elif command == "unload":
                if not rest:
                    print("Usage: unload <id>", file=stdout)
                elif manager.unload(rest[0]):
                    print(f"CSS unloaded: {rest[0]}", file=stdout)
                else:
                    print(f"Failed to unload CSS: {rest[0]}", file=stdout)
            elif command == "clear":
                manager.clear()
                print("All CSS cleared", file=stdout)
            elif command == "list":
                loaded = manager.list()
                if not loaded:
                    print("No stylesheets loaded", file=stdout)
                for sheet_id in loaded:
                    print(f"  - {sheet_id}", file=stdout)
            elif command == "screenshot":
                output = Path(rest[0] if rest else "screenshot.png")
                selector = rest[1] if len(rest) > 1 else None
                path = ScreenshotCapture(manager.session).screenshot_to_file(output, selector)
                print(_describe_screenshot(path, selector), file=stdout)
            else:
                print(f"Unknown command: {command}", file=stdout)
                print(REPL_HELP, file=stdout)
        except (DevtoolsError, OSError) as exc:
            print(f"Error: {exc}", file=stdout)
            if not manager.session.usable:
                raise


def cmd_interactive(args: argparse.Namespace, config: DevtoolsConfig) -> int:
    with _connect(config) as manager:
        run_interactive(manager)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="uc-devtools",
        description="Load userChrome CSS into the browser's chrome context via Marionette",
    )
    p.add_argument("--host", help="Marionette host (default: $UC_MARIONETTE_HOST or localhost)")
    p.add_argument("--port", type=int, help="Marionette port (default: $UC_MARIONETTE_PORT or 2828)")
    p.add_argument("--timeout", type=float, help="socket read/write timeout in seconds (default: 60)")
    p.add_argument("-v", "--verbose", action="store_true", help="log protocol traffic")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("load", help="load CSS from file or stdin")
    sp.add_argument("-f", "--file", metavar="FILE", help="CSS file to load")
    sp.add_argument("-i", "--id", metavar="ID", help="custom ID for the stylesheet")
    sp.add_argument("--resolve-imports", action="store_true", help="inline local @import files before loading")
    sp.set_defaults(func=cmd_load)

    sp = sub.add_parser("unload", help="unload CSS by ID")
    sp.add_argument("id", metavar="ID", help="ID of stylesheet to unload")
    sp.set_defaults(func=cmd_unload)

    sp = sub.add_parser("clear", help="clear all loaded stylesheets")
    sp.set_defaults(func=cmd_clear)

    sp = sub.add_parser("list", help="list loaded stylesheets")
    sp.set_defaults(func=cmd_list)

    sp = sub.add_parser("watch", help="watch a CSS file and reload it on change")
    sp.add_argument("-f", "--file", metavar="FILE", required=True, help="CSS file to watch")
    sp.add_argument("-i", "--id", metavar="ID", default=DEFAULT_SHEET_ID, help="custom ID for the stylesheet")
    sp.set_defaults(func=cmd_watch)

    sp = sub.add_parser("register-manifest", help="register chrome.manifest for chrome:// imports")
    sp.add_argument("-m", "--manifest", metavar="PATH", required=True, help="path to chrome.manifest")
    sp.set_defaults(func=cmd_register_manifest)

    sp = sub.add_parser("screenshot", help="screenshot the browser window")
    sp.add_argument("-o", "--output", metavar="FILE", default="screenshot.png", help="output file")
    sp.add_argument("-s", "--selector", metavar="CSS_SELECTOR", help="capture one element instead of the window")
    sp.set_defaults(func=cmd_screenshot)

    sp = sub.add_parser("exec", help="execute JavaScript in chrome context")
    sp.add_argument("-f", "--file", metavar="FILE", help="JavaScript file to execute")
    sp.add_argument("-a", "--args", metavar="JSON_ARRAY", help="arguments passed to the script")
    sp.set_defaults(func=cmd_exec)

    sp = sub.add_parser("interactive", help="start interactive mode")
    sp.set_defaults(func=cmd_interactive)
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    config = DevtoolsConfig.from_env().with_overrides(host=args.host, port=args.port, timeout=args.timeout)
    try:
        return args.func(args, config)
    except KeyboardInterrupt:
        return 130
    except RegistryMismatch as exc:
        print(f"error: {exc} (run 'clear' to reset)", file=sys.stderr)
        return 1
    except (DevtoolsError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
