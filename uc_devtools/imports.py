"""Textual ``@import`` flattening for local stylesheets.

This is not a CSS parser: only lines that start with ``@import``
are looked at, and only the first quoted (or bare ``url(...)``) target on the
line is considered.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from urllib.parse import urlsplit

logger = logging.getLogger("uc_devtools.imports")

_QUOTED_RE = re.compile(r"""(["'])(?P<target>.+?)\1""")
_BARE_URL_RE = re.compile(r"""url\(\s*(?P<target>[^"')\s]+)\s*\)""")


def import_target(line: str) -> str | None:
    """Return the target of an ``@import`` line, or None for any other line."""
    stripped = line.lstrip()
    if not stripped.startswith("@import"):
        return None
    rest = stripped[len("@import") :]
    match = _QUOTED_RE.search(rest) or _BARE_URL_RE.search(rest)
    return match.group("target") if match else None


def _local_file(target: str, base_dir: Path) -> Path | None:
    # A one-letter scheme is a Windows drive, not a URL.
    if len(urlsplit(target).scheme) > 1:
        return None
    candidate = (base_dir / target).resolve()
    return candidate if candidate.is_file() else None


def _flatten(css: str, base_dir: Path, seen: set[Path]) -> list[str]:
    lines: list[str] = []
    for line in css.splitlines():
        target = import_target(line)
        if target is None:
            lines.append(line)
            continue
        local = _local_file(target, base_dir)
        if local is None:
            if len(urlsplit(target).scheme) <= 1:
                logger.warning("unresolved @import %r (relative to %s)", target, base_dir)
            lines.append(line)
            continue
        if local in seen:
            continue
        seen.add(local)
        lines.extend(_flatten(local.read_text(encoding="utf-8"), local.parent, seen))
    return lines


def resolve_imports(css: str, base_dir: str | Path) -> str:
    """Inline local ``@import`` targets, each at most once.

    Imports of URLs (``chrome://``, ``https://``) and of files that do not
    exist are kept verbatim.
    """
    lines = _flatten(css, Path(base_dir).resolve(), set())
    return "\n".join(lines) + "\n" if lines else ""
