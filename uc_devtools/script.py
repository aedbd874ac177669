"""Helpers for building chrome-context scripts."""

from __future__ import annotations

import json
import re

from .errors import EscapingError

_IDENTIFIER_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")


def quote_js(value: str) -> str:
    """Render ``value`` as a double-quoted JS string literal.

    JSON string syntax is a subset of JS string syntax once U+2028/U+2029 are
    escaped; ``</`` is broken up so the literal can never close a script tag.
    """
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EscapingError(f"Text contains characters that cannot be sent to the browser: {exc}") from exc
    literal = json.dumps(value, ensure_ascii=False)
    return literal.replace("\u2028", "\\u2028").replace("\u2029", "\\u2029").replace("</", "<\\/")


def js_identifier(name: str) -> str:
    if not _IDENTIFIER_RE.fullmatch(name or ""):
        raise EscapingError(f"{name!r} is not a valid JavaScript identifier")
    return name


def window_global(name: str) -> str:
    """Expression for a property on the chrome window, e.g. ``window["x"]``."""
    return f"window[{quote_js(js_identifier(name))}]"
