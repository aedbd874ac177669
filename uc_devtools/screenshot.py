"""
Screenshots of the browser's own UI.

Provides:
- ScreenshotCapture: render the most recent browser window (or one element)
  to a canvas in chrome context and return a PNG data URL
- decode_data_url / save_data_url: turn that data URL into bytes on disk
- image_size: PNG dimensions for reporting
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
from pathlib import Path

from PIL import Image

from .errors import ProtocolError, ScreenshotError
from .session import MarionetteSession

logger = logging.getLogger("uc_devtools.screenshot")

FULL_WINDOW_SCRIPT = """
const win = Services.wm.getMostRecentWindow("navigator:browser");
if (!win) {
  throw new Error("No browser window is open");
}
const canvas = win.document.createElementNS("http://www.w3.org/1999/xhtml", "canvas");
const width = win.innerWidth;
const height = win.innerHeight;
canvas.width = width;
canvas.height = height;
const ctx = canvas.getContext("2d");
ctx.drawWindow(win, 0, 0, width, height, "rgb(255,255,255)");
return canvas.toDataURL("image/png");
"""

ELEMENT_SCRIPT = """
const selector = arguments[0];
const win = Services.wm.getMostRecentWindow("navigator:browser");
if (!win) {
  throw new Error("No browser window is open");
}
const element = win.document.querySelector(selector);
if (!element) {
  throw new Error(`Element not found for selector: ${selector}`);
}
const rect = element.getBoundingClientRect();
const width = Math.max(1, Math.ceil(rect.width));
const height = Math.max(1, Math.ceil(rect.height));
const canvas = win.document.createElementNS("http://www.w3.org/1999/xhtml", "canvas");
canvas.width = width;
canvas.height = height;
const ctx = canvas.getContext("2d");
ctx.drawWindow(win, rect.left, rect.top, width, height, "rgb(255,255,255)");
return canvas.toDataURL("image/png");
"""


def decode_data_url(data_url: str) -> bytes:
    """Decode the payload of a ``data:<mime>;base64,<payload>`` URL."""
    _head, sep, payload = data_url.partition(",")
    if not sep:
        raise ScreenshotError("Invalid data URL format: missing ','")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ScreenshotError(f"Failed to decode base64 data: {exc}") from exc


def save_data_url(data_url: str, path: str | Path) -> bytes:
    data = decode_data_url(data_url)
    Path(path).write_bytes(data)
    return data


def image_size(data: bytes) -> tuple[int, int] | None:
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (OSError, ValueError):
        return None


class ScreenshotCapture:
    def __init__(self, session: MarionetteSession) -> None:
        self.session = session

    def capture(self, selector: str | None = None) -> str:
        """Return a PNG data URL of the whole window or of ``selector``'s box."""
        self.session.require_chrome()
        if selector:
            result = self.session.execute_script(ELEMENT_SCRIPT, [selector])
        else:
            result = self.session.execute_script(FULL_WINDOW_SCRIPT)
        if not isinstance(result, str) or not result.startswith("data:"):
            raise ProtocolError("Failed to get data URL from screenshot")
        return result

    def screenshot_to_file(self, path: str | Path, selector: str | None = None) -> Path:
        path = Path(path)
        data = save_data_url(self.capture(selector), path)
        logger.debug("wrote %d bytes to %s", len(data), path)
        return path
