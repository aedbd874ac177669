"""chrome.manifest registration.

Registering a manifest lets user sheets resolve custom ``chrome://`` packages in
``@import`` rules without restarting the browser.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import RegisterError
from .session import MarionetteSession

logger = logging.getLogger("uc_devtools.manifest")

REGISTER_MANIFEST_SCRIPT = """
try {
  const manifest = Cc["@mozilla.org/file/local;1"].createInstance(Ci.nsIFile);
  manifest.initWithPath(arguments[0]);
  const registrar = Components.manager.QueryInterface(Ci.nsIComponentRegistrar);
  registrar.autoRegister(manifest);
  return { success: true, path: arguments[0] };
} catch (e) {
  return { success: false, error: String(e) };
}
"""


class ManifestRegistrar:
    def __init__(self, session: MarionetteSession) -> None:
        self.session = session
        self.registered_path: Path | None = None

    def register(self, path: str | Path) -> Path:
        try:
            absolute = Path(path).expanduser().resolve(strict=True)
        except FileNotFoundError as exc:
            raise RegisterError(f"chrome.manifest file not found: {path}", RegisterError.NOT_FOUND) from exc
        if not absolute.is_file():
            raise RegisterError(f"chrome.manifest is not a file: {absolute}", RegisterError.NOT_FOUND)

        path_str = str(absolute)
        try:
            path_str.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise RegisterError(f"Path is not valid UTF-8: {path_str!r}", RegisterError.PATH_ENCODING) from exc

        self.session.require_chrome()
        result = self.session.execute_script(REGISTER_MANIFEST_SCRIPT, [path_str])
        if not isinstance(result, dict) or not isinstance(result.get("success"), bool):
            raise RegisterError(f"Unexpected response from manifest registration: {result!r}")
        if not result["success"]:
            reason = result.get("error") or "Unknown error"
            raise RegisterError(f"Failed to register chrome.manifest: {reason}")

        self.registered_path = absolute
        logger.info("registered chrome.manifest %s", absolute)
        return absolute
