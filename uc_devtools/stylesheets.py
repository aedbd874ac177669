"""Privileged stylesheet lifecycle.

The browser side keeps a singleton registry on the chrome window mapping
sheet ids to the ``data:`` URIs registered with ``nsIStyleSheetService``.
:class:`StylesheetManager` mirrors that registry client-side; after every
successful operation both hold the same id set, and a failed operation leaves
the client registry untouched.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from .config import DEFAULT_GLOBAL_NAME, DevtoolsConfig
from .errors import ProtocolError, RegistryMismatch
from .imports import resolve_imports
from .manifest import ManifestRegistrar
from .script import window_global
from .session import MarionetteSession, open_chrome_session

logger = logging.getLogger("uc_devtools.stylesheets")

_BOOTSTRAP_TEMPLATE = """
const registry = %(registry)s || (%(registry)s = {
  sheets: new Map(),
  sss: Cc["@mozilla.org/content/style-sheet-service;1"].getService(Ci.nsIStyleSheetService),

  load(css, id) {
    const sheetId = id || `sheet-${Date.now()}`;
    const uri = Services.io.newURI(`data:text/css;charset=utf-8,${encodeURIComponent(css)}`);
    this.sss.loadAndRegisterSheet(uri, this.sss.USER_SHEET);
    this.sheets.set(sheetId, uri);
    return sheetId;
  },

  unload(id) {
    const uri = this.sheets.get(id);
    if (!uri) {
      return false;
    }
    if (this.sss.sheetRegistered(uri, this.sss.USER_SHEET)) {
      this.sss.unregisterSheet(uri, this.sss.USER_SHEET);
    }
    this.sheets.delete(id);
    return true;
  },

  list() {
    return Array.from(this.sheets.keys());
  },

  clear() {
    for (const id of Array.from(this.sheets.keys())) {
      this.unload(id);
    }
  },
});
return registry.list();
"""


class SheetScripts:
    """Scripts that drive the in-browser registry named ``global_name``."""

    def __init__(self, global_name: str = DEFAULT_GLOBAL_NAME) -> None:
        registry = window_global(global_name)
        self.global_name = global_name
        self.bootstrap = _BOOTSTRAP_TEMPLATE % {"registry": registry}
        self.load = f"return {registry}.load(arguments[0], arguments[1]);"
        self.unload = f"return {registry}.unload(arguments[0]);"
        self.list = f"return {registry}.list();"
        self.clear = f"const ids = {registry}.list();\n{registry}.clear();\nreturn ids;"


def _id_list(value: Any, what: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ProtocolError(f"Expected a list of stylesheet ids from {what}, got {value!r}")
    return value


class StylesheetManager:
    """Load, unload and list user sheets in the browser's chrome context."""

    def __init__(self, session: MarionetteSession, *, global_name: str = DEFAULT_GLOBAL_NAME) -> None:
        self.session = session
        self.scripts = SheetScripts(global_name)
        self.manifests = ManifestRegistrar(session)
        self._sheets: dict[str, str | None] = {}
        self._bootstrapped = False

    @classmethod
    def connect(cls, config: DevtoolsConfig | None = None) -> StylesheetManager:
        config = config or DevtoolsConfig()
        return cls(open_chrome_session(config), global_name=config.global_name)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> StylesheetManager:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _adopt(self, remote_ids: list[str]) -> None:
        self._sheets = {sheet_id: self._sheets.get(sheet_id) for sheet_id in remote_ids}

    def ensure_bootstrap(self) -> None:
        """Install the browser-side registry once and adopt the ids it already holds."""
        if self._bootstrapped:
            return
        self.session.require_chrome()
        remote_ids = _id_list(self.session.execute_script(self.scripts.bootstrap), "bootstrap")
        self._adopt(remote_ids)
        self._bootstrapped = True
        if remote_ids:
            logger.debug("adopted %d stylesheet(s) already registered: %s", len(remote_ids), remote_ids)

    def sync(self) -> list[str]:
        """Replace the client registry with the browser's id set."""
        self.ensure_bootstrap()
        self._adopt(_id_list(self.session.execute_script(self.scripts.list), "list"))
        return self.list()

    def load(self, source: str, sheet_id: str | None = None) -> str:
        self.ensure_bootstrap()
        sheet_id = sheet_id or None
        if sheet_id is not None and sheet_id in self._sheets:
            logger.debug("replacing stylesheet %s", sheet_id)
            self.unload(sheet_id)
        result = self.session.execute_script(self.scripts.load, [source, sheet_id])
        if not isinstance(result, str) or not result:
            raise ProtocolError(f"Browser returned an invalid stylesheet id: {result!r}")
        self._sheets[result] = source
        logger.debug("loaded stylesheet %s (%d chars)", result, len(source))
        return result

    def load_file(self, path: str | Path, sheet_id: str | None = None, *, resolve: bool = False) -> str:
        path = Path(path)
        source = path.read_text(encoding="utf-8")
        if resolve:
            source = resolve_imports(source, path.parent)
        return self.load(source, sheet_id)

    def unload(self, sheet_id: str) -> bool:
        self.ensure_bootstrap()
        removed = self.session.execute_script(self.scripts.unload, [sheet_id])
        if removed is True:
            self._sheets.pop(sheet_id, None)
            logger.debug("unloaded stylesheet %s", sheet_id)
            return True
        if sheet_id in self._sheets:
            raise RegistryMismatch(sheet_id)
        return False

    def clear(self) -> list[str]:
        self.ensure_bootstrap()
        cleared = _id_list(self.session.execute_script(self.scripts.clear), "clear")
        self._sheets.clear()
        return cleared

    def list(self) -> list[str]:
        return list(self._sheets)

    def source(self, sheet_id: str) -> str | None:
        return self._sheets.get(sheet_id)

    def __contains__(self, sheet_id: object) -> bool:
        return sheet_id in self._sheets

    def __len__(self) -> int:
        return len(self._sheets)

    def register_manifest(self, path: str | Path) -> Path:
        return self.manifests.register(path)

    @property
    def registered_manifest(self) -> Path | None:
        return self.manifests.registered_path


__all__ = ["SheetScripts", "StylesheetManager"]
