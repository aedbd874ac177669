"""Process-wide chrome-context connection for the MCP server.

MCP clients may issue tool calls from several threads; one lock serialises
every use of the single Marionette session, which is not safe to share.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Generator
from contextlib import contextmanager

from ..config import DevtoolsConfig
from ..stylesheets import StylesheetManager

logger = logging.getLogger("uc_devtools.server.connection")


class ChromeConnection:
    def __init__(
        self,
        config: DevtoolsConfig,
        connect: Callable[[DevtoolsConfig], StylesheetManager] = StylesheetManager.connect,
    ) -> None:
        self.config = config
        self._connect = connect
        self._lock = threading.Lock()
        self._manager: StylesheetManager | None = None

    @property
    def connected(self) -> bool:
        return self._manager is not None and self._manager.session.usable

    @contextmanager
    def manager(self) -> Generator[StylesheetManager, None, None]:
        """Yield the shared manager, opening a fresh session if the last one broke."""
        with self._lock:
            if self._manager is not None and not self._manager.session.usable:
                logger.info("dropping unusable Marionette session")
                self._manager.close()
                self._manager = None
            if self._manager is None:
                manager = self._connect(self.config)
                try:
                    manager.ensure_bootstrap()
                except Exception:
                    manager.close()
                    raise
                logger.info("connected to Marionette at %s", self.config.address)
                self._manager = manager
            yield self._manager

    def close(self) -> None:
        with self._lock:
            if self._manager is not None:
                self._manager.close()
                self._manager = None
