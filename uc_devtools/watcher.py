"""Live reload of one stylesheet file.

A watchdog observer thread only pushes event kinds into a queue; all protocol
I/O happens on the thread that polls :meth:`SheetWatcher.poll_once`.
"""

from __future__ import annotations

import logging
import os
import queue
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, NoReturn

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .config import DEFAULT_DEBOUNCE_MS
from .errors import DevtoolsError, RegistryMismatch, WatcherError
from .stylesheets import StylesheetManager

logger = logging.getLogger("uc_devtools.watcher")

DEFAULT_SHEET_ID = "watched-sheet"
RELOAD_EVENTS = frozenset({EVENT_TYPE_MODIFIED, EVENT_TYPE_CREATED})


class _SingleFileHandler(FileSystemEventHandler):
    """Forward events that concern exactly one file."""

    def __init__(self, path: Path, events: queue.Queue[str]) -> None:
        super().__init__()
        self._path = path
        self._events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if event.event_type == EVENT_TYPE_MOVED:
            # Editors that save atomically rename a temp file over the target.
            dest = getattr(event, "dest_path", "")
            if dest and Path(os.fsdecode(dest)) == self._path:
                self._events.put(EVENT_TYPE_CREATED)
            elif Path(os.fsdecode(event.src_path)) == self._path:
                self._events.put(EVENT_TYPE_MOVED)
            return
        if Path(os.fsdecode(event.src_path)) == self._path:
            self._events.put(event.event_type)


class SheetWatcher:
    def __init__(
        self,
        manager: StylesheetManager,
        path: str | Path,
        sheet_id: str | None = None,
        *,
        debounce: float = DEFAULT_DEBOUNCE_MS / 1000.0,
        poll_interval: float = 0.1,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        self.manager = manager
        self.path = Path(path).expanduser().resolve()
        self.sheet_id = sheet_id or DEFAULT_SHEET_ID
        self.debounce = debounce
        self.poll_interval = poll_interval
        self.events: queue.Queue[str] = queue.Queue()
        self.reloads = 0
        self._observer_factory = observer_factory
        self._observer: Any = None

    def start(self) -> str:
        """Load the file once and start watching it."""
        if not self.path.is_file():
            raise WatcherError(f"File not found: {self.path}")
        self.manager.load(self.path.read_text(encoding="utf-8"), self.sheet_id)
        logger.info("Initial CSS loaded with ID: %s", self.sheet_id)

        observer = self._observer_factory()
        observer.schedule(_SingleFileHandler(self.path, self.events), str(self.path.parent), recursive=False)
        observer.start()
        self._observer = observer
        return self.sheet_id

    def stop(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=2.0)

    def poll_once(self, timeout: float | None = None) -> bool:
        """Wait for one event and reload if it warrants it. Returns True after a reload."""
        if self._observer is None:
            raise WatcherError("Watcher is not running")
        try:
            kind = self.events.get(timeout=self.poll_interval if timeout is None else timeout)
        except queue.Empty:
            if not self._observer.is_alive():
                raise WatcherError("File watcher disconnected") from None
            return False
        if kind not in RELOAD_EVENTS:
            logger.debug("ignoring %s event for %s", kind, self.path)
            return False
        return self.reload()

    def _drain(self) -> int:
        drained = 0
        while True:
            try:
                self.events.get_nowait()
            except queue.Empty:
                return drained
            drained += 1

    def _fail(self, exc: DevtoolsError) -> None:
        # A poisoned session is fatal for the watch loop.
        if not self.manager.session.usable:
            raise exc

    def reload(self) -> bool:
        logger.info("File changed, reloading CSS...")
        try:
            self.manager.unload(self.sheet_id)
        except RegistryMismatch as exc:
            logger.warning("%s; resyncing with the browser", exc)
            try:
                self.manager.sync()
            except DevtoolsError as sync_exc:
                logger.warning("Error resyncing stylesheets: %s", sync_exc)
                self._fail(sync_exc)
                return False
        except DevtoolsError as exc:
            logger.warning("Error unloading %s: %s", self.sheet_id, exc)
            self._fail(exc)
            return False

        # Let atomic-rename saves settle; events in this window fold into this reload.
        time.sleep(self.debounce)
        coalesced = self._drain()
        if coalesced:
            logger.debug("coalesced %d extra event(s)", coalesced)

        try:
            source = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.error("Error reading file %s: %s", self.path, exc)
            return False

        try:
            self.manager.load(source, self.sheet_id)
        except DevtoolsError as exc:
            logger.error("Error loading %s: %s", self.sheet_id, exc)
            self._fail(exc)
            return False

        self.reloads += 1
        logger.info("CSS reloaded successfully")
        return True

    def run_forever(self) -> NoReturn:
        if self._observer is None:
            self.start()
        try:
            while True:
                self.poll_once()
        finally:
            self.stop()


def watch_and_reload(
    manager: StylesheetManager,
    path: str | Path,
    sheet_id: str | None = None,
    *,
    debounce: float = DEFAULT_DEBOUNCE_MS / 1000.0,
    poll_interval: float = 0.1,
) -> NoReturn:
    SheetWatcher(manager, path, sheet_id, debounce=debounce, poll_interval=poll_interval).run_forever()
