"""Loopback fakes of a Marionette endpoint and the chrome-side stylesheet registry."""

from __future__ import annotations

import json
import socket
import threading
from collections.abc import Callable
from contextlib import suppress
from typing import Any

from uc_devtools.config import DEFAULT_GLOBAL_NAME, DevtoolsConfig
from uc_devtools.stylesheets import SheetScripts

Handler = Callable[[str, dict[str, Any]], Any]

GECKO_HANDSHAKE = {"marionetteProtocol": 3, "applicationType": "gecko"}


def frame(payload: Any) -> bytes:
    raw = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    return str(len(raw)).encode() + b":" + raw


def _read_frame(fp) -> bytes | None:
    prefix = b""
    while True:
        ch = fp.read(1)
        if not ch:
            return None
        if ch == b":":
            break
        prefix += ch
    return fp.read(int(prefix))


class FakeMarionette:
    """Loopback server speaking Marionette framing, one connection at a time.

    ``handler(name, params)`` returns the response object (``{"value": ...}`` or
    ``{"error": ...}``), raw ``bytes`` to send verbatim, or None to hang up.
    ``peer_closed`` is set once the client closes its end of a connection.
    """

    def __init__(self, handler: Handler | None = None, *, handshake: Any = GECKO_HANDSHAKE) -> None:
        self.handler: Handler = handler or (lambda name, params: {"value": None})
        self.handshake = handshake
        self.requests: list[dict[str, Any]] = []
        self.connections = 0
        self.peer_closed = threading.Event()
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(4)
        self.port = self._sock.getsockname()[1]
        self._closed = False
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def config(self, **overrides: Any) -> DevtoolsConfig:
        return DevtoolsConfig(host="127.0.0.1", port=self.port, timeout=overrides.pop("timeout", 2.0), **overrides)

    def _serve(self) -> None:
        while not self._closed:
            try:
                conn, _addr = self._sock.accept()
            except OSError:
                return
            self.connections += 1
            with conn:
                self._handle(conn)

    def _handle(self, conn: socket.socket) -> None:
        fp = conn.makefile("rb")
        try:
            handshake = self.handshake if isinstance(self.handshake, bytes) else frame(self.handshake)
            conn.sendall(handshake)
            while True:
                raw = _read_frame(fp)
                if raw is None:
                    self.peer_closed.set()
                    return
                request = json.loads(raw)
                self.requests.append(request)
                reply = self.handler(request["name"], request.get("parameters") or {})
                if reply is None:
                    return
                conn.sendall(reply if isinstance(reply, bytes) else frame(reply))
        except OSError:
            return
        finally:
            fp.close()

    def close(self) -> None:
        self._closed = True
        with suppress(OSError):
            self._sock.close()


class FakeChrome:
    """Handler emulating the chrome context and the in-browser sheet registry."""

    def __init__(self, global_name: str = DEFAULT_GLOBAL_NAME) -> None:
        self.scripts = SheetScripts(global_name)
        self.context = "content"
        self.installed = False
        self.singletons = 0
        self.sheets: dict[str, str] = {}
        self.ops: list[str] = []
        self.responses: dict[str, Any] = {}
        self.fail_next: dict[str, Any] | None = None
        self.clock = 1718000000000

    def __call__(self, name: str, params: dict[str, Any]) -> Any:
        if name == "Marionette:SetContext":
            self.context = params["value"]
            return {"value": None}
        if name != "WebDriver:ExecuteScript":
            return {"error": {"error": "unknown command", "message": name}}
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            return {"error": error}

        script, args = params["script"], params.get("args") or []
        s = self.scripts
        if script == s.bootstrap:
            self.ops.append("bootstrap")
            if not self.installed:
                self.installed = True
                self.singletons += 1
            value: Any = list(self.sheets)
        elif script == s.load:
            self.ops.append("load")
            source, sheet_id = args
            if not sheet_id:
                self.clock += 1
                sheet_id = f"sheet-{self.clock}"
            self.sheets[sheet_id] = source
            value = sheet_id
        elif script == s.unload:
            self.ops.append("unload")
            value = self.sheets.pop(args[0], None) is not None
        elif script == s.list:
            self.ops.append("list")
            value = list(self.sheets)
        elif script == s.clear:
            self.ops.append("clear")
            value = list(self.sheets)
            self.sheets.clear()
        elif script in self.responses:
            self.ops.append("script")
            value = self.responses[script]
            if callable(value):
                value = value(args)
        else:
            return {"error": {"error": "javascript error", "message": "unexpected script"}}
        return {"value": value}

