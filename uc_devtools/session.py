"""Marionette protocol session.

One session pairs one TCP connection with one monotonic message id stream.
Calls are strictly serial: a command is written, then exactly one response
frame is read. Any transport or decode failure leaves the read/write cursors
out of step with the browser, so the session is poisoned and must be dropped.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .config import DevtoolsConfig
from .errors import DecodeError, EscapingError, HandshakeError, ProtocolError, RemoteError, TransportError, VersionMismatch
from .transport import FramedTransport

logger = logging.getLogger("uc_devtools.session")

PROTOCOL_VERSION = 3

CONTEXT_CONTENT = "content"
CONTEXT_CHROME = "chrome"
CONTEXTS = (CONTEXT_CONTENT, CONTEXT_CHROME)

SET_CONTEXT = "Marionette:SetContext"
EXECUTE_SCRIPT = "WebDriver:ExecuteScript"


def _decode_json(raw: bytes, what: str) -> Any:
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise DecodeError(f"Invalid JSON in {what}: {exc}") from exc


def parse_handshake(raw: bytes, application_type: str) -> dict[str, Any]:
    data = _decode_json(raw, "handshake")
    if not isinstance(data, dict):
        raise HandshakeError(f"Handshake must be a JSON object, got {type(data).__name__}")
    app = data.get("applicationType")
    if app != application_type:
        raise HandshakeError(f"Unexpected application type: {app!r} (expected {application_type!r})")
    protocol = data.get("marionetteProtocol")
    if protocol != PROTOCOL_VERSION:
        raise VersionMismatch(f"Unsupported protocol version: {protocol!r} (expected {PROTOCOL_VERSION})")
    return data


class MarionetteSession:
    """Synchronous client for one Marionette connection."""

    def __init__(self, transport: FramedTransport, handshake: dict[str, Any]) -> None:
        self.transport = transport
        self.handshake = handshake
        self.context = CONTEXT_CONTENT
        self._next_id = 1
        self._poisoned: str | None = None

    @classmethod
    def open(cls, config: DevtoolsConfig | None = None) -> MarionetteSession:
        config = config or DevtoolsConfig()
        transport = FramedTransport.connect(config.host, config.port, timeout=config.timeout)
        try:
            handshake = parse_handshake(transport.recv(), config.application_type)
        except Exception:
            transport.close()
            raise
        logger.debug("handshake ok: %s", handshake)
        return cls(transport, handshake)

    @property
    def next_id(self) -> int:
        return self._next_id

    @property
    def usable(self) -> bool:
        return self._poisoned is None and not self.transport.closed

    def _poison(self, reason: str) -> None:
        if self._poisoned is None:
            self._poisoned = reason
            logger.debug("session poisoned: %s", reason)
        self.transport.close()

    def call(self, name: str, params: dict[str, Any] | None = None) -> Any:
        """Send a named command and return the remote ``value``."""
        if self._poisoned is not None:
            raise ProtocolError(f"Marionette session is no longer usable ({self._poisoned})")
        msg_id = self._next_id
        request = {"id": msg_id, "name": name, "parameters": params or {}}
        try:
            payload = json.dumps(request, ensure_ascii=False).encode("utf-8")
        except UnicodeEncodeError as exc:
            raise EscapingError(f"Command {name} carries text that is not valid UTF-8: {exc}") from exc
        self._next_id += 1
        logger.debug("-> id=%s name=%s (%d bytes)", msg_id, name, len(payload))

        try:
            self.transport.send(payload)
            raw = self.transport.recv()
        except TransportError as exc:
            self._poison(str(exc))
            raise

        try:
            response = _decode_json(raw, "response")
        except DecodeError as exc:
            self._poison(str(exc))
            raise
        if not isinstance(response, dict):
            self._poison("non-object response")
            raise DecodeError(f"Response must be a JSON object, got {type(response).__name__}")

        if "id" in response and response["id"] != msg_id:
            self._poison("response id mismatch")
            raise ProtocolError(f"Response id {response['id']!r} does not match request id {msg_id}")

        error = response.get("error")
        if error is not None:
            logger.debug("<- id=%s error=%s", msg_id, error)
            raise RemoteError(error)
        logger.debug("<- id=%s ok", msg_id)
        return response.get("value")

    def set_context(self, context: str) -> None:
        """Switch between the page sandbox ("content") and privileged UI ("chrome")."""
        if context not in CONTEXTS:
            raise ValueError(f"Unknown context {context!r}; expected one of {', '.join(CONTEXTS)}")
        self.call(SET_CONTEXT, {"value": context})
        self.context = context

    def require_chrome(self) -> None:
        if self.context != CONTEXT_CHROME:
            raise ProtocolError("Session is not in chrome context; call set_context('chrome') first")

    def execute_script(self, script: str, args: list[Any] | None = None) -> Any:
        """Run a script in the current context; ``args`` are exposed as ``arguments``."""
        return self.call(EXECUTE_SCRIPT, {"script": script, "args": list(args) if args else []})

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> MarionetteSession:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def open_chrome_session(config: DevtoolsConfig | None = None) -> MarionetteSession:
    """Open a session and switch it to the privileged chrome context."""
    session = MarionetteSession.open(config)
    try:
        session.set_context(CONTEXT_CHROME)
    except Exception:
        session.close()
        raise
    return session


__all__ = [
    "CONTEXT_CHROME",
    "CONTEXT_CONTENT",
    "EXECUTE_SCRIPT",
    "MarionetteSession",
    "PROTOCOL_VERSION",
    "SET_CONTEXT",
    "open_chrome_session",
    "parse_handshake",
]
