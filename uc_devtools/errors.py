"""Error types shared by the Marionette client and the stylesheet tooling."""

from __future__ import annotations

import json
from typing import Any


class DevtoolsError(Exception):
    pass


class TransportError(DevtoolsError):
    """Socket-level failure: connect, read, write, deadline or framing."""

    CONNECT_FAILED = "connect_failed"
    TIMEOUT = "timeout"
    WRITE_FAILED = "write_failed"
    READ_FAILED = "read_failed"
    MALFORMED = "malformed"

    def __init__(self, message: str, kind: str = READ_FAILED) -> None:
        super().__init__(message)
        self.kind = kind


class ProtocolError(DevtoolsError):
    pass


class HandshakeError(ProtocolError):
    pass


class VersionMismatch(HandshakeError):
    pass


class DecodeError(ProtocolError):
    pass


class RemoteError(ProtocolError):
    """Error object returned by the browser, preserved verbatim."""

    def __init__(self, payload: Any) -> None:
        self.payload = payload
        if isinstance(payload, dict):
            self.message = str(payload.get("message") or payload.get("error") or "")
        else:
            self.message = str(payload)
        super().__init__(f"Marionette error: {json.dumps(payload, ensure_ascii=False)}")


class RegistryMismatch(DevtoolsError):
    def __init__(self, sheet_id: str) -> None:
        super().__init__(f"Stylesheet {sheet_id!r} is tracked locally but unknown to the browser")
        self.sheet_id = sheet_id


class EscapingError(DevtoolsError):
    pass


class WatcherError(DevtoolsError):
    pass


class RegisterError(DevtoolsError):
    NOT_FOUND = "not_found"
    PATH_ENCODING = "path_encoding"
    REMOTE_FAILURE = "remote_failure"

    def __init__(self, message: str, kind: str = REMOTE_FAILURE) -> None:
        super().__init__(message)
        self.kind = kind


class ScreenshotError(DevtoolsError):
    pass


__all__ = [
    "DecodeError",
    "DevtoolsError",
    "EscapingError",
    "HandshakeError",
    "ProtocolError",
    "RegisterError",
    "RegistryMismatch",
    "RemoteError",
    "ScreenshotError",
    "TransportError",
    "VersionMismatch",
    "WatcherError",
]
