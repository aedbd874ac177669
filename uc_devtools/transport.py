"""Length-prefixed TCP framing used by the Marionette server.

Every message on the wire is ``<len>:<payload>`` where ``<len>`` is the ASCII
decimal byte length of the UTF-8 payload. Only the first colon delimits the
length, so payloads are free to contain colons and braces.
"""

from __future__ import annotations

import logging
import socket
from contextlib import suppress

from .errors import TransportError

logger = logging.getLogger("uc_devtools.transport")

DEFAULT_TIMEOUT = 60.0
MAX_PREFIX_DIGITS = 20
MAX_FRAME_SIZE = 256 * 1024 * 1024
_RECV_CHUNK = 65536
_WHITESPACE = b" \t\r\n"


def encode_frame(payload: bytes) -> bytes:
    if not payload:
        raise TransportError("Refusing to encode an empty frame", TransportError.MALFORMED)
    return str(len(payload)).encode("ascii") + b":" + payload


def _parse_length(prefix: bytes) -> int:
    if not prefix or not prefix.isdigit():
        raise TransportError(f"Invalid frame length prefix: {prefix[:32]!r}", TransportError.MALFORMED)
    if len(prefix) > MAX_PREFIX_DIGITS:
        raise TransportError("Frame length prefix is too long", TransportError.MALFORMED)
    length = int(prefix)
    if length == 0:
        raise TransportError("Empty frame", TransportError.MALFORMED)
    if length > MAX_FRAME_SIZE:
        raise TransportError(f"Frame of {length} bytes exceeds the {MAX_FRAME_SIZE} byte limit", TransportError.MALFORMED)
    return length


def decode_frame(data: bytes) -> bytes:
    """Decode exactly one complete frame and return its payload."""
    data = data.lstrip(_WHITESPACE)
    sep = data.find(b":")
    if sep < 0:
        raise TransportError("Frame is missing the ':' separator", TransportError.MALFORMED)
    length = _parse_length(data[:sep])
    body = data[sep + 1 :]
    if len(body) != length:
        raise TransportError(
            f"Frame declares {length} bytes but carries {len(body)}",
            TransportError.MALFORMED,
        )
    return body


class FramedTransport:
    """One TCP connection speaking length-prefixed frames."""

    def __init__(
        self,
        sock: socket.socket,
        *,
        read_timeout: float = DEFAULT_TIMEOUT,
        write_timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._sock = sock
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self._buffer = bytearray()
        self._closed = False

    @classmethod
    def connect(cls, host: str, port: int, timeout: float = DEFAULT_TIMEOUT) -> FramedTransport:
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except TimeoutError as exc:
            raise TransportError(f"Timed out connecting to {host}:{port}", TransportError.TIMEOUT) from exc
        except OSError as exc:
            raise TransportError(f"Failed to connect to {host}:{port}: {exc}", TransportError.CONNECT_FAILED) from exc
        logger.debug("connected to %s:%s", host, port)
        return cls(sock, read_timeout=timeout, write_timeout=timeout)

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, payload: bytes) -> None:
        """Write one full frame."""
        frame = encode_frame(payload)
        if self._closed:
            raise TransportError("Transport is closed", TransportError.WRITE_FAILED)
        try:
            self._sock.settimeout(self.write_timeout)
            self._sock.sendall(frame)
        except TimeoutError as exc:
            raise TransportError("Timed out writing frame", TransportError.TIMEOUT) from exc
        except OSError as exc:
            raise TransportError(f"Failed to write frame: {exc}", TransportError.WRITE_FAILED) from exc

    def recv(self) -> bytes:
        """Read one frame and return its payload without the prefix."""
        if self._closed:
            raise TransportError("Transport is closed", TransportError.READ_FAILED)
        length = self._read_length()
        return self._read_exact(length)

    def _read_length(self) -> int:
        while True:
            stripped = self._buffer.lstrip(_WHITESPACE)
            if len(stripped) != len(self._buffer):
                self._buffer = stripped
            sep = self._buffer.find(b":")
            if sep >= 0:
                prefix = bytes(self._buffer[:sep])
                del self._buffer[: sep + 1]
                return _parse_length(prefix)
            if self._buffer and not bytes(self._buffer).isdigit():
                raise TransportError(
                    f"Invalid frame length prefix: {bytes(self._buffer[:32])!r}",
                    TransportError.MALFORMED,
                )
            if len(self._buffer) > MAX_PREFIX_DIGITS:
                raise TransportError("Frame length prefix is too long", TransportError.MALFORMED)
            self._fill(expected=None)

    def _read_exact(self, length: int) -> bytes:
        while len(self._buffer) < length:
            self._fill(expected=length)
        payload = bytes(self._buffer[:length])
        del self._buffer[:length]
        return payload

    def _fill(self, expected: int | None) -> None:
        try:
            self._sock.settimeout(self.read_timeout)
            chunk = self._sock.recv(_RECV_CHUNK)
        except TimeoutError as exc:
            raise TransportError("Timed out reading frame", TransportError.TIMEOUT) from exc
        except OSError as exc:
            raise TransportError(f"Failed to read frame: {exc}", TransportError.READ_FAILED) from exc
        if chunk:
            self._buffer.extend(chunk)
            return
        if expected is not None:
            raise TransportError(
                f"Connection closed after {len(self._buffer)} of {expected} frame bytes",
                TransportError.MALFORMED,
            )
        if self._buffer:
            raise TransportError("Connection closed inside a frame header", TransportError.MALFORMED)
        raise TransportError("Connection closed by peer", TransportError.READ_FAILED)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        with suppress(OSError):
            self._sock.shutdown(socket.SHUT_RDWR)
        with suppress(OSError):
            self._sock.close()

    def __enter__(self) -> FramedTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
