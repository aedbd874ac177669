from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 2828
DEFAULT_TIMEOUT = 60.0
# Firefox and other Gecko builds announce themselves as "gecko" in the handshake.
DEFAULT_APPLICATION_TYPE = "gecko"
DEFAULT_GLOBAL_NAME = "chromeCssManager"
DEFAULT_DEBOUNCE_MS = 50


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass
class DevtoolsConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT
    application_type: str = DEFAULT_APPLICATION_TYPE
    global_name: str = DEFAULT_GLOBAL_NAME
    debounce: float = DEFAULT_DEBOUNCE_MS / 1000.0
    poll_interval: float = 0.1

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @classmethod
    def from_env(cls) -> DevtoolsConfig:
        host = (os.environ.get("UC_MARIONETTE_HOST") or "").strip() or DEFAULT_HOST
        port = _env_int("UC_MARIONETTE_PORT", DEFAULT_PORT)
        if not 0 < port < 65536:
            port = DEFAULT_PORT
        app_type = (os.environ.get("UC_APPLICATION_TYPE") or "").strip() or DEFAULT_APPLICATION_TYPE
        global_name = (os.environ.get("UC_SHEET_REGISTRY") or "").strip() or DEFAULT_GLOBAL_NAME
        debounce_ms = max(0, _env_int("UC_WATCH_DEBOUNCE_MS", DEFAULT_DEBOUNCE_MS))
        return cls(
            host=host,
            port=port,
            timeout=_env_float("UC_MARIONETTE_TIMEOUT", DEFAULT_TIMEOUT),
            application_type=app_type,
            global_name=global_name,
            debounce=debounce_ms / 1000.0,
        )

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        timeout: float | None = None,
    ) -> DevtoolsConfig:
        """Return a copy with command-line overrides applied."""
        return DevtoolsConfig(
            host=host or self.host,
            port=port if port is not None else self.port,
            timeout=timeout if timeout is not None and timeout > 0 else self.timeout,
            application_type=self.application_type,
            global_name=self.global_name,
            debounce=self.debounce,
            poll_interval=self.poll_interval,
        )
