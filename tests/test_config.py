from __future__ import annotations

import pytest

from uc_devtools.config import DevtoolsConfig

_ENV = (
    "UC_MARIONETTE_HOST",
    "UC_MARIONETTE_PORT",
    "UC_MARIONETTE_TIMEOUT",
    "UC_APPLICATION_TYPE",
    "UC_SHEET_REGISTRY",
    "UC_WATCH_DEBOUNCE_MS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    cfg = DevtoolsConfig.from_env()
    assert cfg.address == "localhost:2828"
    assert cfg.timeout == 60.0
    assert cfg.application_type == "gecko"
    assert cfg.global_name == "chromeCssManager"
    assert cfg.debounce == pytest.approx(0.05)


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UC_MARIONETTE_HOST", "10.0.0.5")
    monkeypatch.setenv("UC_MARIONETTE_PORT", "2829")
    monkeypatch.setenv("UC_MARIONETTE_TIMEOUT", "5")
    monkeypatch.setenv("UC_APPLICATION_TYPE", "thunderbird")
    monkeypatch.setenv("UC_SHEET_REGISTRY", "myRegistry")
    monkeypatch.setenv("UC_WATCH_DEBOUNCE_MS", "200")
    cfg = DevtoolsConfig.from_env()
    assert cfg.address == "10.0.0.5:2829"
    assert cfg.timeout == 5.0
    assert cfg.application_type == "thunderbird"
    assert cfg.global_name == "myRegistry"
    assert cfg.debounce == pytest.approx(0.2)


def test_invalid_env_values_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UC_MARIONETTE_PORT", "70000")
    monkeypatch.setenv("UC_MARIONETTE_TIMEOUT", "-1")
    monkeypatch.setenv("UC_WATCH_DEBOUNCE_MS", "soon")
    cfg = DevtoolsConfig.from_env()
    assert cfg.port == 2828
    assert cfg.timeout == 60.0
    assert cfg.debounce == pytest.approx(0.05)


def test_with_overrides_keeps_unset_fields() -> None:
    base = DevtoolsConfig(global_name="x", debounce=0.3)
    cfg = base.with_overrides(port=1234, timeout=0)
    assert cfg.port == 1234
    assert cfg.host == "localhost"
    assert cfg.timeout == 60.0
    assert cfg.global_name == "x"
    assert cfg.debounce == 0.3
