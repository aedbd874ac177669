from __future__ import annotations

import pytest
from marionette_fakes import FakeChrome, FakeMarionette

from uc_devtools.errors import EscapingError, ProtocolError, RegistryMismatch, RemoteError
from uc_devtools.script import js_identifier, window_global
from uc_devtools.session import MarionetteSession
from uc_devtools.stylesheets import SheetScripts, StylesheetManager


@pytest.fixture
def manager(marionette):
    with StylesheetManager.connect(marionette.config()) as mgr:
        yield mgr


def test_load_list_unload(manager, fake_chrome) -> None:
    assert manager.load("body{}", "my-id") == "my-id"
    assert manager.list() == ["my-id"]
    assert fake_chrome.sheets == {"my-id": "body{}"}
    assert manager.unload("my-id") is True
    assert manager.list() == []
    assert fake_chrome.sheets == {}


def test_load_without_id_uses_browser_id(manager, fake_chrome) -> None:
    fake_chrome.clock = 41
    assert manager.load("body{}") == "sheet-42"
    assert manager.list() == ["sheet-42"]
    assert manager.source("sheet-42") == "body{}"


def test_empty_id_is_treated_as_absent(manager, fake_chrome) -> None:
    sheet_id = manager.load("body{}", "")
    assert sheet_id.startswith("sheet-")


def test_remote_error_leaves_registry_unchanged(manager, fake_chrome) -> None:
    manager.load("a{}", "keep")
    fake_chrome.fail_next = {"message": "nope"}
    with pytest.raises(RemoteError) as exc_info:
        manager.load("b{}", "other")
    assert "nope" in str(exc_info.value)
    assert manager.list() == ["keep"]
    assert manager.session.usable


def test_bootstrap_runs_once_per_manager(manager, fake_chrome) -> None:
    manager.ensure_bootstrap()
    manager.load("a{}", "a")
    manager.ensure_bootstrap()
    assert fake_chrome.ops.count("bootstrap") == 1


def test_second_connection_reuses_browser_registry(marionette, fake_chrome) -> None:
    with StylesheetManager.connect(marionette.config()) as first:
        first.load("a{}", "a")
    with StylesheetManager.connect(marionette.config()) as second:
        second.ensure_bootstrap()
        assert second.list() == ["a"]
        assert second.source("a") is None
        assert "a" in second
        assert second.unload("a") is True
    assert fake_chrome.singletons == 1


def test_reloading_an_id_unloads_the_old_sheet_first(manager, fake_chrome) -> None:
    manager.load("a{}", "x")
    manager.load("b{}", "x")
    assert fake_chrome.ops == ["bootstrap", "load", "unload", "load"]
    assert manager.list() == ["x"]
    assert manager.source("x") == "b{}"
    assert fake_chrome.sheets == {"x": "b{}"}


def test_unload_unknown_id_returns_false(manager) -> None:
    assert manager.unload("missing") is False
    assert manager.list() == []


def test_unload_of_id_browser_lost_raises_mismatch(manager, fake_chrome) -> None:
    manager.load("a{}", "x")
    del fake_chrome.sheets["x"]
    with pytest.raises(RegistryMismatch) as exc_info:
        manager.unload("x")
    assert exc_info.value.sheet_id == "x"
    assert manager.list() == ["x"]
    assert manager.sync() == []


def test_clear_returns_removed_ids(manager, fake_chrome) -> None:
    manager.load("a{}", "a")
    manager.load("b{}", "b")
    assert manager.clear() == ["a", "b"]
    assert manager.list() == []
    assert len(manager) == 0
    assert fake_chrome.sheets == {}


def test_client_registry_mirrors_browser(manager, fake_chrome) -> None:
    manager.load("a{}", "a")
    auto = manager.load("b{}")
    manager.load("c{}", "c")
    manager.unload("a")
    manager.load("a2{}", "c")
    manager.unload("nope")
    assert sorted(manager.list()) == sorted(fake_chrome.sheets)
    assert set(manager.list()) == {auto, "c"}


def test_unencodable_css_is_rejected_before_sending(manager, fake_chrome) -> None:
    manager.ensure_bootstrap()
    sent = len(fake_chrome.ops)
    with pytest.raises(EscapingError):
        manager.load("a{content:'\ud800'}", "bad")
    assert manager.list() == []
    assert len(fake_chrome.ops) == sent
    assert manager.session.usable


def test_css_is_passed_as_an_argument(manager, marionette) -> None:
    css = 'a::after { content: "`${x}` </script> \\"" }'
    manager.load(css, "quoted")
    request = marionette.requests[-1]
    assert request["parameters"]["args"] == [css, "quoted"]
    assert css not in request["parameters"]["script"]


def test_load_file_resolves_imports(manager, tmp_path) -> None:
    (tmp_path / "base.css").write_text("a { color: red; }\n", encoding="utf-8")
    main = tmp_path / "main.css"
    main.write_text('@import "base.css";\nb { color: blue; }\n', encoding="utf-8")

    manager.load_file(main, "plain")
    assert manager.source("plain").startswith('@import "base.css";')

    manager.load_file(main, "flat", resolve=True)
    assert manager.source("flat") == "a { color: red; }\nb { color: blue; }\n"


def test_invalid_id_from_browser_is_a_protocol_error(fake_chrome) -> None:
    def handler(name, params):
        if params.get("script") == fake_chrome.scripts.load:
            return {"value": 5}
        return fake_chrome(name, params)

    server = FakeMarionette(handler)
    try:
        with StylesheetManager.connect(server.config()) as mgr:
            with pytest.raises(ProtocolError):
                mgr.load("a{}", "x")
            assert mgr.list() == []
    finally:
        server.close()


def test_manager_requires_chrome_context(marionette, fake_chrome) -> None:
    session = MarionetteSession.open(marionette.config())
    with StylesheetManager(session) as mgr:
        with pytest.raises(ProtocolError):
            mgr.load("a{}")
    assert fake_chrome.ops == []


def test_custom_registry_name() -> None:
    chrome = FakeChrome("myRegistry")
    server = FakeMarionette(chrome)
    try:
        config = server.config(global_name="myRegistry")
        with StylesheetManager.connect(config) as mgr:
            mgr.load("a{}", "a")
        assert 'window["myRegistry"]' in chrome.scripts.bootstrap
        assert chrome.sheets == {"a": "a{}"}
    finally:
        server.close()


def test_sheet_scripts_never_embed_user_data() -> None:
    scripts = SheetScripts()
    assert 'window["chromeCssManager"]' in scripts.bootstrap
    assert "arguments[0]" in scripts.load
    assert "arguments[1]" in scripts.load
    assert "arguments[0]" in scripts.unload
    with pytest.raises(EscapingError):
        SheetScripts('x"];alert(1);//')


@pytest.mark.parametrize("name", ["abc\n", "abc\r\n", "", "1abc", "a-b", "a b"])
def test_js_identifier_rejects_invalid_names(name) -> None:
    with pytest.raises(EscapingError):
        js_identifier(name)
    with pytest.raises(EscapingError):
        SheetScripts(name)


def test_js_identifier_accepts_plain_names() -> None:
    assert js_identifier("$uc_Manager2") == "$uc_Manager2"
    assert window_global("chromeCssManager") == 'window["chromeCssManager"]'
