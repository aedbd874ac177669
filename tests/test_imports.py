from __future__ import annotations

import pytest

from uc_devtools.imports import import_target, resolve_imports


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ('@import "base.css";', "base.css"),
        ("  @import 'theme/colors.css' screen;", "theme/colors.css"),
        ('@import url("chrome://mytheme/content/a.css");', "chrome://mytheme/content/a.css"),
        ("@import url(parts/b.css);", "parts/b.css"),
        ("a { color: red; }", None),
        ("/* @import 'x.css'; */", None),
    ],
)
def test_import_target(line: str, expected: str | None) -> None:
    assert import_target(line) == expected


def test_resolve_inlines_nested_imports(tmp_path) -> None:
    (tmp_path / "parts").mkdir()
    (tmp_path / "parts" / "inner.css").write_text("i {}\n", encoding="utf-8")
    (tmp_path / "parts" / "outer.css").write_text('@import "inner.css";\no {}\n', encoding="utf-8")
    css = '@import url(parts/outer.css);\nmain {}\n'
    assert resolve_imports(css, tmp_path) == "i {}\no {}\nmain {}\n"


def test_resolve_keeps_urls_and_missing_files(tmp_path) -> None:
    css = '@import url("chrome://mytheme/content/a.css");\n@import "missing.css";\nx {}'
    assert resolve_imports(css, tmp_path) == css + "\n"


def test_each_file_is_inlined_once(tmp_path) -> None:
    (tmp_path / "a.css").write_text('@import "b.css";\na {}\n', encoding="utf-8")
    (tmp_path / "b.css").write_text('@import "a.css";\nb {}\n', encoding="utf-8")
    css = '@import "a.css";\n@import "b.css";\nroot {}\n'
    assert resolve_imports(css, tmp_path) == "b {}\na {}\nroot {}\n"


def test_empty_input() -> None:
    assert resolve_imports("", ".") == ""
