from __future__ import annotations

from repoinventory.heuristics import infer_module_id, infer_role, infer_tags, skim_symbols, top_level_dir


def test_top_level_dir() -> None:
    assert top_level_dir("src/a/b.rs") == "src"
    assert top_level_dir("README.md") == "."


def test_infer_tags_are_sorted_and_unique() -> None:
    assert infer_tags("tests/test_api.py", "python") == ("dir:tests", "ext:py", "python", "test")
    tags = infer_tags("docs/docs/guide.md", "markdown")
    assert list(tags) == sorted(set(tags))
    assert "docs" in tags


def test_infer_role() -> None:
    assert infer_role("tests/test_x.py", "python", "") == "test"
    assert infer_role("src/main.rs", "rust", "") == "bin"
    assert infer_role("tool.py", "python", "if __name__ == '__main__':\n    run()\n") == "bin"
    assert infer_role("README.md", "markdown", "") == "doc"
    assert infer_role("Cargo.toml", "toml", "") == "config"
    assert infer_role("src/util.rs", "rust", "pub fn a() {}") == "lib"


def test_infer_module_id() -> None:
    assert infer_module_id("src/lib.rs", "rust") == "crate"
    assert infer_module_id("src/bin/tool.rs", "rust") == "bin::tool"
    assert infer_module_id("src/a/b.rs", "rust") == "a::b"
    assert infer_module_id("src/pkg/__init__.py", "python") == "pkg"


def test_skim_python_symbols() -> None:
    snippet = "import os, sys\nfrom a import b\n\ndef run():\n    pass\nclass _Hidden:\n    def method(self):\n"
    imports, exports = skim_symbols(snippet, "python")
    assert imports == ("a.b", "os", "sys")
    assert exports == ("run",)


def test_skim_rust_symbols() -> None:
    imports, exports = skim_symbols("use std::io;\npub fn run(x: u8) {}\npub struct Foo;\n", "rust")
    assert imports == ("std::io",)
    assert exports == ("Foo", "run")


def test_skim_unknown_language_is_empty() -> None:
    assert skim_symbols("import x", "cobol") == ((), ())
