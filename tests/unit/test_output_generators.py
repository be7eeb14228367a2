from __future__ import annotations

from repoinventory.output_generators import (
    MAP_LIST_CAP,
    build_map_view,
    build_tree_view,
    clamp_summary,
    format_size,
    top_tags,
)


def test_format_size() -> None:
    assert format_size(512) == "512.0 B"
    assert format_size(1536) == "1.5 KB"
    assert format_size(3 * 1024 * 1024) == "3.0 MB"


def test_clamp_summary() -> None:
    assert clamp_summary("two\nlines") == "two lines"
    clamped = clamp_summary("word " * 50, limit=20)
    assert len(clamped) <= 20
    assert clamped.endswith("…")


def test_tree_view_nests_directories(make_record) -> None:
    records = [
        make_record("README.md", summary="Readme."),
        make_record("src/main.rs", summary="Entry."),
        make_record("src/a/b.rs", summary=""),
    ]
    lines = build_tree_view(records).splitlines()
    assert lines[0] == "# Project File Tree"
    assert "- `README.md` — Readme." in lines
    assert lines.index("- **src/**") < lines.index("  - `main.rs` — Entry.")
    assert lines.index("  - **a/**") < lines.index("    - `b.rs`")


def test_top_tags_counts_each_record_once(make_record) -> None:
    records = [make_record("a.rs", tags=("rust",)), make_record("b.rs", tags=("core", "rust"))]
    ranked, distinct = top_tags(records)
    assert ranked == ["rust (2)", "core (1)"]
    assert distinct == 2


def test_map_view_groups_and_caps(make_record) -> None:
    records = [make_record(".github/workflows/ci.yml", tags=("build",))]
    records += [make_record("README.md")]
    records += [make_record(f"src/f{i:03}.rs") for i in range(MAP_LIST_CAP + 5)]
    text = build_map_view(records)

    assert text.startswith("# Project File Map")
    assert "## `(root)`" in text
    assert f"## `src/`  _(files: {MAP_LIST_CAP + 5})_" in text
    assert "- … +5 more" in text
    assert ".github/workflows/ci.yml" not in text
    assert "## Statistics" in text
