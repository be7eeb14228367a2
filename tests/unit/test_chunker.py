from __future__ import annotations

import pathlib
from collections import defaultdict
from datetime import datetime, timezone

from repoinventory.chunker import (
    bundle_path,
    clamp_budget,
    fence_language,
    escape_control_chars,
    fence_for,
    pack,
    render_bundle,
    split_content,
    write_bundles,
)
from repoinventory.constants import MAX_FILES_PER_BUNDLE, MIN_TOKEN_BUDGET

STAMP = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _sample_records(make_record) -> list:
    return [
        make_record("a/small.rs", "pub fn a() {}\n"),
        make_record("a/medium.py", "x = 1\n" * 200),
        make_record("b/huge.txt", "abcdefghij\n" * 5000),
        make_record("c/tiny.md", "# T\n"),
    ]


def test_bundles_respect_budget(make_record) -> None:
    bundles = pack(_sample_records(make_record), 300, STAMP)
    assert bundles
    for bundle in bundles:
        assert bundle.token_estimate <= 300
        assert bundle.generated_at == STAMP


def test_every_record_is_packed_completely(make_record) -> None:
    records = _sample_records(make_record)
    texts = defaultdict(list)
    for bundle in pack(records, 300, STAMP):
        for part in bundle.parts:
            texts[part.path].append(part)

    assert sorted(texts) == sorted(r.path for r in records)
    for record in records:
        parts = texts[record.path]
        assert [p.index for p in parts] == list(range(1, len(parts) + 1))
        assert all(p.total == len(parts) for p in parts)
        assert "".join(p.text for p in parts) == record.packable_text


def test_small_records_are_not_split(make_record) -> None:
    bundles = pack([make_record("a.rs", "fn a() {}\n"), make_record("b.rs", "fn b() {}\n")], 1000, STAMP)
    assert len(bundles) == 1
    assert [p.is_split for p in bundles[0].parts] == [False, False]


def test_budget_is_clamped_to_floor(make_record) -> None:
    records = _sample_records(make_record)
    low = pack(records, 10, STAMP)
    floor = pack(records, MIN_TOKEN_BUDGET, STAMP)
    assert [b.parts for b in low] == [b.parts for b in floor]


def test_empty_input_gives_no_bundles() -> None:
    assert pack([], 1000) == []


def test_file_count_cap(make_record) -> None:
    records = [make_record(f"f{i:03}.txt", "x\n") for i in range(MAX_FILES_PER_BUNDLE + 10)]
    bundles = pack(records, 100_000, STAMP)
    assert [b.file_count for b in bundles] == [MAX_FILES_PER_BUNDLE, 10]


def test_split_keeps_crlf_pairs_together() -> None:
    text = "a" * 767 + "\r\n" + "b" * 10
    pieces = split_content(text, 768)
    assert "".join(pieces) == text
    assert all(len(piece) <= 768 for piece in pieces)
    assert not any(piece.endswith("\r") for piece in pieces)


def test_split_long_line() -> None:
    pieces = split_content("x" * 2000, 768)
    assert [len(p) for p in pieces] == [768, 768, 464]


def test_control_chars_are_escaped() -> None:
    assert escape_control_chars("a\x01b\tc\n") == "a\\x01b\tc\n"


def test_fence_outgrows_backtick_runs() -> None:
    assert fence_for("plain") == "```"
    assert fence_for("has ```` inside") == "`````"


def test_render_bundle(make_record) -> None:
    record = make_record("src/lib.rs", "pub fn a() {}\n", summary="Root library file.")
    (bundle,) = pack([record], 1000, STAMP)
    text = render_bundle(bundle, 1)
    assert text.startswith("# Bundle 1\n")
    assert "## `src/lib.rs` [rust]" in text
    assert "**Summary:** Root library file." in text
    assert "```rust\npub fn a() {}\n```" in text


def test_write_bundles_removes_stale_files(tmp_path: pathlib.Path, make_record) -> None:
    records = [make_record(f"f{i}.txt", "y" * 900) for i in range(3)]
    assert len(write_bundles(pack(records, 300, STAMP), tmp_path, "paste_")) >= 3
    (tmp_path / "notes.md").write_text("keep\n", encoding="utf-8")

    written = write_bundles(pack(records[:1], 1000, STAMP), tmp_path, "paste_")
    assert [p.name for p in written] == ["paste_1.md"]
    assert sorted(p.name for p in tmp_path.iterdir()) == ["notes.md", "paste_1.md"]


def test_small_helpers(tmp_path: pathlib.Path) -> None:
    assert clamp_budget(10) == MIN_TOKEN_BUDGET
    assert clamp_budget(15_000) == 15_000
    assert fence_language("TypeScript") == "ts"
    assert fence_language("unknown") == ""
    assert bundle_path(tmp_path, "paste_", 3) == tmp_path / "paste_3.md"
