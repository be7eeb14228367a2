from __future__ import annotations

import pathlib
from datetime import datetime, timezone

import pytest

from repoinventory.chunker import pack, write_bundles
from repoinventory.differ import diff, write_diff
from repoinventory.errors import IoError
from repoinventory.file_operations import is_probably_binary, to_text_name, write_text_atomic
from repoinventory.snapshot import write_snapshot


def test_write_text_atomic_replaces_existing_file(tmp_path: pathlib.Path) -> None:
    target = tmp_path / "out.txt"
    target.write_text("old\n", encoding="utf-8")
    write_text_atomic(target, "new\r\nline\n")
    assert target.read_bytes() == b"new\r\nline\n"
    assert [p.name for p in tmp_path.iterdir()] == ["out.txt"]


def test_unencodable_text_raises_and_cleans_up(tmp_path: pathlib.Path) -> None:
    with pytest.raises(IoError):
        write_text_atomic(tmp_path / "out.jsonl", "bad \udce9")
    assert list(tmp_path.iterdir()) == []


def test_failed_replace_cleans_up_temp_file(tmp_path: pathlib.Path) -> None:
    (tmp_path / "dest").mkdir()
    with pytest.raises(IoError):
        write_text_atomic(tmp_path / "dest", "text\n")
    assert [p.name for p in tmp_path.iterdir()] == ["dest"]


def test_unwritable_destinations_raise(tmp_path: pathlib.Path, make_record) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory\n", encoding="utf-8")
    records = [make_record("a.rs", "fn a() {}\n")]

    with pytest.raises(IoError):
        write_snapshot(records, blocker / "snap.jsonl")
    with pytest.raises(IoError):
        write_diff(diff([], records), blocker / "diff.json")
    bundles = pack(records, 1000, datetime(2026, 1, 1, tzinfo=timezone.utc))
    with pytest.raises(IoError):
        write_bundles(bundles, blocker / "chunks", "paste_")
    assert sorted(p.name for p in tmp_path.iterdir()) == ["blocker"]


def test_to_text_name_replaces_undecodable_bytes() -> None:
    assert to_text_name("plain.txt") == "plain.txt"
    assert to_text_name("caf\udce9.txt") == "caf�.txt"


def test_is_probably_binary() -> None:
    assert not is_probably_binary(b"")
    assert not is_probably_binary("ünïcödé text\n".encode("utf-8"))
    assert is_probably_binary(b"abc\x00def")
    assert is_probably_binary(bytes(range(1, 9)) * 4)
