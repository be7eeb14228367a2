from __future__ import annotations

import os
import pathlib
import sys

import pytest

from repoinventory.config import ScanOptions
from repoinventory.constants import MIN_TOKEN_ESTIMATE
from repoinventory.errors import IoError
from repoinventory.fingerprint import content_digest
from repoinventory.scanner import scan
from repoinventory.snapshot import read_snapshot, write_snapshot


def _write(root: pathlib.Path, relative: str, content: str | bytes) -> pathlib.Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


def _paths(root: pathlib.Path, options: ScanOptions | None = None) -> list[str]:
    return [record.path for record in scan(root, options).records]


def test_scan_builds_sorted_records(tmp_path: pathlib.Path) -> None:
    _write(tmp_path, "src/main.rs", "fn main() {\n    println!(\"hi\");\n}\n")
    _write(tmp_path, "README.md", "# Demo\n\nSome text.\n")
    _write(tmp_path, "b.py", "import os\n\n\ndef run():\n    pass\n")

    result = scan(tmp_path)
    assert [r.path for r in result.records] == ["README.md", "b.py", "src/main.rs"]
    main = result.records[2]
    assert main.language == "rust"
    assert main.digest == content_digest((tmp_path / "src/main.rs").read_bytes())
    assert main.byte_size == (tmp_path / "src/main.rs").stat().st_size
    assert main.line_count_total == 3
    assert main.top_level_dir == "src"
    assert main.role == "bin"
    assert main.content is None
    assert result.records[0].top_level_dir == "."
    assert result.skipped == {}


def test_rescan_is_deterministic(tmp_path: pathlib.Path) -> None:
    for i in range(20):
        _write(tmp_path, f"pkg/mod_{i}.py", f'"""Module {i}."""\nVALUE = {i}\n')
    assert scan(tmp_path).records == scan(tmp_path).records


def test_parallel_scan_matches_sequential(tmp_path: pathlib.Path) -> None:
    for i in range(30):
        _write(tmp_path, f"d{i % 3}/f{i}.rs", f"pub fn f{i}() {{}}\n")
    _write(tmp_path, "blob.bin", b"\x00\x01\x02")
    sequential = scan(tmp_path, ScanOptions(jobs=1))
    parallel = scan(tmp_path, ScanOptions(jobs=4))
    assert parallel.records == sequential.records
    assert parallel.skipped == sequential.skipped == {"binary": 1}


def test_problem_files_are_skipped_and_counted(tmp_path: pathlib.Path) -> None:
    _write(tmp_path, "ok.txt", "fine\n")
    _write(tmp_path, "image.png", b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR")
    _write(tmp_path, "latin1.txt", b"caf\xe9\n")
    _write(tmp_path, "big.txt", "x" * 200)

    result = scan(tmp_path, ScanOptions(max_file_bytes=100))
    assert [r.path for r in result.records] == ["ok.txt"]
    assert result.skipped == {"binary": 1, "decode_error": 1, "oversized": 1}
    assert result.skipped_total == 3


def test_empty_file_is_recorded(tmp_path: pathlib.Path) -> None:
    _write(tmp_path, "empty.py", "")
    (record,) = scan(tmp_path).records
    assert record.byte_size == 0
    assert record.line_count_total == 0
    assert record.line_count_nonblank == 0
    assert record.snippet == ""
    assert record.token_estimate == MIN_TOKEN_ESTIMATE


def test_gitignore_rules_apply(tmp_path: pathlib.Path) -> None:
    _write(tmp_path, ".gitignore", "*.log\nsecret/\n")
    _write(tmp_path, "app.log", "noise\n")
    _write(tmp_path, "secret/key.txt", "hidden\n")
    _write(tmp_path, "keep.txt", "kept\n")
    _write(tmp_path, "node_modules/dep/index.js", "module.exports = 1;\n")
    _write(tmp_path, "sub/.gitignore", "*.tmp\n")
    _write(tmp_path, "sub/a.tmp", "nested ignore\n")
    _write(tmp_path, "a.tmp", "root file\n")

    assert _paths(tmp_path) == [".gitignore", "a.tmp", "keep.txt", "sub/.gitignore"]


def test_extra_patterns_and_excluded_paths(tmp_path: pathlib.Path) -> None:
    _write(tmp_path, "keep.rs", "fn a() {}\n")
    _write(tmp_path, "gen/out.rs", "fn b() {}\n")
    _write(tmp_path, "drafts/x.md", "# Draft\n")
    options = ScanOptions(extra_ignore_patterns=("drafts/",), exclude_paths=(tmp_path / "gen",))
    assert _paths(tmp_path, options) == ["keep.rs"]


def test_include_content_keeps_full_text(tmp_path: pathlib.Path) -> None:
    text = "line one\nline two\n"
    _write(tmp_path, "notes.txt", text)
    (record,) = scan(tmp_path, ScanOptions(include_content=True)).records
    assert record.content == text
    assert record.packable_text == text


def test_noise_directories_are_flagged(tmp_path: pathlib.Path) -> None:
    _write(tmp_path, ".github/workflows/ci.yml", "on: push\n")
    _write(tmp_path, "src/lib.rs", "pub fn a() {}\n")
    records = {r.path: r for r in scan(tmp_path).records}
    assert records[".github/workflows/ci.yml"].is_noise
    assert not records["src/lib.rs"].is_noise


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_symlink_cycles_terminate(tmp_path: pathlib.Path) -> None:
    _write(tmp_path, "a/f.txt", "content\n")
    os.symlink(tmp_path / "a", tmp_path / "a" / "loop", target_is_directory=True)

    assert _paths(tmp_path, ScanOptions(follow_symlinks=True)) == ["a/f.txt"]
    assert _paths(tmp_path) == ["a/f.txt"]


def test_missing_root_raises(tmp_path: pathlib.Path) -> None:
    with pytest.raises(IoError):
        scan(tmp_path / "does-not-exist")
    _write(tmp_path, "file.txt", "x\n")
    with pytest.raises(IoError):
        scan(tmp_path / "file.txt")


def test_nested_gitignore_can_reinclude(tmp_path: pathlib.Path) -> None:
    _write(tmp_path, ".gitignore", "*.log\n")
    _write(tmp_path, "sub/.gitignore", "!keep.log\n")
    _write(tmp_path, "sub/keep.log", "kept\n")
    _write(tmp_path, "sub/drop.log", "dropped\n")
    _write(tmp_path, "top.log", "dropped\n")

    assert _paths(tmp_path) == [".gitignore", "sub/.gitignore", "sub/keep.log"]


def test_deeper_gitignore_wins_over_shallower(tmp_path: pathlib.Path) -> None:
    _write(tmp_path, "a/.gitignore", "*.tmp\n")
    _write(tmp_path, "a/b/.gitignore", "!*.tmp\n")
    _write(tmp_path, "a/b/c/.gitignore", "x.tmp\n")
    _write(tmp_path, "a/one.tmp", "1\n")
    _write(tmp_path, "a/b/two.tmp", "2\n")
    _write(tmp_path, "a/b/c/x.tmp", "3\n")
    _write(tmp_path, "a/b/c/y.tmp", "4\n")

    tmp_files = [p for p in _paths(tmp_path) if p.endswith(".tmp")]
    assert tmp_files == ["a/b/c/y.tmp", "a/b/two.tmp"]


@pytest.mark.skipif(sys.platform != "linux", reason="needs a filesystem that accepts non-UTF-8 names")
def test_non_utf8_file_name_is_recorded_as_text(tmp_path: pathlib.Path) -> None:
    (tmp_path / os.fsdecode(b"caf\xe9.txt")).write_text("menu\n", encoding="utf-8")
    _write(tmp_path, "ok.txt", "fine\n")

    result = scan(tmp_path)
    assert [r.path for r in result.records] == ["caf�.txt", "ok.txt"]
    assert result.records[0].line_count_total == 1

    snapshot = tmp_path / "out" / "snap.jsonl"
    write_snapshot(result.records, snapshot)
    assert [r.path for r in read_snapshot(snapshot).records] == ["caf�.txt", "ok.txt"]


def _deny_listing(monkeypatch: pytest.MonkeyPatch, denied: pathlib.Path) -> None:
    real_scandir = os.scandir

    def guarded(path="."):
        if pathlib.Path(os.fspath(path)).resolve() == denied.resolve():
            raise PermissionError(13, "Permission denied", os.fspath(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", guarded)


def test_unreadable_subdirectory_is_counted(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write(tmp_path, "ok.txt", "fine\n")
    _write(tmp_path, "locked/secret.txt", "hidden\n")
    _deny_listing(monkeypatch, tmp_path / "locked")

    result = scan(tmp_path)
    assert [r.path for r in result.records] == ["ok.txt"]
    assert result.skipped == {"unreadable": 1}


def test_unreadable_root_raises(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write(tmp_path, "ok.txt", "fine\n")
    _deny_listing(monkeypatch, tmp_path)

    with pytest.raises(IoError):
        scan(tmp_path)
