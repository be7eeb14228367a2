from __future__ import annotations

from collections.abc import Callable

import pytest

from repoinventory.fingerprint import content_digest, estimate_tokens
from repoinventory.heuristics import top_level_dir
from repoinventory.models import FileRecord


def _make_record(path: str, text: str = "", **overrides) -> FileRecord:
    digest = overrides.pop("digest", content_digest(text.encode("utf-8")))
    values = {
        "path": path,
        "language": "rust" if path.endswith(".rs") else "text",
        "digest": digest,
        "byte_size": len(text.encode("utf-8")),
        "last_modified": 1_700_000_000,
        "line_count_total": len(text.splitlines()),
        "line_count_nonblank": sum(1 for line in text.splitlines() if line.strip()),
        "snippet": text,
        "summary": f"Summary of {path}",
        "token_estimate": estimate_tokens(text),
        "top_level_dir": top_level_dir(path),
    }
    values.update(overrides)
    return FileRecord(**values)


@pytest.fixture
def make_record() -> Callable[..., FileRecord]:
    return _make_record
