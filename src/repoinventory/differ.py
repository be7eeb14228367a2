"""Structured diff between two snapshots.

Renames are asserted only when a digest matches exactly one removed path and
exactly one added path. Ambiguous matches stay as plain adds and removes.
"""

import json
import pathlib
from collections import defaultdict
from collections.abc import Iterable

from repoinventory.errors import InvariantViolation
from repoinventory.file_operations import write_text_atomic
from repoinventory.models import DiffResult, FieldChange, FileRecord, ModifiedEntry, RenamedEntry

# Fields compared when the digest changed, in report order.
CONTENT_FIELDS: tuple[str, ...] = (
    "digest",
    "byte_size",
    "line_count_total",
    "line_count_nonblank",
    "token_estimate",
    "language",
    "role",
    "tags",
)

# Derived signals that mark a record as reclassified when the digest is unchanged.
SIGNAL_FIELDS: tuple[str, ...] = (
    "language",
    "role",
    "line_count_total",
    "line_count_nonblank",
    "tags",
)


def index_by_path(records: Iterable[FileRecord], side: str) -> dict[str, FileRecord]:
    """Map records by path, refusing duplicates.

    Raises:
        InvariantViolation: If a path occurs twice
    """
    by_path: dict[str, FileRecord] = {}
    for record in records:
        if record.path in by_path:
            raise InvariantViolation(f"duplicate path in {side} snapshot: {record.path}")
        by_path[record.path] = record
    return by_path


def _field_change(name: str, old: FileRecord, new: FileRecord) -> FieldChange | None:
    before = getattr(old, name)
    after = getattr(new, name)
    if name == "tags":
        old_tags, new_tags = set(before), set(after)
        if old_tags == new_tags:
            return None
        return FieldChange(
            field=name,
            before=sorted(old_tags),
            after=sorted(new_tags),
            added=tuple(sorted(new_tags - old_tags)),
            removed=tuple(sorted(old_tags - new_tags)),
        )
    if before == after:
        return None
    return FieldChange(field=name, before=before, after=after)


def compare_records(old: FileRecord, new: FileRecord) -> ModifiedEntry | None:
    """Classify one shared path; None when nothing reportable changed."""
    if old.digest != new.digest:
        kind, fields = "content", CONTENT_FIELDS
    else:
        kind, fields = "reclassified", SIGNAL_FIELDS
    changes = tuple(
        change for change in (_field_change(name, old, new) for name in fields) if change is not None
    )
    if not changes:
        return None
    return ModifiedEntry(path=new.path, kind=kind, changed_fields=changes)


def detect_renames(
    added: list[str],
    removed: list[str],
    old_by_path: dict[str, FileRecord],
    new_by_path: dict[str, FileRecord],
) -> list[RenamedEntry]:
    """Pair removed and added paths that share a unique digest."""
    removed_by_digest: dict[str, list[str]] = defaultdict(list)
    added_by_digest: dict[str, list[str]] = defaultdict(list)
    for path in removed:
        removed_by_digest[old_by_path[path].digest].append(path)
    for path in added:
        added_by_digest[new_by_path[path].digest].append(path)

    renames = []
    for digest, old_paths in removed_by_digest.items():
        new_paths = added_by_digest.get(digest, [])
        if len(old_paths) == 1 and len(new_paths) == 1:
            renames.append(RenamedEntry(old_path=old_paths[0], new_path=new_paths[0], digest=digest))
    renames.sort(key=lambda entry: (entry.old_path, entry.new_path))
    return renames


def diff(old: Iterable[FileRecord], new: Iterable[FileRecord]) -> DiffResult:
    """Compare two snapshots.

    Unchanged paths are left out of the result entirely, so its size follows
    the amount of change rather than the size of the repository.

    Args:
        old: Records of the earlier snapshot
        new: Records of the later snapshot

    Returns:
        DiffResult with every list sorted by path

    Raises:
        InvariantViolation: If either snapshot repeats a path
    """
    old_by_path = index_by_path(old, "old")
    new_by_path = index_by_path(new, "new")

    added = sorted(new_by_path.keys() - old_by_path.keys())
    removed = sorted(old_by_path.keys() - new_by_path.keys())

    modified = []
    unchanged = 0
    for path in sorted(old_by_path.keys() & new_by_path.keys()):
        entry = compare_records(old_by_path[path], new_by_path[path])
        if entry is None:
            unchanged += 1
        else:
            modified.append(entry)

    renamed = detect_renames(added, removed, old_by_path, new_by_path)
    renamed_old = {entry.old_path for entry in renamed}
    renamed_new = {entry.new_path for entry in renamed}

    return DiffResult(
        added=tuple(path for path in added if path not in renamed_new),
        removed=tuple(path for path in removed if path not in renamed_old),
        modified=tuple(modified),
        renamed=tuple(renamed),
        total_old=len(old_by_path),
        total_new=len(new_by_path),
        unchanged=unchanged,
    )


def diff_to_json(result: DiffResult) -> str:
    """Serialize a diff as pretty-printed JSON with a trailing newline.

    Args:
        result: The diff to serialize

    Returns:
        JSON text with keys version, summary, added, removed, modified
        and renamed
    """
    return json.dumps(result.to_dict(), indent=2, ensure_ascii=False) + "\n"


def write_diff(result: DiffResult, path: pathlib.Path) -> None:
    """Write the diff as pretty JSON, atomically.

    Raises:
        IoError: If the destination cannot be written
    """
    write_text_atomic(path, diff_to_json(result), operation="write diff")
