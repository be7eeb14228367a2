"""Snapshot persistence: one JSON object per line.

Every line is self-contained, so a corrupt line costs only that record.
Reading is tolerant: bad lines are logged, counted and skipped.

Decoding is schema-versioned. A line is decoded strictly first; when fields
are missing (older snapshots), it is decoded again with the defaults in
FIELD_DEFAULTS. Values of the wrong type are never coerced.
"""

import json
import logging
import pathlib
from dataclasses import asdict

from repoinventory.constants import SNAPSHOT_SCHEMA_VERSION, UNKNOWN_LANGUAGE
from repoinventory.errors import IoError, MalformedSnapshotLine
from repoinventory.file_operations import write_text_atomic
from repoinventory.heuristics import top_level_dir
from repoinventory.models import FileRecord, SnapshotReadResult

logger = logging.getLogger(__name__)

_STR = "str"
_INT = "int"
_BOOL = "bool"
_STR_LIST = "str_list"
_OPT_STR = "optional_str"

FIELD_TYPES: dict[str, str] = {
    "path": _STR,
    "language": _STR,
    "digest": _STR,
    "byte_size": _INT,
    "last_modified": _INT,
    "line_count_total": _INT,
    "line_count_nonblank": _INT,
    "snippet": _STR,
    "summary": _STR,
    "token_estimate": _INT,
    "tags": _STR_LIST,
    "top_level_dir": _STR,
    "is_noise": _BOOL,
    "role": _STR,
    "module": _STR,
    "imports": _STR_LIST,
    "exports": _STR_LIST,
    "content": _OPT_STR,
}

# Defaults used by the permissive decode. ``path`` has none: it is the key.
FIELD_DEFAULTS: dict[str, object] = {
    "language": UNKNOWN_LANGUAGE,
    "digest": "",
    "byte_size": 0,
    "last_modified": 0,
    "line_count_total": 0,
    "line_count_nonblank": 0,
    "snippet": "",
    "summary": "",
    "token_estimate": 0,
    "tags": [],
    "role": "",
    "module": "",
    "imports": [],
    "exports": [],
    "is_noise": False,
    "content": None,
}

# Key names written by schema 1 (the original indexer) mapped to current names.
LEGACY_FIELD_NAMES: dict[str, str] = {
    "lang": "language",
    "sha1": "digest",
    "size": "byte_size",
    "lines_total": "line_count_total",
    "lines_nonblank": "line_count_nonblank",
    "rel_dir": "top_level_dir",
    "noise": "is_noise",
}


def _has_type(value: object, kind: str) -> bool:
    if kind == _STR:
        return isinstance(value, str)
    if kind == _INT:
        return isinstance(value, int) and not isinstance(value, bool)
    if kind == _BOOL:
        return isinstance(value, bool)
    if kind == _STR_LIST:
        return isinstance(value, list) and all(isinstance(item, str) for item in value)
    if kind == _OPT_STR:
        return value is None or isinstance(value, str)
    raise ValueError(f"unknown field kind: {kind}")


def upgrade_schema_1(obj: dict, line_number: int = 0) -> dict:
    """Rename schema 1 keys and convert its string mtime and optional summary."""
    upgraded = {LEGACY_FIELD_NAMES.get(key, key): value for key, value in obj.items()}
    mtime = upgraded.get("last_modified")
    if isinstance(mtime, str):
        if not mtime.strip().isdigit():
            raise MalformedSnapshotLine(line_number, f"invalid last_modified {mtime!r}")
        upgraded["last_modified"] = int(mtime)
    if "summary" in upgraded and upgraded["summary"] is None:
        upgraded["summary"] = ""
    return upgraded


def _schema_version(obj: dict) -> int:
    version = obj.get("schema_version")
    if isinstance(version, int) and not isinstance(version, bool):
        return version
    if any(key in obj for key in LEGACY_FIELD_NAMES):
        return 1
    return SNAPSHOT_SCHEMA_VERSION


def _build(values: dict) -> FileRecord:
    return FileRecord(
        path=values["path"],
        language=values["language"],
        digest=values["digest"],
        byte_size=values["byte_size"],
        last_modified=values["last_modified"],
        line_count_total=values["line_count_total"],
        line_count_nonblank=values["line_count_nonblank"],
        snippet=values["snippet"],
        summary=values["summary"],
        token_estimate=values["token_estimate"],
        tags=tuple(sorted(set(values["tags"]))),
        top_level_dir=values["top_level_dir"],
        is_noise=values["is_noise"],
        role=values["role"],
        module=values["module"],
        imports=tuple(values["imports"]),
        exports=tuple(values["exports"]),
        content=values["content"],
    )


def _check_types(obj: dict, line_number: int) -> None:
    for name, kind in FIELD_TYPES.items():
        if name in obj and not _has_type(obj[name], kind):
            raise MalformedSnapshotLine(
                line_number, f"field {name!r} has type {type(obj[name]).__name__}"
            )


def decode_record(obj: object, line_number: int = 0) -> FileRecord:
    """Decode one parsed snapshot line into a FileRecord.

    Args:
        obj: Parsed JSON value of the line
        line_number: 1-based line number for error messages

    Returns:
        The decoded record

    Raises:
        MalformedSnapshotLine: If the value is not an object, has no path,
            or any field has the wrong type
    """
    if not isinstance(obj, dict):
        raise MalformedSnapshotLine(line_number, "not a JSON object")
    if _schema_version(obj) == 1:
        obj = upgrade_schema_1(obj, line_number)
    if not isinstance(obj.get("path"), str) or not obj["path"]:
        raise MalformedSnapshotLine(line_number, "missing path")
    _check_types(obj, line_number)

    missing = [name for name in FIELD_TYPES if name not in obj]
    if not missing:
        return _build(obj)

    values = dict(obj)
    for name in missing:
        if name == "top_level_dir":
            values[name] = top_level_dir(obj["path"])
        else:
            values[name] = FIELD_DEFAULTS[name]
    return _build(values)


def encode_record(record: FileRecord) -> str:
    """Encode a record as one JSON line (without the newline)."""
    data = asdict(record)
    if data["content"] is None:
        del data["content"]
    data["tags"] = list(record.tags)
    data["imports"] = list(record.imports)
    data["exports"] = list(record.exports)
    data["schema_version"] = SNAPSHOT_SCHEMA_VERSION
    return json.dumps(data, sort_keys=True, ensure_ascii=False)


def write_snapshot(records, path: pathlib.Path) -> None:
    """Persist records, sorted by path, to ``path`` atomically.

    Raises:
        IoError: If the destination cannot be written
    """
    ordered = sorted(records, key=lambda record: record.path)
    text = "".join(encode_record(record) + "\n" for record in ordered)
    write_text_atomic(path, text, operation="write snapshot")


def read_snapshot(path: pathlib.Path) -> SnapshotReadResult:
    """Read a snapshot, skipping and counting lines that cannot be decoded.

    Raises:
        IoError: If the file cannot be opened
    """
    path = pathlib.Path(path)
    records: list[FileRecord] = []
    skipped = 0
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            for line_number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    obj = json.loads(line)
                    records.append(decode_record(obj, line_number))
                except json.JSONDecodeError as e:
                    logger.warning("Skipping bad JSON in %s at line %d: %s", path, line_number, e)
                    skipped += 1
                except MalformedSnapshotLine as e:
                    logger.warning("Skipping malformed record in %s: %s", path, e)
                    skipped += 1
    except OSError as e:
        raise IoError("read snapshot", path, e) from e
    return SnapshotReadResult(records=records, skipped_lines=skipped)
