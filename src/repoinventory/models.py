"""Data models for repoinventory."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class FileRecord:
    """Structured facts about one scanned file.

    Attributes:
        path: Repository-relative, forward-slash normalized path
        language: Detected language label, "unknown" if undetected
        digest: SHA-256 hex digest of the raw file bytes
        byte_size: File size in bytes
        last_modified: Modification time in epoch seconds
        line_count_total: Number of lines
        line_count_nonblank: Number of lines with non-whitespace content
        snippet: Bounded, high-signal excerpt of the file
        summary: One-line description of the file
        token_estimate: Estimated token cost of the packable text
        tags: Sorted, duplicate-free labels
        top_level_dir: First path segment, "." for root-level files
        is_noise: True for files under conventional infra directories
        role: Coarse role (bin, lib, test, doc, config, script, ui, core)
        module: Best-effort module id derived from the path
        imports: Import targets skimmed from the snippet
        exports: Public names skimmed from the snippet
        content: Full text, only kept when scanning with include_content
    """

    path: str
    language: str
    digest: str
    byte_size: int
    last_modified: int
    line_count_total: int
    line_count_nonblank: int
    snippet: str
    summary: str
    token_estimate: int
    tags: tuple[str, ...] = ()
    top_level_dir: str = "."
    is_noise: bool = False
    role: str = ""
    module: str = ""
    imports: tuple[str, ...] = ()
    exports: tuple[str, ...] = ()
    content: str | None = None

    @property
    def packable_text(self) -> str:
        """Text the chunk packer embeds: full content if kept, else the snippet."""
        if self.content is not None:
            return self.content
        return self.snippet


@dataclass(frozen=True)
class Summary:
    """Output of the summarizer for one file."""

    summary: str
    role: str
    tags: tuple[str, ...]


@dataclass(frozen=True)
class Part:
    """A whole record, or one numbered slice of it, placed in a bundle."""

    path: str
    language: str
    digest: str
    byte_size: int
    last_modified: int
    summary: str
    text: str
    token_estimate: int
    index: int = 1
    total: int = 1

    @property
    def is_split(self) -> bool:
        return self.total > 1


@dataclass
class Bundle:
    """One size-bounded output document.

    Token and file totals are computed from the parts on access.
    """

    generated_at: datetime
    parts: list[Part] = field(default_factory=list)

    @property
    def token_estimate(self) -> int:
        return sum(part.token_estimate for part in self.parts)

    @property
    def file_count(self) -> int:
        return len({part.path for part in self.parts})

    def add(self, part: Part) -> None:
        self.parts.append(part)


@dataclass(frozen=True)
class FieldChange:
    """Before/after values of one changed record field.

    For ``tags`` the set differences are also reported in ``added`` and
    ``removed``.
    """

    field: str
    before: object
    after: object
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """JSON-ready dict; tag changes also carry ``added`` and ``removed``."""
        data = {"field": self.field, "before": self.before, "after": self.after}
        if self.field == "tags":
            data["added"] = list(self.added)
            data["removed"] = list(self.removed)
        return data


@dataclass(frozen=True)
class ModifiedEntry:
    """A path present in both snapshots whose record changed.

    Attributes:
        path: The shared path
        kind: "content" when the digest changed, "reclassified" when only
            derived signals (language, role, line counts, tags) changed
        changed_fields: One FieldChange per differing field
    """

    path: str
    kind: str
    changed_fields: tuple[FieldChange, ...]

    def to_dict(self) -> dict:
        """JSON-ready dict; ``changedFields`` lists one entry per differing field."""
        return {
            "path": self.path,
            "kind": self.kind,
            "changedFields": [change.to_dict() for change in self.changed_fields],
        }


@dataclass(frozen=True)
class RenamedEntry:
    """A file that moved without content change."""

    old_path: str
    new_path: str
    digest: str

    def to_dict(self) -> dict:
        """JSON-ready dict with camelCase keys ``oldPath`` and ``newPath``."""
        return {"oldPath": self.old_path, "newPath": self.new_path, "digest": self.digest}


@dataclass(frozen=True)
class DiffResult:
    """Classification of every changed path between two snapshots."""

    added: tuple[str, ...]
    removed: tuple[str, ...]
    modified: tuple[ModifiedEntry, ...]
    renamed: tuple[RenamedEntry, ...]
    total_old: int = 0
    total_new: int = 0
    unchanged: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified or self.renamed)

    def summary(self) -> dict[str, int]:
        return {
            "added": len(self.added),
            "removed": len(self.removed),
            "modified": len(self.modified),
            "renamed": len(self.renamed),
            "unchanged": self.unchanged,
            "total_old": self.total_old,
            "total_new": self.total_new,
        }

    def to_dict(self) -> dict:
        """JSON-ready dict: version, summary counts, then the sorted change lists."""
        return {
            "version": 1,
            "summary": self.summary(),
            "added": list(self.added),
            "removed": list(self.removed),
            "modified": [entry.to_dict() for entry in self.modified],
            "renamed": [entry.to_dict() for entry in self.renamed],
        }


@dataclass
class ScanResult:
    """Records produced by one scan plus per-reason skip counts."""

    records: list[FileRecord]
    skipped: dict[str, int] = field(default_factory=dict)

    @property
    def skipped_total(self) -> int:
        return sum(self.skipped.values())


@dataclass
class SnapshotReadResult:
    """Records decoded from a snapshot file and the number of lines skipped."""

    records: list[FileRecord]
    skipped_lines: int = 0
