"""Explicit configuration passed to each entry point."""

import pathlib
import re
from dataclasses import dataclass, field
from datetime import datetime

from repoinventory.constants import DEFAULT_BUNDLE_PREFIX, MAX_FILE_BYTES

INVENTORY_DIR_NAME = ".inventory"
SUB_INDEX_DIR_NAME = ".sub_index"


@dataclass(frozen=True)
class ScanOptions:
    """Scanner configuration.

    Attributes:
        max_file_bytes: Files larger than this are skipped, never truncated
        follow_symlinks: Descend into symlinked directories and read symlinked files
        include_content: Keep the full text on each record for bundling
        jobs: Number of worker threads reading files (1 = sequential)
        extra_ignore_patterns: Additional gitignore-style patterns
        exclude_paths: Absolute paths to leave out (e.g. the output directory)
        show_progress: Show a tqdm progress bar while processing files
    """

    max_file_bytes: int = MAX_FILE_BYTES
    follow_symlinks: bool = False
    include_content: bool = False
    jobs: int = 1
    extra_ignore_patterns: tuple[str, ...] = ()
    exclude_paths: tuple[pathlib.Path, ...] = field(default_factory=tuple)
    show_progress: bool = False


def slugify(name: str) -> str:
    """Make a directory name safe to use inside file names.

    Examples:
        >>> slugify("My Project (v2)")
        'My_Project_-v2'
    """
    slug = name.replace(" ", "_")
    slug = re.sub(r"[^A-Za-z0-9._-]", "-", slug)
    return slug.strip("-_")


def project_name_from_path(root: pathlib.Path) -> str:
    """Slugified name of the root directory, "project" if none can be derived."""
    resolved = root.resolve()
    return slugify(resolved.name) or "project"


def timestamp_compact(now: datetime | None = None) -> str:
    """Filesystem-safe timestamp like ``20250810_140359``."""
    return (now or datetime.now()).strftime("%Y%m%d_%H%M%S")


@dataclass(frozen=True)
class InventoryLayout:
    """Every output location of an index run, under ``<root>/<dir_name>``.

    The full flow writes to ``.inventory``; a sub-directory index writes to
    ``.sub_index`` and only uses the snapshot and its history.
    """

    root: pathlib.Path
    project_name: str
    dir_name: str = INVENTORY_DIR_NAME

    @classmethod
    def for_root(
        cls, root: pathlib.Path, project_name: str | None = None, dir_name: str = INVENTORY_DIR_NAME
    ) -> "InventoryLayout":
        root = root.resolve()
        return cls(root=root, project_name=project_name or project_name_from_path(root), dir_name=dir_name)

    @property
    def base_dir(self) -> pathlib.Path:
        return self.root / self.dir_name

    @property
    def snapshot_history_dir(self) -> pathlib.Path:
        """Archive directory kept next to the snapshot by sub-directory indexes."""
        return self.snapshot_path.parent / "history"

    @property
    def snapshot_path(self) -> pathlib.Path:
        return self.base_dir / "indexes" / f"{self.project_name}.jsonl"

    @property
    def history_full_dir(self) -> pathlib.Path:
        return self.base_dir / "history" / "full"

    @property
    def history_diffs_dir(self) -> pathlib.Path:
        return self.base_dir / "history" / "diffs"

    @property
    def chunks_dir(self) -> pathlib.Path:
        return self.base_dir / "chunks"

    @property
    def tree_path(self) -> pathlib.Path:
        return self.base_dir / "trees" / "PROJECT_TREE.md"

    @property
    def map_path(self) -> pathlib.Path:
        return self.base_dir / "maps" / "PROJECT_MAP.md"

    @property
    def bundle_prefix(self) -> str:
        return DEFAULT_BUNDLE_PREFIX

    def archived_snapshot_path(self, stamp: str) -> pathlib.Path:
        return self.history_full_dir / f"{self.project_name}_{stamp}.jsonl"

    def diff_path(self, stamp: str) -> pathlib.Path:
        return self.history_diffs_dir / f"{self.project_name}_{stamp}.json"
