"""repoinventory: deterministic repository inventories for LLM-assisted work.

This package scans a directory into a JSONL snapshot of per-file records,
diffs two snapshots, packs a snapshot into token-bounded markdown bundles
and renders tree and map views of it.
"""

from repoinventory.chunker import pack
from repoinventory.cli import main
from repoinventory.config import ScanOptions
from repoinventory.differ import diff
from repoinventory.models import DiffResult, FileRecord
from repoinventory.scanner import scan
from repoinventory.snapshot import read_snapshot, write_snapshot

__version__ = "0.1.0"
__all__ = [
    "main",
    "scan",
    "diff",
    "pack",
    "read_snapshot",
    "write_snapshot",
    "ScanOptions",
    "FileRecord",
    "DiffResult",
]
