"""Walk a directory tree and produce its snapshot."""

import logging
import pathlib
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed

from tqdm import tqdm

from repoinventory.config import ScanOptions
from repoinventory.errors import IoError
from repoinventory.file_operations import SKIP_UNREADABLE, FileOutcome, collect_files, process_file
from repoinventory.models import ScanResult

logger = logging.getLogger(__name__)


def _process_sequential(
    candidates: list[tuple[pathlib.Path, str]], options: ScanOptions
) -> list[FileOutcome]:
    outcomes = []
    with tqdm(total=len(candidates), desc="Scanning", unit="file", disable=not options.show_progress) as pbar:
        for file_path, relative in candidates:
            outcomes.append(process_file(file_path, relative, options))
            pbar.update(1)
    return outcomes


def _process_parallel(
    candidates: list[tuple[pathlib.Path, str]], options: ScanOptions
) -> list[FileOutcome]:
    outcomes = []
    with ThreadPoolExecutor(max_workers=options.jobs) as executor:
        futures = [
            executor.submit(process_file, file_path, relative, options)
            for file_path, relative in candidates
        ]
        with tqdm(total=len(futures), desc="Scanning", unit="file", disable=not options.show_progress) as pbar:
            for future in as_completed(futures):
                outcomes.append(future.result())
                pbar.update(1)
    return outcomes


def scan(root_dir, options: ScanOptions | None = None) -> ScanResult:
    """Scan ``root_dir`` into a path-ordered sequence of records.

    Per-file problems (binary, oversized, undecodable or unreadable files)
    skip that file and are counted in ``ScanResult.skipped``; they never
    abort the scan. Sub-directories that cannot be listed are counted as
    ``unreadable`` too.

    Args:
        root_dir: Directory to scan
        options: Scanner configuration, defaults to ScanOptions()

    Returns:
        ScanResult with records sorted by path

    Raises:
        IoError: If the root does not exist, is not a directory or cannot
            be listed
    """
    options = options or ScanOptions()
    root = pathlib.Path(root_dir)
    if not root.is_dir():
        cause = "not a directory" if root.exists() else "no such directory"
        raise IoError("scan", root, cause)
    root = root.resolve()

    try:
        candidates, unreadable_dirs = collect_files(root, options)
    except OSError as e:
        raise IoError("scan", root, e) from e
    logger.debug("Found %d candidate files under %s", len(candidates), root)

    if options.jobs > 1 and len(candidates) > 1:
        outcomes = _process_parallel(candidates, options)
    else:
        outcomes = _process_sequential(candidates, options)

    records = [outcome.record for outcome in outcomes if outcome.record is not None]
    records.sort(key=lambda record: record.path)
    skipped = Counter(outcome.skip_reason for outcome in outcomes if outcome.skip_reason)
    if unreadable_dirs:
        skipped[SKIP_UNREADABLE] += len(unreadable_dirs)
    return ScanResult(records=records, skipped=dict(sorted(skipped.items())))
