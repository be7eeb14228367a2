"""Command-line interface for repoinventory."""

import argparse
import dataclasses
import logging
import pathlib
import shutil
import sys

from repoinventory.chunker import pack, write_bundles
from repoinventory.config import SUB_INDEX_DIR_NAME, InventoryLayout, ScanOptions, timestamp_compact
from repoinventory.constants import DEFAULT_BUNDLE_PREFIX, DEFAULT_TOKEN_BUDGET, MAX_FILE_BYTES
from repoinventory.differ import diff, diff_to_json, write_diff
from repoinventory.errors import InventoryError, IoError
from repoinventory.file_operations import write_text_atomic
from repoinventory.models import FileRecord, ScanResult
from repoinventory.output_generators import build_map_view, build_tree_view, format_size
from repoinventory.scanner import scan
from repoinventory.snapshot import read_snapshot, write_snapshot


def _scan_options(args: argparse.Namespace, exclude: tuple[pathlib.Path, ...] = ()) -> ScanOptions:
    return ScanOptions(
        max_file_bytes=args.max_file_bytes,
        follow_symlinks=args.follow_symlinks,
        include_content=args.include_content,
        jobs=max(1, args.jobs),
        exclude_paths=exclude,
        show_progress=not args.no_progress,
    )


def _report_scan(result: ScanResult) -> None:
    records = result.records
    print(f"✓ Indexed {len(records)} files")
    print(f"📊 Total lines: {sum(r.line_count_total for r in records):,}")
    print(f"💾 Total size: {format_size(sum(r.byte_size for r in records))}")
    if result.skipped:
        detail = ", ".join(f"{count} {reason}" for reason, count in result.skipped.items())
        print(f"⚠ Skipped {result.skipped_total} files ({detail})", file=sys.stderr)


def _load(path: str) -> list[FileRecord]:
    result = read_snapshot(pathlib.Path(path))
    if result.skipped_lines:
        print(
            f"⚠ Skipped {result.skipped_lines} malformed lines in {path}",
            file=sys.stderr,
        )
    return result.records


def cmd_scan(args: argparse.Namespace) -> None:
    output = pathlib.Path(args.output).resolve()
    print(f"📂 Scanning directory: {pathlib.Path(args.directory).resolve()}")
    result = scan(args.directory, _scan_options(args, exclude=(output,)))
    write_snapshot(result.records, output)
    _report_scan(result)
    print(f"📄 Output: {output}")


def cmd_diff(args: argparse.Namespace) -> None:
    result = diff(_load(args.old), _load(args.new))
    if args.output:
        write_diff(result, pathlib.Path(args.output))
        summary = result.summary()
        print(
            f"✓ +{summary['added']} -{summary['removed']} "
            f"~{summary['modified']} →{summary['renamed']} (unchanged {summary['unchanged']})"
        )
        print(f"📄 Output: {args.output}")
    else:
        sys.stdout.write(diff_to_json(result))


def cmd_chunk(args: argparse.Namespace) -> None:
    records = _load(args.snapshot)
    bundles = pack(records, args.cap)
    written = write_bundles(bundles, pathlib.Path(args.output), args.prefix, show_progress=not args.no_progress)
    print(f"✓ Wrote {len(written)} bundles to {args.output}")


def cmd_tree(args: argparse.Namespace) -> None:
    write_text_atomic(pathlib.Path(args.output), build_tree_view(_load(args.snapshot)), "write tree view")
    print(f"✓ Tree view written to {args.output}")


def cmd_map(args: argparse.Namespace) -> None:
    write_text_atomic(pathlib.Path(args.output), build_map_view(_load(args.snapshot)), "write map view")
    print(f"✓ Map view written to {args.output}")


def _archive_snapshot(snapshot: pathlib.Path, archived: pathlib.Path) -> None:
    """Copy the live snapshot into history; the live file is replaced atomically afterwards."""
    try:
        archived.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(snapshot, archived)
    except OSError as e:
        raise IoError("archive snapshot", archived, e) from e


def run_index(root: pathlib.Path, options: ScanOptions, token_budget: int) -> InventoryLayout:
    """Full flow: archive and diff the previous snapshot, rescan, then write all views.

    Returns:
        The layout the outputs were written to
    """
    layout = InventoryLayout.for_root(root)
    options = dataclasses.replace(options, exclude_paths=options.exclude_paths + (layout.base_dir,))

    print(f"📂 Scanning directory: {layout.root}")
    result = scan(layout.root, options)

    if layout.snapshot_path.exists():
        stamp = timestamp_compact()
        previous = _load(str(layout.snapshot_path))
        _archive_snapshot(layout.snapshot_path, layout.archived_snapshot_path(stamp))
        write_snapshot(result.records, layout.snapshot_path)
        delta = diff(previous, result.records)
        write_diff(delta, layout.diff_path(stamp))
        print(f"🔍 Index updated. Diff written to {layout.diff_path(stamp)}")
    else:
        write_snapshot(result.records, layout.snapshot_path)
        print(f"✓ Initial index complete: {layout.snapshot_path}")
    _report_scan(result)

    write_text_atomic(layout.tree_path, build_tree_view(result.records), "write tree view")
    print(f"🌳 Tree view written to {layout.tree_path}")
    write_text_atomic(layout.map_path, build_map_view(result.records), "write map view")
    print(f"🗺 Map view written to {layout.map_path}")
    bundles = pack(result.records, token_budget)
    write_bundles(bundles, layout.chunks_dir, layout.bundle_prefix, show_progress=options.show_progress)
    print(f"📦 {len(bundles)} bundles written to {layout.chunks_dir}")
    return layout


def cmd_index(args: argparse.Namespace) -> None:
    run_index(pathlib.Path(args.directory), _scan_options(args), args.cap)


def run_sub_index(root: pathlib.Path, options: ScanOptions) -> pathlib.Path:
    """Index one sub-directory into its own ``.sub_index`` snapshot.

    A previous snapshot is archived to ``.sub_index/indexes/history``
    first. No diff, views or bundles are written.

    Returns:
        Path of the written snapshot
    """
    layout = InventoryLayout.for_root(root, dir_name=SUB_INDEX_DIR_NAME)
    options = dataclasses.replace(options, exclude_paths=options.exclude_paths + (layout.base_dir,))

    print(f"📂 Scanning directory: {layout.root}")
    result = scan(layout.root, options)
    if layout.snapshot_path.exists():
        archived = layout.snapshot_history_dir / f"{layout.project_name}_{timestamp_compact()}.jsonl"
        _archive_snapshot(layout.snapshot_path, archived)
        print(f"🗄 Previous index archived to {archived}")
    write_snapshot(result.records, layout.snapshot_path)
    _report_scan(result)
    print(f"✓ Subdir index complete: {layout.snapshot_path}")
    return layout.snapshot_path


def cmd_sub(args: argparse.Namespace) -> None:
    run_sub_index(pathlib.Path(args.directory), _scan_options(args))


def _add_scan_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("directory", help="The target directory to scan.")
    parser.add_argument(
        "--max-file-bytes",
        type=int,
        default=MAX_FILE_BYTES,
        help="Skip files larger than this many bytes.",
    )
    parser.add_argument(
        "--follow-symlinks",
        action="store_true",
        help="Follow symbolic links while walking.",
    )
    parser.add_argument(
        "--include-content",
        action="store_true",
        help="Store full file text in the snapshot so bundles carry whole files.",
    )
    parser.add_argument("-j", "--jobs", type=int, default=1, help="Number of parallel file readers.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repoinventory",
        description="Inventory a repository into a snapshot, then diff, chunk and map it.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show detailed processing information.")
    parser.add_argument("--no-progress", action="store_true", help="Hide progress bars.")
    sub = parser.add_subparsers(dest="command", required=True)

    scan_parser = sub.add_parser(
        "scan", help="Scan a directory into a snapshot.", formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    _add_scan_arguments(scan_parser)
    scan_parser.add_argument("-o", "--output", default="snapshot.jsonl", help="The snapshot file to write.")
    scan_parser.set_defaults(handler=cmd_scan)

    diff_parser = sub.add_parser("diff", help="Compare two snapshots.")
    diff_parser.add_argument("old", help="Earlier snapshot.")
    diff_parser.add_argument("new", help="Later snapshot.")
    diff_parser.add_argument("-o", "--output", help="Write the diff JSON here instead of stdout.")
    diff_parser.set_defaults(handler=cmd_diff)

    chunk_parser = sub.add_parser(
        "chunk", help="Pack a snapshot into bundles.", formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    chunk_parser.add_argument("snapshot", help="Snapshot to pack.")
    chunk_parser.add_argument("-o", "--output", default="chunks", help="Directory for bundle files.")
    chunk_parser.add_argument("--prefix", default=DEFAULT_BUNDLE_PREFIX, help="Bundle file name prefix.")
    chunk_parser.add_argument("--cap", type=int, default=DEFAULT_TOKEN_BUDGET, help="Token budget per bundle.")
    chunk_parser.set_defaults(handler=cmd_chunk)

    for name, default, handler, text in (
        ("tree", "PROJECT_TREE.md", cmd_tree, "Render the directory tree view."),
        ("map", "PROJECT_MAP.md", cmd_map, "Render the grouped project map."),
    ):
        view_parser = sub.add_parser(name, help=text, formatter_class=argparse.ArgumentDefaultsHelpFormatter)
        view_parser.add_argument("snapshot", help="Snapshot to render.")
        view_parser.add_argument("-o", "--output", default=default, help="The markdown file to write.")
        view_parser.set_defaults(handler=handler)

    index_parser = sub.add_parser(
        "index",
        help="Scan, archive and diff the previous snapshot, then write tree, map and bundles.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    _add_scan_arguments(index_parser)
    index_parser.add_argument("--cap", type=int, default=DEFAULT_TOKEN_BUDGET, help="Token budget per bundle.")
    index_parser.set_defaults(handler=cmd_index)

    sub_parser = sub.add_parser(
        "sub",
        help="Index a sub-directory into its own .sub_index snapshot, archiving the previous one.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    _add_scan_arguments(sub_parser)
    sub_parser.set_defaults(handler=cmd_sub)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the repoinventory CLI."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        args.handler(args)
    except InventoryError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
