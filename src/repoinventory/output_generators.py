"""Markdown views over a snapshot: directory tree and grouped project map."""

import pathlib
from collections import Counter, defaultdict

from repoinventory.constants import NOISE_GROUPS, ROOT_DIR_SENTINEL
from repoinventory.language_detection import get_file_category
from repoinventory.models import FileRecord

MAP_LIST_CAP = 120
MAP_SUMMARY_CHARS = 100
MAP_TOP_TAGS = 12


def format_size(size_bytes: float) -> str:
    """Format file size in human-readable format.

    Examples:
        >>> format_size(1536)
        '1.5 KB'
    """
    for unit in ["B", "KB", "MB", "GB"]:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} TB"


def clamp_summary(summary: str, limit: int = MAP_SUMMARY_CHARS) -> str:
    """Collapse a summary to one line of at most ``limit`` characters."""
    line = " ".join(summary.split())
    if len(line) <= limit:
        return line
    return line[: limit - 1].rstrip() + "…"


def generate_statistics(records: list[FileRecord]) -> str:
    """Statistics section: totals, then counts by category and by language."""
    total_lines = sum(r.line_count_total for r in records)
    total_size = sum(r.byte_size for r in records)

    by_category = defaultdict(list)
    by_language = defaultdict(list)
    for record in records:
        by_category[get_file_category(pathlib.PurePosixPath(record.path))].append(record)
        by_language[record.language].append(record)

    stats = "## Statistics\n\n"
    stats += f"- **Total Files:** {len(records)}\n"
    stats += f"- **Total Lines:** {total_lines:,}\n"
    stats += f"- **Total Size:** {format_size(total_size)}\n\n"

    for title, groups in (("By Category", by_category), ("By Language", by_language)):
        stats += f"### {title}\n\n"
        for name, members in sorted(groups.items(), key=lambda x: (-len(x[1]), x[0])):
            lines = sum(m.line_count_total for m in members)
            stats += f"- **{name}:** {len(members)} files, {lines:,} lines\n"
        stats += "\n"
    return stats


def _tree_entry(record: FileRecord, depth: int) -> str:
    name = record.path.rsplit("/", 1)[-1]
    tags = f" _[{', '.join(record.tags)}]_" if record.tags else ""
    summary = f" — {record.summary}" if record.summary else ""
    return f"{'  ' * depth}- `{name}`{tags}{summary}"


def build_tree_view(records: list[FileRecord]) -> str:
    """Hierarchical markdown list of directories and files.

    Output format (example)::

        - `README.md` _[docs]_ — Project README / documentation.
        - **src/**
          - `main.rs` _[rust]_ — Entrypoint for this Rust binary.
    """
    files_in_dir: dict[str, list[FileRecord]] = defaultdict(list)
    children: dict[str, set[str]] = defaultdict(set)
    for record in records:
        parent, _, _ = record.path.rpartition("/")
        files_in_dir[parent].append(record)
        parts = parent.split("/") if parent else []
        for depth in range(len(parts)):
            above = "/".join(parts[:depth])
            children[above].add("/".join(parts[: depth + 1]))

    lines = ["# Project File Tree", ""]

    def render(directory: str, depth: int) -> None:
        for record in sorted(files_in_dir.get(directory, []), key=lambda r: r.path):
            lines.append(_tree_entry(record, depth))
        for child in sorted(children.get(directory, ())):
            lines.append(f"{'  ' * depth}- **{child.rsplit('/', 1)[-1]}/**")
            render(child, depth + 1)

    render("", 0)
    return "\n".join(lines) + "\n"


def top_tags(records: list[FileRecord], limit: int = MAP_TOP_TAGS) -> tuple[list[str], int]:
    """Most frequent tags as ``tag (count)`` strings, plus the number of distinct tags."""
    counts = Counter(tag for record in records for tag in set(record.tags))
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [f"{tag} ({count})" for tag, count in ranked[:limit]], len(counts)


def build_map_view(records: list[FileRecord]) -> str:
    """Project map grouped by top-level directory.

    Noise groups are skipped, summaries are clamped to one line and each
    group lists at most MAP_LIST_CAP files followed by a "+N more" footer.
    """
    groups: dict[str, list[FileRecord]] = defaultdict(list)
    for record in records:
        groups[record.top_level_dir].append(record)

    tags, tag_count = top_tags(records)
    out = ["# Project File Map", ""]
    out.append(f"> Files: {len(records)}  •  Groups: {len(groups)}  •  Tag varieties: {tag_count}")
    if tags:
        out.append(f"> Tags: {', '.join(tags)}")
    out.append("")
    out.append(generate_statistics(records))

    for group in sorted(groups):
        if group in NOISE_GROUPS:
            continue
        members = sorted(groups[group], key=lambda r: r.path)
        heading = "(root)" if group == ROOT_DIR_SENTINEL else f"{group}/"
        out.append(f"## `{heading}`  _(files: {len(members)})_")
        out.append("")
        group_tags, _ = top_tags(members, limit=6)
        if group_tags:
            out.append(f"_Tags: {', '.join(group_tags)}_")
            out.append("")
        for record in members[:MAP_LIST_CAP]:
            summary = clamp_summary(record.summary)
            line = f"- `{record.path}` [{record.language}]"
            if summary:
                line += f" — {summary}"
            out.append(line)
        if len(members) > MAP_LIST_CAP:
            out.append(f"- … +{len(members) - MAP_LIST_CAP} more")
        out.append("")
    return "\n".join(out)
