"""Pack snapshot records into size-bounded markdown bundles.

Records are packed in path order so neighbouring files land in the same or
consecutive bundles. A record is split only when it cannot fit even an empty
bundle; its parts then flow across as many bundles as needed.
"""

import pathlib
import re
from collections.abc import Iterable
from datetime import datetime, timezone

from tqdm import tqdm

from repoinventory.constants import (
    CHARS_PER_TOKEN,
    DEFAULT_BUNDLE_PREFIX,
    HARD_PART_CHARS,
    MAX_FILES_PER_BUNDLE,
    MIN_TOKEN_BUDGET,
    UNKNOWN_LANGUAGE,
)
from repoinventory.file_operations import write_text_atomic
from repoinventory.fingerprint import estimate_tokens
from repoinventory.models import Bundle, FileRecord, Part

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_BACKTICK_RUN = re.compile(r"`+")

# Fence info strings for labels that renderers spell differently.
_FENCE_LANGUAGES = {"typescript": "ts", "markdown": "md", "dockerfile": "docker"}


def clamp_budget(token_budget: int) -> int:
    """Raise a token budget to MIN_TOKEN_BUDGET if it is lower.

    Examples:
        >>> clamp_budget(10)
        256
        >>> clamp_budget(15000)
        15000
    """
    return max(MIN_TOKEN_BUDGET, int(token_budget))


def max_part_chars(token_budget: int) -> int:
    """Character ceiling of one split part for a (clamped) budget."""
    return min(HARD_PART_CHARS, clamp_budget(token_budget) * CHARS_PER_TOKEN)


def record_cost(record: FileRecord) -> int:
    """Token cost of a whole record; records with no estimate are re-estimated."""
    if record.token_estimate > 0:
        return record.token_estimate
    return estimate_tokens(record.packable_text)


def _safe_cut(text: str, start: int, limit: int) -> int:
    """Cut position at or before ``limit`` that keeps CRLF pairs and backtick runs whole."""
    pos = limit
    while pos > start + 1 and (
        (text[pos - 1] == "`" and text[pos] == "`") or (text[pos - 1] == "\r" and text[pos] == "\n")
    ):
        pos -= 1
    if pos <= start + 1 and limit - start > 1:
        return limit
    return pos


def _hard_split(line: str, max_chars: int) -> list[str]:
    pieces = []
    start = 0
    while len(line) - start > max_chars:
        cut = _safe_cut(line, start, start + max_chars)
        pieces.append(line[start:cut])
        start = cut
    pieces.append(line[start:])
    return pieces


def split_content(text: str, max_chars: int) -> list[str]:
    """Split text into ordered pieces of at most ``max_chars`` characters.

    Pieces break after line endings whenever possible. A single line longer
    than the ceiling is cut inside, but never between ``\\r`` and ``\\n`` or
    inside a run of backticks unless the run itself exceeds the ceiling.
    Joining the pieces gives back ``text`` exactly.

    Examples:
        >>> split_content("aa\\nbb\\ncc\\n", 6)
        ['aa\\nbb\\n', 'cc\\n']
    """
    if max_chars < 1:
        raise ValueError("max_chars must be >= 1")
    if len(text) <= max_chars:
        return [text]

    pieces: list[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        if len(current) + len(line) <= max_chars:
            current += line
            continue
        if current:
            pieces.append(current)
            current = ""
        if len(line) <= max_chars:
            current = line
        else:
            *full, current = _hard_split(line, max_chars)
            pieces.extend(full)
    if current:
        pieces.append(current)
    return pieces


def _part(record: FileRecord, text: str, tokens: int, index: int = 1, total: int = 1) -> Part:
    return Part(
        path=record.path,
        language=record.language,
        digest=record.digest,
        byte_size=record.byte_size,
        last_modified=record.last_modified,
        summary=record.summary,
        text=text,
        token_estimate=tokens,
        index=index,
        total=total,
    )


def _fits(bundle: Bundle, part: Part, budget: int) -> bool:
    if bundle.token_estimate + part.token_estimate > budget:
        return False
    paths = {p.path for p in bundle.parts}
    return part.path in paths or len(paths) < MAX_FILES_PER_BUNDLE


def pack(
    records: Iterable[FileRecord], token_budget: int, generated_at: datetime | None = None
) -> list[Bundle]:
    """Pack records into bundles that respect ``token_budget``.

    Args:
        records: Snapshot records, in any order
        token_budget: Token ceiling per bundle, clamped to MIN_TOKEN_BUDGET
        generated_at: Timestamp stamped on every bundle (defaults to now, UTC)

    Returns:
        Bundles in path order; empty input gives no bundles
    """
    budget = clamp_budget(token_budget)
    ceiling = max_part_chars(budget)
    stamp = generated_at or datetime.now(timezone.utc)

    bundles: list[Bundle] = []
    current = Bundle(generated_at=stamp)

    def place(part: Part) -> None:
        nonlocal current
        if current.parts and not _fits(current, part, budget):
            bundles.append(current)
            current = Bundle(generated_at=stamp)
        current.add(part)

    for record in sorted(records, key=lambda r: r.path):
        cost = record_cost(record)
        if cost <= budget:
            place(_part(record, record.packable_text, cost))
            continue
        pieces = split_content(record.packable_text, ceiling)
        for index, piece in enumerate(pieces, start=1):
            place(_part(record, piece, estimate_tokens(piece), index, len(pieces)))

    if current.parts:
        bundles.append(current)
    return bundles


def escape_control_chars(text: str) -> str:
    """Replace control characters (other than tab, CR, LF) with ``\\xNN`` escapes."""
    return _CONTROL_CHARS.sub(lambda m: f"\\x{ord(m.group(0)):02x}", text)


def fence_for(text: str) -> str:
    """Backtick fence longer than any backtick run inside ``text``."""
    longest = max((len(run) for run in _BACKTICK_RUN.findall(text)), default=0)
    return "`" * max(3, longest + 1)


def fence_language(language: str) -> str:
    """Info string for a code fence; empty for unknown languages.

    Examples:
        >>> fence_language("TypeScript")
        'ts'
        >>> fence_language("unknown")
        ''
    """
    label = language.strip().lower()
    if not label or label == UNKNOWN_LANGUAGE:
        return ""
    return _FENCE_LANGUAGES.get(label, label)


def render_part(part: Part) -> str:
    """Render one part as a markdown section.

    The section has a heading with path, language and part number, a
    metadata line, the summary when present and the escaped text inside a
    fence longer than any backtick run in it.

    Args:
        part: The part to render

    Returns:
        Markdown ending with a newline
    """
    title = f"## `{part.path}` [{part.language}]"
    if part.is_split:
        title += f" (part {part.index}/{part.total})"
    lines = [
        title,
        f"- digest: `{part.digest}` • size: {part.byte_size} • mtime: {part.last_modified}",
    ]
    if part.summary.strip():
        lines.append(f"**Summary:** {part.summary.strip()}")
    body = escape_control_chars(part.text)
    if not body.endswith("\n"):
        body += "\n"
    fence = fence_for(body)
    lines.append("")
    lines.append(f"{fence}{fence_language(part.language)}")
    return "\n".join(lines) + "\n" + body + fence + "\n"


def render_bundle(bundle: Bundle, number: int) -> str:
    """Render one bundle as a markdown document."""
    header = (
        f"# Bundle {number}\n\n"
        f"> Generated: {bundle.generated_at.isoformat(timespec='seconds')}  \n"
        f"> Files: {bundle.file_count}  •  ~Tokens: {bundle.token_estimate}\n"
    )
    sections = [render_part(part) for part in bundle.parts]
    return header + "\n" + "\n".join(sections)


def bundle_path(out_dir: pathlib.Path, prefix: str, number: int) -> pathlib.Path:
    """File path of bundle ``number`` (1-based), e.g. ``chunks/paste_3.md``."""
    return pathlib.Path(out_dir) / f"{prefix}{number}.md"


def write_bundles(
    bundles: list[Bundle],
    out_dir: pathlib.Path,
    prefix: str = DEFAULT_BUNDLE_PREFIX,
    show_progress: bool = False,
) -> list[pathlib.Path]:
    """Write numbered bundle files and drop stale ones from a previous run.

    Raises:
        IoError: If a bundle file cannot be written
    """
    out_dir = pathlib.Path(out_dir)
    written = []
    with tqdm(total=len(bundles), desc="Writing", unit="bundle", disable=not show_progress) as pbar:
        for number, bundle in enumerate(bundles, start=1):
            path = bundle_path(out_dir, prefix, number)
            write_text_atomic(path, render_bundle(bundle, number), operation="write bundle")
            written.append(path)
            pbar.update(1)

    stale = re.compile(rf"{re.escape(prefix)}(\d+)\.md")
    if out_dir.is_dir():
        for candidate in out_dir.iterdir():
            match = stale.fullmatch(candidate.name)
            if match and int(match.group(1)) > len(bundles):
                candidate.unlink()
    return written
