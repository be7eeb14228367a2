"""File system operations and per-file record building."""

import logging
import os
import pathlib
import tempfile
from dataclasses import dataclass

import pathspec

from repoinventory.config import ScanOptions
from repoinventory.constants import (
    ALWAYS_IGNORE_PATTERNS,
    BINARY_RATIO_THRESHOLD,
    BINARY_SNIFF_BYTES,
    IGNORE_FILES,
    NOISE_DIRS,
    SNIPPET_SOURCE_BYTES,
)
from repoinventory.errors import IoError
from repoinventory.fingerprint import estimate_tokens, fingerprint
from repoinventory.heuristics import infer_module_id, infer_tags, skim_symbols, top_level_dir
from repoinventory.language_detection import get_language_from_path
from repoinventory.models import FileRecord
from repoinventory.snippet import extract_relevant_snippet
from repoinventory.summarizer import summarize

logger = logging.getLogger(__name__)

SKIP_BINARY = "binary"
SKIP_OVERSIZED = "oversized"
SKIP_DECODE_ERROR = "decode_error"
SKIP_UNREADABLE = "unreadable"

# Bytes that show up in ordinary text files besides printable ASCII.
_TEXT_CONTROL_BYTES = frozenset(b"\t\n\r\f\b\x1b")


@dataclass(frozen=True)
class FileOutcome:
    """Result of processing one candidate: a record, or the reason it was skipped."""

    relative_path: str
    record: FileRecord | None = None
    skip_reason: str | None = None


def _read_ignore_lines(path: pathlib.Path) -> list[str]:
    if not path.is_file():
        return []
    try:
        with open(path, encoding="utf-8", errors="ignore") as f:
            return f.readlines()
    except OSError as e:
        logger.warning("Could not read ignore file %s: %s", path, e)
        return []


def get_combined_spec(
    root_dir: pathlib.Path, extra_patterns: tuple[str, ...] = ()
) -> pathspec.GitIgnoreSpec:
    """Combine the built-in deny-list with the root ignore files.

    Loads ``.gitignore`` and ``.gptignore`` from the root, then
    ``.git/info/exclude``.

    Args:
        root_dir: Scan root
        extra_patterns: Additional gitignore-style patterns

    Returns:
        PathSpec matching paths relative to the root
    """
    all_patterns = list(ALWAYS_IGNORE_PATTERNS)
    for name in IGNORE_FILES:
        all_patterns.extend(_read_ignore_lines(root_dir / name))
    all_patterns.extend(_read_ignore_lines(root_dir / ".git" / "info" / "exclude"))
    all_patterns.extend(extra_patterns)
    return pathspec.GitIgnoreSpec.from_lines(all_patterns)


def load_nested_gitignore(directory: pathlib.Path) -> pathspec.GitIgnoreSpec | None:
    """PathSpec for a sub-directory's ``.gitignore``, matched relative to that directory."""
    lines = _read_ignore_lines(directory / ".gitignore")
    if not lines:
        return None
    return pathspec.GitIgnoreSpec.from_lines(lines)


def _to_posix(path: pathlib.Path) -> str:
    return str(path).replace(os.sep, "/")


def to_text_name(name: str) -> str:
    """Make a file system name valid UTF-8 text.

    Undecodable bytes (surrogate-escaped by ``os.walk``) become U+FFFD.

    Examples:
        >>> to_text_name("caf\\udce9.txt") == "caf\\ufffd.txt"
        True
    """
    return os.fsencode(name).decode("utf-8", errors="replace")


def _is_ignored(
    relative: str,
    is_dir: bool,
    root_spec: pathspec.GitIgnoreSpec,
    nested: dict[str, pathspec.GitIgnoreSpec],
) -> bool:
    """Decide with git's rules: deeper ignore files override shallower ones, last match wins."""
    candidate = relative + "/" if is_dir else relative
    ignored = root_spec.check_file(candidate).include
    scopes = sorted(
        (base for base in nested if candidate.startswith(base + "/")), key=lambda b: b.count("/")
    )
    for base in scopes:
        verdict = nested[base].check_file(candidate[len(base) + 1:]).include
        if verdict is not None:
            ignored = verdict
    return bool(ignored)


def collect_files(
    root: pathlib.Path, options: ScanOptions
) -> tuple[list[tuple[pathlib.Path, str]], list[str]]:
    """Collect every candidate file under ``root``.

    Ignored directories are pruned during the walk. With
    ``follow_symlinks`` on, directories already visited under another name
    are skipped so symlink cycles terminate. Relative paths are always valid
    text, even for names that are not valid UTF-8.

    Args:
        root: Resolved scan root
        options: Scanner configuration

    Returns:
        ``(absolute_path, relative_posix_path)`` pairs sorted by relative
        path, and the sorted relative paths of sub-directories that could
        not be listed

    Raises:
        IoError: If the root itself cannot be listed
    """
    root_spec = get_combined_spec(root, options.extra_ignore_patterns)
    nested: dict[str, pathspec.GitIgnoreSpec] = {}
    excluded = {pathlib.Path(p).resolve() for p in options.exclude_paths}
    visited: set[str] = set()
    candidates: list[tuple[pathlib.Path, str]] = []
    unreadable: list[str] = []

    def on_walk_error(error: OSError) -> None:
        failed = pathlib.Path(error.filename) if error.filename else root
        if failed == root:
            raise IoError("scan", root, error) from error
        relative = to_text_name(_to_posix(failed.relative_to(root)))
        logger.warning("Could not list directory %s: %s", relative, error)
        unreadable.append(relative)

    walker = os.walk(root, topdown=True, onerror=on_walk_error, followlinks=options.follow_symlinks)
    for current, dirs, files in walker:
        current_path = pathlib.Path(current)
        real = os.path.realpath(current)
        if real in visited:
            dirs[:] = []
            continue
        visited.add(real)

        rel_dir = to_text_name(_to_posix(current_path.relative_to(root)))
        rel_dir = "" if rel_dir == "." else rel_dir
        if rel_dir:
            spec = load_nested_gitignore(current_path)
            if spec is not None:
                nested[rel_dir] = spec

        kept_dirs = []
        for d in sorted(dirs):
            dir_path = current_path / d
            name = to_text_name(d)
            relative = f"{rel_dir}/{name}" if rel_dir else name
            if _is_ignored(relative, True, root_spec, nested):
                continue
            if excluded and dir_path.resolve() in excluded:
                continue
            kept_dirs.append(d)
        dirs[:] = kept_dirs

        for filename in files:
            file_path = current_path / filename
            name = to_text_name(filename)
            relative = f"{rel_dir}/{name}" if rel_dir else name
            if not options.follow_symlinks and file_path.is_symlink():
                continue
            if _is_ignored(relative, False, root_spec, nested):
                continue
            if excluded and file_path.resolve() in excluded:
                continue
            candidates.append((file_path, relative))

    candidates.sort(key=lambda item: item[1])
    return candidates, sorted(unreadable)


def is_probably_binary(head: bytes) -> bool:
    """Classify content as binary from its leading bytes.

    A NUL byte, or more than BINARY_RATIO_THRESHOLD control bytes, means binary.

    Examples:
        >>> is_probably_binary(b"hello\\n")
        False
        >>> is_probably_binary(b"\\x00\\x01\\x02")
        True
    """
    if not head:
        return False
    if b"\x00" in head:
        return True
    non_text = sum(1 for b in head if (b < 32 and b not in _TEXT_CONTROL_BYTES) or b == 127)
    return non_text / len(head) > BINARY_RATIO_THRESHOLD


def count_lines(content: str) -> tuple[int, int]:
    """Return ``(total, nonblank)`` line counts."""
    lines = content.splitlines()
    return len(lines), sum(1 for line in lines if line.strip())


def read_candidate(file_path: pathlib.Path, max_bytes: int) -> tuple[bytes | None, str | None]:
    """Read a file, sniffing a bounded prefix before reading the rest.

    Returns:
        ``(data, None)`` on success, ``(None, skip_reason)`` otherwise
    """
    with open(file_path, "rb") as f:
        head = f.read(BINARY_SNIFF_BYTES)
        if is_probably_binary(head):
            return None, SKIP_BINARY
        rest = f.read(max_bytes + 1 - len(head)) if len(head) <= max_bytes else b""
    data = head + rest
    if len(data) > max_bytes:
        return None, SKIP_OVERSIZED
    return data, None


def build_record(
    relative_path: str, data: bytes, content: str, mtime: float, include_content: bool
) -> FileRecord:
    """Assemble a FileRecord from already-read file content."""
    language = get_language_from_path(pathlib.PurePosixPath(relative_path), data[:256])
    digest, size = fingerprint(data)
    snippet = extract_relevant_snippet(content[:SNIPPET_SOURCE_BYTES], language)
    described = summarize(relative_path, content, language)
    imports, exports = skim_symbols(snippet, language)
    total, nonblank = count_lines(content)
    top = top_level_dir(relative_path)
    tags = tuple(sorted(set(described.tags) | set(infer_tags(relative_path, language))))
    kept_content = content if include_content else None
    return FileRecord(
        path=relative_path,
        language=language,
        digest=digest,
        byte_size=size,
        last_modified=int(mtime),
        line_count_total=total,
        line_count_nonblank=nonblank,
        snippet=snippet,
        summary=described.summary,
        token_estimate=estimate_tokens(kept_content if kept_content is not None else snippet),
        tags=tags,
        top_level_dir=top,
        is_noise=top in NOISE_DIRS,
        role=described.role,
        module=infer_module_id(relative_path, language),
        imports=imports,
        exports=exports,
        content=kept_content,
    )


def process_file(file_path: pathlib.Path, relative_path: str, options: ScanOptions) -> FileOutcome:
    """Process a single file into a record.

    Per-file problems never raise: they turn into a skip reason.

    Args:
        file_path: Absolute path to the file
        relative_path: Forward-slash path relative to the scan root
        options: Scanner configuration

    Returns:
        FileOutcome holding the record or the skip reason
    """
    try:
        stat = file_path.stat()
        if stat.st_size > options.max_file_bytes:
            logger.debug("Skipping %s: %d bytes exceeds limit", relative_path, stat.st_size)
            return FileOutcome(relative_path, skip_reason=SKIP_OVERSIZED)
        data, reason = read_candidate(file_path, options.max_file_bytes)
    except OSError as e:
        logger.warning("Could not read %s: %s", relative_path, e)
        return FileOutcome(relative_path, skip_reason=SKIP_UNREADABLE)

    if data is None:
        logger.debug("Skipping %s: %s", relative_path, reason)
        return FileOutcome(relative_path, skip_reason=reason)

    try:
        content = data.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("Skipping %s: not valid UTF-8", relative_path)
        return FileOutcome(relative_path, skip_reason=SKIP_DECODE_ERROR)

    record = build_record(relative_path, data, content, stat.st_mtime, options.include_content)
    return FileOutcome(relative_path, record=record)


def write_text_atomic(path: pathlib.Path, text: str, operation: str = "write") -> None:
    """Write ``text`` to ``path`` through a temp file and an atomic rename.

    An interrupted write leaves the previous file (or no file) in place,
    never a truncated one. The temp file is removed on every failure.

    Raises:
        IoError: If the destination cannot be written or the text cannot
            be encoded as UTF-8
    """
    path = pathlib.Path(path)
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            handle.write(text)
        os.replace(tmp_name, path)
        tmp_name = None
    except (OSError, UnicodeEncodeError) as e:
        raise IoError(operation, path, e) from e
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
