"""Compact, high-signal excerpts of file content.

A snippet is built in two passes over the head of the file:

1. Capture the leading doc/comment block (language aware).
2. Score each line by language and keep the highest-signal lines in their
   original order, with one line of trailing context.

Both passes are capped so that a snippet never grows past MAX_KEEP_LINES.
"""

from collections.abc import Callable

MAX_SCAN_CHARS = 32 * 1024
MAX_SCAN_LINES = 800
MAX_KEEP_LINES = 60
MAX_INTERESTING_SEEN = 400
CONTEXT_AFTER = 1
HEAD_FALLBACK_LINES = 40


def _is_todo(lower: str) -> bool:
    return "todo" in lower or "fixme" in lower


def score_rust(line: str) -> int:
    if line.startswith(("///", "//!")):
        return 9
    if line.startswith("pub use "):
        return 5
    if line.startswith(("pub fn ", "pub struct ", "pub enum ", "pub trait ", "pub mod ")):
        return 8
    if line.startswith(("use ", "extern crate")):
        return 3
    if line.startswith(("fn ", "struct ", "enum ", "impl ", "type ")):
        return 6
    if line.startswith("#["):
        return 4
    if _is_todo(line.lower()):
        return 2
    return 0


def score_python(line: str) -> int:
    if line.startswith(('"""', "'''", "#!", "# ")):
        return 9
    if line.startswith(("def ", "class ", "async def ")):
        return 8
    if line.lower().startswith(("if __name__ == '__main__'", 'if __name__ == "__main__"')):
        return 7
    if line.startswith(("import ", "from ")):
        return 3
    if _is_todo(line.lower()):
        return 2
    return 0


def score_js_ts(line: str) -> int:
    if line.startswith(("/**", "* ", "//")):
        return 8
    if line.startswith("export "):
        return 8
    if line.startswith("import "):
        return 3
    if line.startswith("function ") or "=>" in line:
        return 5
    return 0


def score_go(line: str) -> int:
    if line.startswith("//"):
        return 7
    if line.startswith("func "):
        return 6
    if line.startswith("package "):
        return 5
    if line.startswith("import "):
        return 3
    return 0


def score_config(line: str) -> int:
    if line.startswith("[") or ": " in line or " = " in line:
        return 5
    return 0


def score_markdown(line: str) -> int:
    if line.startswith(("# ", "## ")):
        return 8
    return 0


def score_generic(line: str) -> int:
    if line.startswith(("//", "#", "--")):
        return 6
    if "class " in line or line.startswith(("def ", "fn ")):
        return 5
    if line.startswith(("import ", "using ")):
        return 3
    return 0


LINE_SCORERS: dict[str, Callable[[str], int]] = {
    "rust": score_rust,
    "python": score_python,
    "javascript": score_js_ts,
    "typescript": score_js_ts,
    "go": score_go,
    "toml": score_config,
    "yaml": score_config,
    "json": score_config,
    "ini": score_config,
    "markdown": score_markdown,
}


def score_line(line: str, language: str) -> int:
    """Score one stripped line; 0 means uninteresting."""
    scorer = LINE_SCORERS.get(language.lower(), score_generic)
    return scorer(line)


# --- leading doc blocks ---


def _leading_rust_docs(lines: list[str]) -> list[str]:
    out: list[str] = []
    started = False
    for line in lines[:120]:
        text = line.lstrip()
        if text.startswith(("//!", "///")):
            started = True
            out.append(text[3:].strip())
            continue
        if started:
            if text.startswith("//") or not text:
                continue
            break
        if text.startswith("/*") and "*/" in text:
            inner = text[2:].split("*/", 1)[0].strip()
            if inner:
                out.append(inner)
            break
    return out


def _leading_python_docs(lines: list[str]) -> list[str]:
    out: list[str] = []
    quote = None
    for line in lines[:160]:
        text = line.lstrip()
        if quote is None and text.startswith(('"""', "'''")):
            quote = text[:3]
            body = text[3:]
            if quote in body:
                inner = body.split(quote, 1)[0].strip()
                if inner:
                    out.append(inner)
                break
            if body.strip():
                out.append(body.strip())
            continue
        if quote is not None:
            if quote in text:
                inner = text.split(quote, 1)[0].strip()
                if inner:
                    out.append(inner)
                break
            out.append(text)
            continue
        if text.startswith(("#!", "# ")):
            out.append(text.lstrip("#!").strip())
            continue
        if out:
            if text and not text.startswith("#"):
                break
        elif text:
            break
    return out


def _leading_js_docs(lines: list[str]) -> list[str]:
    out: list[str] = []
    in_block = False
    for line in lines[:160]:
        text = line.lstrip()
        if not in_block and text.startswith("/**"):
            body = text[3:]
            if "*/" in body:
                inner = body.split("*/", 1)[0].strip().lstrip("*").strip()
                if inner:
                    out.append(inner)
                break
            in_block = True
            continue
        if in_block:
            if "*/" in text:
                inner = text.split("*/", 1)[0].strip().lstrip("*").strip()
                if inner:
                    out.append(inner)
                break
            inner = text.lstrip("*").strip()
            if inner:
                out.append(inner)
            continue
        if text.startswith(("// ", "//\t")):
            out.append(text[2:].strip())
            continue
        if text and not text.startswith(("//", "/*")):
            break
    return out


def _leading_markdown_head(lines: list[str]) -> list[str]:
    out: list[str] = []
    for line in lines[:60]:
        text = line.strip()
        if text.startswith("# "):
            out.append(text[2:].strip())
            continue
        if out:
            if text:
                out.append(text)
            break
        if text and not text.startswith("#"):
            break
    return out


def _leading_generic_head(lines: list[str]) -> list[str]:
    out: list[str] = []
    for line in lines[:40]:
        text = line.strip()
        if text.startswith(("//", "--")):
            out.append(text[2:].strip())
            continue
        if text.startswith("# "):
            out.append(text[2:].strip())
            continue
        if not text and not out:
            continue
        if text and out:
            out.append(text)
        break
    return out


DOC_EXTRACTORS: dict[str, Callable[[list[str]], list[str]]] = {
    "rust": _leading_rust_docs,
    "python": _leading_python_docs,
    "javascript": _leading_js_docs,
    "typescript": _leading_js_docs,
    "markdown": _leading_markdown_head,
}


def leading_doc_block(lines: list[str], language: str) -> list[str]:
    """Return the cleaned leading doc/comment block, capped to a third of the snippet."""
    extractor = DOC_EXTRACTORS.get(language.lower(), _leading_generic_head)
    cleaned = [line.strip() for line in extractor(lines) if line.strip()]
    return cleaned[: MAX_KEEP_LINES // 3]


def _append_unique(out: list[str], line: str) -> None:
    if len(out) < MAX_KEEP_LINES and (not out or out[-1] != line):
        out.append(line)


def extract_relevant_snippet(content: str, language: str) -> str:
    """Extract a compact, high-signal snippet from file content.

    Args:
        content: Decoded file text
        language: Language label from language detection

    Returns:
        At most MAX_KEEP_LINES lines joined by newlines; empty for empty content
    """
    head = content[:MAX_SCAN_CHARS]
    lines = head.splitlines()[:MAX_SCAN_LINES]
    if not lines:
        return ""

    out: list[str] = []
    for doc_line in leading_doc_block(lines, language):
        _append_unique(out, doc_line)
    if len(out) >= MAX_KEEP_LINES:
        return "\n".join(out)

    kept: dict[int, str] = {}
    seen_interesting = 0
    for index, raw in enumerate(lines):
        if len(kept) >= MAX_KEEP_LINES or seen_interesting >= MAX_INTERESTING_SEEN:
            break
        stripped = raw.strip()
        if not stripped or score_line(stripped, language) == 0:
            continue
        kept[index] = raw.rstrip()
        for offset in range(1, CONTEXT_AFTER + 1):
            if index + offset < len(lines):
                context = lines[index + offset].rstrip()
                if context:
                    kept.setdefault(index + offset, context)
        seen_interesting += 1

    if not kept and not out:
        return "\n".join(line.rstrip() for line in lines[:HEAD_FALLBACK_LINES])

    for index in sorted(kept):
        _append_unique(out, kept[index])
    return "\n".join(out)
