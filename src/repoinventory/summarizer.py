"""Offline one-line summaries of what a file is for.

``summarize`` is the only entry point the scanner uses. It never raises: any
internal failure degrades to a generic summary so one odd file cannot stop a
scan.
"""

import logging

from repoinventory.heuristics import infer_role, infer_tags, path_words
from repoinventory.models import Summary

logger = logging.getLogger(__name__)

MAX_SCAN_CHARS = 32 * 1024
FALLBACK_SUMMARY = "No summary available."

# (suffix of the lower-cased path, summary), first match wins
_EXACT_FILES: tuple[tuple[str, str], ...] = (
    ("cargo.toml", "Cargo manifest / workspace configuration."),
    ("package.json", "Node package manifest (scripts/deps)."),
    ("pyproject.toml", "Python project configuration (build/deps/tooling)."),
    ("requirements.txt", "Python dependencies list."),
    ("dockerfile", "Container build definition (Dockerfile)."),
    ("makefile", "Make build targets and automation."),
    (".mk", "Make build targets and automation."),
    ("readme.md", "Project README / documentation."),
    ("readme", "Project README / documentation."),
    ("license", "Project license."),
    ("license.md", "Project license."),
)

_GENERIC_CONFIG: tuple[tuple[tuple[str, ...], str], ...] = (
    ((".yml", ".yaml"), "YAML configuration file."),
    ((".toml",), "TOML configuration file."),
    ((".env",), "Environment variables file."),
)


def _is_ci_config(path: str) -> bool:
    return ".github/workflows/" in path or ".gitlab-ci" in path or ".circleci/" in path


def _is_test_file(path: str, text: str) -> bool:
    words = path_words(path)
    return (
        bool(words & {"test", "tests"})
        or path.endswith(("_test.rs", ".spec.ts", ".spec.js", "_test.py"))
        or path.rsplit("/", 1)[-1].startswith("test_")
        or "#[test]" in text
        or "import pytest" in text
    )


def _feature_summary(path: str, text: str) -> str | None:
    words = path_words(path)
    if words & {"ui", "panel", "editor", "view", "views", "component", "widget", "screen", "page"}:
        return "User interface / presentation layer."
    if words & {"core", "engine", "domain", "model", "models", "service"}:
        return "Core domain logic / engine layer."
    if "cli" in words or any(lib in text for lib in ("use clap", "import argparse", "import click")):
        return "Command-line interface."
    if any(lib in text for lib in ("axum::", "actix", "fastapi", "flask", "express(")):
        return "HTTP server / routing."
    if any(lib in text for lib in ("sqlx::", "diesel::", "sqlalchemy", "postgres", "redis")) or words & {
        "db",
        "repository",
        "persistence",
    }:
        return "Database access / persistence layer."
    if any(token in text for token in ("tokio::", "async fn", "asyncio", "std::sync", "threading")):
        return "Concurrency / async orchestration."
    if any(token in text for token in ("std::fs", "std::io", "pathlib", "shutil")) or words & {"io", "fs"}:
        return "Filesystem / IO utilities."
    return None


def extract_doc_summary(text: str) -> str | None:
    """First doc line, Markdown heading or prose line, skipping fenced code.

    Examples:
        >>> extract_doc_summary("Intro\\n```rust\\nfn main(){}\\n```\\n# Heading\\n")
        'Intro'
        >>> extract_doc_summary("//! Cool module\\nfn main(){}")
        'Cool module'
    """
    lines = text.splitlines()
    for line in lines[:256]:
        stripped = line.lstrip()
        if stripped.startswith(("//!", "///")):
            message = stripped[3:].strip()
            if message:
                return message
            continue
        if stripped and not stripped.startswith(("//", "#!")):
            break

    in_fence = False
    for line in lines[:512]:
        stripped = line.strip()
        if stripped.startswith("```"):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        if stripped.startswith("# "):
            message = stripped.lstrip("#").strip()
            if message:
                return message
        for quote in ('"""', "'''"):
            if stripped.startswith(quote):
                stripped = stripped[3:].split(quote, 1)[0].strip()
        if len(stripped) > 2 and not stripped.startswith(("#", "//", "/*")):
            return stripped
    return None


def guess_summary(path: str, text: str, language: str) -> str:
    """Short, human-readable one-liner for a file."""
    pl = path.replace("\\", "/").lower()
    tl = text[:MAX_SCAN_CHARS].lower()
    lang = language.lower()

    for suffix, summary in _EXACT_FILES:
        if pl.endswith(suffix):
            return summary
    if "/docker/" in f"/{pl}":
        return "Container build definition (Dockerfile)."
    if _is_ci_config(pl):
        return "CI pipeline/workflow configuration."
    for suffixes, summary in _GENERIC_CONFIG:
        if pl.endswith(suffixes):
            return summary

    if pl.endswith("src/main.rs") or "fn main(" in tl:
        return "Entrypoint for this Rust binary." if lang == "rust" else "Program entrypoint."
    if lang == "python" and "if __name__ ==" in tl:
        return "Python script entrypoint."
    if pl.endswith("lib.rs"):
        return "Root library file for this Rust crate."
    if _is_test_file(pl, tl):
        return "Test module or spec suite."
    if pl.endswith(("mod.rs", "__init__.py")):
        return "Module definition / namespace aggregator."

    feature = _feature_summary(pl, tl)
    if feature is not None:
        return feature

    doc = extract_doc_summary(text[:MAX_SCAN_CHARS])
    if doc is not None:
        return doc
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return FALLBACK_SUMMARY


def summarize(path: str, content: str, language: str) -> Summary:
    """Summary, role and tags for one file; never raises."""
    try:
        return Summary(
            summary=guess_summary(path, content, language),
            role=infer_role(path, language, content[:MAX_SCAN_CHARS]),
            tags=infer_tags(path, language),
        )
    except Exception as e:  # noqa: BLE001
        logger.warning("Summarizer failed for %s: %s", path, e)
        return Summary(summary=FALLBACK_SUMMARY, role="lib", tags=())
