"""Path and snippet heuristics: tags, roles, module ids, import/export skims.

Everything here is line-local string matching. Nothing parses code.
"""

import pathlib
import re

from repoinventory.constants import ROOT_DIR_SENTINEL

_WORD_SPLIT = re.compile(r"[/._\-]+")
_IDENT = re.compile(r"[A-Za-z0-9_:]+")


def path_words(path: str) -> set[str]:
    """Lower-cased words of a path, split on separators."""
    return {word for word in _WORD_SPLIT.split(path.lower()) if word}


def top_level_dir(path: str) -> str:
    """First path segment, or "." for root-level files."""
    head, sep, _ = path.partition("/")
    return head if sep else ROOT_DIR_SENTINEL


def infer_tags(path: str, language: str) -> tuple[str, ...]:
    """Structural and heuristic tags for a file.

    Structural tags are ``dir:<top-level-dir>`` and ``ext:<extension>``; the
    rest come from path words.

    Returns:
        Sorted tuple without duplicates

    Examples:
        >>> infer_tags("src/main.rs", "rust")
        ('crate:bin', 'dir:src', 'ext:rs', 'rust')
    """
    tags: set[str] = set()
    if language:
        tags.add(language.lower())

    pure = pathlib.PurePosixPath(path)
    name = pure.name.lower()
    full = path.lower()
    words = path_words(path)

    top = top_level_dir(path)
    if top != ROOT_DIR_SENTINEL:
        tags.add(f"dir:{top.lower()}")
    if pure.suffix:
        tags.add(f"ext:{pure.suffix[1:].lower()}")

    if "core" in words:
        tags.add("core")
    if words & {"ui", "gui"}:
        tags.add("ui")
    if words & {"test", "tests", "spec"} or name.startswith("test_"):
        tags.add("test")
    if words & {"bench", "benches", "benchmark", "benchmarks"}:
        tags.add("bench")
    if words & {"doc", "docs"} or full.endswith(".md"):
        tags.add("docs")
    if words & {"script", "scripts"} or full.endswith(".sh"):
        tags.add("script")
    if name == "lib.rs":
        tags.add("crate:lib")
    if name == "main.rs":
        tags.add("crate:bin")
    if name in ("mod.rs", "__init__.py"):
        tags.add("mod")
    if name in ("types.rs", "types.py") or name.endswith("_types.rs"):
        tags.add("types")
    if words & {"build", "ci"} or ".github/" in full:
        tags.add("build")
    return tuple(sorted(tags))


def infer_role(path: str, language: str, snippet: str) -> str:
    """Coarse file role: bin, lib, test, doc, config, script, ui or core."""
    p = path.lower()
    lang = language.lower()
    s = snippet.lower()
    words = path_words(path)

    if (
        words & {"test", "tests"}
        or p.endswith(("_test.rs", "_tests.rs", "_test.py", "_test.go"))
        or pathlib.PurePosixPath(p).name.startswith("test_")
        or "#[test]" in s
        or "import pytest" in s
    ):
        return "test"
    if p.endswith("src/main.rs") or "fn main(" in s or "/src/bin/" in f"/{p}":
        return "bin"
    if "if __name__ == " in s:
        return "bin"
    if p.endswith(".md") or words & {"doc", "docs"}:
        return "doc"
    if lang in ("toml", "yaml", "json", "ini"):
        return "config"
    if p.endswith(".sh") or s.startswith(("#!/bin/bash", "#!/usr/bin/env bash", "#!/bin/sh")):
        return "script"
    if words & {"ui", "gui", "panel", "editor", "view", "views"}:
        return "ui"
    if p.endswith("lib.rs"):
        return "lib"
    if words & {"core", "engine"}:
        return "core"
    return "lib"


def _rust_module_id(path: str) -> str:
    if path.endswith("src/lib.rs"):
        return "crate"
    if path.endswith("src/main.rs"):
        return "bin"
    if path.startswith("src/bin/"):
        return "bin::" + path[len("src/bin/"):].removesuffix(".rs")
    if path.startswith("src/"):
        rest = path[len("src/"):]
        if rest.endswith("/mod.rs"):
            return rest.removesuffix("/mod.rs").replace("/", "::")
        return rest.removesuffix(".rs").replace("/", "::")
    return str(pathlib.PurePosixPath(path).with_suffix("")).replace("/", "::")


def _python_module_id(path: str) -> str:
    stem = path.removesuffix(".py")
    if stem.startswith("src/"):
        stem = stem[len("src/"):]
    stem = stem.removesuffix("/__init__")
    return stem.replace("/", ".")


def infer_module_id(path: str, language: str) -> str:
    """Best-effort module id derived from the path.

    Examples:
        >>> infer_module_id("src/foo/mod.rs", "rust")
        'foo'
        >>> infer_module_id("tests/foo_test.py", "python")
        'tests.foo_test'
    """
    path = path.strip("/")
    lang = language.lower()
    if lang == "rust":
        return _rust_module_id(path)
    if lang == "python":
        return _python_module_id(path)
    return str(pathlib.PurePosixPath(path).with_suffix("")).replace("/", "::")


def _sig_ident(line: str, prefix: str) -> str:
    rest = line[len(prefix):].strip()
    match = _IDENT.match(rest)
    if match:
        return match.group(0)
    return rest.split()[0] if rest.split() else rest


def _skim_rust(snippet: str) -> tuple[list[str], list[str]]:
    imports, exports = [], []
    for raw in snippet.splitlines():
        line = raw.strip()
        if line.startswith("use "):
            body = line[len("use "):].rstrip(";").strip()
            if body:
                imports.append(body)
        for prefix in ("pub fn ", "pub struct ", "pub enum ", "pub trait ", "pub mod "):
            if line.startswith(prefix):
                exports.append(_sig_ident(line, prefix))
                break
    return imports, exports


def _skim_python(snippet: str) -> tuple[list[str], list[str]]:
    imports, exports = [], []
    for raw in snippet.splitlines():
        if raw.startswith("import "):
            for part in raw[len("import "):].split(","):
                token = part.split()
                if token:
                    imports.append(token[0])
        elif raw.startswith("from ") and " import " in raw:
            package, _, names = raw[len("from "):].partition(" import ")
            for part in names.strip("() ").split(","):
                token = part.split()
                if token:
                    imports.append(f"{package.strip()}.{token[0]}")
        # only top-level definitions count as exports
        for prefix in ("def ", "async def ", "class "):
            if raw.startswith(prefix):
                name = _sig_ident(raw, prefix)
                if not name.startswith("_"):
                    exports.append(name)
                break
    return imports, exports


def _skim_js_ts(snippet: str) -> tuple[list[str], list[str]]:
    imports, exports = [], []
    for raw in snippet.splitlines():
        line = raw.strip()
        if line.startswith("import ") and " from " in line:
            package = line.rsplit(" from ", 1)[1].strip().strip("\"';")
            if package:
                imports.append(package)
        for prefix in ("export function ", "export class ", "export const ", "export let "):
            if line.startswith(prefix):
                exports.append(_sig_ident(line, prefix))
                break
    return imports, exports


_SKIMMERS = {
    "rust": _skim_rust,
    "python": _skim_python,
    "javascript": _skim_js_ts,
    "typescript": _skim_js_ts,
}


def skim_symbols(snippet: str, language: str) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Cheap import and export skim from a snippet.

    Returns:
        (imports, exports), each sorted and duplicate-free; empty for
        languages without a skimmer
    """
    skimmer = _SKIMMERS.get(language.lower())
    if skimmer is None:
        return (), ()
    imports, exports = skimmer(snippet)
    return tuple(sorted(set(imports))), tuple(sorted(set(exports)))
