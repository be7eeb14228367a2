from __future__ import annotations

import pathlib

from repoinventory.language_detection import detect_shebang, get_file_category, get_language_from_path


def test_exact_file_name_wins_over_extension() -> None:
    assert get_language_from_path(pathlib.PurePosixPath("Makefile")) == "makefile"
    assert get_language_from_path(pathlib.PurePosixPath("docker/Dockerfile.dev")) == "dockerfile"
    assert get_language_from_path(pathlib.PurePosixPath("CMakeLists.txt")) == "cmake"


def test_extension_lookup_is_case_insensitive() -> None:
    assert get_language_from_path(pathlib.PurePosixPath("lib/Tool.PY")) == "python"
    assert get_language_from_path(pathlib.PurePosixPath("web/app.tsx")) == "typescript"


def test_shebang_fallback_for_extensionless_scripts() -> None:
    head = b"#!/usr/bin/env bash\necho hi\n"
    assert get_language_from_path(pathlib.PurePosixPath("bin/run"), head) == "bash"
    assert detect_shebang("#!/usr/bin/python3 -u") == "python"
    assert detect_shebang("#!/usr/bin/env node") == "javascript"


def test_unknown_language() -> None:
    assert get_language_from_path(pathlib.PurePosixPath("data.xyz")) == "unknown"
    assert get_language_from_path(pathlib.PurePosixPath("notes"), b"plain text\n") == "unknown"


def test_file_category() -> None:
    assert get_file_category(pathlib.PurePosixPath("src/app.py")) == "source"
    assert get_file_category(pathlib.PurePosixPath("Makefile")) == "build"
    assert get_file_category(pathlib.PurePosixPath("docs/guide.md")) == "docs"
    assert get_file_category(pathlib.PurePosixPath("image.png")) == "other"
