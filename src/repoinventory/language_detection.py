"""Language and file category detection utilities."""

import pathlib

from repoinventory.constants import (
    EXTENSION_LANGUAGES,
    FILE_CATEGORIES,
    FILENAME_LANGUAGES,
    SHEBANG_LANGUAGES,
    UNKNOWN_LANGUAGE,
)


def detect_shebang(first_line: str) -> str | None:
    """Map a ``#!`` interpreter line to a language label.

    Examples:
        >>> detect_shebang("#!/usr/bin/env python3")
        'python'
        >>> detect_shebang("print('hi')") is None
        True
    """
    line = first_line.strip()
    if not line.startswith("#!"):
        return None
    interpreter = line[2:].strip().split()
    # "/usr/bin/env python3" -> look at every word, not just the program
    words = [pathlib.PurePosixPath(word).name for word in interpreter]
    for needle, language in SHEBANG_LANGUAGES:
        if any(word.startswith(needle) for word in words):
            return language
    return None


def get_language_from_path(file_path: pathlib.PurePath, head: bytes | None = None) -> str:
    """Determine the language label of a file.

    Exact file names win over extensions; extensionless files fall back to
    their shebang line when ``head`` is given.

    Args:
        file_path: Path to the file (only the name is inspected)
        head: Leading bytes of the file, used for the shebang fallback

    Returns:
        Language label, or "unknown" if nothing matched

    Examples:
        >>> get_language_from_path(pathlib.Path("src/main.rs"))
        'rust'
        >>> get_language_from_path(pathlib.Path("Dockerfile"))
        'dockerfile'
    """
    name_lower = file_path.name.lower()
    if name_lower in FILENAME_LANGUAGES:
        return FILENAME_LANGUAGES[name_lower]

    suffix = file_path.suffix.lower()
    if suffix in EXTENSION_LANGUAGES:
        return EXTENSION_LANGUAGES[suffix]

    if name_lower.startswith("dockerfile"):
        return "dockerfile"

    if head:
        first_line = head.split(b"\n", 1)[0].decode("utf-8", errors="ignore")
        language = detect_shebang(first_line)
        if language is not None:
            return language

    return UNKNOWN_LANGUAGE


def get_file_category(file_path: pathlib.PurePath) -> str:
    """Categorize file by its purpose.

    Returns:
        Category name ('source', 'config', 'docker', 'iac', 'build', 'docs', or 'other')
    """
    name_lower = file_path.name.lower()
    suffix_lower = file_path.suffix.lower()

    for category, extensions in FILE_CATEGORIES.items():
        if name_lower in extensions or suffix_lower in extensions:
            return category
    return "other"
