"""Static tables and limits shared by the scanner, packer and views."""

# Exact file names (lower-cased) that identify a language regardless of extension.
FILENAME_LANGUAGES: dict[str, str] = {
    "dockerfile": "dockerfile",
    "makefile": "makefile",
    "gnumakefile": "makefile",
    "cmakelists.txt": "cmake",
    "gemfile": "ruby",
    "rakefile": "ruby",
    "vagrantfile": "ruby",
    "jenkinsfile": "groovy",
    "pipfile": "toml",
    "cargo.lock": "toml",
    "go.mod": "go",
    ".gitignore": "text",
    ".gitattributes": "text",
    ".dockerignore": "text",
    ".gptignore": "text",
    ".editorconfig": "ini",
    ".env": "bash",
    ".envrc": "bash",
    "readme": "markdown",
    "changelog": "markdown",
    "license": "text",
}

EXTENSION_LANGUAGES: dict[str, str] = {
    # Systems
    ".rs": "rust",
    ".go": "go",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".hh": "cpp",
    ".hxx": "cpp",
    ".cs": "csharp",
    ".swift": "swift",
    # JVM
    ".java": "java",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".scala": "scala",
    ".groovy": "groovy",
    ".gradle": "groovy",
    # Scripting
    ".py": "python",
    ".pyi": "python",
    ".rb": "ruby",
    ".php": "php",
    ".pl": "perl",
    ".lua": "lua",
    ".r": "r",
    ".jl": "julia",
    ".ex": "elixir",
    ".exs": "elixir",
    ".sh": "bash",
    ".bash": "bash",
    ".zsh": "bash",
    ".ps1": "powershell",
    # Web
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".scss": "scss",
    ".vue": "vue",
    ".svelte": "svelte",
    # Config & data
    ".json": "json",
    ".jsonc": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".ini": "ini",
    ".cfg": "ini",
    ".conf": "ini",
    ".xml": "xml",
    ".sql": "sql",
    ".proto": "protobuf",
    ".graphql": "graphql",
    ".tf": "hcl",
    ".hcl": "hcl",
    # Docs
    ".md": "markdown",
    ".markdown": "markdown",
    ".rst": "rst",
    ".txt": "text",
}

# Interpreter names looked for in a "#!" line, checked in order.
SHEBANG_LANGUAGES: tuple[tuple[str, str], ...] = (
    ("python", "python"),
    ("node", "javascript"),
    ("ruby", "ruby"),
    ("perl", "perl"),
    ("bash", "bash"),
    ("zsh", "bash"),
    ("sh", "bash"),
)

UNKNOWN_LANGUAGE = "unknown"

# Built-in deny-list, always applied before any ignore file.
ALWAYS_IGNORE_PATTERNS: tuple[str, ...] = (
    # Version control
    ".git/",
    ".svn/",
    ".hg/",
    ".bzr/",
    # Dependency caches
    "node_modules/",
    "bower_components/",
    "vendor/",
    ".venv/",
    "venv/",
    "__pycache__/",
    ".pytest_cache/",
    ".mypy_cache/",
    ".ruff_cache/",
    ".tox/",
    "*.egg-info/",
    # Build output
    "target/",
    "dist/",
    "build/",
    "out/",
    ".next/",
    ".cache/",
    # Editors & OS
    ".idea/",
    ".vscode/",
    ".DS_Store",
    "*.swp",
    "*.pyc",
    # Own output
    ".inventory/",
    ".gpt_index/",
    ".sub_index/",
)

# Ignore files read from the scan root, in order.
IGNORE_FILES: tuple[str, ...] = (".gitignore", ".gptignore")

# Top-level directories whose files are flagged as noise.
NOISE_DIRS: frozenset[str] = frozenset(
    {"target", "node_modules", ".git", ".github", ".idea", ".vscode"}
)

# Map view groups that are skipped entirely.
NOISE_GROUPS: frozenset[str] = NOISE_DIRS | {".cargo", ".venv", "venv", "dist", "build", "out"}

ROOT_DIR_SENTINEL = "."

FILE_CATEGORIES: dict[str, set[str]] = {
    "source": {".py", ".js", ".ts", ".java", ".go", ".rs", ".rb", ".php", ".cpp", ".c", ".cs"},
    "config": {".json", ".yaml", ".yml", ".toml", ".ini", ".env", ".cfg"},
    "docker": {"dockerfile", "docker-compose.yml", "docker-compose.yaml", ".dockerignore"},
    "iac": {".tf", ".tfvars", ".hcl"},
    "build": {"makefile", "cmakelists.txt", "build.gradle", "pom.xml"},
    "docs": {".md", ".rst", ".txt"},
}

# --- Scanner limits ---
MAX_FILE_BYTES = 512_000
BINARY_SNIFF_BYTES = 4096
BINARY_RATIO_THRESHOLD = 0.30
SNIPPET_SOURCE_BYTES = 32 * 1024

# --- Token estimation ---
CHARS_PER_TOKEN = 3
MIN_TOKEN_ESTIMATE = 12

# --- Chunk packer ---
DEFAULT_TOKEN_BUDGET = 15_000
MIN_TOKEN_BUDGET = 256
MAX_FILES_PER_BUNDLE = 120
HARD_PART_CHARS = 32_000
DEFAULT_BUNDLE_PREFIX = "paste_"

# --- Snapshot schema ---
SNAPSHOT_SCHEMA_VERSION = 2
