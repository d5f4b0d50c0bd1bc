"""Core constants for projectfs.

This module defines constants used throughout the package:
- Path and name validation limits
- History and change-plan limits
- File type and MIME tables used by the archive adapter
- Export validation thresholds
"""

# ============================================================================
# Paths and Names
# ============================================================================

#: Reserved path separator
PATH_SEPARATOR: str = "/"

#: Characters treated as separators when parsing user-supplied paths
SEPARATOR_CHARS: tuple[str, ...] = ("/", "\\")

#: Maximum length of a single node name
MAX_NAME_LENGTH: int = 255

#: Characters never allowed in a node name (control characters are checked separately)
INVALID_NAME_CHARACTERS: frozenset[str] = frozenset('<>:"|?*')

#: Names that would be ambiguous as path segments
RESERVED_NAMES: tuple[str, ...] = (".", "..")

#: Display name of the root directory node
ROOT_NAME: str = "/"

# ============================================================================
# History
# ============================================================================

#: Number of undo entries retained before the oldest is evicted
DEFAULT_HISTORY_CAPACITY: int = 50

#: Rough per-node cost used by HistoryManager.summary() (bytes)
SNAPSHOT_NODE_COST: int = 100

# ============================================================================
# Change Plans
# ============================================================================

#: Maximum number of change intents accepted in a single plan
MAX_PLAN_CHANGES: int = 50

#: Maximum length of a change intent path
MAX_PLAN_PATH_LENGTH: int = 500

#: Maximum length of a plan description
MAX_PLAN_DESCRIPTION_LENGTH: int = 1000

#: Subtrees an AI-authored plan may touch by default
DEFAULT_ALLOWED_DIRS: tuple[str, ...] = (
    "/app",
    "/components",
    "/public",
    "/styles",
    "/lib",
)

# ============================================================================
# File Types
# ============================================================================

#: Extensions imported as editable text
TEXT_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".txt", ".md", ".js", ".jsx", ".ts", ".tsx", ".css", ".scss", ".sass",
        ".html", ".xml", ".json", ".yml", ".yaml", ".toml", ".ini", ".env",
        ".sh", ".bash", ".zsh", ".fish", ".ps1", ".py", ".rb", ".go", ".rs",
        ".java", ".kt", ".swift", ".c", ".cpp", ".h", ".hpp", ".cs", ".php",
        ".sql", ".graphql", ".vue", ".svelte", ".astro",
    }
)  # fmt: skip

#: Extensions recognised as images
IMAGE_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".svg", ".webp", ".ico",
        ".tiff", ".tif",
    }
)  # fmt: skip

#: MIME types keyed by lowercase extension (without the dot)
MIME_TYPES: dict[str, str] = {
    "txt": "text/plain",
    "md": "text/markdown",
    "js": "text/javascript",
    "jsx": "text/javascript",
    "ts": "text/typescript",
    "tsx": "text/typescript",
    "css": "text/css",
    "scss": "text/scss",
    "sass": "text/sass",
    "html": "text/html",
    "xml": "application/xml",
    "json": "application/json",
    "yml": "text/yaml",
    "yaml": "text/yaml",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "webp": "image/webp",
    "ico": "image/x-icon",
    "pdf": "application/pdf",
    "zip": "application/zip",
}

#: Fallback MIME type for unknown extensions
DEFAULT_MIME_TYPE: str = "application/octet-stream"

# ============================================================================
# Export Validation
# ============================================================================

#: Files larger than this trigger an export warning (10 MiB)
LARGE_FILE_BYTES: int = 10 * 1024 * 1024

#: Projects larger than this trigger an export warning (100 MiB)
LARGE_PROJECT_BYTES: int = 100 * 1024 * 1024

#: File count above which an export warning is raised
MANY_FILES_THRESHOLD: int = 1000

#: Archive paths longer than this are rejected by export validation
MAX_EXPORT_PATH_LENGTH: int = 260

#: DEFLATE level used when writing archives
ZIP_COMPRESSION_LEVEL: int = 6
