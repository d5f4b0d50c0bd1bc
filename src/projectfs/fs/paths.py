"""Path utilities for the virtual filesystem.

Virtual paths are plain strings: non-empty segments joined by ``/`` and
always kept in normalized absolute form (``/src/app.tsx``). A backslash in
user input is treated as a separator too, so paths pasted from Windows
archives normalize the same way.

All functions here are pure; none of them consult a project.
"""

import re
from enum import Enum

from projectfs.core.constants import (
    INVALID_NAME_CHARACTERS,
    MAX_NAME_LENGTH,
    PATH_SEPARATOR,
    RESERVED_NAMES,
    SEPARATOR_CHARS,
)
from projectfs.core.errors import NameInvalid

_SEPARATOR_RE = re.compile(r"[/\\]+")


class NameIssue(str, Enum):
    """Reason a node name was rejected.

    Attributes:
        EMPTY: Name is empty or whitespace only
        CONTAINS_SEPARATOR: Name contains ``/`` or ``\\``
        INVALID_CHARACTER: Name contains a forbidden or control character
        RESERVED_NAME: Name is ``.`` or ``..``
        TOO_LONG: Name exceeds the length ceiling
    """

    EMPTY = "empty"
    CONTAINS_SEPARATOR = "contains_separator"
    INVALID_CHARACTER = "invalid_character"
    RESERVED_NAME = "reserved_name"
    TOO_LONG = "too_long"

    def describe(self) -> str:
        """Human-readable explanation for error messages."""
        return _ISSUE_MESSAGES[self]


_ISSUE_MESSAGES: dict[NameIssue, str] = {
    NameIssue.EMPTY: "name cannot be empty",
    NameIssue.CONTAINS_SEPARATOR: "name cannot contain path separators",
    NameIssue.INVALID_CHARACTER: "name contains invalid characters",
    NameIssue.RESERVED_NAME: "name is reserved",
    NameIssue.TOO_LONG: f"name is too long (max {MAX_NAME_LENGTH} characters)",
}


def split_path(path: str) -> list[str]:
    """Split a path into its non-empty segments."""
    return [segment for segment in _SEPARATOR_RE.split(path or "") if segment]


def normalize_path(path: str) -> str:
    """Normalize a path for consistent handling.

    Collapses repeated separators, drops trailing separators and ensures a
    single leading separator. Empty input normalizes to the root.

    Args:
        path: Path to normalize

    Returns:
        Normalized absolute path
    """
    return PATH_SEPARATOR + PATH_SEPARATOR.join(split_path(path))


def join_path(base: str, *segments: str) -> str:
    """Join path pieces, ignoring stray separators on each piece."""
    parts: list[str] = []
    for piece in (base, *segments):
        parts.extend(split_path(piece))
    return PATH_SEPARATOR + PATH_SEPARATOR.join(parts)


def dirname(path: str) -> str:
    """Return the parent path; the parent of the root is the root."""
    parts = split_path(path)
    return PATH_SEPARATOR + PATH_SEPARATOR.join(parts[:-1])


def basename(path: str, ext: str | None = None) -> str:
    """Return the final segment, optionally stripping a trailing ``ext``."""
    parts = split_path(path)
    base = parts[-1] if parts else ""
    if ext and base.endswith(ext) and base != ext:
        return base[: -len(ext)]
    return base


def extname(path: str) -> str:
    """Return the extension of the final segment including the dot.

    Dotfiles such as ``.env`` have no extension.
    """
    base = basename(path)
    dot = base.rfind(".")
    if dot <= 0:
        return ""
    return base[dot:]


def is_absolute_path(path: str) -> bool:
    """Return True if ``path`` starts with a separator."""
    return bool(path) and path[0] in SEPARATOR_CHARS


def is_sub_path(parent: str, child: str) -> bool:
    """Return True if ``child`` is strictly nested under ``parent``.

    A path is never a sub path of itself. Used to reject moving a directory
    into its own subtree.
    """
    parent_parts = split_path(parent)
    child_parts = split_path(child)
    if len(child_parts) <= len(parent_parts):
        return False
    return child_parts[: len(parent_parts)] == parent_parts


def relative_path(from_path: str, to_path: str) -> str:
    """Return the relative path from ``from_path`` to ``to_path``.

    Examples:
        >>> relative_path("/src/components", "/src/lib/util.ts")
        '../lib/util.ts'
    """
    from_parts = split_path(from_path)
    to_parts = split_path(to_path)

    common = 0
    while (
        common < len(from_parts)
        and common < len(to_parts)
        and from_parts[common] == to_parts[common]
    ):
        common += 1

    relative_parts = [".."] * (len(from_parts) - common) + to_parts[common:]
    return PATH_SEPARATOR.join(relative_parts) or "."


def validate_name(name: str) -> NameIssue | None:
    """Check a single node name.

    Args:
        name: Candidate file or directory name

    Returns:
        The first problem found, or None if the name is valid
    """
    if not name or not name.strip():
        return NameIssue.EMPTY

    if any(sep in name for sep in SEPARATOR_CHARS):
        return NameIssue.CONTAINS_SEPARATOR

    for char in name:
        if char in INVALID_NAME_CHARACTERS or ord(char) < 0x20 or ord(char) == 0x7F:
            return NameIssue.INVALID_CHARACTER

    if name in RESERVED_NAMES:
        return NameIssue.RESERVED_NAME

    if len(name) > MAX_NAME_LENGTH:
        return NameIssue.TOO_LONG

    return None


def ensure_valid_name(name: str) -> None:
    """Raise NameInvalid if ``name`` fails validation."""
    issue = validate_name(name)
    if issue is not None:
        raise NameInvalid(name, issue)
