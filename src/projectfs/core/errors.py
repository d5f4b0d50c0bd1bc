"""Custom exceptions for projectfs.

This module defines the typed exceptions raised by the filesystem operation
engine. Every failure carries a stable ``code`` so callers (the editor UI,
the change-plan applier) can branch on the category without parsing
messages.

Hierarchy::

    ProjectFSError
    ├── NotFound            (ParentNotFound, TargetNotFound)
    ├── AlreadyExists
    ├── InvalidPath         (NameInvalid)
    ├── InvalidOperation    (ParentNotDirectory, TargetNotDirectory,
    │                        NotAFile, RootImmutable, CyclicMove)
    └── ProjectCorrupted
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing only
    from projectfs.fs.paths import NameIssue


class ProjectFSError(Exception):
    """Base exception for all projectfs errors.

    Attributes:
        code: Stable machine-readable category
        message: Human-readable description
        path: Path the failing operation was addressed to, when known
    """

    code: str = "error"

    def __init__(self, message: str, *, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses.

        Returns:
            Dictionary representation suitable for JSON responses
        """
        result: dict[str, Any] = {
            "error": self.code,
            "message": self.message,
        }

        if self.path is not None:
            result["path"] = self.path

        return result

    def __repr__(self) -> str:
        """Return repr string for debugging."""
        return f"{type(self).__name__}(message={self.message!r}, path={self.path!r})"


class NotFound(ProjectFSError):
    """Raised when a path does not resolve to a node."""

    code = "not_found"


class ParentNotFound(NotFound):
    """Raised when the parent directory of a new node does not exist."""


class TargetNotFound(NotFound):
    """Raised when the destination directory of a move does not exist."""


class AlreadyExists(ProjectFSError):
    """Raised when a sibling with the same name already exists."""

    code = "already_exists"


class InvalidPath(ProjectFSError):
    """Raised for malformed paths and names."""

    code = "invalid_path"


class NameInvalid(InvalidPath):
    """Raised when a node name fails validation.

    Attributes:
        name: The rejected name
        issue: Why the name was rejected
    """

    def __init__(self, name: str, issue: NameIssue) -> None:
        """Initialize NameInvalid exception.

        Args:
            name: Rejected name
            issue: Validation failure reason
        """
        self.name = name
        self.issue = issue
        super().__init__(f"Invalid name {name!r}: {issue.describe()}")

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result = super().to_dict()
        result["name"] = self.name
        result["issue"] = self.issue.value
        return result

    def __repr__(self) -> str:
        """Return repr string for debugging."""
        return f"NameInvalid(name={self.name!r}, issue={self.issue.value!r})"


class InvalidOperation(ProjectFSError):
    """Raised when an operation does not apply to the node it targets."""

    code = "invalid_operation"


class ParentNotDirectory(InvalidOperation):
    """Raised when a node would be created under a file."""


class TargetNotDirectory(InvalidOperation):
    """Raised when a move destination is a file."""


class NotAFile(InvalidOperation):
    """Raised when file content is written to a directory."""


class RootImmutable(InvalidOperation):
    """Raised when the root directory would be renamed, moved or deleted."""

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"Cannot {action} root directory", path="/")


class CyclicMove(InvalidOperation):
    """Raised when a directory would be moved into its own subtree.

    Attributes:
        source: Path of the directory being moved
        target: Requested destination directory
    """

    code = "cyclic_move"

    def __init__(self, source: str, target: str) -> None:
        self.source = source
        self.target = target
        super().__init__(
            f"Cannot move {source} into itself or its subtree ({target})",
            path=source,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result = super().to_dict()
        result["target"] = self.target
        return result


class ProjectCorrupted(ProjectFSError):
    """Raised when serialized project data is unreadable or breaks tree invariants.

    Attributes:
        violations: Individual problems that were detected
    """

    code = "project_corrupted"

    def __init__(self, message: str, violations: list[str] | None = None) -> None:
        self.violations = violations or []
        if self.violations:
            message += f" ({len(self.violations)} violations: "
            message += "; ".join(self.violations[:3])
            if len(self.violations) > 3:
                message += "; ..."
            message += ")"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result = super().to_dict()
        result["violations"] = list(self.violations)
        return result
