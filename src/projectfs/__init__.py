"""projectfs: an in-memory virtual filesystem for browser project editors."""

from projectfs.chains.apply_chain import ApplyChain, ApplyOptions, ApplyReport
from projectfs.core.errors import ProjectFSError
from projectfs.core.history import HistoryCommands, HistoryManager
from projectfs.core.models import (
    ChangeIntent,
    ChangePlan,
    DirectoryNode,
    FileNode,
    Project,
    new_project,
)
from projectfs.core.serialization import deserialize, serialize
from projectfs.fs.fs_ops import FileSystemOperations

__version__ = "0.1.0"

__all__ = [
    "ApplyChain",
    "ApplyOptions",
    "ApplyReport",
    "ChangeIntent",
    "ChangePlan",
    "DirectoryNode",
    "FileNode",
    "FileSystemOperations",
    "HistoryCommands",
    "HistoryManager",
    "Project",
    "ProjectFSError",
    "__version__",
    "deserialize",
    "new_project",
    "serialize",
]
