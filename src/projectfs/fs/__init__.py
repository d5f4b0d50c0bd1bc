"""Path algebra, content helpers, the operation engine and ZIP adapters.

Only the path helpers are re-exported here; fs_ops and archive depend on
projectfs.core.models, which itself imports this package's path module.
"""

from projectfs.fs.paths import (
    basename,
    dirname,
    join_path,
    normalize_path,
    split_path,
    validate_name,
)

__all__ = [
    "basename",
    "dirname",
    "join_path",
    "normalize_path",
    "split_path",
    "validate_name",
]
