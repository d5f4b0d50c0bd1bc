"""Debug tracing for the operation engine.

Structured events go through structlog; this helper is for the low-level
trace of every engine mutation, toggled via the PROJECTFS_DEBUG environment
variable. Lines carry the id of the project they concern so traces from
several open projects can be told apart.

Usage:
    from projectfs.utils.debug import debug

    debug(f"Moved {old} -> {new}", project_id=project.id)

Environment:
    PROJECTFS_DEBUG: '1', 'true' or 'yes' (case-insensitive) enables output.
"""

import os
import sys
from typing import Any

# Read once at import time; reload the module after changing the variable
_DEBUG_ENABLED = os.environ.get("PROJECTFS_DEBUG", "").lower() in (
    "1",
    "true",
    "yes",
)


def format_line(msg: Any, project_id: str | None = None) -> str:
    """Render one trace line, ``[DEBUG] [prj_...] message``."""
    if project_id:
        return f"[DEBUG] [{project_id}] {msg}"
    return f"[DEBUG] {msg}"


def debug(msg: Any, *, project_id: str | None = None) -> None:
    """Print a trace line if PROJECTFS_DEBUG is enabled.

    Args:
        msg: Message to print. Will be converted to string.
        project_id: Project the message concerns, shown as a tag
    """
    if _DEBUG_ENABLED:
        print(format_line(msg, project_id), file=sys.stdout)
