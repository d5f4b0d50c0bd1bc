"""Byte-level serialization contract for projects.

The persistence layer treats a project as an opaque blob. This module turns
a Project into UTF-8 JSON and back:

- keys are camelCase (``rootId``, ``parentId``, ``createdAt``)
- the node map is an ordered list of ``[id, node]`` pairs
- timestamps are ISO-8601 strings

Deserialization validates the schema and the tree invariants, so a store
can never hand back a project the operation engine would corrupt further.
"""

from pydantic import ValidationError

from projectfs.core.errors import ProjectCorrupted
from projectfs.core.models import Project, find_invariant_violations


def serialize(project: Project) -> bytes:
    """Serialize a project to UTF-8 JSON bytes."""
    return project.model_dump_json(by_alias=True).encode("utf-8")


def deserialize(data: bytes | str) -> Project:
    """Rebuild a project from serialize() output.

    Args:
        data: JSON bytes or text

    Returns:
        The project, structurally equal to the one serialized

    Raises:
        ProjectCorrupted: If the payload is not a valid project or its tree
            breaks an invariant
    """
    try:
        project = Project.model_validate_json(data)
    except ValidationError as e:
        raise ProjectCorrupted(
            f"Unreadable project payload: {e.error_count()} schema errors",
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
        ) from e

    violations = find_invariant_violations(project)
    if violations:
        raise ProjectCorrupted(f"Project {project.id} is inconsistent", violations)

    return project
