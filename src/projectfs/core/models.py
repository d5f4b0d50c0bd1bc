"""Pydantic models for the virtual filesystem.

These models define the data structures shared by every layer:
- FileNode / DirectoryNode: the two node variants, tagged by ``type``
- Project: the id-indexed node table plus its root reference
- Change: one structural delta produced by diffing two node maps
- ChangeIntent / ChangePlan: externally authored edits for the applier

Nodes never hold references to each other. Every relationship
(``parent_id``, ``children``) is an id resolved through ``Project.nodes``,
which is the only place nodes are owned.

All models serialize with camelCase keys (``parentId``, ``createdAt``) and
accept either spelling on input.
"""

from collections import Counter
from datetime import UTC, datetime
from typing import Annotated, Any, Literal, TypeGuard
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializationInfo,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from projectfs.core.constants import (
    MAX_PLAN_CHANGES,
    MAX_PLAN_DESCRIPTION_LENGTH,
    PATH_SEPARATOR,
    ROOT_NAME,
)
from projectfs.core.errors import ProjectCorrupted
from projectfs.fs.paths import join_path, validate_name

_CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def new_node_id() -> str:
    return f"nd_{uuid4().hex}"


def new_project_id() -> str:
    return f"prj_{uuid4().hex}"


class NodeBase(BaseModel):
    """Fields shared by files and directories.

    Attributes:
        id: Opaque identifier, stable for the project's lifetime
        name: Single path segment
        path: Full normalized path, always parent path + name
        parent_id: Owning directory id (None only for the root)
        created_at: Creation time
        updated_at: Last modification time, never moves backwards
    """

    model_config = _CAMEL_CONFIG

    id: str
    name: str
    path: str
    parent_id: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def touch(self, now: datetime | None = None) -> None:
        """Bump ``updated_at`` without letting it go backwards."""
        stamp = now or utc_now()
        if stamp > self.updated_at:
            self.updated_at = stamp


class FileNode(NodeBase):
    """A file. Binary payloads are stored as base64 data URIs."""

    type: Literal["file"] = "file"
    content: str = ""
    size: int = 0
    binary: bool | None = None
    mime_type: str | None = None


class DirectoryNode(NodeBase):
    """A directory. Child order carries no meaning."""

    type: Literal["directory"] = "directory"
    children: list[str] = Field(default_factory=list)


Node = Annotated[FileNode | DirectoryNode, Field(discriminator="type")]

NodeMap = dict[str, FileNode | DirectoryNode]


def is_file(node: FileNode | DirectoryNode | None) -> TypeGuard[FileNode]:
    return isinstance(node, FileNode)


def is_directory(node: FileNode | DirectoryNode | None) -> TypeGuard[DirectoryNode]:
    return isinstance(node, DirectoryNode)


class Project(BaseModel):
    """One editable workspace.

    Attributes:
        id: Project identifier
        name: Display name
        description: Optional free-form description
        root_id: Id of the single root directory
        nodes: Id-indexed node table; the sole owner of every node
        created_at: Creation time
        updated_at: Bumped by every successful mutation
        last_opened_at: Last time the project was loaded from a store
    """

    model_config = _CAMEL_CONFIG

    id: str
    name: str
    description: str | None = None
    root_id: str
    nodes: dict[str, Node]
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    last_opened_at: datetime | None = None

    @field_validator("nodes", mode="before")
    @classmethod
    def accept_node_pairs(cls, value: Any) -> Any:
        """Accept the persisted form: an ordered list of ``[id, node]`` pairs."""
        if not isinstance(value, list):
            return value
        pairs = {}
        for index, pair in enumerate(value):
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                raise ValueError(f"node entry {index} is not an [id, node] pair")
            if not isinstance(pair[0], str):
                raise ValueError(f"node entry {index} has a non-string id")
            pairs[pair[0]] = pair[1]
        return pairs

    @field_serializer("nodes")
    def serialize_nodes(
        self, nodes: dict[str, FileNode | DirectoryNode], info: SerializationInfo
    ) -> list[list[Any]]:
        """Serialize the node map as an ordered list of ``[id, node]`` pairs."""
        return [
            [node_id, node.model_dump(mode=info.mode, by_alias=bool(info.by_alias))]
            for node_id, node in nodes.items()
        ]

    @property
    def root(self) -> DirectoryNode:
        root = self.nodes.get(self.root_id)
        if not isinstance(root, DirectoryNode):
            raise ProjectCorrupted(
                f"Project {self.id} has no root directory", [f"root {self.root_id}"]
            )
        return root

    def touch(self, now: datetime | None = None) -> None:
        """Bump ``updated_at`` without letting it go backwards."""
        stamp = now or utc_now()
        if stamp > self.updated_at:
            self.updated_at = stamp


ChangeType = Literal["create", "update", "delete", "move"]


class Change(BaseModel):
    """A structural delta between two node-map snapshots.

    Attributes:
        type: Kind of change
        node_id: Node the change applies to
        old_path: Path before the change (update, delete, move)
        new_path: Path after the change (create, update, move)
        old_content: File content before an update
        new_content: File content after a create or update
        old_parent_id: Parent before a move
        new_parent_id: Parent after a move
    """

    model_config = _CAMEL_CONFIG

    type: ChangeType
    node_id: str
    old_path: str | None = None
    new_path: str | None = None
    old_content: str | None = None
    new_content: str | None = None
    old_parent_id: str | None = None
    new_parent_id: str | None = None


IntentType = Literal["create", "update", "delete"]


class ChangeIntent(BaseModel):
    """One externally authored file edit.

    Attributes:
        type: create, update or delete
        path: Target file path
        content: New content (create/update)
        description: Optional note from the producer
    """

    model_config = _CAMEL_CONFIG

    type: IntentType
    path: str = Field(min_length=1)
    content: str | None = None
    description: str | None = None


class ChangePlan(BaseModel):
    """An ordered batch of change intents, typically produced by an LLM."""

    model_config = _CAMEL_CONFIG

    id: str = Field(default_factory=lambda: f"pln_{uuid4().hex}")
    description: str = Field(min_length=1, max_length=MAX_PLAN_DESCRIPTION_LENGTH)
    changes: list[ChangeIntent] = Field(min_length=1, max_length=MAX_PLAN_CHANGES)
    reasoning: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)


def new_project(name: str, description: str | None = None) -> Project:
    """Create a project holding only its root directory."""
    now = utc_now()
    root = DirectoryNode(
        id=new_node_id(),
        name=ROOT_NAME,
        path=PATH_SEPARATOR,
        parent_id=None,
        created_at=now,
        updated_at=now,
    )
    return Project(
        id=new_project_id(),
        name=name,
        description=description,
        root_id=root.id,
        nodes={root.id: root},
        created_at=now,
        updated_at=now,
        last_opened_at=now,
    )


def clone_nodes(nodes: NodeMap) -> NodeMap:
    """Deep-copy a node map; children lists are copied too."""
    return {node_id: node.model_copy(deep=True) for node_id, node in nodes.items()}


def duplicate_project(project: Project, new_name: str) -> Project:
    """Copy a project, giving every node a fresh id.

    Parent and children references are remapped onto the new ids; paths are
    unchanged.
    """
    now = utc_now()
    id_map = {old_id: new_node_id() for old_id in project.nodes}

    nodes: NodeMap = {}
    for old_id, node in project.nodes.items():
        clone = node.model_copy(deep=True)
        clone.id = id_map[old_id]
        clone.parent_id = id_map.get(node.parent_id) if node.parent_id else None
        clone.created_at = now
        clone.updated_at = now
        if isinstance(node, DirectoryNode) and isinstance(clone, DirectoryNode):
            clone.children = [id_map[c] for c in node.children if c in id_map]
        nodes[clone.id] = clone

    return Project(
        id=new_project_id(),
        name=new_name,
        description=project.description,
        root_id=id_map[project.root_id],
        nodes=nodes,
        created_at=now,
        updated_at=now,
        last_opened_at=now,
    )


def find_invariant_violations(project: Project) -> list[str]:
    """Check the tree invariants of a project.

    Returns:
        Human-readable violations; empty when the tree is consistent
    """
    problems: list[str] = []
    nodes = project.nodes

    root = nodes.get(project.root_id)
    if root is None:
        problems.append(f"root {project.root_id} is missing")
    elif not isinstance(root, DirectoryNode):
        problems.append("root is not a directory")
    else:
        if root.parent_id is not None:
            problems.append("root has a parent")
        if root.path != PATH_SEPARATOR:
            problems.append(f"root path is {root.path!r}")

    parentless = [node.id for node in nodes.values() if node.parent_id is None]
    if parentless != [project.root_id]:
        problems.append(f"expected only the root to be parentless, got {parentless}")

    names_by_parent: dict[str, Counter[str]] = {}
    for node_id, node in nodes.items():
        if node.id != node_id:
            problems.append(f"node {node.id} stored under key {node_id}")
        if node.parent_id is None:
            continue

        parent = nodes.get(node.parent_id)
        if parent is None:
            problems.append(f"{node.path}: parent {node.parent_id} is missing")
            continue
        if not isinstance(parent, DirectoryNode):
            problems.append(f"{node.path}: parent {parent.path} is not a directory")
            continue

        occurrences = parent.children.count(node.id)
        if occurrences != 1:
            problems.append(f"{node.path}: listed {occurrences} times by its parent")

        expected = join_path(parent.path, node.name)
        if node.path != expected:
            problems.append(f"{node.path}: path should be {expected}")

        issue = validate_name(node.name)
        if issue is not None:
            problems.append(f"{node.path}: {issue.describe()}")

        names_by_parent.setdefault(parent.id, Counter())[node.name] += 1

    for node in nodes.values():
        if not isinstance(node, DirectoryNode):
            continue
        for child_id in node.children:
            child = nodes.get(child_id)
            if child is None:
                problems.append(f"{node.path}: child {child_id} is missing")
            elif child.parent_id != node.id:
                problems.append(f"{node.path}: child {child.path} points elsewhere")

    for parent_id, names in names_by_parent.items():
        for name, count in names.items():
            if count > 1:
                parent_path = nodes[parent_id].path
                problems.append(f"{join_path(parent_path, name)}: {count} siblings")

    for node in nodes.values():
        seen: set[str] = set()
        current = node
        while current.parent_id is not None:
            if current.id in seen:
                problems.append(f"{node.path}: ancestor chain contains a cycle")
                break
            seen.add(current.id)
            parent = nodes.get(current.parent_id)
            if parent is None:
                break
            current = parent

    return problems
