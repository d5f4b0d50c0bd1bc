"""Filesystem operation engine for a single project.

This module provides create, update, rename, move and delete operations on
a project's node table, plus the id-based tree diff used by the history
manager.

Every public mutation validates completely before touching the node map,
so a raised error always leaves the project unchanged. The engine never
caches ``project.nodes``; it reads the map on each call so that undo/redo,
which swap the whole map, are picked up transparently.
"""

from collections.abc import Iterator, Mapping
from datetime import datetime

from projectfs.core.errors import (
    AlreadyExists,
    CyclicMove,
    NotAFile,
    NotFound,
    ParentNotDirectory,
    ParentNotFound,
    ProjectCorrupted,
    RootImmutable,
    TargetNotDirectory,
    TargetNotFound,
)
from projectfs.core.models import (
    Change,
    DirectoryNode,
    FileNode,
    NodeMap,
    Project,
    new_node_id,
    utc_now,
)
from projectfs.fs.content import content_size
from projectfs.fs.paths import (
    ensure_valid_name,
    is_sub_path,
    join_path,
    normalize_path,
    split_path,
)
from projectfs.utils.debug import debug

Node = FileNode | DirectoryNode


class FileSystemOperations:
    """CRUD, rename, move and delete against one project.

    Args:
        project: Project whose node table is operated on
    """

    def __init__(self, project: Project) -> None:
        self.project = project

    @property
    def nodes(self) -> NodeMap:
        return self.project.nodes

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, node_id: str) -> Node | None:
        """Return the node with ``node_id`` or None."""
        return self.nodes.get(node_id)

    def resolve(self, path: str) -> Node | None:
        """Look up a node by path.

        Walks from the root through each directory's children, so the cost is
        bounded by depth times fan-out rather than the size of the project.

        Args:
            path: Any path; it is normalized first

        Returns:
            The node at ``path`` or None if nothing lives there
        """
        current: Node | None = self.nodes.get(self.project.root_id)
        for segment in split_path(path):
            if not isinstance(current, DirectoryNode):
                return None
            current = self._child_named(current, segment)
            if current is None:
                return None
        return current

    def read_file(self, path: str) -> str:
        """Return the content of the file at ``path``.

        Raises:
            NotFound: If nothing exists at ``path``
            NotAFile: If ``path`` is a directory
        """
        return self._require_file(path).content

    def list_directory(self, path: str) -> list[Node]:
        """List a directory's children, directories first, then by name.

        Raises:
            NotFound: If nothing exists at ``path``
            ParentNotDirectory: If ``path`` is a file
        """
        directory = self._require_directory(path, ParentNotFound, ParentNotDirectory)
        children = [self.nodes[child_id] for child_id in directory.children]
        return sorted(
            children, key=lambda n: (not isinstance(n, DirectoryNode), n.name.lower())
        )

    def iter_files(self) -> Iterator[FileNode]:
        """Yield every file, depth-first from the root in display order."""
        stack: list[Node] = [self.project.root]
        while stack:
            current = stack.pop()
            if isinstance(current, FileNode):
                yield current
                continue
            stack.extend(reversed(self.list_directory(current.path)))

    # ------------------------------------------------------------------
    # Create / update
    # ------------------------------------------------------------------

    def create_file(
        self,
        parent_path: str,
        name: str,
        content: str = "",
        *,
        binary: bool | None = None,
        mime_type: str | None = None,
    ) -> FileNode:
        """Create a file under an existing directory.

        Args:
            parent_path: Directory to create the file in
            name: File name (single segment)
            content: Initial content (text or data URI)
            binary: Marks data-URI content
            mime_type: Optional MIME type

        Returns:
            The new FileNode

        Raises:
            NameInvalid: If ``name`` fails validation
            ParentNotFound: If ``parent_path`` does not resolve
            ParentNotDirectory: If ``parent_path`` is a file
            AlreadyExists: If a sibling named ``name`` exists
        """
        ensure_valid_name(name)
        parent = self._require_directory(parent_path, ParentNotFound, ParentNotDirectory)
        file_path = join_path(parent.path, name)
        if self._child_named(parent, name) is not None:
            raise AlreadyExists(f"File already exists: {file_path}", path=file_path)

        now = utc_now()
        node = FileNode(
            id=new_node_id(),
            name=name,
            path=file_path,
            parent_id=parent.id,
            content=content,
            size=content_size(content),
            binary=binary,
            mime_type=mime_type,
            created_at=now,
            updated_at=now,
        )
        self.nodes[node.id] = node
        parent.children.append(node.id)
        self._touch(parent, now)

        self._debug(f"Created file {file_path} ({node.size} bytes) as {node.id}")
        return node

    def create_directory(self, parent_path: str, name: str) -> DirectoryNode:
        """Create an empty directory under an existing directory.

        Raises:
            NameInvalid: If ``name`` fails validation
            ParentNotFound: If ``parent_path`` does not resolve
            ParentNotDirectory: If ``parent_path`` is a file
            AlreadyExists: If a sibling named ``name`` exists
        """
        ensure_valid_name(name)
        parent = self._require_directory(parent_path, ParentNotFound, ParentNotDirectory)
        dir_path = join_path(parent.path, name)
        if self._child_named(parent, name) is not None:
            raise AlreadyExists(f"Directory already exists: {dir_path}", path=dir_path)

        now = utc_now()
        node = DirectoryNode(
            id=new_node_id(),
            name=name,
            path=dir_path,
            parent_id=parent.id,
            created_at=now,
            updated_at=now,
        )
        self.nodes[node.id] = node
        parent.children.append(node.id)
        self._touch(parent, now)

        self._debug(f"Created directory {dir_path} as {node.id}")
        return node

    def ensure_directory(self, path: str) -> DirectoryNode:
        """Return the directory at ``path``, creating missing ancestors.

        All segment names are validated before anything is created.

        Raises:
            NameInvalid: If any segment fails validation
            ParentNotDirectory: If a file sits somewhere along ``path``
        """
        segments = split_path(path)
        for segment in segments:
            ensure_valid_name(segment)

        current = self.project.root
        for segment in segments:
            child = self._child_named(current, segment)
            if child is None:
                child = self.create_directory(current.path, segment)
            elif not isinstance(child, DirectoryNode):
                raise ParentNotDirectory(
                    f"Not a directory: {child.path}", path=child.path
                )
            current = child
        return current

    def update_file_content(self, path: str, content: str) -> FileNode:
        """Replace a file's content.

        Raises:
            NotFound: If nothing exists at ``path``
            NotAFile: If ``path`` is a directory
        """
        node = self._require_file(path)
        node.content = content
        node.size = content_size(content)
        self._touch(node)

        self._debug(f"Updated {node.path} ({node.size} bytes)")
        return node

    # ------------------------------------------------------------------
    # Rename / move / delete
    # ------------------------------------------------------------------

    def rename(self, path: str, new_name: str) -> Node:
        """Rename a node in place, rewriting descendant paths.

        Raises:
            NameInvalid: If ``new_name`` fails validation
            NotFound: If nothing exists at ``path``
            RootImmutable: If ``path`` is the root
            AlreadyExists: If a sibling already uses ``new_name``
        """
        ensure_valid_name(new_name)
        node = self._require(path)
        if node.parent_id is None:
            raise RootImmutable("rename")

        parent = self._parent_of(node)
        new_path = join_path(parent.path, new_name)
        existing = self._child_named(parent, new_name)
        if existing is not None and existing.id != node.id:
            raise AlreadyExists(f"Node already exists: {new_path}", path=new_path)

        old_path = node.path
        node.name = new_name
        self._rewrite_paths(node, new_path)
        self._touch(node)

        self._debug(f"Renamed {old_path} -> {new_path}")
        return node

    def move(self, source_path: str, target_dir_path: str) -> Node:
        """Move a node into another directory, keeping its name.

        Raises:
            NotFound: If nothing exists at ``source_path``
            RootImmutable: If ``source_path`` is the root
            TargetNotFound: If ``target_dir_path`` does not resolve
            TargetNotDirectory: If ``target_dir_path`` is a file
            CyclicMove: If the target is the source or inside it
            AlreadyExists: If the target already holds a node with that name
        """
        node = self._require(source_path)
        if node.parent_id is None:
            raise RootImmutable("move")

        target = self._require_directory(
            target_dir_path, TargetNotFound, TargetNotDirectory
        )
        if target.id == node.id or is_sub_path(node.path, target.path):
            raise CyclicMove(node.path, target.path)

        new_path = join_path(target.path, node.name)
        if self._child_named(target, node.name) is not None:
            raise AlreadyExists(f"Node already exists: {new_path}", path=new_path)

        now = utc_now()
        old_path = node.path
        old_parent = self._parent_of(node)
        old_parent.children = [c for c in old_parent.children if c != node.id]
        node.parent_id = target.id
        target.children.append(node.id)
        self._rewrite_paths(node, new_path)
        self._touch(old_parent, now)
        self._touch(target, now)
        self._touch(node, now)

        self._debug(f"Moved {old_path} -> {new_path}")
        return node

    def delete(self, path: str) -> None:
        """Delete a node and, for directories, everything beneath it.

        Raises:
            NotFound: If nothing exists at ``path``
            RootImmutable: If ``path`` is the root
        """
        node = self._require(path)
        if node.parent_id is None:
            raise RootImmutable("delete")

        parent = self._parent_of(node)
        removed = 0
        for doomed in self._post_order(node):
            del self.nodes[doomed.id]
            removed += 1
        parent.children = [c for c in parent.children if c != node.id]
        self._touch(parent)

        self._debug(f"Deleted {node.path} ({removed} nodes)")

    # ------------------------------------------------------------------
    # Diff
    # ------------------------------------------------------------------

    @staticmethod
    def diff(before: Mapping[str, Node], after: Mapping[str, Node]) -> list[Change]:
        """Compare two node maps; see diff_nodes()."""
        return diff_nodes(before, after)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _child_named(self, directory: DirectoryNode, name: str) -> Node | None:
        for child_id in directory.children:
            child = self.nodes.get(child_id)
            if child is not None and child.name == name:
                return child
        return None

    def _require(self, path: str) -> Node:
        node = self.resolve(path)
        if node is None:
            normalized = normalize_path(path)
            raise NotFound(f"Node not found: {normalized}", path=normalized)
        return node

    def _require_file(self, path: str) -> FileNode:
        node = self._require(path)
        if not isinstance(node, FileNode):
            raise NotAFile(f"Not a file: {node.path}", path=node.path)
        return node

    def _require_directory(
        self,
        path: str,
        missing: type[NotFound],
        wrong_kind: type[ParentNotDirectory] | type[TargetNotDirectory],
    ) -> DirectoryNode:
        node = self.resolve(path)
        normalized = normalize_path(path)
        if node is None:
            raise missing(f"Directory not found: {normalized}", path=normalized)
        if not isinstance(node, DirectoryNode):
            raise wrong_kind(f"Not a directory: {normalized}", path=normalized)
        return node

    def _debug(self, message: str) -> None:
        debug(message, project_id=self.project.id)

    def _parent_of(self, node: Node) -> DirectoryNode:
        parent = self.nodes.get(node.parent_id) if node.parent_id else None
        if not isinstance(parent, DirectoryNode):
            raise ProjectCorrupted(
                f"Node {node.path} has no parent directory",
                [f"parent {node.parent_id}"],
            )
        return parent

    def _rewrite_paths(self, node: Node, new_path: str) -> None:
        """Set ``node.path`` and recompute every descendant path top-down."""
        node.path = new_path
        stack: list[Node] = [node]
        while stack:
            current = stack.pop()
            if isinstance(current, DirectoryNode):
                for child_id in current.children:
                    child = self.nodes[child_id]
                    child.path = join_path(current.path, child.name)
                    stack.append(child)

    def _post_order(self, node: Node) -> list[Node]:
        """Return ``node`` and its descendants, children before parents."""
        pre_order: list[Node] = []
        stack: list[Node] = [node]
        while stack:
            current = stack.pop()
            pre_order.append(current)
            if isinstance(current, DirectoryNode):
                stack.extend(self.nodes[child_id] for child_id in current.children)
        return list(reversed(pre_order))

    def _touch(self, node: Node, now: datetime | None = None) -> None:
        stamp = now or utc_now()
        node.touch(stamp)
        self.project.touch(stamp)


def diff_nodes(before: Mapping[str, Node], after: Mapping[str, Node]) -> list[Change]:
    """Compute the structural changes between two node maps.

    Nodes are matched by id:

    - only in ``after``: create
    - only in ``before``: delete
    - in both with different paths: move (a content edit on a moved file is
      not reported separately)
    - in both with the same path and different file content: update

    Args:
        before: Node map before the mutation
        after: Node map after the mutation

    Returns:
        Changes in no guaranteed order; identical maps yield an empty list
    """
    changes: list[Change] = []

    for node_id, old in before.items():
        new = after.get(node_id)
        if new is None:
            changes.append(Change(type="delete", node_id=node_id, old_path=old.path))
        elif old.path != new.path:
            changes.append(
                Change(
                    type="move",
                    node_id=node_id,
                    old_path=old.path,
                    new_path=new.path,
                    old_parent_id=old.parent_id,
                    new_parent_id=new.parent_id,
                )
            )
        elif (
            isinstance(old, FileNode)
            and isinstance(new, FileNode)
            and old.content != new.content
        ):
            changes.append(
                Change(
                    type="update",
                    node_id=node_id,
                    old_path=old.path,
                    new_path=new.path,
                    old_content=old.content,
                    new_content=new.content,
                )
            )

    for node_id, new in after.items():
        if node_id not in before:
            changes.append(
                Change(
                    type="create",
                    node_id=node_id,
                    new_path=new.path,
                    new_content=new.content if isinstance(new, FileNode) else None,
                )
            )

    return changes
