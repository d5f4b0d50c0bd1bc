"""Tests for the filesystem operation engine."""

from collections.abc import Callable

import pytest

from projectfs.core.errors import (
    AlreadyExists,
    CyclicMove,
    NameInvalid,
    NotAFile,
    NotFound,
    ParentNotDirectory,
    ParentNotFound,
    ProjectCorrupted,
    ProjectFSError,
    RootImmutable,
    TargetNotDirectory,
    TargetNotFound,
)
from projectfs.core.models import (
    DirectoryNode,
    FileNode,
    Project,
    find_invariant_violations,
)
from projectfs.fs.fs_ops import FileSystemOperations


def _names(nodes: list[FileNode | DirectoryNode]) -> list[str]:
    return [n.name for n in nodes]


def _assert_unchanged_on_error(
    ops: FileSystemOperations,
    error: type[ProjectFSError],
    action: Callable[[], object],
) -> None:
    """Run a failing operation and check the node map was not touched."""
    before = ops.project.model_dump()
    with pytest.raises(error):
        action()
    assert ops.project.model_dump() == before


class TestCreate:
    """Test file and directory creation."""

    def test_create_file(self, ops: FileSystemOperations, project: Project) -> None:
        node = ops.create_file("/", "a.txt", "hello")

        assert node.path == "/a.txt"
        assert node.parent_id == project.root_id
        assert node.content == "hello"
        assert node.size == 5
        assert node.id in project.root.children
        assert ops.resolve("/a.txt") is node
        assert find_invariant_violations(project) == []

    def test_create_file_size_counts_utf8_bytes(self, ops: FileSystemOperations) -> None:
        node = ops.create_file("/", "u.txt", "é")
        assert node.size == 2

    def test_create_file_with_data_uri(self, ops: FileSystemOperations) -> None:
        node = ops.create_file(
            "/",
            "dot.png",
            "data:image/png;base64,AAEC",
            binary=True,
            mime_type="image/png",
        )
        assert node.size == 3
        assert node.binary is True
        assert node.mime_type == "image/png"

    def test_create_touches_parent(self, populated_ops: FileSystemOperations) -> None:
        app = populated_ops.resolve("/app")
        assert app is not None
        stamp = app.updated_at

        populated_ops.create_file("/app", "new.tsx")

        assert app.updated_at >= stamp
        assert populated_ops.project.updated_at >= stamp

    def test_duplicate_create_fails_and_keeps_first(
        self, ops: FileSystemOperations
    ) -> None:
        """Second create of the same name fails; the first file is untouched."""
        ops.create_file("/", "a.txt", "1")

        _assert_unchanged_on_error(
            ops, AlreadyExists, lambda: ops.create_file("/", "a.txt", "2")
        )
        assert ops.read_file("/a.txt") == "1"

    def test_create_under_missing_parent(self, ops: FileSystemOperations) -> None:
        _assert_unchanged_on_error(
            ops, ParentNotFound, lambda: ops.create_file("/nope", "a.txt")
        )

    def test_create_under_file(self, ops: FileSystemOperations) -> None:
        ops.create_file("/", "a.txt")
        _assert_unchanged_on_error(
            ops, ParentNotDirectory, lambda: ops.create_directory("/a.txt", "sub")
        )

    def test_name_checked_before_parent(self, ops: FileSystemOperations) -> None:
        with pytest.raises(NameInvalid):
            ops.create_file("/missing", "bad?name")

    @pytest.mark.parametrize("name", ["", "a/b", "..", "x" * 256])
    def test_invalid_names_rejected(self, ops: FileSystemOperations, name: str) -> None:
        _assert_unchanged_on_error(ops, NameInvalid, lambda: ops.create_file("/", name))

    def test_file_and_directory_share_namespace(
        self, ops: FileSystemOperations
    ) -> None:
        ops.create_directory("/", "src")
        with pytest.raises(AlreadyExists):
            ops.create_file("/", "src")

    def test_names_are_case_sensitive(self, ops: FileSystemOperations) -> None:
        ops.create_file("/", "Readme.md")
        ops.create_file("/", "README.md")
        assert len(ops.project.root.children) == 2


class TestEnsureDirectory:
    """Test creating directory chains."""

    def test_creates_missing_ancestors(self, ops: FileSystemOperations) -> None:
        node = ops.ensure_directory("/a/b/c")

        assert node.path == "/a/b/c"
        assert isinstance(ops.resolve("/a/b"), DirectoryNode)
        assert find_invariant_violations(ops.project) == []

    def test_returns_existing_directory(
        self, populated_ops: FileSystemOperations
    ) -> None:
        existing = populated_ops.resolve("/components/ui")
        assert populated_ops.ensure_directory("/components/ui") is existing

    def test_root(self, ops: FileSystemOperations, project: Project) -> None:
        assert ops.ensure_directory("/") is project.root

    def test_file_in_the_way(self, populated_ops: FileSystemOperations) -> None:
        with pytest.raises(ParentNotDirectory):
            populated_ops.ensure_directory("/README.md/docs")

    def test_invalid_segment_creates_nothing(self, ops: FileSystemOperations) -> None:
        _assert_unchanged_on_error(
            ops, NameInvalid, lambda: ops.ensure_directory("/ok/../x")
        )


class TestLookup:
    """Test path resolution and listing."""

    def test_resolve_root(self, ops: FileSystemOperations, project: Project) -> None:
        assert ops.resolve("/") is project.root
        assert ops.resolve("") is project.root

    def test_resolve_normalizes(self, populated_ops: FileSystemOperations) -> None:
        node = populated_ops.resolve("app//page.tsx/")
        assert node is not None
        assert node.path == "/app/page.tsx"

    def test_resolve_missing(self, populated_ops: FileSystemOperations) -> None:
        assert populated_ops.resolve("/app/missing.tsx") is None
        assert populated_ops.resolve("/README.md/child") is None

    def test_get_by_id(self, populated_ops: FileSystemOperations) -> None:
        node = populated_ops.resolve("/README.md")
        assert node is not None
        assert populated_ops.get(node.id) is node
        assert populated_ops.get("nd_missing") is None

    def test_read_file_errors(self, populated_ops: FileSystemOperations) -> None:
        with pytest.raises(NotFound):
            populated_ops.read_file("/missing")
        with pytest.raises(NotAFile):
            populated_ops.read_file("/app")

    def test_list_directory_puts_directories_first(
        self, populated_ops: FileSystemOperations
    ) -> None:
        populated_ops.create_file("/", "a.txt")
        populated_ops.create_directory("/", "Zeta")

        listing = populated_ops.list_directory("/")

        assert _names(listing) == ["app", "components", "Zeta", "a.txt", "README.md"]

    def test_iter_files_is_depth_first(
        self, populated_ops: FileSystemOperations
    ) -> None:
        paths = [f.path for f in populated_ops.iter_files()]
        assert paths == [
            "/app/layout.tsx",
            "/app/page.tsx",
            "/components/ui/button.tsx",
            "/README.md",
        ]


class TestUpdate:
    """Test content updates."""

    def test_update_content(self, populated_ops: FileSystemOperations) -> None:
        node = populated_ops.resolve("/README.md")
        assert isinstance(node, FileNode)
        stamp = node.updated_at

        updated = populated_ops.update_file_content("/README.md", "abc")

        assert updated is node
        assert node.content == "abc"
        assert node.size == 3
        assert node.updated_at >= stamp
        assert populated_ops.project.updated_at >= node.updated_at

    def test_update_missing(self, ops: FileSystemOperations) -> None:
        _assert_unchanged_on_error(
            ops, NotFound, lambda: ops.update_file_content("/nope.txt", "x")
        )

    def test_update_directory(self, populated_ops: FileSystemOperations) -> None:
        _assert_unchanged_on_error(
            populated_ops,
            NotAFile,
            lambda: populated_ops.update_file_content("/app", "x"),
        )


class TestRename:
    """Test renaming nodes."""

    def test_rename_directory_rewrites_descendants(
        self, ops: FileSystemOperations
    ) -> None:
        """Renaming /src to /lib keeps the child's id and moves its path."""
        ops.create_directory("/", "src")
        child = ops.create_file("/src", "a.txt", "x")

        ops.rename("/src", "lib")

        resolved = ops.resolve("/lib/a.txt")
        assert resolved is not None
        assert resolved.id == child.id
        assert resolved.path == "/lib/a.txt"
        assert ops.resolve("/src/a.txt") is None
        assert find_invariant_violations(ops.project) == []

    def test_rename_deep_tree(self, populated_ops: FileSystemOperations) -> None:
        populated_ops.rename("/components", "parts")

        button = populated_ops.resolve("/parts/ui/button.tsx")
        assert button is not None
        assert button.path == "/parts/ui/button.tsx"
        assert find_invariant_violations(populated_ops.project) == []

    def test_rename_to_same_name(self, populated_ops: FileSystemOperations) -> None:
        node = populated_ops.rename("/README.md", "README.md")
        assert node.path == "/README.md"

    def test_rename_collision(self, populated_ops: FileSystemOperations) -> None:
        _assert_unchanged_on_error(
            populated_ops,
            AlreadyExists,
            lambda: populated_ops.rename("/app", "components"),
        )

    def test_rename_root(self, ops: FileSystemOperations) -> None:
        with pytest.raises(RootImmutable):
            ops.rename("/", "other")

    def test_rename_missing(self, ops: FileSystemOperations) -> None:
        with pytest.raises(NotFound):
            ops.rename("/nope", "other")

    def test_rename_invalid_name(self, populated_ops: FileSystemOperations) -> None:
        _assert_unchanged_on_error(
            populated_ops, NameInvalid, lambda: populated_ops.rename("/app", "a:b")
        )


class TestMove:
    """Test moving nodes between directories."""

    def test_move_file(self, populated_ops: FileSystemOperations) -> None:
        readme = populated_ops.resolve("/README.md")
        app = populated_ops.resolve("/app")
        assert readme is not None and isinstance(app, DirectoryNode)

        moved = populated_ops.move("/README.md", "/app")

        assert moved.id == readme.id
        assert moved.path == "/app/README.md"
        assert moved.parent_id == app.id
        assert readme.id in app.children
        assert readme.id not in populated_ops.project.root.children
        assert find_invariant_violations(populated_ops.project) == []

    def test_move_directory_with_subtree(
        self, populated_ops: FileSystemOperations
    ) -> None:
        populated_ops.move("/components", "/app")

        button = populated_ops.resolve("/app/components/ui/button.tsx")
        assert button is not None
        assert button.path == "/app/components/ui/button.tsx"
        assert find_invariant_violations(populated_ops.project) == []

    def test_move_into_own_subtree(self, populated_ops: FileSystemOperations) -> None:
        _assert_unchanged_on_error(
            populated_ops,
            CyclicMove,
            lambda: populated_ops.move("/components", "/components/ui"),
        )

    def test_move_into_itself(self, populated_ops: FileSystemOperations) -> None:
        with pytest.raises(CyclicMove):
            populated_ops.move("/components", "/components")

    def test_move_into_current_parent_collides(
        self, populated_ops: FileSystemOperations
    ) -> None:
        """The node itself already holds its name in its current parent."""
        _assert_unchanged_on_error(
            populated_ops,
            AlreadyExists,
            lambda: populated_ops.move("/app/page.tsx", "/app"),
        )

    def test_move_file_into_root_where_it_lives(self, ops: FileSystemOperations) -> None:
        ops.create_file("/", "a.txt")

        with pytest.raises(AlreadyExists):
            ops.move("/a.txt", "/")

    def test_move_to_missing_target(self, populated_ops: FileSystemOperations) -> None:
        with pytest.raises(TargetNotFound):
            populated_ops.move("/README.md", "/nope")

    def test_move_to_file(self, populated_ops: FileSystemOperations) -> None:
        with pytest.raises(TargetNotDirectory):
            populated_ops.move("/app/page.tsx", "/README.md")

    def test_move_missing_source(self, populated_ops: FileSystemOperations) -> None:
        with pytest.raises(NotFound):
            populated_ops.move("/nope", "/app")

    def test_move_root(self, populated_ops: FileSystemOperations) -> None:
        with pytest.raises(RootImmutable):
            populated_ops.move("/", "/app")

    def test_move_collision(self, populated_ops: FileSystemOperations) -> None:
        populated_ops.create_file("/components", "page.tsx")
        _assert_unchanged_on_error(
            populated_ops,
            AlreadyExists,
            lambda: populated_ops.move("/components/page.tsx", "/app"),
        )

    def test_missing_source_reported_before_bad_target(
        self, populated_ops: FileSystemOperations
    ) -> None:
        with pytest.raises(NotFound) as exc_info:
            populated_ops.move("/nope", "/also-nope")
        assert not isinstance(exc_info.value, TargetNotFound)


class TestDelete:
    """Test deletion."""

    def test_delete_file(self, populated_ops: FileSystemOperations) -> None:
        readme = populated_ops.resolve("/README.md")
        assert readme is not None

        populated_ops.delete("/README.md")

        assert populated_ops.resolve("/README.md") is None
        assert readme.id not in populated_ops.nodes
        assert readme.id not in populated_ops.project.root.children

    def test_delete_directory_removes_subtree(
        self, populated_ops: FileSystemOperations
    ) -> None:
        ids = {
            node.id
            for path in ("/components", "/components/ui", "/components/ui/button.tsx")
            if (node := populated_ops.resolve(path)) is not None
        }
        assert len(ids) == 3

        populated_ops.delete("/components")

        assert ids.isdisjoint(populated_ops.nodes)
        assert len(populated_ops.nodes) == 5
        assert find_invariant_violations(populated_ops.project) == []

    def test_delete_root(self, ops: FileSystemOperations) -> None:
        _assert_unchanged_on_error(ops, RootImmutable, lambda: ops.delete("/"))

    def test_delete_missing(self, ops: FileSystemOperations) -> None:
        with pytest.raises(NotFound):
            ops.delete("/nope")

    def test_dangling_parent_is_reported(
        self, populated_ops: FileSystemOperations
    ) -> None:
        node = populated_ops.resolve("/README.md")
        assert node is not None
        node.parent_id = "nd_ghost"

        with pytest.raises(ProjectCorrupted):
            populated_ops.delete("/README.md")
        assert populated_ops.resolve("/README.md") is node


class TestEngineSequence:
    """A longer sequence of operations keeps every invariant."""

    def test_mixed_operations_keep_invariants(self, ops: FileSystemOperations) -> None:
        steps: list[Callable[[], object]] = [
            lambda: ops.create_directory("/", "src"),
            lambda: ops.create_directory("/src", "lib"),
            lambda: ops.create_file("/src/lib", "util.ts", "export {}"),
            lambda: ops.create_file("/src", "index.ts", "import './lib/util'"),
            lambda: ops.rename("/src/lib", "shared"),
            lambda: ops.create_directory("/", "pkg"),
            lambda: ops.move("/src/shared", "/pkg"),
            lambda: ops.update_file_content("/pkg/shared/util.ts", "export const x = 1"),
            lambda: ops.delete("/src/index.ts"),
        ]
        for step in steps:
            step()
            assert find_invariant_violations(ops.project) == []

        assert ops.read_file("/pkg/shared/util.ts") == "export const x = 1"
        src = ops.resolve("/src")
        assert isinstance(src, DirectoryNode)
        assert src.children == []
