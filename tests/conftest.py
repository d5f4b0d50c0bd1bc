"""Pytest configuration and fixtures for projectfs tests."""

import pytest

from projectfs.core.models import Project, new_project
from projectfs.fs.fs_ops import FileSystemOperations


@pytest.fixture
def project() -> Project:
    """An empty project holding only its root."""
    return new_project("Demo", description="Test project")


@pytest.fixture
def ops(project: Project) -> FileSystemOperations:
    return FileSystemOperations(project)


@pytest.fixture
def populated_ops(ops: FileSystemOperations) -> FileSystemOperations:
    """A small Next.js-like tree.

    /
    ├── app/
    │   ├── page.tsx
    │   └── layout.tsx
    ├── components/
    │   └── ui/
    │       └── button.tsx
    └── README.md
    """
    ops.create_directory("/", "app")
    ops.create_file("/app", "page.tsx", "export default function Page() {}")
    ops.create_file("/app", "layout.tsx", "export default function Layout() {}")
    ops.create_directory("/", "components")
    ops.create_directory("/components", "ui")
    ops.create_file("/components/ui", "button.tsx", "export const Button = 1")
    ops.create_file("/", "README.md", "# Demo\n")
    return ops
