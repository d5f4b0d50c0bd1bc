"""Persistent project storage backed by SQLite."""

from projectfs.store.project_store import ProjectStore, ProjectSummary

__all__ = ["ProjectStore", "ProjectSummary"]
