"""ZIP import and export for projects.

Importing builds a fresh project through the operation engine, so every
invariant the engine enforces also holds for imported trees. Entries whose
names would break those invariants are skipped with a warning instead of
aborting the whole import.

Exported archives hold every file under its root-relative path. Directories
are written as explicit entries so empty folders survive a round trip.
"""

import io
import re
import zipfile
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import structlog

from projectfs.core.constants import (
    LARGE_FILE_BYTES,
    LARGE_PROJECT_BYTES,
    MANY_FILES_THRESHOLD,
    MAX_EXPORT_PATH_LENGTH,
    ZIP_COMPRESSION_LEVEL,
)
from projectfs.core.errors import ProjectFSError
from projectfs.core.models import DirectoryNode, FileNode, Project, new_project
from projectfs.fs.content import (
    decode_data_uri,
    encode_data_uri,
    file_type_from_path,
    is_data_uri,
    mime_type_for,
    normalize_line_endings,
)
from projectfs.fs.fs_ops import FileSystemOperations
from projectfs.fs.paths import (
    basename,
    dirname,
    normalize_path,
    split_path,
    validate_name,
)

logger = structlog.get_logger(__name__)

DEFAULT_IMPORT_NAME = "Imported Project"

# ZIP timestamps cannot predate 1980
_ZIP_EPOCH = datetime(1980, 1, 1, tzinfo=UTC)


@dataclass
class ExportStats:
    total_files: int = 0
    total_directories: int = 0
    total_size: int = 0
    largest_file: tuple[str, int] | None = None


@dataclass
class ExportValidation:
    """Pre-export report: blocking errors, advisory warnings and stats."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    stats: ExportStats = field(default_factory=ExportStats)

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass
class ImportValidation:
    """Post-import report on whether an archive looks like a web project."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def import_zip(
    data: bytes,
    project_name: str | None = None,
    *,
    archive_name: str | None = None,
) -> Project:
    """Build a new project from the bytes of a ZIP archive.

    Args:
        data: Raw archive bytes
        project_name: Name for the new project
        archive_name: Archive file name, used for the project name when
            ``project_name`` is not given

    Returns:
        The imported project

    Raises:
        zipfile.BadZipFile: If ``data`` is not a ZIP archive
    """
    name = project_name or _name_from_archive(archive_name)
    project = new_project(name)
    ops = FileSystemOperations(project)
    bound_logger = logger.bind(project_id=project.id, archive=archive_name)

    imported = 0
    skipped = 0
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        for info in archive.infolist():
            path = normalize_path(info.filename)
            reason = _invalid_segment(path)
            if reason is not None:
                bound_logger.warning(
                    "archive.skip_entry", entry=info.filename, reason=reason
                )
                skipped += 1
                continue

            try:
                if info.is_dir():
                    ops.ensure_directory(path)
                    continue
                _import_file(ops, path, archive.read(info))
            except ProjectFSError as e:
                bound_logger.warning(
                    "archive.skip_entry", entry=info.filename, reason=e.message
                )
                skipped += 1
                continue
            imported += 1

    bound_logger.info("archive.import", files=imported, skipped=skipped)
    return project


def validate_import(project: Project) -> ImportValidation:
    """Check that an imported project has the usual web project layout.

    Only warnings are produced: a missing ``package.json``, no ``app/`` or
    ``pages/`` directory, or more than MANY_FILES_THRESHOLD nodes.
    """
    result = ImportValidation()
    ops = FileSystemOperations(project)

    if not isinstance(ops.resolve("/package.json"), FileNode):
        result.warnings.append(
            "No package.json found; this may not be a valid Next.js project"
        )
    if not any(
        isinstance(ops.resolve(path), DirectoryNode) for path in ("/app", "/pages")
    ):
        result.warnings.append(
            "No app/ or pages/ directory found; this may not be a Next.js project"
        )

    node_count = len(project.nodes)
    if node_count > MANY_FILES_THRESHOLD:
        result.warnings.append(
            f"Large project with {node_count} files; performance may be impacted"
        )

    return result


def export_zip(project: Project) -> bytes:
    """Write every file and directory of a project into a ZIP archive.

    Text content is written with LF line endings; data-URI content is
    decoded back to its raw bytes.
    """
    ops = FileSystemOperations(project)
    buffer = io.BytesIO()
    files = 0

    with zipfile.ZipFile(buffer, "w") as archive:
        stack: list[FileNode | DirectoryNode] = list(
            reversed(ops.list_directory(project.root.path))
        )
        while stack:
            node = stack.pop()
            arcname = node.path.lstrip("/")
            if isinstance(node, DirectoryNode):
                archive.writestr(_directory_info(arcname, node.updated_at), b"")
                stack.extend(reversed(ops.list_directory(node.path)))
                continue

            archive.writestr(
                _zip_info(arcname, node.updated_at),
                _export_payload(node),
                compress_type=zipfile.ZIP_DEFLATED,
                compresslevel=ZIP_COMPRESSION_LEVEL,
            )
            files += 1

    logger.info("archive.export", project_id=project.id, files=files)
    return buffer.getvalue()


def validate_export(project: Project) -> ExportValidation:
    """Check a project before export.

    Paths longer than MAX_EXPORT_PATH_LENGTH are errors. Very large files,
    very large projects, many files and an empty root level are warnings.
    """
    result = ExportValidation()
    stats = result.stats

    for node in project.nodes.values():
        if isinstance(node, DirectoryNode):
            if node.parent_id is not None:
                stats.total_directories += 1
            continue

        stats.total_files += 1
        stats.total_size += node.size
        if stats.largest_file is None or node.size > stats.largest_file[1]:
            stats.largest_file = (node.name, node.size)

        if node.size > LARGE_FILE_BYTES:
            result.warnings.append(
                f"Large file detected: {node.name} ({format_file_size(node.size)})"
            )
        if len(node.path) > MAX_EXPORT_PATH_LENGTH:
            result.errors.append(f"Path too long: {node.path}")

    if stats.total_size > LARGE_PROJECT_BYTES:
        result.warnings.append(
            f"Large project size: {format_file_size(stats.total_size)}"
        )
    if stats.total_files > MANY_FILES_THRESHOLD:
        result.warnings.append(f"Many files in project: {stats.total_files} files")

    root_files = [
        node_id
        for node_id in project.root.children
        if isinstance(project.nodes.get(node_id), FileNode)
    ]
    if not root_files:
        result.warnings.append("No files in root directory")

    return result


def export_filename(project_name: str, today: date | None = None) -> str:
    """Build ``<slug>-<YYYY-MM-DD>.zip`` for a project name."""
    slug = re.sub(r"[^a-zA-Z0-9\s_-]", "", project_name)
    slug = re.sub(r"\s+", "-", slug.strip()).lower() or "project"
    stamp = (today or datetime.now(UTC).date()).isoformat()
    return f"{slug}-{stamp}.zip"


def format_file_size(size: int) -> str:
    """Render a byte count as ``1.5 KB``, ``12 MB`` and so on."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    for unit in ("Bytes", "KB", "MB"):
        if value < 1024:
            return f"{round(value, 2):g} {unit}"
        value /= 1024
    return f"{round(value, 2):g} GB"


def _name_from_archive(archive_name: str | None) -> str:
    if not archive_name:
        return DEFAULT_IMPORT_NAME
    return basename(archive_name, ".zip") or DEFAULT_IMPORT_NAME


def _invalid_segment(path: str) -> str | None:
    """Describe the first segment of ``path`` that is not a valid name."""
    for segment in split_path(path):
        issue = validate_name(segment)
        if issue is not None:
            return f"{segment!r}: {issue.describe()}"
    return None


def _import_file(ops: FileSystemOperations, path: str, payload: bytes) -> FileNode:
    parent = ops.ensure_directory(dirname(path))
    name = basename(path)
    mime_type = mime_type_for(path)

    if file_type_from_path(path) == "text":
        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError:
            # Not UTF-8, stored as binary below
            pass
        else:
            return ops.create_file(
                parent.path,
                name,
                normalize_line_endings(text),
                binary=False,
                mime_type=mime_type,
            )

    return ops.create_file(
        parent.path,
        name,
        encode_data_uri(payload, mime_type),
        binary=True,
        mime_type=mime_type,
    )


def _export_payload(node: FileNode) -> bytes:
    if node.binary and is_data_uri(node.content):
        try:
            return decode_data_uri(node.content)
        except ValueError as e:
            logger.warning("archive.bad_data_uri", path=node.path, error=str(e))
    return normalize_line_endings(node.content).encode("utf-8")


def _zip_info(arcname: str, modified: datetime) -> zipfile.ZipInfo:
    stamp = max(modified, _ZIP_EPOCH)
    return zipfile.ZipInfo(arcname, date_time=stamp.timetuple()[:6])


def _directory_info(arcname: str, modified: datetime) -> zipfile.ZipInfo:
    info = _zip_info(arcname.rstrip("/") + "/", modified)
    # drwxrwxr-x plus the MS-DOS directory flag
    info.external_attr = (0o40775 << 16) | 0x10
    return info
