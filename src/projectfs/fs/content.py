"""Content helpers for file nodes.

File nodes hold a single ``content`` string. Binary payloads are stored as
self-describing data URIs (``data:image/png;base64,...``) so text and binary
files share one field.
"""

import base64
import binascii
from typing import Literal

from projectfs.core.constants import (
    DEFAULT_MIME_TYPE,
    IMAGE_EXTENSIONS,
    MIME_TYPES,
    TEXT_EXTENSIONS,
)
from projectfs.fs.paths import extname

FileKind = Literal["text", "image", "binary"]

DATA_URI_PREFIX = "data:"
_BASE64_MARKER = ";base64,"


def file_type_from_path(path: str) -> FileKind:
    """Classify a path by extension."""
    ext = extname(path).lower()
    if ext in TEXT_EXTENSIONS:
        return "text"
    if ext in IMAGE_EXTENSIONS:
        return "image"
    return "binary"


def mime_type_for(path: str) -> str:
    """Return the MIME type for a path, falling back to octet-stream."""
    ext = extname(path).lower().lstrip(".")
    return MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)


def is_data_uri(content: str) -> bool:
    """Return True if ``content`` is a base64 data URI."""
    return content.startswith(DATA_URI_PREFIX) and _BASE64_MARKER in content


def encode_data_uri(payload: bytes, mime_type: str = DEFAULT_MIME_TYPE) -> str:
    """Encode raw bytes as a base64 data URI."""
    encoded = base64.b64encode(payload).decode("ascii")
    return f"{DATA_URI_PREFIX}{mime_type}{_BASE64_MARKER}{encoded}"


def decode_data_uri(content: str) -> bytes:
    """Decode a base64 data URI back to raw bytes.

    Raises:
        ValueError: If ``content`` is not a well-formed base64 data URI
    """
    if not is_data_uri(content):
        raise ValueError("content is not a base64 data URI")

    _header, _, encoded = content.partition(_BASE64_MARKER)
    try:
        return base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64 payload: {e}") from e


def content_size(content: str) -> int:
    """Byte length of file content.

    Data URIs count their decoded payload; everything else counts its
    UTF-8 encoding.
    """
    if is_data_uri(content):
        try:
            return len(decode_data_uri(content))
        except ValueError:
            # Malformed payloads are sized as text
            pass
    return len(content.encode("utf-8"))


def normalize_line_endings(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF."""
    return text.replace("\r\n", "\n").replace("\r", "\n")
