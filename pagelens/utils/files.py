from __future__ import annotations

import mimetypes
import re
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

import filetype

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]+")
_MAX_NAME_LENGTH = 120


def timestamped_stem(prefix: str) -> str:
    """Return a safe stem combining prefix, timestamp and a random suffix."""

    now = datetime.now(tz=UTC).strftime("%Y%m%dT%H%M%S")
    return f"{prefix}-{now}-{uuid4().hex[:8]}"


def safe_filename(original_name: str, fallback: str = "upload.bin") -> str:
    """Reduce a caller supplied name to a single safe path component."""

    base = original_name.replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = _UNSAFE_CHARS_RE.sub("_", base).strip("._")
    if not cleaned:
        return fallback
    if len(cleaned) > _MAX_NAME_LENGTH:
        suffix = Path(cleaned).suffix[:16]
        cleaned = cleaned[: _MAX_NAME_LENGTH - len(suffix)] + suffix
    return cleaned


def resolve_upload_path(file_id: str, original_name: str, directory: Path) -> Path:
    """Return the storage path for an upload; unique per id."""

    return directory / f"{file_id}_{safe_filename(original_name)}"


def write_bytes_exclusive(destination: Path, content: bytes) -> Path:
    """Write ``content`` to a path that must not exist yet."""

    destination.parent.mkdir(parents=True, exist_ok=True)
    handle = destination.open("xb")
    try:
        with handle:
            handle.write(content)
    except OSError:
        destination.unlink(missing_ok=True)
        raise
    return destination


def guess_mimetype(
    content: bytes, name: str, fallback: str = "application/octet-stream"
) -> str:
    """Guess mimetype from the leading bytes, then from the name's extension."""

    kind = filetype.guess(content)
    if kind is not None:
        return kind.mime
    guess, _ = mimetypes.guess_type(name)
    return guess or fallback


__all__ = [
    "guess_mimetype",
    "resolve_upload_path",
    "safe_filename",
    "timestamped_stem",
    "write_bytes_exclusive",
]
