"""Minimal ``multipart/form-data`` reader for single-file uploads.

Only what an upload form needs is supported: the first part whose
``Content-Disposition`` header carries a ``filename`` parameter is returned,
later file fields are ignored, ``Content-Transfer-Encoding`` is not decoded and
no size limit is applied. Payload bytes must not contain a line that starts
with the delimiter (``--`` + boundary); such a line ends the part early.

Both CRLF and bare LF line breaks are accepted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

_BOUNDARY_RE = re.compile(r'boundary\s*=\s*(?:"([^"]+)"|([^;,\s]+))', re.IGNORECASE)
_PARAM_RE = re.compile(r';\s*([A-Za-z0-9_*.-]+)\s*=\s*(?:"((?:[^"\\]|\\.)*)"|([^;]*))')
_DELIMITER_TAILS = (b"", b"\r", b"\n", b" ", b"\t", b"-")


@dataclass(slots=True, frozen=True)
class MultipartFile:
    """File payload found in a multipart body."""

    filename: str
    content: bytes
    field_name: str | None = None
    content_type: str | None = None


class _ScanState(Enum):
    HEADERS = "headers"
    PAYLOAD = "payload"


class _MissingSeparator(Exception):
    """The file part has no blank line between its headers and payload."""


def parse_boundary(content_type: str | None) -> str | None:
    """Return the ``boundary`` parameter of a ``Content-Type`` header value."""

    if not content_type:
        return None
    match = _BOUNDARY_RE.search(content_type)
    if match is None:
        return None
    boundary = (match.group(1) or match.group(2) or "").strip()
    return boundary or None


def extract_file(raw_body: bytes, boundary: str) -> MultipartFile | None:
    """Return the first file part of ``raw_body`` or ``None``.

    ``None`` covers every malformed case: empty body or boundary, boundary
    never found, no part with a filename, or a file part whose header block is
    not terminated by a blank line.
    """

    if not raw_body or not boundary:
        return None
    delimiter = b"--" + boundary.encode("utf-8")
    position = _find_delimiter(raw_body, delimiter, 0)
    try:
        while position >= 0:
            part_start = _skip_delimiter_line(raw_body, delimiter, position)
            if part_start is None:
                return None
            found, position = _scan_part(raw_body, delimiter, part_start)
            if found is not None:
                return found
    except _MissingSeparator:
        return None
    return None


def _scan_part(raw_body: bytes, delimiter: bytes, start: int) -> tuple[MultipartFile | None, int]:
    """Scan one part; return the file (if it is one) and the next delimiter offset."""

    state = _ScanState.HEADERS
    headers: dict[str, str] = {}
    cursor = start
    while True:
        if state is _ScanState.HEADERS:
            line_end = raw_body.find(b"\n", cursor)
            stop = len(raw_body) if line_end < 0 else line_end
            line = raw_body[cursor:stop].rstrip(b"\r")
            if line_end < 0 or _is_delimiter_at(raw_body, delimiter, cursor):
                if _disposition_params(headers).get("filename") is not None:
                    raise _MissingSeparator
                next_position = cursor if _is_delimiter_at(raw_body, delimiter, cursor) else -1
                return None, next_position
            cursor = line_end + 1
            if line:
                _add_header(headers, line)
                continue
            if _disposition_params(headers).get("filename") is None:
                return None, _find_delimiter(raw_body, delimiter, cursor)
            state = _ScanState.PAYLOAD
        else:
            end = _find_delimiter(raw_body, delimiter, cursor)
            if end < 0:
                end = len(raw_body)
            params = _disposition_params(headers)
            payload = raw_body[cursor:_strip_line_break(raw_body, cursor, end)]
            return (
                MultipartFile(
                    filename=params["filename"],
                    content=payload,
                    field_name=params.get("name"),
                    content_type=headers.get("content-type"),
                ),
                end,
            )


def _find_delimiter(raw_body: bytes, delimiter: bytes, start: int) -> int:
    index = raw_body.find(delimiter, start)
    while index >= 0:
        if _is_delimiter_at(raw_body, delimiter, index):
            return index
        index = raw_body.find(delimiter, index + 1)
    return -1


def _is_delimiter_at(raw_body: bytes, delimiter: bytes, index: int) -> bool:
    if not raw_body.startswith(delimiter, index):
        return False
    if index > 0 and raw_body[index - 1 : index] != b"\n":
        return False
    after = index + len(delimiter)
    return raw_body[after : after + 1] in _DELIMITER_TAILS


def _skip_delimiter_line(raw_body: bytes, delimiter: bytes, position: int) -> int | None:
    """Return the offset of the first header line after a delimiter.

    ``None`` means the delimiter is the closing one or the body ends there.
    """

    cursor = position + len(delimiter)
    if raw_body.startswith(b"--", cursor):
        return None
    line_end = raw_body.find(b"\n", cursor)
    if line_end < 0:
        return None
    return line_end + 1


def _strip_line_break(raw_body: bytes, start: int, end: int) -> int:
    if end - start >= 2 and raw_body[end - 2 : end] == b"\r\n":
        return end - 2
    if end > start and raw_body[end - 1 : end] == b"\n":
        return end - 1
    return end


def _add_header(headers: dict[str, str], line: bytes) -> None:
    name, separator, value = line.decode("utf-8", errors="replace").partition(":")
    if not separator:
        return
    headers[name.strip().lower()] = value.strip()


def _disposition_params(headers: dict[str, str]) -> dict[str, str]:
    disposition = headers.get("content-disposition")
    if not disposition:
        return {}
    params: dict[str, str] = {}
    for match in _PARAM_RE.finditer(disposition):
        key = match.group(1).lower()
        if match.group(2) is not None:
            value = re.sub(r"\\(.)", r"\1", match.group(2))
        else:
            value = match.group(3).strip()
        params.setdefault(key, value)
    return params


__all__ = ["MultipartFile", "extract_file", "parse_boundary"]
