from __future__ import annotations

from collections.abc import Iterable

from pagelens.utils.files import guess_mimetype

MARKUP_MIMETYPE = "text/html"


class DocumentDetector:
    """Decide whether an upload is markup; only the file name counts."""

    def __init__(self, markup_extensions: Iterable[str] = (".html", ".htm")) -> None:
        self.markup_extensions = tuple(extension.lower() for extension in markup_extensions)

    def is_markup(self, name: str) -> bool:
        return name.lower().endswith(self.markup_extensions)

    def detect(self, name: str, content: bytes) -> tuple[bool, str]:
        """Return ``(is_markup, mime)``; the mime is a best-effort guess."""

        if self.is_markup(name):
            return True, MARKUP_MIMETYPE
        return False, guess_mimetype(content, name)


__all__ = ["DocumentDetector", "MARKUP_MIMETYPE"]
