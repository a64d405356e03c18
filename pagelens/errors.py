from __future__ import annotations


class PageLensError(Exception):
    """Base class for errors raised by PageLens."""


class NotFoundError(PageLensError):
    """A referenced upload does not exist."""

    def __init__(self, file_id: str) -> None:
        super().__init__(f"Upload {file_id} not found")
        self.file_id = file_id


class PersistenceError(PageLensError):
    """Reading, writing or deleting stored bytes failed."""


class UploadRejected(PageLensError):
    """An upload request could not be turned into a stored file."""


__all__ = ["NotFoundError", "PageLensError", "PersistenceError", "UploadRejected"]
