from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from pagelens.errors import PersistenceError
from pagelens.extraction.html import extract_document
from pagelens.extraction.parser import DocumentParser
from pagelens.extraction.types import Extraction, ExtractionError
from pagelens.ingest.detector import DocumentDetector
from pagelens.utils.audit import AuditTrail
from pagelens.utils.files import resolve_upload_path, write_bytes_exclusive
from pagelens.utils.hash import sha256_bytes
from pagelens.utils.ids import new_id


@dataclass(slots=True, frozen=True)
class UploadedFile:
    """Metadata of a stored upload."""

    id: str
    storage_location: Path
    original_name: str
    uploaded_at: datetime
    size_bytes: int
    content_type: str
    sha256: str


@dataclass(slots=True, frozen=True)
class FileSummary:
    id: str
    name: str
    size: int
    uploaded_at: datetime
    has_extraction: bool


@dataclass(slots=True, frozen=True)
class StoredDocument:
    content: bytes
    metadata: UploadedFile
    extraction: Extraction | None


class FileStore(Protocol):
    """Persistence capability used by the upload service."""

    def store(self, content: bytes, original_name: str | None = None) -> str: ...

    def read(self, file_id: str) -> StoredDocument | None: ...

    def list_files(self) -> list[FileSummary]: ...

    def delete(self, file_id: str) -> bool: ...


def default_upload_name(file_id: str) -> str:
    return f"upload_{file_id}.html"


class UploadStore:
    """Local-disk upload store with an in-memory index.

    Bytes live under ``root`` (created on the first write); metadata and
    extraction results live in two dicts guarded by one lock, so readers never
    observe a half-applied ``store`` or ``delete``. Issued ids are remembered
    and never handed out twice.
    """

    def __init__(
        self,
        root: Path,
        detector: DocumentDetector | None = None,
        parser: DocumentParser | None = None,
        id_factory: Callable[[], str] = new_id,
        audit: AuditTrail | None = None,
    ) -> None:
        self.root = root
        self.detector = detector or DocumentDetector()
        self.parser = parser
        self.audit = audit
        self._id_factory = id_factory
        self._lock = threading.RLock()
        self._files: dict[str, UploadedFile] = {}
        self._extractions: dict[str, Extraction] = {}
        self._issued: set[str] = set()

    def store(self, content: bytes, original_name: str | None = None) -> str:
        """Persist ``content`` and return its new id.

        Markup-named uploads are extracted before this returns. Raises
        ``PersistenceError`` when the bytes cannot be written; nothing is
        indexed in that case.
        """

        if content is None:
            msg = "content must not be None"
            raise TypeError(msg)
        file_id = self._reserve_id()
        name = original_name or default_upload_name(file_id)
        path = resolve_upload_path(file_id, name, self.root)
        is_markup, mime = self.detector.detect(name, content)
        try:
            write_bytes_exclusive(path, content)
        except OSError as error:
            self._record("error", "upload.persist_failed", file_id=file_id, error=str(error))
            msg = f"Could not persist upload {file_id}: {error}"
            raise PersistenceError(msg) from error

        metadata = UploadedFile(
            id=file_id,
            storage_location=path,
            original_name=name,
            uploaded_at=datetime.now(tz=UTC),
            size_bytes=len(content),
            content_type=mime,
            sha256=sha256_bytes(content),
        )
        self._record("info", "upload.stored", file_id=file_id, name=name, size=len(content))

        extraction: Extraction | None = None
        if is_markup:
            extraction = extract_document(content, self.parser)
            if isinstance(extraction, ExtractionError):
                self._record(
                    "warning",
                    "upload.extraction_failed",
                    file_id=file_id,
                    error=extraction.message,
                )
            else:
                self._record("info", "upload.extracted", file_id=file_id)

        with self._lock:
            self._files[file_id] = metadata
            if extraction is not None:
                self._extractions[file_id] = extraction
        return file_id

    def read(self, file_id: str) -> StoredDocument | None:
        with self._lock:
            metadata = self._files.get(file_id)
            extraction = self._extractions.get(file_id)
        if metadata is None:
            return None
        try:
            content = metadata.storage_location.read_bytes()
        except FileNotFoundError as error:
            with self._lock:
                if file_id not in self._files:
                    return None
            msg = f"Stored bytes for upload {file_id} are missing"
            raise PersistenceError(msg) from error
        except OSError as error:
            msg = f"Could not read upload {file_id}: {error}"
            raise PersistenceError(msg) from error
        return StoredDocument(content=content, metadata=metadata, extraction=extraction)

    def list_files(self) -> list[FileSummary]:
        with self._lock:
            return [
                FileSummary(
                    id=file_id,
                    name=metadata.original_name,
                    size=metadata.size_bytes,
                    uploaded_at=metadata.uploaded_at,
                    has_extraction=file_id in self._extractions,
                )
                for file_id, metadata in self._files.items()
            ]

    def delete(self, file_id: str) -> bool:
        """Remove an upload and its extraction; ``False`` when it is unknown."""

        with self._lock:
            metadata = self._files.get(file_id)
            if metadata is None:
                return False
            try:
                metadata.storage_location.unlink(missing_ok=True)
            except OSError as error:
                msg = f"Could not delete upload {file_id}: {error}"
                raise PersistenceError(msg) from error
            del self._files[file_id]
            self._extractions.pop(file_id, None)
        self._record("info", "upload.deleted", file_id=file_id)
        return True

    def __contains__(self, file_id: object) -> bool:
        with self._lock:
            return file_id in self._files

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)

    def _reserve_id(self) -> str:
        with self._lock:
            file_id = self._id_factory()
            while file_id in self._issued:
                file_id = self._id_factory()
            self._issued.add(file_id)
        return file_id

    def _record(self, level: str, event: str, **details: object) -> None:
        if self.audit is not None:
            self.audit.record(level, event, **details)


__all__ = [
    "FileStore",
    "FileSummary",
    "StoredDocument",
    "UploadStore",
    "UploadedFile",
    "default_upload_name",
]
