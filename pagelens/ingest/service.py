from __future__ import annotations

from pathlib import Path

from pagelens.config import Settings, settings
from pagelens.errors import UploadRejected
from pagelens.ingest.detector import DocumentDetector
from pagelens.ingest.multipart import extract_file, parse_boundary
from pagelens.store.uploads import FileStore, FileSummary, StoredDocument, UploadStore
from pagelens.utils.audit import AuditTrail


class UploadService:
    """Coordinate multipart parsing, storage and extraction of uploads."""

    def __init__(
        self,
        config: Settings = settings,
        store: FileStore | None = None,
        audit: AuditTrail | None = None,
    ) -> None:
        self.config = config
        self.audit = audit or AuditTrail(config.log_dir)
        self.store = store or UploadStore(
            root=config.upload_dir,
            detector=DocumentDetector(config.markup_extensions),
            audit=self.audit,
        )

    def upload_multipart(self, raw_body: bytes, content_type: str | None) -> str:
        """Store the first file part of a ``multipart/form-data`` body."""

        self.audit.record(
            "info", "upload.received", content_type=content_type or "", size=len(raw_body)
        )
        boundary = parse_boundary(content_type)
        if boundary is None:
            self.audit.record("warning", "upload.rejected", reason="missing boundary")
            msg = "Request is not multipart/form-data or has no boundary"
            raise UploadRejected(msg)
        found = extract_file(raw_body, boundary)
        if found is None:
            self.audit.record("warning", "upload.rejected", reason="no file part")
            msg = "No file part found in request body"
            raise UploadRejected(msg)
        return self.store.store(found.content, found.filename or None)

    def upload_bytes(self, content: bytes, original_name: str | None = None) -> str:
        """Store a raw payload, e.g. a request body or a CLI argument file."""

        self.audit.record("info", "upload.received", name=original_name or "", size=len(content))
        return self.store.store(content, original_name)

    def upload_path(self, path: Path) -> str:
        """Read a local file and store it under its own name."""

        return self.upload_bytes(path.read_bytes(), path.name)

    def get(self, file_id: str) -> StoredDocument | None:
        return self.store.read(file_id)

    def list_files(self) -> list[FileSummary]:
        return self.store.list_files()

    def delete(self, file_id: str) -> bool:
        return self.store.delete(file_id)


__all__ = ["UploadService"]
