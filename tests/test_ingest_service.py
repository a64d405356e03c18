from __future__ import annotations

from pathlib import Path

import pytest

from pagelens.errors import UploadRejected
from pagelens.extraction.types import ExtractionResult
from pagelens.ingest.service import UploadService

BOUNDARY = "----pagelens"
CONTENT_TYPE = f"multipart/form-data; boundary={BOUNDARY}"


def _multipart(filename: str, payload: bytes) -> bytes:
    return (
        f"--{BOUNDARY}\r\n"
        f'Content-Disposition: form-data; name="file"; filename="{filename}"\r\n'
        "Content-Type: text/html\r\n\r\n"
    ).encode() + payload + f"\r\n--{BOUNDARY}--\r\n".encode()


def test_upload_multipart_stores_and_extracts(upload_service: UploadService) -> None:
    body = _multipart("report.html", b"<title>Report</title><h2>Intro</h2>")

    file_id = upload_service.upload_multipart(body, CONTENT_TYPE)
    document = upload_service.get(file_id)

    assert document is not None
    assert document.metadata.original_name == "report.html"
    assert document.content == b"<title>Report</title><h2>Intro</h2>"
    assert isinstance(document.extraction, ExtractionResult)
    assert document.extraction.title == "Report"


def test_upload_multipart_empty_filename_uses_default(upload_service: UploadService) -> None:
    file_id = upload_service.upload_multipart(_multipart("", b"<p>x</p>"), CONTENT_TYPE)

    document = upload_service.get(file_id)

    assert document is not None
    assert document.metadata.original_name == f"upload_{file_id}.html"


def test_upload_multipart_rejects_missing_boundary(upload_service: UploadService) -> None:
    with pytest.raises(UploadRejected):
        upload_service.upload_multipart(b"<html></html>", "text/html")

    assert upload_service.list_files() == []
    assert upload_service.audit.events[-1].event == "upload.rejected"


def test_upload_multipart_rejects_body_without_file(upload_service: UploadService) -> None:
    body = (
        f"--{BOUNDARY}\r\nContent-Disposition: form-data; name=\"title\"\r\n\r\n"
        f"hello\r\n--{BOUNDARY}--\r\n"
    ).encode()

    with pytest.raises(UploadRejected, match="No file part"):
        upload_service.upload_multipart(body, CONTENT_TYPE)


def test_upload_path_and_delete(tmp_path: Path, upload_service: UploadService) -> None:
    source = tmp_path / "notes.txt"
    source.write_text("plain notes", encoding="utf-8")

    file_id = upload_service.upload_path(source)
    summaries = upload_service.list_files()

    assert [summary.name for summary in summaries] == ["notes.txt"]
    assert summaries[0].has_extraction is False
    assert upload_service.delete(file_id) is True
    assert upload_service.delete(file_id) is False
    assert upload_service.get(file_id) is None


def test_audit_trail_records_lifecycle(upload_service: UploadService) -> None:
    file_id = upload_service.upload_bytes(b"<h1>x</h1>", "x.html")
    upload_service.delete(file_id)

    events = [event.event for event in upload_service.audit.events]

    assert events == ["upload.received", "upload.stored", "upload.extracted", "upload.deleted"]
    lines = upload_service.audit.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 4
