from __future__ import annotations

from pagelens.ingest.detector import MARKUP_MIMETYPE, DocumentDetector

PNG_HEADER = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def test_markup_is_decided_by_name() -> None:
    detector = DocumentDetector()

    assert detector.detect("INDEX.HTM", PNG_HEADER) == (True, MARKUP_MIMETYPE)
    assert detector.is_markup("page.html")
    assert not detector.is_markup("page.html.txt")


def test_mime_is_guessed_from_content_then_name() -> None:
    detector = DocumentDetector()

    assert detector.detect("image.bin", PNG_HEADER) == (False, "image/png")
    is_markup, mime = detector.detect("notes.txt", b"hello")
    assert not is_markup
    assert mime.startswith("text/")
    assert detector.detect("blob", b"\x00\x01") == (False, "application/octet-stream")


def test_custom_markup_extensions() -> None:
    detector = DocumentDetector((".XHTML",))

    assert detector.detect("doc.xhtml", b"x")[0]
    assert not detector.detect("doc.html", b"x")[0]
