from __future__ import annotations

import string
from pathlib import Path

import pytest
from pydantic import ValidationError

from pagelens.config import Settings
from pagelens.utils.audit import AuditTrail
from pagelens.utils.files import resolve_upload_path, safe_filename, write_bytes_exclusive
from pagelens.utils.hash import sha256_bytes
from pagelens.utils.ids import new_id


def test_new_id_is_128_bit_hex() -> None:
    token = new_id()
    assert len(token) == 32
    assert set(token) <= set(string.hexdigits.lower())
    assert new_id() != token


def test_audit_trail_redacts_sensitive_fields(tmp_path: Path) -> None:
    trail = AuditTrail(tmp_path)
    trail.record(
        "info", "test", email="analyste@example.com", phone="+33612345678", size=1234567890
    )
    stored = trail.events[0].to_dict()

    assert "***@" in stored["details"]["email"]
    assert stored["details"]["phone"].startswith("+***")
    assert stored["details"]["size"] == 1234567890
    assert trail.path.read_text(encoding="utf-8").count("\n") == 1


def test_audit_trail_keeps_identifiers_and_bare_digits(tmp_path: Path) -> None:
    trail = AuditTrail(tmp_path)
    file_id = "0123456789abcdef0123456789abcdef"
    trail.record("info", "test", file_id=file_id, digits="1234567890", phone="+1 555 010 9999")
    stored = trail.events[0].to_dict()["details"]

    assert stored["file_id"] == file_id
    assert stored["digits"] == "1234567890"
    assert stored["phone"] == "+***9999"


def test_safe_filename_strips_paths_and_unsafe_characters() -> None:
    assert safe_filename("../../etc/passwd") == "passwd"
    assert safe_filename("C:\\Users\\me\\report final.html") == "report_final.html"
    assert safe_filename("...") == "upload.bin"
    assert len(safe_filename("a" * 300 + ".html")) == 120
    assert safe_filename("a" * 300 + ".html").endswith(".html")


def test_resolve_upload_path_prefixes_id(tmp_path: Path) -> None:
    path = resolve_upload_path("abc", "page.html", tmp_path)
    assert path == tmp_path / "abc_page.html"


def test_write_bytes_exclusive_refuses_existing(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "file.bin"
    write_bytes_exclusive(target, b"one")

    with pytest.raises(FileExistsError):
        write_bytes_exclusive(target, b"two")
    assert target.read_bytes() == b"one"


def test_sha256_bytes_matches_known_digest() -> None:
    assert sha256_bytes(b"") == (
        "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    )


def test_settings_normalise_markup_extensions(tmp_path: Path) -> None:
    config = Settings(
        upload_dir=tmp_path / "uploads",
        log_dir=tmp_path / "logs",
        markup_extensions=("HTML", " .Htm ", ""),
    )
    assert config.markup_extensions == (".html", ".htm")
    assert config.log_dir.is_dir()
    assert not config.upload_dir.exists()


def test_settings_reject_invalid_values(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        Settings(log_dir=tmp_path / "logs", raw_preview_limit=0)
    with pytest.raises(ValidationError):
        Settings(log_dir=tmp_path / "logs", markup_extensions=())


def test_settings_read_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PAGELENS_UPLOAD_DIR", str(tmp_path / "env-uploads"))
    monkeypatch.setenv("PAGELENS_LOG_DIR", str(tmp_path / "env-logs"))
    config = Settings()
    assert config.upload_dir == tmp_path / "env-uploads"
