from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pagelens.api.main import create_app  # noqa: E402
from pagelens.config import Settings  # noqa: E402
from pagelens.ingest.detector import DocumentDetector  # noqa: E402
from pagelens.ingest.service import UploadService  # noqa: E402
from pagelens.store.uploads import UploadStore  # noqa: E402
from pagelens.utils.audit import AuditTrail  # noqa: E402


class ExplodingParser:
    """Parser double that always fails."""

    def __init__(self, message: str = "unbalanced markup") -> None:
        self.message = message

    def parse(self, content: bytes) -> object:
        raise ValueError(self.message)


@pytest.fixture()
def temp_settings(tmp_path: Path) -> Settings:
    return Settings(
        upload_dir=tmp_path / "uploads",
        log_dir=tmp_path / "logs",
    )


@pytest.fixture()
def audit(temp_settings: Settings) -> AuditTrail:
    return AuditTrail(temp_settings.log_dir)


@pytest.fixture()
def upload_store(temp_settings: Settings, audit: AuditTrail) -> UploadStore:
    return UploadStore(
        root=temp_settings.upload_dir,
        detector=DocumentDetector(temp_settings.markup_extensions),
        audit=audit,
    )


@pytest.fixture()
def upload_service(
    temp_settings: Settings,
    upload_store: UploadStore,
    audit: AuditTrail,
) -> UploadService:
    return UploadService(config=temp_settings, store=upload_store, audit=audit)


@pytest.fixture()
def client(temp_settings: Settings, upload_service: UploadService) -> Iterator[TestClient]:
    app = create_app(temp_settings, service=upload_service)
    with TestClient(app) as test_client:
        yield test_client
