from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Request, Response, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from pagelens import __version__
from pagelens.config import Settings, settings
from pagelens.errors import NotFoundError, PersistenceError, UploadRejected
from pagelens.extraction.types import Extraction, ExtractionResult
from pagelens.ingest.service import UploadService
from pagelens.store.uploads import FileSummary, StoredDocument

LINK_PREVIEW_LIMIT = 10
IMAGE_PREVIEW_LIMIT = 5
META_PREVIEW_LIMIT = 10
WEB_SCHEMES = ("http://", "https://")


def _is_web_url(href: str) -> bool:
    return href.strip().lower().startswith(WEB_SCHEMES)


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))
templates.env.tests["web_url"] = _is_web_url
router = APIRouter()


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service


class FileSummaryModel(BaseModel):
    id: str
    name: str
    size: int
    uploaded_at: datetime
    has_extraction: bool


class FileModel(BaseModel):
    id: str
    name: str
    size_bytes: int
    uploaded_at: datetime
    content_type: str
    sha256: str


class FileDetailModel(BaseModel):
    file: FileModel
    extraction: dict[str, Any] | None
    text_excerpt: str | None


class UploadResponse(BaseModel):
    file_id: str
    file: FileModel
    extraction: dict[str, Any] | None


class DeleteResponse(BaseModel):
    deleted: bool


def _summary_to_model(summary: FileSummary) -> FileSummaryModel:
    return FileSummaryModel(
        id=summary.id,
        name=summary.name,
        size=summary.size,
        uploaded_at=summary.uploaded_at,
        has_extraction=summary.has_extraction,
    )


def _file_to_model(document: StoredDocument) -> FileModel:
    metadata = document.metadata
    return FileModel(
        id=metadata.id,
        name=metadata.original_name,
        size_bytes=metadata.size_bytes,
        uploaded_at=metadata.uploaded_at,
        content_type=metadata.content_type,
        sha256=metadata.sha256,
    )


def _extraction_payload(extraction: Extraction | None) -> dict[str, Any] | None:
    if extraction is None:
        return None
    payload = extraction.to_dict()
    if "headings" in payload:
        payload["headings"] = {str(level): texts for level, texts in payload["headings"].items()}
    return payload


def _text_excerpt(extraction: Extraction | None, limit: int) -> str | None:
    if not isinstance(extraction, ExtractionResult):
        return None
    return extraction.raw_text[:limit] or None


def _require_document(service: UploadService, file_id: str) -> StoredDocument:
    document = service.get(file_id)
    if document is None:
        raise NotFoundError(file_id)
    return document


@router.get("/health")
def health(service: UploadService = Depends(get_upload_service)) -> dict[str, Any]:
    return {
        "status": "ok",
        "version": __version__,
        "upload_dir": str(service.config.upload_dir),
        "files": len(service.list_files()),
    }


@router.get("/", response_class=HTMLResponse)
def ui_home(
    request: Request,
    service: UploadService = Depends(get_upload_service),
) -> HTMLResponse:
    files = [_summary_to_model(summary) for summary in service.list_files()]
    return templates.TemplateResponse(request, "index.html", {"files": files})


@router.post("/upload")
async def ui_upload(
    request: Request,
    service: UploadService = Depends(get_upload_service),
) -> Response:
    body = await request.body()
    file_id = service.upload_multipart(body, request.headers.get("content-type"))
    return RedirectResponse(
        url=request.url_for("ui_file_detail", file_id=file_id),
        status_code=status.HTTP_303_SEE_OTHER,
    )


@router.get("/view/{file_id}", response_class=HTMLResponse, name="ui_file_detail")
def ui_file_detail(
    request: Request,
    file_id: str,
    service: UploadService = Depends(get_upload_service),
) -> HTMLResponse:
    document = service.get(file_id)
    if document is None:
        return templates.TemplateResponse(
            request,
            "not_found.html",
            {"file_id": file_id},
            status_code=status.HTTP_404_NOT_FOUND,
        )
    return templates.TemplateResponse(
        request,
        "file_detail.html",
        {
            "file": _file_to_model(document),
            "extraction": document.extraction,
            "is_result": isinstance(document.extraction, ExtractionResult),
            "link_limit": LINK_PREVIEW_LIMIT,
            "image_limit": IMAGE_PREVIEW_LIMIT,
            "meta_limit": META_PREVIEW_LIMIT,
        },
    )


@router.get("/raw/{file_id}")
def raw_content(file_id: str, service: UploadService = Depends(get_upload_service)) -> Response:
    document = _require_document(service, file_id)
    return Response(content=document.content, media_type="text/plain")


@router.delete("/delete/{file_id}", response_model=DeleteResponse)
@router.delete("/api/files/{file_id}", response_model=DeleteResponse)
def delete_file(
    file_id: str,
    service: UploadService = Depends(get_upload_service),
) -> DeleteResponse:
    if not service.delete(file_id):
        raise NotFoundError(file_id)
    return DeleteResponse(deleted=True)


@router.get("/api/files", response_model=list[FileSummaryModel])
def list_files(service: UploadService = Depends(get_upload_service)) -> list[FileSummaryModel]:
    return [_summary_to_model(summary) for summary in service.list_files()]


@router.post("/api/files", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def create_file(
    request: Request,
    service: UploadService = Depends(get_upload_service),
) -> UploadResponse:
    body = await request.body()
    file_id = service.upload_bytes(body, request.headers.get("x-filename") or None)
    document = _require_document(service, file_id)
    return UploadResponse(
        file_id=file_id,
        file=_file_to_model(document),
        extraction=_extraction_payload(document.extraction),
    )


@router.get("/api/files/{file_id}", response_model=FileDetailModel)
def get_file(file_id: str, service: UploadService = Depends(get_upload_service)) -> FileDetailModel:
    document = _require_document(service, file_id)
    return FileDetailModel(
        file=_file_to_model(document),
        extraction=_extraction_payload(document.extraction),
        text_excerpt=_text_excerpt(document.extraction, service.config.raw_preview_limit),
    )


def _not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


def _rejected_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


def _persistence_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)},
    )


def create_app(config: Settings = settings, service: UploadService | None = None) -> FastAPI:
    """Build the web app; one ``UploadService`` is created at startup and shared."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.upload_service = service or UploadService(config=config)
        yield

    application = FastAPI(title="PageLens", version=__version__, lifespan=lifespan)
    application.include_router(router)
    application.add_exception_handler(NotFoundError, _not_found_handler)
    application.add_exception_handler(UploadRejected, _rejected_handler)
    application.add_exception_handler(PersistenceError, _persistence_handler)
    return application


app = create_app()


__all__ = ["app", "create_app", "get_upload_service"]
