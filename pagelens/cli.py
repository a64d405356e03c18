from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
import uvicorn

from pagelens import __version__
from pagelens.config import Settings
from pagelens.extraction.html import extract_document
from pagelens.extraction.types import ExtractionError
from pagelens.ingest.service import UploadService

app = typer.Typer(help="PageLens upload and extraction tools", add_completion=False)


def _version_callback(
    ctx: typer.Context,
    param: Any,
    value: bool,
) -> bool:
    if value:
        typer.echo(__version__)
        raise typer.Exit()
    return value


@app.callback()
def _main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Print the version and exit.",
    ),
) -> None:
    """Root entry point."""


@app.command(help="Run the web app (FastAPI + HTML views).")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Listen address."),
    port: int = typer.Option(8000, "--port", help="HTTP port."),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload."),
) -> None:
    uvicorn.run("pagelens.api.main:app", host=host, port=port, reload=reload, factory=False)


@app.command(help="Extract a local markup file and print the summary as JSON.")
def extract(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
) -> None:
    extraction = extract_document(path.read_bytes())
    typer.echo(json.dumps(extraction.to_dict(), ensure_ascii=False, indent=2))
    if isinstance(extraction, ExtractionError):
        raise typer.Exit(code=1)


@app.command(help="Store a local file in the upload directory and print its id.")
def upload(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    upload_dir: Path | None = typer.Option(None, "--upload-dir", help="Storage root override."),
) -> None:
    config = Settings(upload_dir=upload_dir) if upload_dir is not None else Settings()
    service = UploadService(config=config)
    file_id = service.upload_path(path)
    document = service.get(file_id)
    has_extraction = document is not None and document.extraction is not None
    typer.echo(file_id)
    typer.echo(f"extraction: {'yes' if has_extraction else 'no'}")


def main() -> None:  # pragma: no cover - delegated to Typer
    app()


__all__ = ["app", "main"]
