from __future__ import annotations

import tempfile
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_upload_dir() -> Path:
    return Path(tempfile.gettempdir()) / "pagelens_uploads"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or .env files."""

    model_config = SettingsConfigDict(env_file=(".env", ".env.local"), env_prefix="PAGELENS_")

    upload_dir: Path = _default_upload_dir()
    log_dir: Path = Path("./audit-logs")
    markup_extensions: tuple[str, ...] = (".html", ".htm")
    raw_preview_limit: int = 500
    timezone: str = "UTC"

    @field_validator("log_dir", mode="after")
    @classmethod
    def ensure_directory(cls, value: Path) -> Path:
        value.mkdir(parents=True, exist_ok=True)
        return value

    @field_validator("markup_extensions", mode="after")
    @classmethod
    def normalize_extensions(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        normalized = []
        for extension in value:
            cleaned = extension.strip().lower()
            if not cleaned:
                continue
            if not cleaned.startswith("."):
                cleaned = f".{cleaned}"
            normalized.append(cleaned)
        if not normalized:
            msg = "markup_extensions must name at least one extension"
            raise ValueError(msg)
        return tuple(normalized)

    @field_validator("raw_preview_limit")
    @classmethod
    def validate_preview_limit(cls, value: int) -> int:
        if value <= 0:
            msg = "raw_preview_limit must be positive"
            raise ValueError(msg)
        return value


settings = Settings()


__all__ = ["Settings", "settings"]
