from __future__ import annotations

import json
import re
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pagelens.utils.files import timestamped_stem

_EMAIL_RE = re.compile(r"\b([A-Za-z0-9._%+-]+)@([A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")
_PHONE_RE = re.compile(r"\+\d[\d\s().-]{6,}\d")


def _redact(value: str) -> str:
    def mask_email(match: re.Match[str]) -> str:
        local, domain = match.groups()
        return f"{local[0]}***@{domain}"

    def mask_phone(match: re.Match[str]) -> str:
        digits = re.sub(r"\D", "", match.group())
        if len(digits) <= 4:
            return "***"
        return f"+***{digits[-4:]}"

    partially = _EMAIL_RE.sub(mask_email, value)
    return _PHONE_RE.sub(mask_phone, partially)


def redact_details(details: dict[str, Any]) -> dict[str, Any]:
    """Recursively redact potentially sensitive strings."""

    redacted: dict[str, Any] = {}
    for key, value in details.items():
        if isinstance(value, str):
            redacted[key] = _redact(value)
        elif isinstance(value, dict):
            redacted[key] = redact_details(value)
        elif isinstance(value, list):
            redacted[key] = [
                redact_details(item) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            redacted[key] = value
    return redacted


@dataclass(slots=True)
class AuditEvent:
    level: str
    event: str
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level,
            "event": self.event,
            "details": redact_details(self.details),
        }


class AuditTrail:
    """Collect upload events and append them to a JSONL file."""

    def __init__(self, log_dir: Path, prefix: str = "uploads") -> None:
        log_dir.mkdir(parents=True, exist_ok=True)
        self.path = log_dir / f"{timestamped_stem(prefix)}.jsonl"
        self._events: list[AuditEvent] = []
        self._lock = threading.Lock()

    def record(self, level: str, event: str, **details: Any) -> AuditEvent:
        audit_event = AuditEvent(level=level, event=event, details=details)
        line = json.dumps(audit_event.to_dict(), ensure_ascii=False, default=str)
        with self._lock:
            self._events.append(audit_event)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
        return audit_event

    @property
    def events(self) -> list[AuditEvent]:
        with self._lock:
            return list(self._events)


__all__ = ["AuditEvent", "AuditTrail", "redact_details"]
