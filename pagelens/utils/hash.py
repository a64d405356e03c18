from __future__ import annotations

import hashlib


def sha256_bytes(content: bytes) -> str:
    """Hex SHA-256 digest of an upload payload."""

    return hashlib.sha256(content).hexdigest()


__all__ = ["sha256_bytes"]
