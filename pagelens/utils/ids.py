from __future__ import annotations

import secrets

ID_BYTES = 16


def new_id() -> str:
    """Return a random 128-bit identifier encoded as 32 hex characters."""

    return secrets.token_hex(ID_BYTES)


__all__ = ["ID_BYTES", "new_id"]
