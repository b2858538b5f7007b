"""Opaque cursor helpers for keyset pagination (newest first, id DESC)."""

import base64
import binascii
import json


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.urlsafe_b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError):
        return None
