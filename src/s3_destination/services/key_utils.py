"""
Lightweight object key utilities: normalization, MIME guessing.
"""

from __future__ import annotations

import mimetypes


def normalize_key(object_key: str) -> str:
    """Strip leading slashes; reject keys that end up empty."""
    key = str(object_key).lstrip("/")
    if not key:
        raise ValueError(f"Invalid object key: {object_key!r}")
    return key


def guess_mime_from_key(object_key: str) -> str | None:
    """Best-effort MIME type based on filename."""
    mt, _enc = mimetypes.guess_type(object_key)
    return mt
