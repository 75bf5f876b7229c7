"""
Base64 helpers for image payloads.

Inline images arrive either as bare base64 or as a data URI. The gateway
does not validate the base64 itself; malformed payloads are passed through
and rejected (or not) by the upstream engine.
"""

from __future__ import annotations

import base64
from typing import Any, Optional

DATA_URI_PREFIX = "data:image/jpeg;base64,"


def normalize_base64(value: Any) -> Optional[str]:
    """
    Strip an optional `data:...,` prefix and surrounding whitespace.

    Returns None for missing or blank input so callers can fall back to a
    remote URL.
    """
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    if s.startswith("data:"):
        idx = s.find(",")
        if idx >= 0:
            return s[idx + 1 :] or None
    return s


def as_image_data_uri(value: Any) -> Optional[str]:
    raw = normalize_base64(value)
    if not raw:
        return None
    return f"{DATA_URI_PREFIX}{raw}"


def encode_bytes(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
