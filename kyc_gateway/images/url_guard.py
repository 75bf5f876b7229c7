"""
Allow-list for remote image URLs.

Remote images may only be downloaded over https from Cloudinary. This is
the only thing stopping the gateway from being used to fetch arbitrary
hosts, so it runs before any network call is made.
"""

from __future__ import annotations

import re
from typing import Any, Optional
from urllib.parse import urlsplit

from ..errors import (
    DisallowedHost,
    DisallowedScheme,
    InvalidUrl,
    MissingUrl,
    RemoteUrlError,
)

ALLOWED_SCHEME = "https"
TRUSTED_HOST = "res.cloudinary.com"
TRUSTED_HOST_SUFFIX = ".cloudinary.com"

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_remote_url(value: Any) -> Optional[str]:
    """Trim and drop all whitespace (copy-paste artifacts); None if blank."""
    if value is None:
        return None
    trimmed = str(value).strip()
    if not trimmed:
        return None
    return _WHITESPACE_RE.sub("", trimmed)


def is_trusted_host(host: str) -> bool:
    host = host.lower()
    return host == TRUSTED_HOST or host.endswith(TRUSTED_HOST_SUFFIX)


def assert_allowed_remote_url(url: str) -> None:
    """Raise unless `url` is an https URL on the trusted domain."""
    try:
        parts = urlsplit(url)
        # Accessing .port validates it.
        _ = parts.port
    except ValueError as exc:
        raise InvalidUrl(f"Invalid URL: {url} ({exc})") from exc

    if not parts.scheme:
        raise InvalidUrl(f"Invalid URL: {url}")

    if parts.scheme != ALLOWED_SCHEME:
        raise DisallowedScheme(
            f"Disallowed scheme '{parts.scheme}': only https URLs are allowed: {url}"
        )

    if not parts.netloc:
        raise InvalidUrl(f"Invalid URL: {url}")

    host = (parts.hostname or "").lower()
    if not is_trusted_host(host):
        raise DisallowedHost(f"Remote URL host not allowed: {host}")


def guard_remote_url(value: Any, label: str) -> str:
    """
    Normalize a user-supplied URL and check it against the allow-list.

    Returns the normalized URL. Error messages name the image `label`
    (e.g. "CNIC image") so the caller knows which slot was rejected.
    """
    normalized = normalize_remote_url(value)
    if not normalized:
        raise MissingUrl(f"Missing {label} URL")

    try:
        assert_allowed_remote_url(normalized)
    except RemoteUrlError as exc:
        raise type(exc)(f"{label}: {exc}") from exc

    return normalized
