"""
Error taxonomy for the gateway core.

Every failure raised by the image pipeline or the upstream dispatcher is a
`GatewayError`. The route layer turns these into JSON responses:

- `MissingImage` -> 400
- everything else -> 500

The core never retries; errors propagate to the route layer as-is.
"""

from __future__ import annotations

from typing import Optional


class GatewayError(Exception):
    """Base class for all gateway failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# -----------------------------------------------------------------------------
# Remote URL guard
# -----------------------------------------------------------------------------
class RemoteUrlError(GatewayError):
    """A user-supplied image URL was rejected before any network call."""


class MissingUrl(RemoteUrlError):
    pass


class InvalidUrl(RemoteUrlError):
    pass


class DisallowedScheme(RemoteUrlError):
    pass


class DisallowedHost(RemoteUrlError):
    pass


# -----------------------------------------------------------------------------
# Remote image fetch
# -----------------------------------------------------------------------------
class DownloadFailed(GatewayError):
    """Downloading a remote image failed below the HTTP layer."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class UpstreamHttpError(DownloadFailed):
    """The remote image host answered with a non-2xx status."""

    def __init__(
        self, message: str, url: str, upstream_status: int, label: str, body: str
    ) -> None:
        super().__init__(message, url=url)
        self.upstream_status = upstream_status
        self.label = label
        self.body = body


class FetchTimeout(GatewayError):
    """The remote image download exceeded its deadline."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


# -----------------------------------------------------------------------------
# Upstream dispatch
# -----------------------------------------------------------------------------
class UpstreamTimeout(GatewayError):
    def __init__(self, message: str, url: str, timeout_ms: int) -> None:
        super().__init__(message)
        self.url = url
        self.timeout_ms = timeout_ms


class UpstreamUnreachable(GatewayError):
    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


# -----------------------------------------------------------------------------
# Orchestration
# -----------------------------------------------------------------------------
class MissingImage(GatewayError):
    """A required image slot had neither inline data nor a usable URL."""

    status_code = 400
