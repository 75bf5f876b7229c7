"""
Remote image download.

`RemoteImageFetcher.fetch` takes a user-supplied URL, checks it against the
allow-list, downloads it within a fixed deadline and returns the body as
base64. One attempt per call; a timeout cancels only the in-flight
download.
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

import httpx
import structlog

from ..errors import DownloadFailed, FetchTimeout, UpstreamHttpError
from .encoding import encode_bytes
from .url_guard import guard_remote_url

log = structlog.get_logger()

USER_AGENT = "Mozilla/5.0 (KYC Mini Backend)"
BODY_SNIPPET_CHARS = 512


class RemoteImageFetcher:
    """Downloads allow-listed remote images as base64."""

    def __init__(
        self,
        timeout_ms: int,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout_ms = timeout_ms
        self._transport = transport

    async def fetch(self, url: str, label: str) -> str:
        """
        Download `url` and return its body base64-encoded.

        Raises a `RemoteUrlError` before any network I/O if the URL is not
        allowed, `FetchTimeout` when the deadline expires,
        `UpstreamHttpError` on a non-2xx answer and `DownloadFailed` for
        any other transport failure.

        There is no cap on the downloaded size; the inbound body limit is
        the only practical ceiling.
        """
        normalized = guard_remote_url(url, label)
        start = time.perf_counter()
        log.info("image_fetch_started", label=label, url=normalized)

        try:
            data = await asyncio.wait_for(
                self._download(normalized, label),
                timeout=self._timeout_ms / 1000,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            log.warning(
                "image_fetch_timeout",
                label=label,
                url=normalized,
                timeout_ms=self._timeout_ms,
            )
            raise FetchTimeout(
                f"Timed out downloading {label} from {normalized}", url=normalized
            ) from exc
        except httpx.HTTPError as exc:
            log.warning(
                "image_fetch_failed", label=label, url=normalized, error=str(exc)
            )
            raise DownloadFailed(
                f"Could not download {label} from {normalized}: {exc}",
                url=normalized,
            ) from exc

        log.info(
            "image_fetch_complete",
            label=label,
            url=normalized,
            size=len(data),
            latency_ms=int((time.perf_counter() - start) * 1000),
        )
        return encode_bytes(data)

    async def _download(self, url: str, label: str) -> bytes:
        async with httpx.AsyncClient(
            transport=self._transport,
            follow_redirects=True,
            # The deadline is enforced by the caller over the whole call.
            timeout=None,
            headers={"User-Agent": USER_AGENT, "Accept": "image/*"},
        ) as client:
            request = client.build_request("GET", url)
            response = await client.send(request, stream=True)
            try:
                if not response.is_success:
                    body = await _read_text_best_effort(response)
                    snippet = body[:BODY_SNIPPET_CHARS]
                    raise UpstreamHttpError(
                        f"Could not download {label} from {url}: "
                        f"HTTP {response.status_code} while downloading {label}: {snippet}",
                        url=url,
                        upstream_status=response.status_code,
                        label=label,
                        body=snippet,
                    )
                return await response.aread()
            finally:
                await response.aclose()


async def _read_text_best_effort(response: httpx.Response) -> str:
    try:
        await response.aread()
        return response.text
    except (httpx.HTTPError, UnicodeDecodeError):
        return ""
