"""
HTTP client for the upstream verification engine.

The dispatcher POSTs a JSON payload to one engine endpoint and hands back
whatever the engine answered: status code plus parsed body. It does not
judge the status; callers relay it verbatim.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
import structlog

from ..errors import UpstreamTimeout, UpstreamUnreachable

log = structlog.get_logger()


@dataclass
class UpstreamResponse:
    status_code: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def parse_body(text: str) -> Any:
    """
    Parse JSON, or wrap the raw text as `{"raw": text}` if it isn't JSON.

    NaN and Infinity are rejected: they are not JSON and could not be
    relayed to the caller.
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return {"raw": text}


class UpstreamDispatcher:
    """Single-attempt JSON POSTs to the configured engine."""

    def __init__(
        self,
        base_url: str,
        timeout_ms: int,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_ms = timeout_ms
        self._transport = transport

    def endpoint(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    async def dispatch(
        self, endpoint_url: str, payload: Optional[Dict[str, Any]]
    ) -> UpstreamResponse:
        start = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self._post(endpoint_url, payload or {}),
                timeout=self._timeout_ms / 1000,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            log.error(
                "upstream_dispatch_timeout",
                url=endpoint_url,
                timeout_ms=self._timeout_ms,
            )
            raise UpstreamTimeout(
                f"KYC engine timed out after {self._timeout_ms}ms for {endpoint_url}",
                url=endpoint_url,
                timeout_ms=self._timeout_ms,
            ) from exc
        except httpx.HTTPError as exc:
            log.error("upstream_dispatch_failed", url=endpoint_url, error=str(exc))
            raise UpstreamUnreachable(
                f"KYC engine fetch failed for {endpoint_url}: {exc}",
                url=endpoint_url,
            ) from exc

        log.info(
            "upstream_dispatch_complete",
            url=endpoint_url,
            status=response.status_code,
            latency_ms=int((time.perf_counter() - start) * 1000),
        )
        return response

    async def _post(self, url: str, payload: Dict[str, Any]) -> UpstreamResponse:
        async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
            resp = await client.post(
                url,
                content=json.dumps(payload),
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
            return UpstreamResponse(
                status_code=resp.status_code, body=parse_body(resp.text)
            )
