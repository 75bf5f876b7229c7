"""
Inbound request body limit.

Bodies are counted as they arrive, so chunked uploads without a
Content-Length are capped the same way as declared ones. Register it
before CORSMiddleware so the 413 still carries CORS headers.
"""

from __future__ import annotations

from typing import List

import structlog
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .schemas import ErrorResponse

log = structlog.get_logger()


class BodySizeLimitMiddleware:
    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    def _too_large(self, scope: Scope, size: int) -> JSONResponse:
        log.warning(
            "request_too_large",
            path=scope.get("path"),
            size=size,
            limit=self.max_body_bytes,
        )
        return JSONResponse(
            status_code=413,
            content=ErrorResponse(
                error=f"Request body too large (limit {self.max_body_bytes} bytes)"
            ).model_dump(),
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers") or [])
        declared = headers.get(b"content-length", b"").decode("latin-1")
        if declared.isdigit() and int(declared) > self.max_body_bytes:
            await self._too_large(scope, int(declared))(scope, receive, send)
            return

        # Buffer the body, counting bytes, then replay it to the app.
        chunks: List[bytes] = []
        received = 0
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            chunk = message.get("body", b"")
            received += len(chunk)
            if received > self.max_body_bytes:
                await self._too_large(scope, received)(scope, receive, send)
                return
            chunks.append(chunk)
            if not message.get("more_body", False):
                break

        body = b"".join(chunks)
        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)
