"""
FastAPI app for the KYC gateway.

Endpoints:
- GET /health
- GET /__version
- POST /verify-cnic
- POST /face-verify
- POST /shop-verify
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
import structlog
from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .errors import GatewayError
from .images.fetcher import RemoteImageFetcher
from .log import configure_logging
from .middleware import BodySizeLimitMiddleware
from .resolution import ROUTES, VerificationRoute, resolve_payload
from .schemas import ErrorResponse, HealthResponse, VersionResponse
from .upstream.dispatcher import UpstreamDispatcher

log = structlog.get_logger()

SERVICE_NAME = "kyc-mini-backend"

_ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Missing image input"},
    413: {"model": ErrorResponse, "description": "Request body too large"},
    500: {"model": ErrorResponse, "description": "Download, allow-list or upstream failure"},
}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ErrorResponse(error=message).model_dump()
    )


async def forward(
    app: FastAPI, route: VerificationRoute, body: Optional[Dict[str, Any]]
) -> JSONResponse:
    """
    Resolve the route's images, call the engine and relay its answer.

    The engine's status and body are returned untouched, error statuses
    included. Gateway-side failures become `{"error": ...}` with 400 for
    missing input and 500 for everything else.
    """
    fetcher: RemoteImageFetcher = app.state.fetcher
    dispatcher: UpstreamDispatcher = app.state.dispatcher

    try:
        payload = await resolve_payload(route, body, fetcher)
        upstream = await dispatcher.dispatch(
            dispatcher.endpoint(route.upstream_path), payload
        )
    except GatewayError as exc:
        if exc.status_code < 500:
            log.warning("request_rejected", path=route.path, error=exc.message)
        else:
            log.error(
                "request_failed",
                path=route.path,
                error_type=type(exc).__name__,
                error=exc.message,
            )
        return error_response(exc.status_code, exc.message)
    except Exception as exc:
        log.exception("request_crashed", path=route.path)
        return error_response(500, str(exc) or type(exc).__name__)

    return JSONResponse(status_code=upstream.status_code, content=upstream.body)


def _add_verification_route(app: FastAPI, route: VerificationRoute) -> None:
    async def verify(
        request: Request, body: Optional[Dict[str, Any]] = Body(default=None)
    ) -> JSONResponse:
        return await forward(request.app, route, body)

    verify.__doc__ = (
        f"Resolve {', '.join(s.label for s in route.slots)} and forward to "
        f"the engine's {route.upstream_path}; the engine's response is relayed as-is."
    )
    app.add_api_route(
        route.path,
        verify,
        methods=["POST"],
        name=route.path.strip("/").replace("-", "_"),
        responses=_ERROR_RESPONSES,
    )


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the app from an explicit `Settings` object.

    With no settings they are read from the environment, which fails if
    KYC_API_URL is not set. `transport` replaces the network for both the
    image fetcher and the upstream dispatcher (used by the tests).
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="KYC Gateway",
        version="0.1.0",
        description="Normalizes KYC images and forwards them to the verification engine.",
    )

    # Added first so CORSMiddleware wraps it and 413s carry CORS headers.
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        log.warning("invalid_request_body", path=request.url.path)
        return error_response(400, "Request body must be a JSON object")

    # Components are built once here and reused by every request.
    app.state.settings = settings
    app.state.fetcher = RemoteImageFetcher(
        timeout_ms=settings.http_download_timeout_ms, transport=transport
    )
    app.state.dispatcher = UpstreamDispatcher(
        base_url=settings.kyc_api_url,
        timeout_ms=settings.kyc_engine_timeout_ms,
        transport=transport,
    )

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Simple health-check endpoint."""
        return HealthResponse(ok=True)

    @app.get("/__version", response_model=VersionResponse)
    async def version() -> VersionResponse:
        """Echo the service name, server time and upstream configuration."""
        current: Settings = app.state.settings
        return VersionResponse(
            service=SERVICE_NAME,
            time=datetime.now(timezone.utc),
            hasKycApiUrl=bool(current.kyc_api_url),
            kycApiUrl=current.kyc_api_url or None,
        )

    for route in ROUTES:
        _add_verification_route(app, route)

    log.info(
        "app_created",
        kyc_api_url=settings.kyc_api_url,
        download_timeout_ms=settings.http_download_timeout_ms,
        engine_timeout_ms=settings.kyc_engine_timeout_ms,
    )
    return app


def run() -> None:
    """
    Console entrypoint (`kyc-gateway`), or:

        python -m kyc_gateway.main
    """
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "kyc_gateway.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    run()
