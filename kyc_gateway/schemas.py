"""
Pydantic schemas used by the FastAPI app.

Verification request bodies are deliberately not modelled here: they are
free-form JSON objects whose image fields are picked out by the slot
definitions in `resolution.py`, and the upstream response is relayed
without a schema.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Simple liveness response."""

    ok: bool


class VersionResponse(BaseModel):
    """
    Diagnostic response for GET /__version.

    Field names are camelCase to match what existing clients read:

    - service: fixed service name
    - time: current server time (UTC)
    - hasKycApiUrl: whether an upstream base URL is configured
    - kycApiUrl: the configured upstream base URL
    """

    service: str
    time: datetime
    hasKycApiUrl: bool
    kycApiUrl: Optional[str] = None


class ErrorResponse(BaseModel):
    """Body of every gateway-generated error (400, 413, 500)."""

    error: str
