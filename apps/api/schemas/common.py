"""Shared response envelopes."""

from typing import Any, Optional

from pydantic import BaseModel


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    error: ErrorBody
    request_id: Optional[str] = None
    timestamp: float


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
