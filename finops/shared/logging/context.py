"""
Context management for structured logging.
"""

import uuid
from contextvars import ContextVar
from typing import Optional

import structlog

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
_actor_id: ContextVar[Optional[str]] = ContextVar("actor_id", default=None)


def bind_request_context(
    request_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
    actor_id: Optional[str] = None,
) -> str:
    """
    Bind request identifiers to the current context.

    Args:
        request_id: Unique request identifier (generated when missing)
        correlation_id: Correlation ID for distributed tracing
        actor_id: Authenticated user identifier, when known

    Returns:
        The request ID in effect
    """
    req_id = request_id or generate_request_id()
    corr_id = correlation_id or req_id

    _request_id.set(req_id)
    _correlation_id.set(corr_id)

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=req_id, correlation_id=corr_id)

    if actor_id:
        bind_actor(actor_id)

    return req_id


def bind_actor(actor_id: str) -> None:
    """Attach the authenticated user to every log line of the request."""
    _actor_id.set(actor_id)
    structlog.contextvars.bind_contextvars(actor_id=actor_id)


def clear_request_context() -> None:
    """Drop all request-scoped identifiers."""
    structlog.contextvars.clear_contextvars()
    _request_id.set(None)
    _correlation_id.set(None)
    _actor_id.set(None)


def generate_request_id() -> str:
    """Generate a unique request ID."""
    return f"req_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return _request_id.get()


def get_actor_id() -> Optional[str]:
    """Get the current actor ID from context."""
    return _actor_id.get()
