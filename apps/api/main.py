"""FastAPI application for FinOps API.

This module provides the application factory with:
- Middleware for request context, security headers, CORS and trusted hosts
- Routers for auth, finance records, imports, access control and dashboard
- Error handlers mapping application errors to HTTP responses
- Health endpoint

Use cases are reached through the ``Container`` stored on ``app.state``;
tests pass their own container wired to in-memory adapters.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from apps.api.routers import access, ads, auth, dashboard, mfa, records
from apps.api.schemas.common import ErrorResponse, HealthResponse
from finops.application.config import Environment
from finops.application.errors import (
    ApplicationError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    FileRejectedError,
    NotFoundError,
    PersistenceError,
    RateLimitExceeded,
    ValidationError,
)
from finops.domain.errors import DomainError
from finops.infrastructure.bootstrap import Container, bootstrap_config, build_sqlalchemy_container
from finops.infrastructure.middleware.request_context import RequestContextMiddleware
from finops.infrastructure.middleware.security_headers import SecurityHeadersMiddleware
from finops.shared.logging import configure_logging, get_logger

API_VERSION = "1.0.0"

logger = get_logger("apps.api")

_FILE_REJECTION_STATUS = {
    "file_too_large": 413,
    "invalid_content_type": status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    "invalid_extension": status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
}

_ERROR_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (RateLimitExceeded, status.HTTP_429_TOO_MANY_REQUESTS),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    error: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "request_id": getattr(request.state, "request_id", None),
            "timestamp": time.time(),
        },
        headers=headers,
    )


def status_for(exc: ApplicationError) -> int:
    """HTTP status for an application error."""
    if isinstance(exc, FileRejectedError):
        return _FILE_REJECTION_STATUS.get(exc.reason, status.HTTP_400_BAD_REQUEST)
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    """Handle application-layer errors."""
    status_code = status_for(exc)
    headers = None
    if isinstance(exc, RateLimitExceeded):
        headers = {"Retry-After": str(exc.retry_after)}
    elif isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}

    if status_code >= 500:
        logger.error("request_failed", error_code=exc.code, error_type=exc.__class__.__name__)

    return _error_response(request, status_code, exc.code, exc.message, headers=headers)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Handle domain rule violations that reached the edge."""
    return _error_response(
        request,
        422,
        exc.code or exc.__class__.__name__,
        exc.message,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle malformed request bodies and parameters."""
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return _error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        "Request validation failed",
        details=details,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors."""
    logger.error(
        "unhandled_exception",
        error_type=exc.__class__.__name__,
        path=request.url.path,
        method=request.method,
    )
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    logger.info("finops_api_starting", version=API_VERSION)
    yield
    logger.info("finops_api_shutting_down")


def create_app(container: Optional[Container] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        container: Wired use cases; built from the environment when omitted
    """
    if container is None:
        config = bootstrap_config()
        configure_logging(
            environment=config.ENVIRONMENT.value,
            log_level=config.LOG_LEVEL,
            json_logs=config.LOG_FORMAT == "json",
        )
        container = build_sqlalchemy_container(config)
    config = container.config

    app = FastAPI(
        title="FinOps API",
        description="Financial operations control: cash platforms, costs, ads and taxes",
        version=API_VERSION,
        openapi_url="/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        responses={code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409, 422, 429, 500)},
    )
    app.state.container = container

    app.add_middleware(TrustedHostMiddleware, allowed_hosts=config.TRUSTED_HOSTS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["X-Request-Id", "X-Correlation-Id", "Content-Type", "Authorization"],
        max_age=3600,
    )
    if config.SECURITY_HEADERS_ENABLED:
        app.add_middleware(
            SecurityHeadersMiddleware,
            csp_policy=config.CSP_POLICY,
            enable_hsts=config.ENVIRONMENT == Environment.PRODUCTION,
            xfo_option="DENY",
            referrer_policy="strict-origin-when-cross-origin",
        )
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(auth.router)
    app.include_router(mfa.router)
    for router in records.ROUTERS:
        app.include_router(router)
    app.include_router(ads.router)
    app.include_router(access.router)
    app.include_router(dashboard.router)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    def health() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            version=API_VERSION,
            environment=config.ENVIRONMENT.value,
        )

    return app
