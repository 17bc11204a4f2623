"""Per-request logging context and timing."""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from finops.shared.logging import bind_request_context, clear_request_context, get_logger

logger = get_logger("infrastructure.middleware.request_context")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request/correlation ids to the log context and time the request."""

    async def dispatch(self, request: Request, call_next):
        request_id = bind_request_context(
            request_id=request.headers.get("x-request-id"),
            correlation_id=request.headers.get("x-correlation-id"),
        )
        request.state.request_id = request_id
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as error:
            logger.error(
                "http_request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.time() - start_time) * 1000, 2),
                error_type=error.__class__.__name__,
            )
            clear_request_context()
            raise

        duration_ms = (time.time() - start_time) * 1000
        response.headers["x-request-id"] = request_id
        response.headers["x-response-time"] = f"{duration_ms:.2f}ms"

        logger.info(
            "http_request_completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        clear_request_context()
        return response
