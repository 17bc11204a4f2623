"""Security headers middleware for FastAPI."""

from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

DEFAULT_PERMISSIONS_POLICY = (
    "accelerometer=(), camera=(), geolocation=(), gyroscope=(), "
    "magnetometer=(), microphone=(), payment=(), usb=()"
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to every response."""

    def __init__(
        self,
        app,
        csp_policy: Optional[str] = None,
        enable_hsts: bool = True,
        hsts_max_age: int = 31536000,
        xfo_option: str = "DENY",
        referrer_policy: str = "strict-origin-when-cross-origin",
        permissions_policy: Optional[str] = None,
    ):
        """
        Args:
            app: ASGI application
            csp_policy: Content Security Policy directive
            enable_hsts: Send Strict-Transport-Security (production only)
            hsts_max_age: HSTS max age in seconds
            xfo_option: X-Frame-Options value (DENY, SAMEORIGIN)
            referrer_policy: Referrer-Policy value
            permissions_policy: Permissions-Policy directive
        """
        super().__init__(app)
        self.csp_policy = csp_policy or "default-src 'self'; frame-ancestors 'none'; base-uri 'self'"
        self.enable_hsts = enable_hsts
        self.hsts_max_age = hsts_max_age
        self.xfo_option = xfo_option
        self.referrer_policy = referrer_policy
        self.permissions_policy = permissions_policy or DEFAULT_PERMISSIONS_POLICY

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["Content-Security-Policy"] = self.csp_policy
        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = (
                f"max-age={self.hsts_max_age}; includeSubDomains; preload"
            )
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = self.xfo_option
        response.headers["Referrer-Policy"] = self.referrer_policy
        response.headers["Permissions-Policy"] = self.permissions_policy
        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"
        # Financial data must not be cached by shared caches
        response.headers.setdefault("Cache-Control", "no-store")

        return response
