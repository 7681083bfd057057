from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

CONTENT_SECURITY_POLICY = (
    "default-src 'self'; base-uri 'self'; frame-ancestors 'none'; object-src 'none';"
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach a baseline set of security headers for browser clients.

    HSTS is only sent on HTTPS responses; browsers ignore it over plain HTTP.
    """

    def __init__(self, app, hsts_max_age: int = 31536000) -> None:
        super().__init__(app)
        self.hsts_max_age = hsts_max_age

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        if request.url.scheme == "https" and self.hsts_max_age:
            response.headers.setdefault(
                "Strict-Transport-Security", f"max-age={self.hsts_max_age}; includeSubDomains"
            )
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        response.headers.setdefault("Content-Security-Policy", CONTENT_SECURITY_POLICY)
        return response
