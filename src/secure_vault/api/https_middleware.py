"""
Security headers middleware.

Adds defensive response headers to every API response:
- HSTS (outside development)
- X-Content-Type-Options, X-Frame-Options, Referrer-Policy
- Cache-Control: no-store, so vault ciphertext and auth responses are never
  kept by browser or proxy caches

Responses built by the catch-all error handler never pass through the
middleware, so the handler calls apply_security_headers() itself.
"""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

DEFAULT_HSTS_MAX_AGE = 31536000  # 1 year


def apply_security_headers(
    response: Response,
    path: str,
    enable_hsts: bool = True,
    hsts_max_age: int = DEFAULT_HSTS_MAX_AGE,
) -> Response:
    """Set the security headers on response for a request to path."""
    if enable_hsts:
        response.headers["Strict-Transport-Security"] = (
            f"max-age={hsts_max_age}; includeSubDomains"
        )
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "no-referrer"

    if path.startswith("/api/"):
        response.headers["Cache-Control"] = "no-store"
        response.headers["Pragma"] = "no-cache"
    return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    Headers added:
    - Strict-Transport-Security (only when enable_hsts is True)
    - X-Content-Type-Options: Prevent MIME sniffing
    - X-Frame-Options: Prevent clickjacking
    - Referrer-Policy: Do not leak URLs to other origins
    - Cache-Control / Pragma: No caching of API responses
    """

    def __init__(
        self,
        app,
        enable_hsts: bool = True,
        hsts_max_age: int = DEFAULT_HSTS_MAX_AGE,
    ):
        super().__init__(app)
        self.enable_hsts = enable_hsts
        self.hsts_max_age = hsts_max_age

    async def dispatch(self, request: Request, call_next: Callable):
        response = await call_next(request)
        return apply_security_headers(
            response,
            request.url.path,
            enable_hsts=self.enable_hsts,
            hsts_max_age=self.hsts_max_age,
        )
