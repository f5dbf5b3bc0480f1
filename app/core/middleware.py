"""
Request body size limit and security response headers.
"""
import logging
from typing import Dict, Optional

from fastapi import status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.core.errors import error_body

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'self'; object-src 'none'",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
}

# The interactive docs load scripts from a CDN
CSP_EXEMPT_PATHS = ("/docs", "/redoc")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, headers: Optional[Dict[str, str]] = None):
        super().__init__(app)
        self.headers = dict(headers or SECURITY_HEADERS)

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.headers.items():
            if name == "Content-Security-Policy" and request.url.path.startswith(CSP_EXEMPT_PATHS):
                continue
            response.headers.setdefault(name, value)
        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject request bodies larger than ``max_bytes`` with 413."""

    def __init__(self, app, max_bytes: int):
        super().__init__(app)
        self.max_bytes = max_bytes

    def _too_large(self, request: Request, size: int) -> JSONResponse:
        logger.warning(f"Rejected {request.method} {request.url.path}: body of {size} bytes")
        return JSONResponse(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            content=error_body(f"Request body exceeds {self.max_bytes} bytes"),
        )

    async def dispatch(self, request: Request, call_next):
        if self.max_bytes > 0 and request.method in ("POST", "PUT", "PATCH", "DELETE"):
            declared = request.headers.get("content-length")
            if declared is not None:
                if declared.isdigit() and int(declared) > self.max_bytes:
                    return self._too_large(request, int(declared))
            else:
                # Chunked upload: read it here, the body stays available downstream
                body = await request.body()
                if len(body) > self.max_bytes:
                    return self._too_large(request, len(body))
        return await call_next(request)
