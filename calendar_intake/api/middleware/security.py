"""
Security middleware for the public API.

SecurityHeadersMiddleware stamps browser hardening headers on every
response. ApiRequestScreenMiddleware rejects /api/ requests that no
legitimate browser client would send: POSTs without a JSON body type
and requests without a User-Agent.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": (
        "default-src 'self'; script-src 'self' 'unsafe-inline' 'unsafe-eval'; "
        "style-src 'self' 'unsafe-inline'; img-src 'self' data: blob:; "
        "connect-src 'self' https:; font-src 'self' data:;"
    ),
}

# Routes that accept file uploads instead of JSON
MULTIPART_PATHS = frozenset({"/api/process-document"})


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add SECURITY_HEADERS to every response."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class ApiRequestScreenMiddleware(BaseHTTPMiddleware):
    """Reject malformed /api/ requests before they reach a handler."""

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if not path.startswith("/api/") or request.method == "OPTIONS":
            return await call_next(request)

        if request.method == "POST":
            content_type = request.headers.get("content-type", "").lower()
            allowed = "application/json" in content_type or (
                path in MULTIPART_PATHS and "multipart/form-data" in content_type
            )
            if not allowed:
                return JSONResponse(
                    status_code=400,
                    content={"error": "Content-Type must be application/json"},
                )

        if not request.headers.get("user-agent"):
            return JSONResponse(
                status_code=400,
                content={"error": "User-Agent header is required"},
            )

        return await call_next(request)
