"""
Response hygiene middleware.

Every API response is marked non-cacheable and carries baseline security
headers. The same middleware opens the tracing context for the request.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from legate.core.tracing import TracingContext

REQUEST_ID_HEADER = "X-Request-ID"

SECURITY_HEADERS = {
    "Cache-Control": "no-store, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "same-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds no-store caching and security headers, and a request correlation id."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        TracingContext.clear()
        incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
        if incoming:
            TracingContext.set(correlation_id=incoming[:64])
        correlation_id = TracingContext.get_or_create_correlation_id()

        response = await call_next(request)

        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        response.headers[REQUEST_ID_HEADER] = correlation_id
        return response
