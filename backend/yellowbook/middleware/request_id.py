"""
Yellow Book API: Request ID Middleware
=======================================

What:  Gives each request a correlation ID and echoes it in `X-Request-ID`.
How:   Uses the client's X-Request-ID header when present, otherwise a short
       generated UUID. The ID is stored in a ContextVar (read by the access
       log and exception handlers) and on request.state (read by handlers).
When:  Outermost middleware: every response, rate-limited ones included,
       carries the ID, and every log line for a request shares it.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client-supplied IDs longer than this are replaced
MAX_REQUEST_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Take X-Request-ID from the client if it is non-empty and short
        2. Otherwise generate 8 hex characters from a UUID4
        3. Store in ContextVar and request.state
        4. Add to response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID", "").strip()
        if not rid or len(rid) > MAX_REQUEST_ID_LENGTH:
            rid = uuid.uuid4().hex[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
