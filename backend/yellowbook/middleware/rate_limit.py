"""
Yellow Book API: Rate Limiting Middleware
==========================================

What:  Per-IP sliding window rate limiter.
How:   Keeps a deque of request timestamps per client IP. On each request,
       timestamps older than the window are dropped; if the remaining count
       has reached the limit the request is answered with 429 and a
       Retry-After header, otherwise the timestamp is recorded.

Algorithm: Sliding Window Log
    Time complexity:  amortized O(1) per request
    Space complexity: O(n × k), n = active IPs, k = requests per window

Scope:
    State lives in the process. Each uvicorn worker enforces its own limit.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from yellowbook.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

# Probes, banner and API docs are never limited
EXCLUDED_PATHS = {"/", "/api/health", "/api/health/ready", "/docs", "/redoc", "/openapi.json"}

# Inactive IPs are purged every this many recorded requests
CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Args:
        max_requests:   requests allowed per window per IP
        window_seconds: window length
        clock:          time source (seconds); injectable for tests

    Response on rate limit:
        HTTP 429, Retry-After = seconds until the oldest request leaves the window
        {"success": false, "error": "...", "details": {"retry_after": n}, "request_id": id}
    """

    def __init__(
        self,
        app: ASGIApp,
        max_requests: int = 300,
        window_seconds: int = 60,
        clock: Optional[Callable[[], float]] = None,
    ):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._recorded = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = self._clock()
        window_start = now - self.window_seconds

        timestamps = self._requests[client_ip]
        while timestamps and timestamps[0] <= window_start:
            timestamps.popleft()

        if len(timestamps) >= self.max_requests:
            retry_after = int(timestamps[0] + self.window_seconds - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(timestamps),
                self.window_seconds,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "error": f"Too many requests. Please wait {retry_after} seconds before retrying.",
                    "details": {"retry_after": retry_after},
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(now)
        self._recorded += 1
        if self._recorded % CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Drop IPs whose newest request is outside the window."""
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
