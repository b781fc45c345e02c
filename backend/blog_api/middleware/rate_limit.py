"""
Modern Blog API — Write Rate Limiting Middleware
==================================================

What:  Per-IP sliding-window limit on write requests (POST, PUT, PATCH, DELETE).
       Reads are never limited.
How:   Each IP keeps a deque of write timestamps. Timestamps older than the
       window are dropped; when the remaining count reaches the limit the
       request is answered with 429 and a Retry-After header. The response is
       built here: errors raised from Starlette middleware never reach the
       app's exception handlers.

Comments are accepted without authentication, so this is the only brake on
comment spam.

The state is per process. Several uvicorn workers each enforce the limit
separately.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from blog_api.config import settings
from blog_api.exceptions import RateLimitExceededError
from blog_api.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

LIMITED_METHODS = {"POST", "PUT", "PATCH", "DELETE"}

# Prune idle IPs after this many tracked writes
CLEANUP_INTERVAL = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._since_cleanup = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method not in LIMITED_METHODS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window = settings.rate_limit_window
        window_start = now - window

        timestamps = self._requests[client_ip]
        while timestamps and timestamps[0] <= window_start:
            timestamps.popleft()

        if len(timestamps) >= settings.rate_limit_requests:
            retry_after = int(timestamps[0] + window - now) + 1
            exc = RateLimitExceededError(retry_after=retry_after)
            logger.warning(
                "Rate limit exceeded for %s: %d writes in %ds",
                client_ip,
                len(timestamps),
                window,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": {"retry_after": retry_after},
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(now)

        self._since_cleanup += 1
        if self._since_cleanup >= CLEANUP_INTERVAL:
            self._cleanup_inactive_ips(window_start)
            self._since_cleanup = 0

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive:
            del self._requests[ip]
        if inactive:
            logger.debug("Dropped rate-limit state for %d idle IPs", len(inactive))
