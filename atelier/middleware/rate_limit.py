"""
Atelier Backend — Rate Limiting Middleware
============================================

What:  Per-IP sliding-window limiter in front of the public API.
How:   Keeps a deque of request timestamps per client IP; timestamps older
       than `rate_limit_window` are dropped on each request, and a client
       already at `rate_limit_requests` gets a 429 with Retry-After. The 429
       carries its own X-Request-ID since RequestIDMiddleware never sees it.

Exempt:
    - /health, /docs, /redoc, /openapi.json
    - /api/webhooks/*  (Square retries aggressively; throttling it loses events)
    - /api/cron/*      (already gated by the shared secret)

Single-process only: state lives in this worker's memory.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from atelier.config import settings
from atelier.middleware.request_id import resolve_request_id

logger = logging.getLogger(__name__)

EXCLUDED_PATHS = frozenset({"/health", "/docs", "/openapi.json", "/redoc"})
EXCLUDED_PREFIXES = ("/api/webhooks/", "/api/cron/")

# Sweep idle IPs every N recorded requests
CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._recorded = 0

    @staticmethod
    def is_exempt(path: str) -> bool:
        return path in EXCLUDED_PATHS or path.startswith(EXCLUDED_PREFIXES)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if self.is_exempt(request.url.path):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.monotonic()
        window_start = now - settings.rate_limit_window

        timestamps = self._requests[client_ip]
        while timestamps and timestamps[0] <= window_start:
            timestamps.popleft()

        if len(timestamps) >= settings.rate_limit_requests:
            retry_after = int(timestamps[0] + settings.rate_limit_window - now) + 1
            request_id = resolve_request_id(request)
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds",
                client_ip,
                len(timestamps),
                settings.rate_limit_window,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": f"Too many requests. Please wait {retry_after} seconds before retrying.",
                    "details": {"retry_after": retry_after},
                    "request_id": request_id,
                },
                headers={"Retry-After": str(retry_after), "X-Request-ID": request_id},
            )

        timestamps.append(now)
        self._recorded += 1
        if self._recorded % CLEANUP_EVERY == 0:
            self._cleanup_idle(window_start)

        return await call_next(request)

    def _cleanup_idle(self, window_start: float) -> None:
        idle = [ip for ip, ts in self._requests.items() if not ts or ts[-1] <= window_start]
        for ip in idle:
            del self._requests[ip]
        if idle:
            logger.debug("Dropped rate-limit state for %d idle clients", len(idle))
