"""
Atelier Backend — Request Logging Middleware
==============================================

What:  One access-log line per request on the `atelier.access` logger:
           POST /api/studio/actions 200 3.2ms [a1b2c3d4] from 10.0.0.7
How:   Measures wall time around call_next(); level follows the status
       (5xx ERROR, 4xx WARNING, otherwise INFO). Structured fields are also
       attached via `extra=` for JSON handlers.

Not logged: request bodies (webhook payloads carry customer data) and
headers (signatures, cron secret). `/health` and the high-frequency
`GET /api/studio/state` poll are skipped.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from atelier.middleware.request_id import request_id_var

logger = logging.getLogger("atelier.access")

QUIET_PATHS = frozenset({"/health", "/api/studio/state"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        logger.log(
            level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
