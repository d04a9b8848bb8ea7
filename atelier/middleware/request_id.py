"""
Atelier Backend — Request ID Middleware
=========================================

What:  Gives every request a short correlation ID and echoes it back in
       the `X-Request-ID` response header.
How:   Reuses a client-supplied `X-Request-ID` when present, otherwise the
       first 8 characters of a UUID4. The value lives in a ContextVar so
       loggers and exception handlers can read it without the request object.

Webhook retries from Square carry their own event id, not a request id, so
those deliveries always get a fresh one.

The rate limiter runs outside this middleware, so it resolves an id the same
way for the 429 responses it answers itself.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one thread each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_CLIENT_ID_LENGTH = 64


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def resolve_request_id(request: Request) -> str:
    """Client-supplied X-Request-ID (trimmed) or a fresh one."""
    supplied = request.headers.get("X-Request-ID", "").strip()
    return supplied[:MAX_CLIENT_ID_LENGTH] if supplied else new_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request)

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
