"""
Atelier Backend — Custom Exception Hierarchy
==============================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services, routes and the zone registry; caught by global handlers.
When:  During request processing when recoverable errors occur.

Exception Hierarchy:
    AtelierError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── UnauthorizedError        → 401 Unauthorized (bad cron secret)
    ├── WebhookSignatureError    → 403 Forbidden (bad webhook signature)
    ├── IntegrationError         → 502 Bad Gateway (Square / Resend failed)
    └── DatabaseError            → 500 Internal Server Error

Navigation transitions on an invalid source state are NOT errors: the studio
store ignores them silently and reports `accepted=False`.
"""

from typing import Any, Dict, Optional


class AtelierError(Exception):
    """
    Base exception for all Atelier application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where noted)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(AtelierError):
    """
    Raised when client input fails a business rule.

    When:    Unknown zone id, unknown studio action, missing zone for `focus`.
    HTTP:    400 Bad Request

    Schema-level problems (wrong JSON types) are still FastAPI's 422.

    Example response:
        {
            "error": "validation_error",
            "message": "Unknown zone 'nails'. Valid zones: lash, jewelry, crochet, consulting",
            "details": {"field": "zone_id"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnauthorizedError(AtelierError):
    """
    Raised when a scheduled-job request does not carry the shared secret.

    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class WebhookSignatureError(AtelierError):
    """
    Raised when a Square webhook signature does not match the request body.

    HTTP:    403 Forbidden
    The payload is never processed and nothing is written to the database.
    """

    def __init__(
        self,
        message: str = "Invalid signature",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IntegrationError(AtelierError):
    """
    Raised when a third-party integration (Square, Resend) fails.

    When:    After tenacity retries are exhausted, or on a non-retryable API error.
    HTTP:    502 Bad Gateway

    Most callers treat integration failures as non-fatal: the webhook
    processor and the email service catch this and carry on. It reaches the
    global handler only when an endpoint's primary purpose is the integration.
    """

    def __init__(
        self,
        provider: str = "integration",
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["provider"] = provider
        super().__init__(
            message=message or f"The {provider} service is temporarily unavailable",
            context=ctx,
        )
        self.provider = provider


class DatabaseError(AtelierError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the SQL error is
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

