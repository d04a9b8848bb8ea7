"""
Atelier Backend — Shared Response Schemas
===========================================

What:  Error envelope, health check and scheduled-job result models.
Who:   Exception handlers (ErrorResponse), GET /health, GET /api/cron/*.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx response.

    Example:
        {
            "error": "validation_error",
            "message": "Unknown zone 'spa'. Valid zones: lash, jewelry, crochet, consulting",
            "details": {"field": "zone_id"},
            "request_id": "550e8400-e29b-41d4-a716-446655440000"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    square: str = Field(description="Square integration: configured, not_configured")
    email: str = Field(description="Resend integration: configured, not_configured")
    studio_mode: str = Field(description="Current studio navigation mode")
    uptime_seconds: float = Field(description="Seconds since service started")


class ReminderRunResponse(BaseModel):
    sent: int = Field(description="Reminder emails delivered")
    failed: int = Field(description="Reminder emails that could not be delivered")


class BirthdayRunResponse(BaseModel):
    matched: int = Field(description="Profiles whose birthday is today")
    sent: int = Field(description="Greetings delivered")
    failed: int = Field(description="Greetings that could not be delivered")


class ReviewRequestRunResponse(BaseModel):
    matched: int = Field(description="Bookings completed about a day ago")
    sent: int = Field(description="Review requests delivered")
    failed: int = Field(description="Review requests that could not be delivered")
