"""
Atelier Backend — Integration Audit Models
============================================

What:  `webhook_events` (raw inbound webhooks) and `sync_log` (one row per
       integration outcome, inbound or outbound).
Who:   The Square webhook processor writes both; the email service writes
       `sync_log`; the cron jobs read `sync_log` to avoid sending twice.

sync_log doubles as the deduplication record:
    a successful row with (entity_type, local_id) means "already sent".
    e.g. entity_type='booking_reminder_24h', local_id='42'
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from atelier.database import Base

PROVIDER_SQUARE = "square"
PROVIDER_RESEND = "resend"

DIRECTION_INBOUND = "inbound"
DIRECTION_OUTBOUND = "outbound"

SYNC_SUCCESS = "success"
SYNC_FAILED = "failed"
SYNC_SKIPPED = "skipped"


class WebhookEvent(Base):
    """
    Raw webhook payload as received, kept for audit and manual replay.

    `is_processed` is the idempotency flag: a redelivered event whose row is
    already processed is acknowledged without doing any work.
    """

    __tablename__ = "webhook_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    provider: Mapped[str] = mapped_column(String(20), nullable=False)
    external_event_id: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    event_type: Mapped[str] = mapped_column(String(200), nullable=False)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False)
    is_processed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_webhook_events_provider_external_id", "provider", "external_event_id"),
    )


class SyncLog(Base):
    __tablename__ = "sync_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    provider: Mapped[str] = mapped_column(String(20), nullable=False)
    direction: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)
    local_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    remote_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payload: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_sync_log_entity", "entity_type", "local_id", "status"),
        Index("idx_sync_log_provider", "provider"),
    )

    def __repr__(self) -> str:
        return (
            f"<SyncLog(provider='{self.provider}', status='{self.status}', "
            f"entity_type='{self.entity_type}', local_id='{self.local_id}')>"
        )
