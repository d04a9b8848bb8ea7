"""
Atelier Backend — Service & Booking SQLAlchemy Models
=======================================================

What:  ORM models for the `services` catalogue and client `bookings`.
Who:   The booking-reminder and review-request jobs (bookings in a time
       window) and the Square webhook processor (linking payments to
       bookings, deposits).

Booking Lifecycle:
    pending → confirmed → in_progress → completed
                  └──────────────→ cancelled | no_show

    Reminders go out only for `confirmed` bookings; review requests only for
    `completed` ones, keyed on completed_at.

`services.category` uses the studio zone ids (lash, jewelry, crochet,
consulting) so the catalogue lines up with the studio navigation.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from atelier.database import Base

BOOKING_PENDING = "pending"
BOOKING_CONFIRMED = "confirmed"
BOOKING_IN_PROGRESS = "in_progress"
BOOKING_COMPLETED = "completed"
BOOKING_CANCELLED = "cancelled"
BOOKING_NO_SHOW = "no_show"


class Service(Base):
    __tablename__ = "services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price_in_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, category='{self.category}', name='{self.name}')>"


class Booking(Base):
    """
    One appointment for one client.

    Query Patterns:
        - Reminder window: WHERE status='confirmed' AND starts_at BETWEEN :a AND :b
          → idx_bookings_status_starts_at
        - Webhook linking: WHERE square_order_id = :order_id
          → idx_bookings_square_order_id
    """

    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    staff_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    service_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("services.id", ondelete="RESTRICT"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BOOKING_PENDING,
        server_default=text("'pending'"),
    )
    starts_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    total_in_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # Square order created at confirmation; its reference_id is this booking's id
    square_order_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    deposit_paid_in_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    deposit_paid_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    # Set when the booking moves to `completed`; drives review requests
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_bookings_status_starts_at", "status", "starts_at"),
        Index("idx_bookings_square_order_id", "square_order_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, status='{self.status}', "
            f"starts_at='{self.starts_at}')>"
        )
