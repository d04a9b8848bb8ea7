"""
Atelier Backend — Order & Payment SQLAlchemy Models
=====================================================

What:  ORM models for marketplace `orders` and settled `payments`.
Who:   Written by the Square webhook processor; every Square payment ends up
       as (or updates) one row in `payments`.

Payment Lifecycle:
    pending → paid → partially_refunded → refunded
         └──→ failed

Amounts are integer cents throughout; refunds accumulate in
`refunded_in_cents` until they reach `amount_in_cents`.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from atelier.database import Base

PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"
PAYMENT_FAILED = "failed"
PAYMENT_REFUNDED = "refunded"
PAYMENT_PARTIALLY_REFUNDED = "partially_refunded"

# Values: pending, in_progress, completed, cancelled
ORDER_IN_PROGRESS = "in_progress"


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", server_default=text("'pending'")
    )
    total_in_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    square_order_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (Index("idx_orders_square_order_id", "square_order_id"),)


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    amount_in_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    tip_in_cents: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    refunded_in_cents: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    # square_card, square_cash, square_wallet, square_gift_card, square_other
    method: Mapped[str] = mapped_column(String(30), nullable=False, default="square_other")
    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=PAYMENT_PENDING,
        server_default=text("'pending'"),
    )
    square_payment_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    square_order_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    square_receipt_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    refunded_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (Index("idx_payments_square_payment_id", "square_payment_id"),)

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id}, status='{self.status}', "
            f"amount_in_cents={self.amount_in_cents})>"
        )
