"""
Atelier Backend — Square Webhook Processor
============================================

What:  Turns Square payment and refund notifications into local `payments`
       rows, links them to bookings or product orders, and audits everything.
Who:   Called by POST /api/webhooks/square with the raw request body.
When:  Whenever Square delivers an event (Terminal checkout, refunds, ...).

Pipeline:
    raw body ─▶ verify signature ─▶ parse JSON ─▶ idempotency check
             ─▶ store webhook_events row ─▶ dispatch by event type
             ─▶ mark processed / record error ─▶ sync_log row ─▶ "OK"

    403 and 400 are the only non-200 outcomes. Once the event is stored,
    Square always gets 200: processing errors are kept on the
    webhook_events row (error_message) for manual replay.

Payment Linking (payment.completed):
    1. existing local payment with this square_payment_id → mark paid
    2. booking with bookings.square_order_id = order_id
    3. booking whose id = Square order's reference_id (Orders API)
    4. product order with orders.square_order_id = order_id → in_progress
    5. nothing matched → sync_log 'skipped' for manual linking
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from atelier.config import settings
from atelier.exceptions import IntegrationError, ValidationError, WebhookSignatureError
from atelier.models.booking import Booking
from atelier.models.integration import (
    DIRECTION_INBOUND,
    PROVIDER_SQUARE,
    SYNC_FAILED,
    SYNC_SKIPPED,
    SYNC_SUCCESS,
    SyncLog,
    WebhookEvent,
)
from atelier.models.payment import (
    ORDER_IN_PROGRESS,
    PAYMENT_PAID,
    PAYMENT_PARTIALLY_REFUNDED,
    PAYMENT_REFUNDED,
    Order,
    Payment,
)
from atelier.models.profile import Profile
from atelier.services import email_templates
from atelier.services.email_service import email_service
from atelier.services.square_service import map_tender_type, square_service, verify_signature

logger = logging.getLogger(__name__)

DEPOSIT_MARKER = "(deposit)"


@dataclass
class WebhookResult:
    """Outcome of one delivery; `body` is what Square receives."""

    body: str
    status: Optional[str] = None
    message: Optional[str] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Optional[str]) -> datetime:
    """RFC 3339 from Square ("2026-03-06T14:30:00.000Z"); now() if absent or malformed."""
    if not value:
        return _utcnow()
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return _utcnow()


def _cents(money: Optional[Dict[str, Any]]) -> int:
    return int((money or {}).get("amount") or 0)


def _first_tender_type(payment: Dict[str, Any]) -> Optional[str]:
    tenders = payment.get("tenders") or []
    return tenders[0].get("type") if tenders else None


class SquareWebhookService:
    async def handle(self, db: AsyncSession, body: bytes, signature: str, url: str) -> WebhookResult:
        """
        Process one Square webhook delivery.

        Raises:
            WebhookSignatureError: signature key configured and signature mismatch (→ 403)
            ValidationError: body is not a JSON object (→ 400)
        """
        if settings.square_webhook_signature_key and not verify_signature(body, signature, url):
            logger.warning("Rejected Square webhook with invalid signature")
            raise WebhookSignatureError()

        try:
            event = json.loads(body)
        except (ValueError, UnicodeDecodeError):
            raise ValidationError(message="Invalid JSON", field="body")
        if not isinstance(event, dict):
            raise ValidationError(message="Invalid JSON", field="body")

        event_id = event.get("event_id")
        event_type = event.get("type") or "unknown"

        if event_id and await self._already_processed(db, event_id):
            logger.info("Square event %s already processed; acknowledging", event_id)
            return WebhookResult(body="Already processed")

        row = WebhookEvent(
            provider=PROVIDER_SQUARE,
            external_event_id=event_id,
            event_type=event_type,
            payload=event,
            is_processed=False,
            attempts=1,
        )
        db.add(row)
        await db.flush()

        data = event.get("data") or {}
        try:
            async with db.begin_nested():
                status, message = await self._dispatch(db, event_type, data)
            row.is_processed = True
            row.processed_at = _utcnow()
        except Exception as e:
            logger.error(
                "Square event %s (%s) failed: %s", event_id, event_type, str(e), exc_info=True
            )
            status, message = SYNC_FAILED, str(e) or type(e).__name__
            row.error_message = message

        db.add(
            SyncLog(
                provider=PROVIDER_SQUARE,
                direction=DIRECTION_INBOUND,
                status=status,
                entity_type="refund" if event_type.startswith("refund") else "payment",
                remote_id=event_id,
                message=message,
            )
        )
        await db.flush()
        logger.info("Square event %s (%s): %s", event_id, event_type, message)
        return WebhookResult(body="OK", status=status, message=message)

    async def _already_processed(self, db: AsyncSession, event_id: str) -> bool:
        result = await db.execute(
            select(WebhookEvent).where(
                WebhookEvent.provider == PROVIDER_SQUARE,
                WebhookEvent.external_event_id == event_id,
            )
        )
        existing = result.scalars().first()
        return bool(existing and existing.is_processed)

    async def _dispatch(self, db: AsyncSession, event_type: str, data: Dict[str, Any]):
        if event_type == "payment.completed":
            return SYNC_SUCCESS, await self.handle_payment_completed(db, data)
        if event_type == "payment.updated":
            return SYNC_SUCCESS, await self.handle_payment_updated(db, data)
        if event_type in ("refund.created", "refund.updated"):
            return SYNC_SUCCESS, await self.handle_refund(db, data)
        return SYNC_SKIPPED, f"Event type {event_type} not handled"

    # ── Event handlers ────────────────────────────────────────────────────

    async def handle_payment_completed(self, db: AsyncSession, data: Dict[str, Any]) -> str:
        payment = (data.get("object") or {}).get("payment") or {}
        square_payment_id = payment.get("id")
        if not square_payment_id:
            return "No payment ID in event"
        square_order_id = payment.get("order_id")

        existing = await self._find_payment(db, square_payment_id)
        if existing is not None:
            existing.status = PAYMENT_PAID
            existing.paid_at = _parse_timestamp(payment.get("updated_at"))
            existing.square_receipt_url = payment.get("receipt_url")
            existing.square_order_id = square_order_id
            await db.flush()
            return f"Updated existing payment #{existing.id}"

        booking = await self.find_booking_by_order(db, square_order_id)
        if booking is not None:
            return await self._link_to_booking(db, booking, payment)

        order = await self._find_product_order(db, square_order_id)
        if order is not None:
            order.status = ORDER_IN_PROGRESS
            await db.flush()
            await self._send_receipt(
                db,
                client_id=order.client_id,
                subject="Payment received for your order | T Creative",
                amount_in_cents=_cents(payment.get("amount_money")),
                method="card",
                description="Order payment",
                receipt_url=payment.get("receipt_url"),
                local_id=str(order.id),
            )
            return f"Auto-linked payment to product order #{order.id}"

        db.add(
            SyncLog(
                provider=PROVIDER_SQUARE,
                direction=DIRECTION_INBOUND,
                status=SYNC_SKIPPED,
                entity_type="payment",
                remote_id=square_payment_id,
                message="Payment received but no matching booking or order found; needs manual linking",
                payload={
                    "square_payment_id": square_payment_id,
                    "square_order_id": square_order_id,
                    "amount": payment.get("amount_money"),
                },
            )
        )
        await db.flush()
        return "No matching booking or order; logged for manual linking"

    async def _link_to_booking(self, db: AsyncSession, booking: Booking, payment: Dict[str, Any]) -> str:
        amount = _cents(payment.get("amount_money"))
        method = map_tender_type(_first_tender_type(payment))
        is_deposit = DEPOSIT_MARKER in (payment.get("note") or "")
        now = _utcnow()

        db.add(
            Payment(
                booking_id=booking.id,
                client_id=booking.client_id,
                amount_in_cents=amount,
                tip_in_cents=_cents(payment.get("tip_money")),
                method=method,
                status=PAYMENT_PAID,
                paid_at=now,
                square_payment_id=payment.get("id"),
                square_order_id=payment.get("order_id"),
                square_receipt_url=payment.get("receipt_url"),
                notes="Deposit collected via Square" if is_deposit else "Auto-linked via Square order",
            )
        )
        if is_deposit:
            booking.deposit_paid_in_cents = amount
            booking.deposit_paid_at = now
        await db.flush()

        await self._send_receipt(
            db,
            client_id=booking.client_id,
            subject="Payment receipt | T Creative",
            amount_in_cents=amount,
            method=method.replace("square_", "").replace("_", " "),
            description="Deposit payment" if is_deposit else "Appointment payment",
            receipt_url=payment.get("receipt_url"),
            local_id=str(booking.id),
        )
        suffix = " (deposit)" if is_deposit else ""
        return f"Auto-linked payment to booking #{booking.id}{suffix}"

    async def handle_payment_updated(self, db: AsyncSession, data: Dict[str, Any]) -> str:
        payment = (data.get("object") or {}).get("payment") or {}
        if not payment.get("id"):
            return "No payment ID in event"

        existing = await self._find_payment(db, payment["id"])
        if existing is None:
            return "No matching local payment found"

        if payment.get("receipt_url"):
            existing.square_receipt_url = payment["receipt_url"]
        if payment.get("order_id"):
            existing.square_order_id = payment["order_id"]
        tender_type = _first_tender_type(payment)
        if tender_type:
            existing.method = map_tender_type(tender_type)
        await db.flush()
        return f"Updated payment #{existing.id}"

    async def handle_refund(self, db: AsyncSession, data: Dict[str, Any]) -> str:
        refund = (data.get("object") or {}).get("refund") or {}
        if not refund.get("payment_id"):
            return "No payment ID in refund event"

        existing = await self._find_payment(db, refund["payment_id"])
        if existing is None:
            return "No matching local payment for refund"

        amount = _cents(refund.get("amount_money"))
        existing.refunded_in_cents = (existing.refunded_in_cents or 0) + amount
        existing.refunded_at = _utcnow()
        if existing.refunded_in_cents >= existing.amount_in_cents:
            existing.status = PAYMENT_REFUNDED
        else:
            existing.status = PAYMENT_PARTIALLY_REFUNDED
        await db.flush()
        return f"Refund of ${amount / 100:.2f} applied to payment #{existing.id}"

    # ── Lookups ───────────────────────────────────────────────────────────

    async def _find_payment(self, db: AsyncSession, square_payment_id: str) -> Optional[Payment]:
        result = await db.execute(
            select(Payment).where(Payment.square_payment_id == square_payment_id)
        )
        return result.scalars().first()

    async def find_booking_by_order(
        self, db: AsyncSession, square_order_id: Optional[str]
    ) -> Optional[Booking]:
        """
        Booking for a Square order: by bookings.square_order_id first, then by
        the order's reference_id. A failed Square lookup counts as no match.
        """
        if not square_order_id:
            return None

        result = await db.execute(select(Booking).where(Booking.square_order_id == square_order_id))
        booking = result.scalars().first()
        if booking is not None:
            return booking

        try:
            reference_id = await square_service.get_order_reference_id(square_order_id)
        except IntegrationError as e:
            logger.warning("%s; falling back to manual linking", e.message)
            return None
        if not reference_id or not reference_id.isascii():
            return None
        try:
            booking_id = int(reference_id)
        except ValueError:
            return None
        return await db.get(Booking, booking_id)

    async def _find_product_order(
        self, db: AsyncSession, square_order_id: Optional[str]
    ) -> Optional[Order]:
        if not square_order_id:
            return None
        result = await db.execute(select(Order).where(Order.square_order_id == square_order_id))
        return result.scalars().first()

    async def _send_receipt(
        self,
        db: AsyncSession,
        client_id,
        subject: str,
        amount_in_cents: int,
        method: str,
        description: str,
        receipt_url: Optional[str],
        local_id: str,
    ) -> None:
        client = await db.get(Profile, client_id)
        if client is None or not client.email:
            return
        await email_service.send_email(
            db,
            to=client.email,
            subject=subject,
            mjml_content=email_templates.payment_receipt(
                client_name=client.first_name,
                amount_in_cents=amount_in_cents,
                method=method,
                description=description,
                receipt_url=receipt_url,
            ),
            entity_type="payment_receipt",
            local_id=local_id,
        )


square_webhook_service = SquareWebhookService()
