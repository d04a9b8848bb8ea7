"""
Atelier Backend — Square Webhook Processor Tests
==================================================

What we test:
    ✅ Bad signature → WebhookSignatureError; bad JSON → ValidationError
    ✅ Already-processed event ids are acknowledged without side effects
    ✅ payment.completed linking order: existing payment → booking by
       square_order_id → booking by Orders API reference_id → product order
       → skipped for manual linking; an unusable Orders API answer (non-JSON
       body, reference_id that is not an integer) also ends in manual linking
    ✅ Deposits (note contains "(deposit)") update the booking
    ✅ payment.updated and refunds (partial / full)
    ✅ Handler errors are recorded on the webhook_events row, still "OK"

execute() results are queued with side_effect in the order the processor
queries: idempotency check, payment lookup, booking lookup, product order.
"""

import json
import uuid
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from atelier.config import settings
from atelier.exceptions import IntegrationError, ValidationError, WebhookSignatureError
from atelier.models.booking import Booking
from atelier.models.integration import SYNC_FAILED, SYNC_SKIPPED, SYNC_SUCCESS, SyncLog, WebhookEvent
from atelier.models.payment import (
    ORDER_IN_PROGRESS,
    PAYMENT_PAID,
    PAYMENT_PARTIALLY_REFUNDED,
    PAYMENT_REFUNDED,
    Order,
    Payment,
)
from atelier.models.profile import Profile
from atelier.services.square_service import SquareService, compute_signature
from atelier.services.webhook_service import SquareWebhookService

URL = "http://test/api/webhooks/square"
CLIENT_ID = uuid.uuid4()


def sign(body: bytes) -> str:
    return compute_signature(settings.square_webhook_signature_key, URL, body)


def payment_event(event_id="evt_1", event_type="payment.completed", **payment) -> bytes:
    payment.setdefault("id", "pay_1")
    return json.dumps(
        {
            "event_id": event_id,
            "type": event_type,
            "data": {"object": {"payment": payment}},
        }
    ).encode()


def refund_event(amount, payment_id="pay_1") -> bytes:
    return json.dumps(
        {
            "event_id": "evt_r",
            "type": "refund.created",
            "data": {
                "object": {
                    "refund": {"payment_id": payment_id, "amount_money": {"amount": amount}}
                }
            },
        }
    ).encode()


@pytest.fixture
def email():
    with patch("atelier.services.webhook_service.email_service") as mock:
        mock.send_email = AsyncMock(return_value=True)
        yield mock


@pytest.fixture
def square():
    with patch("atelier.services.webhook_service.square_service") as mock:
        mock.get_order_reference_id = AsyncMock(return_value=None)
        yield mock


@pytest.fixture
def client_profile():
    return Profile(id=CLIENT_ID, first_name="Ava", last_name="Reed", email="ava@example.com")


def get_by_class(**objects):
    """db.get side effect: get_by_class(Booking=booking, Profile=profile)."""

    async def _get(cls, key):
        return objects.get(cls.__name__)

    return _get


async def deliver(db, body: bytes):
    return await SquareWebhookService().handle(db, body=body, signature=sign(body), url=URL)


class TestEnvelope:
    @pytest.mark.asyncio
    async def test_bad_signature(self, mock_db_session):
        body = payment_event()
        with pytest.raises(WebhookSignatureError):
            await SquareWebhookService().handle(mock_db_session, body, "bogus", URL)
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_key_skips_verification(self, mock_db_session, email, square):
        body = payment_event(event_type="invoice.created")
        with patch.object(settings, "square_webhook_signature_key", ""):
            result = await SquareWebhookService().handle(mock_db_session, body, "", URL)
        assert result.body == "OK"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"{not json", b"[1, 2]"])
    async def test_invalid_json(self, mock_db_session, body):
        with pytest.raises(ValidationError):
            await deliver(mock_db_session, body)

    @pytest.mark.asyncio
    async def test_already_processed(self, mock_db_session, query_result):
        seen = WebhookEvent(external_event_id="evt_1", is_processed=True)
        mock_db_session.execute.side_effect = [query_result(first=seen)]

        result = await deliver(mock_db_session, payment_event())

        assert result.body == "Already processed"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_unhandled_event_type(self, mock_db_session, added, query_result):
        mock_db_session.execute.side_effect = [query_result()]

        result = await deliver(mock_db_session, payment_event(event_type="invoice.created"))

        assert result.body == "OK"
        assert result.status == SYNC_SKIPPED
        [event] = added(WebhookEvent)
        assert event.is_processed
        assert event.event_type == "invoice.created"
        [log] = added(SyncLog)
        assert log.status == SYNC_SKIPPED
        assert log.remote_id == "evt_1"

    @pytest.mark.asyncio
    async def test_handler_error_is_recorded(self, mock_db_session, added, query_result):
        mock_db_session.execute.side_effect = [query_result(), RuntimeError("db hiccup")]

        result = await deliver(mock_db_session, payment_event())

        assert result.body == "OK"
        assert result.status == SYNC_FAILED
        [event] = added(WebhookEvent)
        assert not event.is_processed
        assert event.error_message == "db hiccup"
        [log] = added(SyncLog)
        assert log.status == SYNC_FAILED


class TestPaymentCompleted:
    @pytest.mark.asyncio
    async def test_updates_existing_payment(self, mock_db_session, query_result, email, square):
        existing = Payment(id=11, status="pending", amount_in_cents=5000)
        mock_db_session.execute.side_effect = [query_result(), query_result(first=existing)]

        result = await deliver(
            mock_db_session,
            payment_event(order_id="ord_1", receipt_url="https://squareup.com/r/1"),
        )

        assert result.status == SYNC_SUCCESS
        assert result.message == "Updated existing payment #11"
        assert existing.status == PAYMENT_PAID
        assert existing.square_receipt_url == "https://squareup.com/r/1"
        assert existing.paid_at is not None
        email.send_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_links_booking_by_order_id(
        self, mock_db_session, added, query_result, email, square, client_profile
    ):
        booking = Booking(id=7, client_id=CLIENT_ID)
        mock_db_session.execute.side_effect = [
            query_result(),
            query_result(),
            query_result(first=booking),
        ]
        mock_db_session.get.side_effect = get_by_class(Profile=client_profile)

        result = await deliver(
            mock_db_session,
            payment_event(
                order_id="ord_1",
                amount_money={"amount": 12000},
                tip_money={"amount": 2000},
                tenders=[{"type": "CARD"}],
            ),
        )

        assert result.message == "Auto-linked payment to booking #7"
        [payment] = added(Payment)
        assert payment.booking_id == 7
        assert payment.client_id == CLIENT_ID
        assert payment.amount_in_cents == 12000
        assert payment.tip_in_cents == 2000
        assert payment.method == "square_card"
        assert payment.status == PAYMENT_PAID
        assert booking.deposit_paid_in_cents is None
        square.get_order_reference_id.assert_not_called()
        assert email.send_email.await_args.kwargs["to"] == "ava@example.com"
        assert email.send_email.await_args.kwargs["entity_type"] == "payment_receipt"

    @pytest.mark.asyncio
    async def test_deposit_updates_booking(
        self, mock_db_session, added, query_result, email, square, client_profile
    ):
        booking = Booking(id=7, client_id=CLIENT_ID)
        mock_db_session.execute.side_effect = [
            query_result(),
            query_result(),
            query_result(first=booking),
        ]
        mock_db_session.get.side_effect = get_by_class(Profile=client_profile)

        result = await deliver(
            mock_db_session,
            payment_event(
                order_id="ord_1",
                amount_money={"amount": 3000},
                note="Lash full set (deposit)",
            ),
        )

        assert result.message == "Auto-linked payment to booking #7 (deposit)"
        assert booking.deposit_paid_in_cents == 3000
        assert booking.deposit_paid_at is not None
        [payment] = added(Payment)
        assert payment.notes == "Deposit collected via Square"

    @pytest.mark.asyncio
    async def test_links_booking_by_reference_id(
        self, mock_db_session, query_result, email, square, client_profile
    ):
        booking = Booking(id=42, client_id=CLIENT_ID)
        mock_db_session.execute.side_effect = [query_result(), query_result(), query_result()]
        mock_db_session.get.side_effect = get_by_class(Booking=booking, Profile=client_profile)
        square.get_order_reference_id.return_value = "42"

        result = await deliver(mock_db_session, payment_event(order_id="ord_9"))

        assert result.message == "Auto-linked payment to booking #42"
        square.get_order_reference_id.assert_awaited_once_with("ord_9")

    @pytest.mark.asyncio
    async def test_square_failure_falls_through(
        self, mock_db_session, added, query_result, email, square
    ):
        mock_db_session.execute.side_effect = [
            query_result(),
            query_result(),
            query_result(),
            query_result(),
        ]
        square.get_order_reference_id.side_effect = IntegrationError(
            provider="square", message="Square order lookup failed"
        )

        result = await deliver(mock_db_session, payment_event(order_id="ord_9"))

        assert result.status == SYNC_SUCCESS
        assert result.message == "No matching booking or order; logged for manual linking"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>gateway</html>"),
            httpx.Response(200, json={"order": {"reference_id": "²"}}),
            httpx.Response(200, json={"order": {"reference_id": "42abc"}}),
        ],
        ids=["non_json_body", "non_ascii_digit", "not_a_number"],
    )
    async def test_unusable_order_lookup_falls_through(
        self, mock_db_session, added, query_result, email, response
    ):
        mock_db_session.execute.side_effect = [
            query_result(),
            query_result(),
            query_result(),
            query_result(),
        ]
        service = SquareService(transport=httpx.MockTransport(lambda r: response))

        with patch("atelier.services.webhook_service.square_service", service), \
             patch.object(settings, "square_access_token", "sq-token"), \
             patch.object(settings, "square_location_id", "LOC1"):
            result = await deliver(mock_db_session, payment_event(order_id="ord_9"))

        assert result.status == SYNC_SUCCESS
        assert result.message == "No matching booking or order; logged for manual linking"
        mock_db_session.get.assert_not_called()
        [event] = added(WebhookEvent)
        assert event.is_processed

    @pytest.mark.asyncio
    async def test_links_product_order(
        self, mock_db_session, query_result, email, square, client_profile
    ):
        order = Order(id=3, client_id=CLIENT_ID, status="pending")
        mock_db_session.execute.side_effect = [
            query_result(),
            query_result(),
            query_result(),
            query_result(first=order),
        ]
        mock_db_session.get.side_effect = get_by_class(Profile=client_profile)

        result = await deliver(
            mock_db_session, payment_event(order_id="ord_5", amount_money={"amount": 4500})
        )

        assert result.message == "Auto-linked payment to product order #3"
        assert order.status == ORDER_IN_PROGRESS
        assert email.send_email.await_args.kwargs["local_id"] == "3"

    @pytest.mark.asyncio
    async def test_unmatched_is_logged_for_manual_linking(
        self, mock_db_session, added, query_result, email, square
    ):
        mock_db_session.execute.side_effect = [
            query_result(),
            query_result(),
            query_result(),
            query_result(),
        ]

        await deliver(mock_db_session, payment_event(order_id="ord_x"))

        skipped = [log for log in added(SyncLog) if log.status == SYNC_SKIPPED]
        assert len(skipped) == 1
        assert skipped[0].remote_id == "pay_1"
        assert skipped[0].payload["square_order_id"] == "ord_x"
        assert added(Payment) == []
        email.send_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_payment_id(self, mock_db_session, query_result):
        body = json.dumps(
            {"event_id": "evt_1", "type": "payment.completed", "data": {"object": {"payment": {}}}}
        ).encode()
        mock_db_session.execute.side_effect = [query_result()]

        result = await deliver(mock_db_session, body)

        assert result.message == "No payment ID in event"


class TestPaymentUpdated:
    @pytest.mark.asyncio
    async def test_refreshes_fields(self, mock_db_session, query_result):
        existing = Payment(id=11, method="square_other", amount_in_cents=5000)
        mock_db_session.execute.side_effect = [query_result(), query_result(first=existing)]

        result = await deliver(
            mock_db_session,
            payment_event(
                event_type="payment.updated",
                receipt_url="https://squareup.com/r/2",
                order_id="ord_2",
                tenders=[{"type": "CASH"}],
            ),
        )

        assert result.message == "Updated payment #11"
        assert existing.square_receipt_url == "https://squareup.com/r/2"
        assert existing.square_order_id == "ord_2"
        assert existing.method == "square_cash"

    @pytest.mark.asyncio
    async def test_unknown_payment(self, mock_db_session, query_result):
        mock_db_session.execute.side_effect = [query_result(), query_result()]
        result = await deliver(mock_db_session, payment_event(event_type="payment.updated"))
        assert result.message == "No matching local payment found"


class TestRefunds:
    @pytest.mark.asyncio
    async def test_partial_refund(self, mock_db_session, added, query_result):
        existing = Payment(id=11, amount_in_cents=10000, refunded_in_cents=0, status=PAYMENT_PAID)
        mock_db_session.execute.side_effect = [query_result(), query_result(first=existing)]

        result = await deliver(mock_db_session, refund_event(2500))

        assert result.message == "Refund of $25.00 applied to payment #11"
        assert existing.refunded_in_cents == 2500
        assert existing.status == PAYMENT_PARTIALLY_REFUNDED
        assert existing.refunded_at is not None
        [log] = added(SyncLog)
        assert log.entity_type == "refund"

    @pytest.mark.asyncio
    async def test_refunds_accumulate_to_full(self, mock_db_session, query_result):
        existing = Payment(
            id=11, amount_in_cents=10000, refunded_in_cents=2500, status=PAYMENT_PARTIALLY_REFUNDED
        )
        mock_db_session.execute.side_effect = [query_result(), query_result(first=existing)]

        await deliver(mock_db_session, refund_event(7500))

        assert existing.refunded_in_cents == 10000
        assert existing.status == PAYMENT_REFUNDED

    @pytest.mark.asyncio
    async def test_refund_for_unknown_payment(self, mock_db_session, query_result):
        mock_db_session.execute.side_effect = [query_result(), query_result()]
        result = await deliver(mock_db_session, refund_event(100))
        assert result.message == "No matching local payment for refund"
