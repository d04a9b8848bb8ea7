"""
Atelier Backend — Square Client Tests
=======================================

What we test:
    ✅ Signature: accepts Square's scheme, rejects tampering, no key → False
    ✅ Tender type mapping
    ✅ Orders API lookup: reference id, not configured, retry on 5xx,
       no retry on 404, IntegrationError after retries or on a body that
       is not a JSON order object
    ✅ Backoff: exponential with jitter, 0.5s multiplier, capped
"""

from unittest.mock import patch

import httpx
import pytest
from tenacity import wait_exponential_jitter, wait_none

from atelier.config import settings
from atelier.exceptions import IntegrationError
from atelier.services.square_service import (
    SquareService,
    compute_signature,
    map_tender_type,
    verify_signature,
)

URL = "https://studio.example.com/api/webhooks/square"
BODY = b'{"event_id":"evt_1","type":"payment.completed"}'


class TestSignature:
    def test_valid_signature(self):
        sig = compute_signature("key", URL, BODY)
        assert verify_signature(BODY, sig, URL, key="key")

    def test_known_vector(self):
        # base64(HMAC-SHA256("key", "ab"))
        assert compute_signature("key", "a", b"b") == "XBwMlIy+9a19GR5G5ZAfoDlfhfaU+kYz9mWhpjcBe2U="

    def test_tampered_body(self):
        sig = compute_signature("key", URL, BODY)
        assert not verify_signature(BODY + b" ", sig, URL, key="key")

    def test_different_url(self):
        sig = compute_signature("key", URL, BODY)
        assert not verify_signature(BODY, sig, URL + "?x=1", key="key")

    def test_missing_signature(self):
        assert not verify_signature(BODY, "", URL, key="key")

    def test_no_key_never_verifies(self):
        sig = compute_signature("", URL, BODY)
        assert not verify_signature(BODY, sig, URL, key="")

    def test_uses_configured_key(self):
        sig = compute_signature(settings.square_webhook_signature_key, URL, BODY)
        assert verify_signature(BODY, sig, URL)


class TestTenderMapping:
    @pytest.mark.parametrize(
        "tender,method",
        [
            ("CARD", "square_card"),
            ("CASH", "square_cash"),
            ("WALLET", "square_wallet"),
            ("SQUARE_GIFT_CARD", "square_gift_card"),
            ("BANK_ACCOUNT", "square_other"),
            (None, "square_other"),
        ],
    )
    def test_mapping(self, tender, method):
        assert map_tender_type(tender) == method


@pytest.fixture
def square_configured():
    with patch.object(settings, "square_access_token", "sq-token"), \
         patch.object(settings, "square_location_id", "LOC1"):
        yield


@pytest.fixture
def no_retry_wait():
    with patch.object(SquareService._get_order_with_retry.retry, "wait", wait_none()):
        yield


class TestOrderLookup:
    @pytest.mark.asyncio
    async def test_not_configured_returns_none(self):
        service = SquareService(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
        assert await service.get_order_reference_id("ord_1") is None

    @pytest.mark.asyncio
    async def test_returns_reference_id(self, square_configured):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json={"order": {"id": "ord_1", "reference_id": "42"}})

        service = SquareService(transport=httpx.MockTransport(handler))
        assert await service.get_order_reference_id("ord_1") == "42"
        assert seen["path"] == "/v2/orders/ord_1"
        assert seen["auth"] == "Bearer sq-token"

    @pytest.mark.asyncio
    async def test_order_without_reference(self, square_configured):
        service = SquareService(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"order": {}}))
        )
        assert await service.get_order_reference_id("ord_1") is None

    @pytest.mark.asyncio
    async def test_retries_server_errors(self, square_configured, no_retry_wait):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 2:
                return httpx.Response(503)
            return httpx.Response(200, json={"order": {"reference_id": "7"}})

        service = SquareService(transport=httpx.MockTransport(handler))
        assert await service.get_order_reference_id("ord_1") == "7"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_does_not_retry_not_found(self, square_configured, no_retry_wait):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404, json={"errors": []})

        service = SquareService(transport=httpx.MockTransport(handler))
        with pytest.raises(IntegrationError) as exc_info:
            await service.get_order_reference_id("ord_1")
        assert len(calls) == 1
        assert exc_info.value.provider == "square"

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self, square_configured, no_retry_wait):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("boom", request=request)

        service = SquareService(transport=httpx.MockTransport(handler))
        with pytest.raises(IntegrationError):
            await service.get_order_reference_id("ord_1")
        assert len(calls) == settings.square_retry_attempts

    @pytest.mark.asyncio
    async def test_non_json_body_is_integration_error(self, square_configured):
        service = SquareService(
            transport=httpx.MockTransport(
                lambda r: httpx.Response(200, text="<html>gateway</html>")
            )
        )
        with pytest.raises(IntegrationError) as exc_info:
            await service.get_order_reference_id("ord_1")
        assert exc_info.value.context["error_type"] == "JSONDecodeError"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [["ord_1"], {"order": "ord_1"}])
    async def test_unexpected_payload_is_integration_error(self, square_configured, payload):
        service = SquareService(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json=payload))
        )
        with pytest.raises(IntegrationError):
            await service.get_order_reference_id("ord_1")

    def test_backoff_uses_half_second_multiplier(self):
        wait = SquareService._get_order_with_retry.retry.wait
        assert isinstance(wait, wait_exponential_jitter)
        assert wait.multiplier == 0.5
        assert wait.max == settings.square_retry_max_wait
