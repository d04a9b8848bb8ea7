"""
Atelier Backend — Square Client
=================================

What:  The three things the backend needs from Square:
       - webhook signature verification (HMAC-SHA256, base64)
       - tender type → local payment method mapping
       - Orders API lookup of an order's `reference_id` (= booking id)
How:   Orders API is called over httpx with tenacity retries on transient
       failures (network errors, 429, 5xx). Other 4xx fail immediately.
Who:   The Square webhook processor.

Signature Scheme:
    expected = base64( HMAC_SHA256( signature_key, notification_url + raw_body ) )
    compared with the `x-square-hmacsha256-signature` header in constant time.
"""

import base64
import hashlib
import hmac
import logging
from typing import Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from atelier.config import settings
from atelier.exceptions import IntegrationError

logger = logging.getLogger(__name__)

SQUARE_API_VERSION = "2024-10-17"

TENDER_METHODS = {
    "CARD": "square_card",
    "CASH": "square_cash",
    "WALLET": "square_wallet",
    "SQUARE_GIFT_CARD": "square_gift_card",
}
DEFAULT_METHOD = "square_other"


def map_tender_type(tender_type: Optional[str]) -> str:
    return TENDER_METHODS.get(tender_type or "", DEFAULT_METHOD)


def compute_signature(key: str, url: str, body: bytes) -> str:
    digest = hmac.new(key.encode("utf-8"), url.encode("utf-8") + body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(body: bytes, signature: str, url: str, key: Optional[str] = None) -> bool:
    """
    Check a Square webhook signature.

    Returns False when no signature key is configured: an unsigned
    deployment cannot verify anything.
    """
    key = settings.square_webhook_signature_key if key is None else key
    if not key:
        return False
    expected = compute_signature(key, url, body)
    return hmac.compare_digest(expected, signature or "")


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


class SquareService:
    """
    Thin async Square REST client.

    `transport` is passed through to httpx.AsyncClient (tests use
    httpx.MockTransport).
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    async def get_order_reference_id(self, order_id: str) -> Optional[str]:
        """
        Fetch a Square order and return its `reference_id`.

        Returns:
            The reference id, or None when Square is not configured or the
            order has none.

        Raises:
            IntegrationError: the lookup failed after all retry attempts, or
                Square answered with something other than a JSON order object.
        """
        if not settings.square_configured:
            return None
        try:
            payload = await self._get_order_with_retry(order_id)
        except (httpx.HTTPError, ValueError) as e:
            raise IntegrationError(
                provider="square",
                message=f"Square order lookup failed for {order_id}",
                context={"order_id": order_id, "error_type": type(e).__name__},
            ) from e

        order = (payload.get("order") or {}) if isinstance(payload, dict) else None
        if not isinstance(order, dict):
            raise IntegrationError(
                provider="square",
                message=f"Unexpected Square order payload for {order_id}",
                context={"order_id": order_id, "error_type": type(payload).__name__},
            )
        reference_id = order.get("reference_id")
        return str(reference_id) if reference_id is not None else None

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(settings.square_retry_attempts),
        wait=wait_exponential_jitter(
            multiplier=0.5, max=settings.square_retry_max_wait, jitter=0.5
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _get_order_with_retry(self, order_id: str) -> dict:
        async with httpx.AsyncClient(
            base_url=settings.square_base_url,
            timeout=10.0,
            transport=self._transport,
        ) as client:
            response = await client.get(
                f"/v2/orders/{order_id}",
                headers={
                    "Authorization": f"Bearer {settings.square_access_token}",
                    "Square-Version": SQUARE_API_VERSION,
                    "Accept": "application/json",
                },
            )
            response.raise_for_status()
            return response.json()


square_service = SquareService()
