"""
Atelier Backend — Webhook Route Tests
=======================================

What we test:
    ✅ Signature is checked against the full request URL → 403 on mismatch
    ✅ Invalid JSON → 400
    ✅ Valid delivery → 200 "OK" plain text
    ✅ Webhooks are not rate limited
"""

import json

import pytest

from atelier.config import settings
from atelier.services.square_service import compute_signature

PATH = "/api/webhooks/square"
URL = "http://test" + PATH


def headers_for(body: bytes) -> dict:
    return {
        "x-square-hmacsha256-signature": compute_signature(
            settings.square_webhook_signature_key, URL, body
        ),
        "content-type": "application/json",
    }


@pytest.mark.asyncio
async def test_bad_signature(test_client):
    body = b'{"event_id":"evt_1","type":"payment.completed"}'
    response = await test_client.post(
        PATH, content=body, headers={"x-square-hmacsha256-signature": "nope"}
    )
    assert response.status_code == 403
    assert response.json()["error"] == "invalid_signature"


@pytest.mark.asyncio
async def test_missing_signature(test_client):
    response = await test_client.post(PATH, content=b"{}")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_invalid_json(test_client):
    body = b"not json"
    response = await test_client.post(PATH, content=body, headers=headers_for(body))
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid JSON"


@pytest.mark.asyncio
async def test_valid_delivery(test_client, mock_db_session):
    body = json.dumps({"event_id": "evt_9", "type": "invoice.created", "data": {}}).encode()
    response = await test_client.post(PATH, content=body, headers=headers_for(body))
    assert response.status_code == 200
    assert response.text == "OK"
    assert mock_db_session.add.call_count == 2


@pytest.mark.asyncio
async def test_not_rate_limited(test_client, monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_requests", 10)
    for _ in range(15):
        response = await test_client.post(PATH, content=b"{}")
        assert response.status_code == 403
