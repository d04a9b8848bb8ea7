"""
Atelier Backend — Webhook Routes
==================================

What:  POST /api/webhooks/square, the Square notification endpoint.
How:   Hands the raw body, signature header and full request URL to the
       webhook processor. The body must stay unparsed until the signature
       is checked, so there is no pydantic model here.

Responses:
    200 "OK" / "Already processed"   (always, once signature and JSON pass)
    403 invalid signature             (WebhookSignatureError handler)
    400 invalid JSON                  (ValidationError handler)
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from atelier.database import get_db_session
from atelier.schemas.common import ErrorResponse
from atelier.services.webhook_service import square_webhook_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["Webhooks"])

SIGNATURE_HEADER = "x-square-hmacsha256-signature"


@router.post(
    "/square",
    response_class=PlainTextResponse,
    responses={
        400: {"description": "Body is not valid JSON", "model": ErrorResponse},
        403: {"description": "Signature mismatch", "model": ErrorResponse},
    },
    summary="Receive a Square webhook",
)
async def square_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> PlainTextResponse:
    body = await request.body()
    result = await square_webhook_service.handle(
        db,
        body=body,
        signature=request.headers.get(SIGNATURE_HEADER, ""),
        url=str(request.url),
    )
    return PlainTextResponse(result.body, status_code=200)
