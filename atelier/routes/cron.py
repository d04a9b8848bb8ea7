"""
Atelier Backend — Scheduled Job Routes
========================================

What:  GET endpoints an external scheduler hits to run the email jobs.
How:   Every route depends on require_cron_secret, which compares the
       `x-cron-secret` header with settings.cron_secret in constant time.
       No configured secret means every call is refused.
"""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from atelier.config import settings
from atelier.database import get_db_session
from atelier.exceptions import UnauthorizedError
from atelier.schemas.common import (
    BirthdayRunResponse,
    ErrorResponse,
    ReminderRunResponse,
    ReviewRequestRunResponse,
)
from atelier.services.cron_service import cron_service

logger = logging.getLogger(__name__)


def require_cron_secret(x_cron_secret: Optional[str] = Header(default=None)) -> None:
    expected = settings.cron_secret
    if not expected or not x_cron_secret or not hmac.compare_digest(x_cron_secret, expected):
        raise UnauthorizedError()


router = APIRouter(
    prefix="/api/cron",
    tags=["Cron"],
    dependencies=[Depends(require_cron_secret)],
    responses={401: {"description": "Missing or wrong cron secret", "model": ErrorResponse}},
)


@router.get(
    "/booking-reminders",
    response_model=ReminderRunResponse,
    summary="Send 24h and 48h booking reminders",
)
async def booking_reminders(db: AsyncSession = Depends(get_db_session)) -> ReminderRunResponse:
    run = await cron_service.send_booking_reminders(db)
    return ReminderRunResponse(sent=run.sent, failed=run.failed)


@router.get(
    "/review-requests",
    response_model=ReviewRequestRunResponse,
    summary="Ask clients for feedback a day after their appointment",
)
async def review_requests(
    db: AsyncSession = Depends(get_db_session),
) -> ReviewRequestRunResponse:
    run = await cron_service.send_review_requests(db)
    return ReviewRequestRunResponse(matched=run.matched, sent=run.sent, failed=run.failed)


@router.get(
    "/birthdays",
    response_model=BirthdayRunResponse,
    summary="Send today's birthday greetings",
)
async def birthdays(db: AsyncSession = Depends(get_db_session)) -> BirthdayRunResponse:
    run = await cron_service.send_birthday_greetings(db)
    return BirthdayRunResponse(matched=run.matched, sent=run.sent, failed=run.failed)
