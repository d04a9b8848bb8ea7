"""
Atelier Backend — Scheduled Jobs
==================================

What:  The three periodic email jobs:
       - booking reminders, 24h and 48h ahead of confirmed appointments
       - review requests, about a day after a booking was completed
       - birthday greetings for clients whose birthday is today
How:   Each run selects candidates, skips anyone already emailed according to
       sync_log, and sends through the email service (non-fatal per email).
Who:   GET /api/cron/booking-reminders and GET /api/cron/review-requests
       (hourly), GET /api/cron/birthdays (daily), triggered by an external
       scheduler.

Reminder Windows (relative to the run time):
    24h: starts_at in [now + 23h, now + 25h]
    48h: starts_at in [now + 47h, now + 49h]

    Windows are two hours wide and the job runs hourly, so every booking
    falls into each window on two consecutive runs; the sync_log check
    makes the second run a no-op.

    Review requests use the same two-hour band on completed_at:
    completed_at in [now - 25h, now - 23h].

Query failures are wrapped in DatabaseError (→ 500); a failed email is only
counted.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import extract, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from atelier.exceptions import DatabaseError
from atelier.models.booking import BOOKING_COMPLETED, BOOKING_CONFIRMED, Booking, Service
from atelier.models.integration import SYNC_SUCCESS, SyncLog
from atelier.models.profile import Profile
from atelier.services import email_templates
from atelier.services.email_service import email_service

logger = logging.getLogger(__name__)

BIRTHDAY_ENTITY = "birthday_greeting"
REVIEW_ENTITY = "review_request"

# Review requests go out for bookings completed 23-25h before the run
REVIEW_MIN_HOURS = 23
REVIEW_MAX_HOURS = 25


@dataclass(frozen=True)
class ReminderWindow:
    label: str
    hours_until: int
    min_hours: int
    max_hours: int

    @property
    def entity_type(self) -> str:
        return f"booking_reminder_{self.label}"


REMINDER_WINDOWS = (
    ReminderWindow(label="24h", hours_until=24, min_hours=23, max_hours=25),
    ReminderWindow(label="48h", hours_until=48, min_hours=47, max_hours=49),
)


@dataclass
class ReminderRun:
    sent: int = 0
    failed: int = 0


@dataclass
class ReviewRequestRun:
    matched: int = 0
    sent: int = 0
    failed: int = 0


@dataclass
class BirthdayRun:
    matched: int = 0
    sent: int = 0
    failed: int = 0


class CronService:
    async def send_booking_reminders(
        self, db: AsyncSession, now: Optional[datetime] = None
    ) -> ReminderRun:
        now = now or datetime.now(timezone.utc)
        run = ReminderRun()

        for window in REMINDER_WINDOWS:
            result = await self._execute(
                db,
                select(Booking, Profile, Service)
                .join(Profile, Booking.client_id == Profile.id)
                .join(Service, Booking.service_id == Service.id)
                .where(
                    Booking.status == BOOKING_CONFIRMED,
                    Booking.starts_at >= now + timedelta(hours=window.min_hours),
                    Booking.starts_at <= now + timedelta(hours=window.max_hours),
                )
            )
            for booking, client, service in result.all():
                if not client.email or not client.notify_email:
                    continue

                local_id = str(booking.id)
                if await self._already_sent(db, window.entity_type, local_id):
                    continue

                ok = await email_service.send_email(
                    db,
                    to=client.email,
                    subject=f"Reminder: {service.name} appointment coming up",
                    mjml_content=email_templates.booking_reminder(
                        client_name=client.first_name,
                        service_name=service.name,
                        starts_at=booking.starts_at,
                        duration_minutes=booking.duration_minutes,
                        total_in_cents=booking.total_in_cents,
                        location=booking.location,
                        hours_until=window.hours_until,
                    ),
                    entity_type=window.entity_type,
                    local_id=local_id,
                )
                if ok:
                    run.sent += 1
                else:
                    run.failed += 1

        logger.info("Booking reminders: sent=%d failed=%d", run.sent, run.failed)
        return run

    async def send_review_requests(
        self, db: AsyncSession, now: Optional[datetime] = None
    ) -> ReviewRequestRun:
        now = now or datetime.now(timezone.utc)

        result = await self._execute(
            db,
            select(Booking, Profile, Service)
            .join(Profile, Booking.client_id == Profile.id)
            .join(Service, Booking.service_id == Service.id)
            .where(
                Booking.status == BOOKING_COMPLETED,
                Booking.completed_at >= now - timedelta(hours=REVIEW_MAX_HOURS),
                Booking.completed_at <= now - timedelta(hours=REVIEW_MIN_HOURS),
            )
        )
        rows = result.all()
        run = ReviewRequestRun(matched=len(rows))

        for booking, client, service in rows:
            if not client.email or not client.notify_email:
                continue

            local_id = str(booking.id)
            if await self._already_sent(db, REVIEW_ENTITY, local_id):
                continue

            ok = await email_service.send_email(
                db,
                to=client.email,
                subject=f"How was your {service.name}?",
                mjml_content=email_templates.review_request(
                    client_name=client.first_name,
                    service_name=service.name,
                ),
                entity_type=REVIEW_ENTITY,
                local_id=local_id,
            )
            if ok:
                run.sent += 1
            else:
                run.failed += 1

        logger.info(
            "Review requests: matched=%d sent=%d failed=%d", run.matched, run.sent, run.failed
        )
        return run

    async def send_birthday_greetings(
        self, db: AsyncSession, now: Optional[datetime] = None
    ) -> BirthdayRun:
        now = now or datetime.now(timezone.utc)
        today = f"{now.month:02d}/{now.day:02d}"

        result = await self._execute(
            db,
            select(Profile).where(
                Profile.is_active.is_(True),
                Profile.notify_email.is_(True),
                Profile.onboarding_data["birthday"].astext == today,
            )
        )
        profiles = result.scalars().all()
        run = BirthdayRun(matched=len(profiles))

        for profile in profiles:
            if not profile.email:
                continue

            local_id = str(profile.id)
            if await self._already_sent(db, BIRTHDAY_ENTITY, local_id, year=now.year):
                continue

            ok = await email_service.send_email(
                db,
                to=profile.email,
                subject=f"Happy Birthday, {profile.first_name}!",
                mjml_content=email_templates.birthday_greeting(client_name=profile.first_name),
                entity_type=BIRTHDAY_ENTITY,
                local_id=local_id,
            )
            if ok:
                run.sent += 1
            else:
                run.failed += 1

        logger.info(
            "Birthday greetings (%s): matched=%d sent=%d failed=%d",
            today, run.matched, run.sent, run.failed,
        )
        return run

    async def _already_sent(
        self, db: AsyncSession, entity_type: str, local_id: str, year: Optional[int] = None
    ) -> bool:
        query = select(SyncLog.id).where(
            SyncLog.entity_type == entity_type,
            SyncLog.local_id == local_id,
            SyncLog.status == SYNC_SUCCESS,
        )
        if year is not None:
            query = query.where(extract("year", SyncLog.created_at) == year)
        result = await self._execute(db, query.limit(1))
        return result.scalars().first() is not None

    @staticmethod
    async def _execute(db: AsyncSession, query):
        try:
            return await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Scheduled job query failed: %s", str(e), exc_info=True)
            raise DatabaseError(context={"original_error": type(e).__name__})


cron_service = CronService()
