"""
Atelier Backend — Email Service (Resend)
==========================================

What:  Sends transactional email through the Resend API and records every
       attempt in `sync_log`.
How:   Templates arrive as MJML and are compiled to HTML here. The Resend SDK
       is synchronous, so compilation and the HTTP call run in a worker thread
       (asyncio.to_thread) to keep the event loop free.
Who:   Cron jobs (reminders, review requests, birthdays) and the Square webhook
       processor (payment receipts).

Failure Policy:
    Email is never on the critical path. send_email() catches every error,
    logs it, writes a `failed` sync_log row and returns False. Callers count
    successes and failures; they never see an exception.

    Resend not configured → False, no sync_log row (nothing was attempted).
"""

import asyncio
import logging
from typing import Optional

import resend
from sqlalchemy.ext.asyncio import AsyncSession

from atelier.config import settings
from atelier.models.integration import (
    DIRECTION_OUTBOUND,
    PROVIDER_RESEND,
    SYNC_FAILED,
    SYNC_SUCCESS,
    SyncLog,
)
from atelier.services.email_templates import compile_mjml_to_html

logger = logging.getLogger(__name__)


class EmailService:
    async def send_email(
        self,
        db: AsyncSession,
        to: str,
        subject: str,
        mjml_content: str,
        entity_type: str,
        local_id: str,
    ) -> bool:
        """
        Send one email and audit it.

        Args:
            db: Session the sync_log row is added to (committed by the caller)
            to: Recipient address
            subject: Subject line
            mjml_content: MJML source (see email_templates)
            entity_type: sync_log entity type, e.g. "booking_reminder_24h"
            local_id: Local record id for tracing and deduplication

        Returns:
            True if Resend accepted the message.
        """
        if not settings.resend_configured:
            logger.warning("Resend not configured; skipping email: %s", subject)
            return False

        try:
            remote_id = await asyncio.to_thread(self._send, to, subject, mjml_content)
        except Exception as e:
            logger.error("Failed to send %s to %s: %s", entity_type, to, str(e))
            await self._audit(
                db,
                SyncLog(
                    provider=PROVIDER_RESEND,
                    direction=DIRECTION_OUTBOUND,
                    status=SYNC_FAILED,
                    entity_type=entity_type,
                    local_id=local_id,
                    message=f"Failed to send {entity_type} to {to}",
                    error_message=str(e) or type(e).__name__,
                ),
            )
            return False

        logger.info("Sent %s (local_id=%s) via Resend: %s", entity_type, local_id, remote_id)
        await self._audit(
            db,
            SyncLog(
                provider=PROVIDER_RESEND,
                direction=DIRECTION_OUTBOUND,
                status=SYNC_SUCCESS,
                entity_type=entity_type,
                local_id=local_id,
                remote_id=remote_id,
                message=f"Sent {entity_type} to {to}",
                payload={"to": to, "subject": subject, "resend_id": remote_id},
            ),
        )
        return True

    @staticmethod
    def _send(to: str, subject: str, mjml_content: str) -> Optional[str]:
        html = compile_mjml_to_html(mjml_content)
        resend.api_key = settings.resend_api_key
        response = resend.Emails.send(
            {
                "from": settings.resend_from_email,
                "to": [to],
                "subject": subject,
                "html": html,
            }
        )
        return response.get("id") if response else None

    @staticmethod
    async def _audit(db: AsyncSession, row: SyncLog) -> None:
        try:
            db.add(row)
            await db.flush()
        except Exception as e:
            logger.error(
                "Could not record %s email in sync_log: %s", row.entity_type, str(e)
            )


email_service = EmailService()
