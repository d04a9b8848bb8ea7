"""
Atelier Backend — Email Templates (MJML)
==========================================

What:  MJML sources for the transactional emails the backend sends:
       booking reminder, review request, birthday greeting and payment receipt.
How:   Every template fills one shared base wrapper; the email service compiles
       the result to HTML with `compile_mjml_to_html` right before sending.
       Interpolated values go through html.escape() so client-supplied names
       cannot break the markup.
"""

import logging
from datetime import datetime
from html import escape
from typing import List, Optional, Tuple

from mjml import mjml_to_html

logger = logging.getLogger(__name__)

STUDIO_NAME = "T Creative Studio"

# Brand palette (warm neutrals, terracotta accent)
THEME = {
    "primary": "#C4907A",
    "background": "#f6f2ef",
    "card_bg": "#ffffff",
    "text_primary": "#1a1a1a",
    "text_secondary": "#333333",
    "text_muted": "#888888",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML wrapper shared by every Atelier email."""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section background-color="{THEME['card_bg']}" padding="0 0 24px 0">
          <mj-column>
            <mj-button
              href="{escape(cta_url, quote=True)}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              border-radius="4px"
              font-size="14px"
              align="left"
              padding="0 40px">
              {escape(cta_label, quote=False)}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{escape(title, quote=False)}</mj-title>
        <mj-preview>{escape(preview_text, quote=False)}</mj-preview>
        <mj-attributes>
          <mj-all font-family="Helvetica, Arial, sans-serif" />
          <mj-text font-size="14px" line-height="24px" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['card_bg']}" padding="32px 0 8px 0">
          <mj-column>
            {content_sections}
          </mj-column>
        </mj-section>
        {cta_section}
        <mj-section padding="16px 0">
          <mj-column>
            <mj-text font-size="12px" color="{THEME['text_muted']}" align="center">
              {escape(STUDIO_NAME, quote=False)}
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile an MJML template to production-ready HTML."""
    result = mjml_to_html(mjml_content)
    if isinstance(result, dict):
        if result.get("errors"):
            logger.warning("MJML compilation warnings: %s", result["errors"])
        return result.get("html", "")
    return str(result)


# ── Building blocks ───────────────────────────────────────────────────────

def _heading(text: str) -> str:
    return (
        f'<mj-text font-size="20px" font-weight="700" color="{THEME["text_primary"]}" '
        f'padding="0 40px 12px 40px">{escape(text, quote=False)}</mj-text>'
    )


def _paragraph(text: str) -> str:
    return f'<mj-text padding="0 40px 20px 40px">{escape(text, quote=False)}</mj-text>'


def _muted(text: str) -> str:
    return (
        f'<mj-text font-size="13px" color="{THEME["text_muted"]}" '
        f'padding="4px 40px 24px 40px">{escape(text, quote=False)}</mj-text>'
    )


def _details(rows: List[Tuple[str, str]]) -> str:
    items = "".join(
        f'<p style="margin:0 0 2px;font-size:12px;font-weight:600;color:{THEME["text_muted"]};'
        f'text-transform:uppercase;letter-spacing:0.5px;">{escape(label, quote=False)}</p>'
        f'<p style="margin:0 0 12px;">{escape(value, quote=False)}</p>'
        for label, value in rows
    )
    return f'<mj-text padding="0 40px 8px 40px">{items}</mj-text>'


def format_cents(amount_in_cents: int) -> str:
    """2500 → "$25.00"."""
    return f"${amount_in_cents / 100:,.2f}"


def format_appointment_time(starts_at: datetime) -> str:
    """e.g. "Friday, March 6 at 2:30 PM"."""
    hour = starts_at.hour % 12 or 12
    return f"{starts_at:%A, %B} {starts_at.day} at {hour}:{starts_at:%M %p}"


# ── Templates ─────────────────────────────────────────────────────────────

def booking_reminder(
    client_name: str,
    service_name: str,
    starts_at: datetime,
    duration_minutes: int,
    total_in_cents: int,
    location: Optional[str],
    hours_until: int,
) -> str:
    """Sent 24h and 48h before a confirmed appointment."""
    time_label = "tomorrow" if hours_until <= 24 else f"in {round(hours_until / 24)} days"
    content = "\n".join(
        [
            _heading("Appointment Reminder"),
            _paragraph(
                f"Hey {client_name}, just a friendly reminder that your "
                f"appointment is coming up {time_label}!"
            ),
            _details(
                [
                    ("Service", service_name),
                    ("When", format_appointment_time(starts_at)),
                    ("Duration", f"{duration_minutes} minutes"),
                    ("Location", location or STUDIO_NAME),
                    ("Total", format_cents(total_in_cents)),
                ]
            ),
            _muted(
                "Need to reschedule or cancel? Reply to this email or contact us "
                "directly as soon as possible."
            ),
        ]
    )
    return get_base_template(
        title="Appointment Reminder",
        preview_text=f"Reminder: {service_name} {time_label}",
        content_sections=content,
    )


def review_request(client_name: str, service_name: str) -> str:
    """Sent about a day after a booking is completed."""
    content = "\n".join(
        [
            _heading("How Was Your Experience?"),
            _paragraph(
                f"Hey {client_name}, it's been a day since your {service_name} "
                "appointment and we'd love to hear how everything turned out!"
            ),
            _paragraph(
                "Your feedback means the world to us and helps us keep improving. "
                "Just reply to this email to share your thoughts. We read every response."
            ),
            _paragraph(
                "If you loved your experience, we'd really appreciate a review on "
                "Google or Yelp. It helps other clients find us!"
            ),
            _muted("Ready to book again? Reply to this email or visit our site."),
        ]
    )
    return get_base_template(
        title="How Was Your Experience?",
        preview_text=f"How was your {service_name}?",
        content_sections=content,
    )


def birthday_greeting(client_name: str) -> str:
    content = "\n".join(
        [
            _heading("Happy Birthday!"),
            _paragraph(
                f"Hey {client_name}, wishing you the happiest of birthdays "
                f"from everyone at {STUDIO_NAME}!"
            ),
            _paragraph(
                "To celebrate, we'd love to treat you to something special. Reply to "
                "this email to claim your birthday perk."
            ),
            _muted(f"From all of us at {STUDIO_NAME}, have a wonderful day!"),
        ]
    )
    return get_base_template(
        title="Happy Birthday!",
        preview_text=f"Happy Birthday, {client_name}!",
        content_sections=content,
    )


def payment_receipt(
    client_name: str,
    amount_in_cents: int,
    method: str,
    description: str,
    receipt_url: Optional[str] = None,
) -> str:
    content = "\n".join(
        [
            _heading("Payment Received"),
            _paragraph(f"Hey {client_name}, we received your payment. Thank you!"),
            _details(
                [
                    ("Amount", format_cents(amount_in_cents)),
                    ("Method", method),
                    ("For", description),
                ]
            ),
        ]
    )
    return get_base_template(
        title="Payment Received",
        preview_text=f"Payment received: {format_cents(amount_in_cents)}",
        content_sections=content,
        cta_url=receipt_url,
        cta_label="View Receipt" if receipt_url else None,
    )
