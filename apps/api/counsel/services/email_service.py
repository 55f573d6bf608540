"""Email delivery for notification jobs (Resend API).

Without RESEND_API_KEY the sender runs dry: the message is logged (recipient
masked) and reported as sent so local and test runs need no provider.
"""

from __future__ import annotations

import html
import logging
from uuid import UUID

import httpx

from counsel.core.config import settings
from counsel.jobs.utils import mask_email
from counsel.services.http_service import DEFAULT_RETRY_STATUSES, request_with_retries

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_MAX_ATTEMPTS = 3
RESEND_RETRY_BASE_DELAY = 0.5
RESEND_RETRY_MAX_DELAY = 4.0
RESEND_TIMEOUT_SECONDS = 20.0


class EmailDeliveryError(Exception):
    """Provider rejected the message or could not be reached."""

    pass


async def send_email(*, to_email: str, subject: str, html_body: str, text: str) -> str | None:
    """
    Send one email and return the provider message id.

    Raises:
        EmailDeliveryError: Non-2xx response after retries
    """
    if settings.email_dry_run:
        logger.info("Email dry run to=%s subject=%s", mask_email(to_email), subject)
        return None

    payload = {
        "from": settings.EMAIL_FROM,
        "to": [to_email],
        "subject": subject,
        "html": html_body,
        "text": text,
    }
    headers = {
        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
        "Content-Type": "application/json",
    }

    async with httpx.AsyncClient(timeout=RESEND_TIMEOUT_SECONDS) as client:

        async def request_fn() -> httpx.Response:
            return await client.post(RESEND_SEND_URL, headers=headers, json=payload)

        response = await request_with_retries(
            request_fn,
            max_attempts=RESEND_MAX_ATTEMPTS,
            base_delay=RESEND_RETRY_BASE_DELAY,
            max_delay=RESEND_RETRY_MAX_DELAY,
            retry_statuses=DEFAULT_RETRY_STATUSES,
        )

    if 200 <= response.status_code < 300:
        return response.json().get("id")
    raise EmailDeliveryError(f"Resend API error: {response.status_code}")


def _session_url(session_id: UUID | str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/sessions/{session_id}"


async def send_note_added_email(
    *,
    to_email: str,
    recipient_name: str | None,
    author_name: str,
    session_id: UUID | str,
    is_private: bool,
) -> str | None:
    """Tell a participant that a note was added. Note content is never included."""
    greeting = f"Hi {recipient_name}," if recipient_name else "Hi,"
    kind = "a private note" if is_private else "a note"
    url = _session_url(session_id)
    subject = f"New note on your {settings.APP_NAME} session"
    text = f"{greeting}\n\n{author_name} added {kind} to a counseling session.\n\nView it: {url}\n"
    html_body = (
        f"<p>{html.escape(greeting)}</p>"
        f"<p>{html.escape(author_name)} added {kind} to a counseling session.</p>"
        f'<p><a href="{html.escape(url)}">View session</a></p>'
    )
    return await send_email(to_email=to_email, subject=subject, html_body=html_body, text=text)


async def send_assignment_email(
    *,
    to_email: str,
    recipient_name: str | None,
    counselor_name: str,
    member_name: str,
    organization_name: str,
    is_for_member: bool,
) -> str | None:
    """Tell a member or a counselor about a new counselor assignment."""
    greeting = f"Hi {recipient_name}," if recipient_name else "Hi,"
    if is_for_member:
        subject = "You have been assigned a counselor"
        line = f"{counselor_name} from {organization_name} is now your counselor."
    else:
        subject = "New member assigned to you"
        line = f"{member_name} from {organization_name} has been assigned to you."
    text = f"{greeting}\n\n{line}\n"
    html_body = f"<p>{html.escape(greeting)}</p><p>{html.escape(line)}</p>"
    return await send_email(to_email=to_email, subject=subject, html_body=html_body, text=text)
