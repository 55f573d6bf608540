"""Note notification job handlers."""

from __future__ import annotations

import logging

from counsel.jobs.utils import mask_email
from counsel.services import email_service

logger = logging.getLogger(__name__)


async def process_note_added_email(db, job) -> None:
    """Email one participant that a note was added to a session."""
    payload = job.payload or {}
    to_email = payload.get("recipient_email")
    session_id = payload.get("session_id")
    if not to_email or not session_id:
        raise ValueError("Missing recipient_email or session_id in job payload")

    message_id = await email_service.send_note_added_email(
        to_email=to_email,
        recipient_name=payload.get("recipient_name"),
        author_name=payload.get("author_name") or "Someone",
        session_id=session_id,
        is_private=bool(payload.get("is_private")),
    )
    logger.info(
        "Note added email sent: job=%s recipient=%s message_id=%s",
        job.id,
        mask_email(to_email),
        message_id,
    )
