"""Counselor assignment job handlers."""

from __future__ import annotations

import logging

from counsel.jobs.utils import mask_email
from counsel.services import email_service

logger = logging.getLogger(__name__)


async def process_assignment_email(db, job) -> None:
    """Email the member or the counselor about a new assignment."""
    payload = job.payload or {}
    to_email = payload.get("recipient_email")
    if not to_email:
        raise ValueError("Missing recipient_email in job payload")

    message_id = await email_service.send_assignment_email(
        to_email=to_email,
        recipient_name=payload.get("recipient_name"),
        counselor_name=payload.get("counselor_name", ""),
        member_name=payload.get("member_name", ""),
        organization_name=payload.get("organization_name", ""),
        is_for_member=bool(payload.get("is_for_member")),
    )
    logger.info(
        "Assignment email sent: job=%s recipient=%s message_id=%s",
        job.id,
        mask_email(to_email),
        message_id,
    )
