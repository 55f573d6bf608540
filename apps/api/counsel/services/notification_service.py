"""Notification dispatch - hands note and assignment emails to the job queue.

Dispatch runs after the primary write has committed. Failures here are logged
and never propagate to the caller: a note or assignment is never rolled back
because an email could not be queued.
"""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from counsel.core.structured_logging import build_log_context
from counsel.db.enums import JobType
from counsel.db.models import (
    CounselorAssignment,
    CounselSession,
    Organization,
    SessionNote,
    User,
)
from counsel.services import assignment_service, job_service, share_service

logger = logging.getLogger(__name__)

# One best-effort attempt per recipient
NOTIFICATION_MAX_ATTEMPTS = 1


def get_note_recipient_ids(
    db: Session,
    note: SessionNote,
    session: CounselSession,
    org_id: UUID | None,
) -> list[UUID]:
    """
    Users to notify about a new note.

    - Owner: when anyone else adds a note (private or not)
    - Active assigned counselors: only when the owner adds a note
    - Share redeemers: when anyone else adds a non-private note
    """
    recipients: list[UUID] = []
    owner_id = session.user_id

    def add(user_id: UUID) -> None:
        if user_id != note.author_id and user_id not in recipients:
            recipients.append(user_id)

    if owner_id is not None:
        if owner_id != note.author_id:
            add(owner_id)
        elif org_id:
            for counselor_id in assignment_service.list_active_counselor_ids(db, owner_id, org_id):
                add(counselor_id)

    if not note.is_private:
        for user_id in share_service.list_share_redeemer_ids(db, session.id):
            add(user_id)

    return recipients


def notify_note_added(
    db: Session,
    note: SessionNote,
    session: CounselSession,
    org_id: UUID | None,
) -> int:
    """Queue one note_added_email job per recipient. Returns the number queued."""
    try:
        recipient_ids = get_note_recipient_ids(db, note, session, org_id)
        if not recipient_ids:
            return 0

        users = db.query(User).filter(User.id.in_(recipient_ids), User.is_active.is_(True)).all()
        for user in users:
            job_service.schedule_job(
                db,
                org_id=org_id,
                job_type=JobType.NOTE_ADDED_EMAIL,
                payload={
                    "recipient_id": str(user.id),
                    "recipient_email": user.email,
                    "recipient_name": user.first_name,
                    "author_name": note.author_name,
                    "session_id": str(session.id),
                    "note_id": str(note.id),
                    "is_private": note.is_private,
                },
                max_attempts=NOTIFICATION_MAX_ATTEMPTS,
                commit=False,
            )
        db.commit()
        return len(users)
    except Exception:
        db.rollback()
        logger.exception(
            "Failed to queue note added notifications",
            extra=build_log_context(session_id=session.id, note_id=note.id, org_id=org_id),
        )
        return 0


def notify_assignment_created(db: Session, assignment: CounselorAssignment) -> int:
    """Queue assignment emails for the member and the counselor."""
    try:
        counselor = db.get(User, assignment.counselor_id)
        member = db.get(User, assignment.member_id)
        org = db.get(Organization, assignment.organization_id)
        if not counselor or not member or not org:
            return 0

        base = {
            "assignment_id": str(assignment.id),
            "counselor_name": counselor.display_name,
            "member_name": member.display_name,
            "organization_name": org.name,
        }
        for recipient, is_for_member in ((member, True), (counselor, False)):
            job_service.schedule_job(
                db,
                org_id=org.id,
                job_type=JobType.ASSIGNMENT_EMAIL,
                payload={
                    **base,
                    "recipient_id": str(recipient.id),
                    "recipient_email": recipient.email,
                    "recipient_name": recipient.first_name,
                    "is_for_member": is_for_member,
                },
                max_attempts=NOTIFICATION_MAX_ATTEMPTS,
                commit=False,
            )
        db.commit()
        return 2
    except Exception:
        db.rollback()
        logger.exception(
            "Failed to queue assignment notifications",
            extra=build_log_context(org_id=assignment.organization_id),
        )
        return 0

