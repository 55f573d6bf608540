"""Session access control - centralized permission checks for sessions and notes.

Every capability follows the same order of escape hatches:
- Owner: the member who owns the session (notes still need a subscription)
- Share: an unexpired share link addressed to the actor or to anyone
- Counselor: assigned or coverage relationship to the session's member
- Subscription: subscribed users fall through to viewer access

Private notes add one rule on top: coverage counselors never create, flip or
read other parties' private notes. Only assigned counselors may.

Checks named check_* raise; can_* return booleans. Actor and organization
are always passed explicitly.
"""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from counsel.core.structured_logging import build_log_context
from counsel.db.enums import NoteAuthorRole
from counsel.db.models import CounselSession, SessionNote
from counsel.services import assignment_service, share_service, subscription_service
from counsel.services.assignment_service import NO_COUNSELOR_ROLE, CounselorRole

logger = logging.getLogger(__name__)


# Stable user-facing reasons
SUBSCRIPTION_REQUIRED = "Session notes are only available to subscribed users"
COVERAGE_PRIVATE_FORBIDDEN = "Coverage counselors cannot create private notes"
NOTE_WRITE_ACCESS_REQUIRED = (
    "Session notes are only available to subscribed users or via shared access "
    "with note permissions"
)
NOTE_READ_ACCESS_REQUIRED = (
    "Session notes are only available to subscribed users or via shared access"
)
ASSIGNED_COUNSELOR_REQUIRED = "Only assigned counselors can create private notes"
NOT_NOTE_AUTHOR_EDIT = "You can only edit your own notes"
NOT_NOTE_AUTHOR_DELETE = "You can only delete your own notes"
SESSION_ACCESS_DENIED = "You do not have access to this session"


class AccessError(Exception):
    """Base exception for session access errors."""

    code = "access_error"


class SessionNotFoundError(AccessError):
    code = "session_not_found"

    def __init__(self, message: str = "Session not found"):
        super().__init__(message)


class NoteNotFoundError(AccessError):
    code = "note_not_found"

    def __init__(self, message: str = "Note not found"):
        super().__init__(message)


class PermissionDeniedError(AccessError):
    """
    Access denied. reason is shown to users; code is stable for clients.

    Codes: subscription_required, share_or_subscription_required,
    coverage_private_forbidden, assigned_counselor_required,
    not_note_author, session_access_denied.
    """

    def __init__(self, reason: str, code: str = "permission_denied"):
        super().__init__(reason)
        self.reason = reason
        self.code = code


def deny(actor_id: UUID, session_id: UUID | None, reason: str, code: str) -> PermissionDeniedError:
    logger.info(
        "Session access denied: %s",
        code,
        extra=build_log_context(user_id=actor_id, session_id=session_id, code=code),
    )
    return PermissionDeniedError(reason, code)


def get_session(db: Session, session_id: UUID) -> CounselSession | None:
    return db.query(CounselSession).filter(CounselSession.id == session_id).first()


def _require_session(db: Session, session_id: UUID) -> CounselSession:
    session = get_session(db, session_id)
    if not session:
        raise SessionNotFoundError()
    return session


def _role_for(
    db: Session,
    actor_id: UUID,
    session: CounselSession,
    org_id: UUID | None,
) -> CounselorRole:
    """Counselor relationship to the session's member (none for anonymous sessions)."""
    if session.user_id is None:
        return NO_COUNSELOR_ROLE
    return assignment_service.resolve_role(db, actor_id, session.user_id, org_id)


# =============================================================================
# Session-level access
# =============================================================================

def can_access_session(
    db: Session,
    actor_id: UUID,
    session_id: UUID,
    org_id: UUID | None = None,
) -> bool:
    """
    Coarse gate for reading a session.

    Owner, any share, or any counselor role. Without org_id only coverage
    grants can satisfy the counselor check (assignments are org-scoped).
    Missing session returns False.
    """
    session = get_session(db, session_id)
    if not session:
        return False
    if session.user_id is not None and session.user_id == actor_id:
        return True
    if share_service.resolve_share(db, actor_id, session_id).has_access:
        return True
    return _role_for(db, actor_id, session, org_id).has_access


def check_can_create_note(
    db: Session,
    actor_id: UUID,
    session_id: UUID,
    org_id: UUID | None,
    is_private: bool = False,
) -> None:
    """
    Raise unless the actor may add a note to the session.

    Raises:
        SessionNotFoundError: Session does not exist
        PermissionDeniedError: No owner/share/counselor/subscription path
    """
    session = _require_session(db, session_id)

    if session.user_id is not None and session.user_id == actor_id:
        if not subscription_service.has_history_access(db, actor_id):
            raise deny(actor_id, session_id, SUBSCRIPTION_REQUIRED, "subscription_required")
        return

    if share_service.resolve_share(db, actor_id, session_id).has_write_share:
        if is_private and _role_for(db, actor_id, session, org_id).is_coverage:
            raise deny(
                actor_id, session_id, COVERAGE_PRIVATE_FORBIDDEN, "coverage_private_forbidden"
            )
        return

    role = _role_for(db, actor_id, session, org_id)
    if role.is_coverage and is_private:
        raise deny(
            actor_id, session_id, COVERAGE_PRIVATE_FORBIDDEN, "coverage_private_forbidden"
        )
    if role.has_access:
        return

    if not subscription_service.has_history_access(db, actor_id):
        raise deny(
            actor_id, session_id, NOTE_WRITE_ACCESS_REQUIRED, "share_or_subscription_required"
        )


def check_can_access_notes(
    db: Session,
    actor_id: UUID,
    session_id: UUID,
    org_id: UUID | None,
) -> None:
    """
    Raise unless the actor may read the session's note list.

    Per-note privacy filtering happens separately in can_view_note().
    """
    session = _require_session(db, session_id)

    if session.user_id is not None and session.user_id == actor_id:
        if not subscription_service.has_history_access(db, actor_id):
            raise deny(actor_id, session_id, SUBSCRIPTION_REQUIRED, "subscription_required")
        return

    if share_service.resolve_share(db, actor_id, session_id).has_access:
        return

    if _role_for(db, actor_id, session, org_id).has_access:
        return

    if not subscription_service.has_history_access(db, actor_id):
        raise deny(
            actor_id, session_id, NOTE_READ_ACCESS_REQUIRED, "share_or_subscription_required"
        )


# =============================================================================
# Note-level access
# =============================================================================

def can_view_note(
    db: Session,
    actor_id: UUID,
    note: SessionNote,
    session_id: UUID,
    org_id: UUID | None,
) -> bool:
    """
    Privacy filter for a single note.

    Public notes are visible to anyone who passed check_can_access_notes.
    Private notes: author, the session owner for counselor-authored notes,
    and assigned counselors. Coverage counselors see only their own.
    """
    if not note.is_private:
        return True
    if note.author_id == actor_id:
        return True

    session = get_session(db, session_id)
    if not session:
        return False
    if (
        note.author_role == NoteAuthorRole.COUNSELOR.value
        and session.user_id is not None
        and session.user_id == actor_id
    ):
        return True
    return _role_for(db, actor_id, session, org_id).is_assigned


def get_live_note(db: Session, note_id: UUID) -> SessionNote:
    """Note by id, raising NoteNotFoundError when missing or soft-deleted."""
    note = db.query(SessionNote).filter(
        SessionNote.id == note_id,
        SessionNote.deleted_at.is_(None),
    ).first()
    if not note:
        raise NoteNotFoundError()
    return note


def check_can_edit_note(db: Session, actor_id: UUID, note_id: UUID) -> SessionNote:
    """Return the note if the actor authored it."""
    note = get_live_note(db, note_id)
    if note.author_id != actor_id:
        raise deny(actor_id, note.session_id, NOT_NOTE_AUTHOR_EDIT, "not_note_author")
    return note


def check_can_delete_note(db: Session, actor_id: UUID, note_id: UUID) -> SessionNote:
    """Return the note if the actor authored it."""
    note = get_live_note(db, note_id)
    if note.author_id != actor_id:
        raise deny(actor_id, note.session_id, NOT_NOTE_AUTHOR_DELETE, "not_note_author")
    return note


def can_make_note_private(
    db: Session,
    actor_id: UUID,
    session_id: UUID,
    org_id: UUID | None,
) -> bool:
    """Only assigned counselors may make notes private on a member's session."""
    session = get_session(db, session_id)
    if not session or session.user_id is None:
        return True
    return _role_for(db, actor_id, session, org_id).is_assigned


def determine_author_role(
    db: Session,
    actor_id: UUID,
    session_id: UUID,
    org_id: UUID | None,
) -> NoteAuthorRole:
    """Label stored on a note at creation: user, counselor or viewer."""
    session = get_session(db, session_id)
    if not session:
        return NoteAuthorRole.VIEWER
    if session.user_id is not None and session.user_id == actor_id:
        return NoteAuthorRole.USER
    if _role_for(db, actor_id, session, org_id).has_access:
        return NoteAuthorRole.COUNSELOR
    return NoteAuthorRole.VIEWER
