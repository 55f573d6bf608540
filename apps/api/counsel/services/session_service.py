"""Session service - session lookup, access summary and export."""

from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from counsel.core import session_access
from counsel.core.session_access import PermissionDeniedError, SessionNotFoundError
from counsel.db.models import CounselSession, SessionNote
from counsel.schemas.session import MessageRead, SessionAccessRead, SessionExport
from counsel.services import note_service


def get_session_with_messages(db: Session, session_id: UUID) -> CounselSession | None:
    return (
        db.query(CounselSession)
        .options(selectinload(CounselSession.messages), selectinload(CounselSession.user))
        .filter(CounselSession.id == session_id)
        .first()
    )


def get_access_summary(
    db: Session,
    session_id: UUID,
    actor_id: UUID,
    org_id: UUID | None,
) -> SessionAccessRead:
    """What the actor may do on a session, for UI gating."""
    if not session_access.get_session(db, session_id):
        raise SessionNotFoundError()
    return SessionAccessRead(
        session_id=session_id,
        can_access=session_access.can_access_session(db, actor_id, session_id, org_id),
        author_role=session_access.determine_author_role(db, actor_id, session_id, org_id).value,
        can_make_private=session_access.can_make_note_private(db, actor_id, session_id, org_id),
    )


def export_session(
    db: Session,
    session_id: UUID,
    actor_id: UUID,
    org_id: UUID | None,
) -> SessionExport:
    """
    Export a session with its messages and the notes visible to the actor.

    Raises:
        SessionNotFoundError: Session does not exist
        PermissionDeniedError: Actor has no owner/share/counselor access
    """
    session = get_session_with_messages(db, session_id)
    if not session:
        raise SessionNotFoundError()
    if not session_access.can_access_session(db, actor_id, session_id, org_id):
        raise PermissionDeniedError(
            session_access.SESSION_ACCESS_DENIED, "session_access_denied"
        )

    notes = db.query(SessionNote).filter(
        SessionNote.session_id == session_id,
        SessionNote.deleted_at.is_(None),
    ).order_by(SessionNote.created_at).all()
    visible = [
        note for note in notes
        if session_access.can_view_note(db, actor_id, note, session_id, org_id)
    ]

    return SessionExport(
        id=session.id,
        title=session.title,
        status=session.status,
        created_at=session.created_at,
        owner_name=session.user.display_name if session.user else None,
        messages=[MessageRead.model_validate(m) for m in session.messages],
        notes=[note_service.to_note_read(n) for n in visible],
    )
