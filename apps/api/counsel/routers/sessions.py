"""Sessions router - access summary, export and session notes."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from counsel.core.deps import get_current_session, get_db, require_csrf_header
from counsel.core.session_access import PermissionDeniedError, SessionNotFoundError
from counsel.schemas.auth import UserSession
from counsel.schemas.note import NoteCreate, NoteRead
from counsel.schemas.session import SessionAccessRead, SessionExport
from counsel.services import note_service, session_service
from counsel.services.note_service import NoteValidationError

router = APIRouter()


@router.get("/sessions/{session_id}/access", response_model=SessionAccessRead)
def get_session_access(
    session_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """What the current user may do on a session."""
    try:
        return session_service.get_access_summary(db, session_id, session.user_id, session.org_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@router.get("/sessions/{session_id}/export", response_model=SessionExport)
def export_session(
    session_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Export a session with messages and the notes visible to the caller."""
    try:
        return session_service.export_session(db, session_id, session.user_id, session.org_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=e.reason)


@router.get("/sessions/{session_id}/notes", response_model=list[NoteRead])
def list_notes(
    session_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """List notes on a session (private notes filtered per caller)."""
    try:
        notes = note_service.list_notes(db, session_id, session.user_id, session.org_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=e.reason)
    return [note_service.to_note_read(n) for n in notes]


@router.post(
    "/sessions/{session_id}/notes",
    response_model=NoteRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_note(
    session_id: UUID,
    data: NoteCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Add a note to a session."""
    try:
        note = note_service.create_note(
            db=db,
            session_id=session_id,
            author_id=session.user_id,
            org_id=session.org_id,
            content=data.content,
            is_private=data.is_private,
        )
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=e.reason)
    except NoteValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return note_service.to_note_read(note)
