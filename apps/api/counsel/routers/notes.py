"""Notes router - edit and soft-delete session notes (author only)."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from counsel.core.deps import get_current_session, get_db, require_csrf_header
from counsel.core.session_access import NoteNotFoundError, PermissionDeniedError
from counsel.schemas.auth import UserSession
from counsel.schemas.note import NoteRead, NoteUpdate
from counsel.services import note_service
from counsel.services.note_service import NoteValidationError

router = APIRouter(dependencies=[Depends(require_csrf_header)])


@router.patch("/notes/{note_id}", response_model=NoteRead)
def update_note(
    note_id: UUID,
    data: NoteUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Update note content or privacy."""
    try:
        note = note_service.update_note(
            db=db,
            note_id=note_id,
            actor_id=session.user_id,
            org_id=session.org_id,
            content=data.content,
            is_private=data.is_private,
        )
    except NoteNotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=e.reason)
    except NoteValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return note_service.to_note_read(note)


@router.delete("/notes/{note_id}", status_code=204)
def delete_note(
    note_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Soft-delete a note."""
    try:
        note_service.delete_note(db, note_id, session.user_id)
    except NoteNotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=e.reason)
    return None
