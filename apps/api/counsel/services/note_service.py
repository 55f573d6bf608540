"""Note service - session notes guarded by the session access engine.

Notes are soft-deleted only. Author id, display name and role label are
fixed at creation.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

import nh3
from sqlalchemy.orm import Session

from counsel.core import session_access
from counsel.core.config import settings
from counsel.db.models import SessionNote, User
from counsel.schemas.note import NoteRead
from counsel.services import notification_service

logger = logging.getLogger(__name__)

# Allowed HTML tags for rich text notes
ALLOWED_TAGS = {"p", "br", "strong", "em", "ul", "ol", "li", "a", "blockquote", "h1", "h2", "h3", "code", "pre"}
ALLOWED_ATTRIBUTES = {"a": {"href", "target"}}


class NoteValidationError(Exception):
    """Note content is empty or too long."""

    pass


def sanitize_html(html: str) -> str:
    """Sanitize HTML to prevent XSS, allowing only safe rich text tags."""
    return nh3.clean(html, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES)


def _clean_content(content: str) -> str:
    clean = sanitize_html(content).strip()
    if not clean:
        raise NoteValidationError("Note content cannot be empty")
    if len(clean) > settings.NOTE_MAX_LENGTH:
        raise NoteValidationError(
            f"Note content exceeds {settings.NOTE_MAX_LENGTH} characters"
        )
    return clean


def create_note(
    db: Session,
    session_id: UUID,
    author_id: UUID,
    org_id: UUID | None,
    content: str,
    is_private: bool = False,
) -> SessionNote:
    """
    Create a note on a session.

    Notification jobs are queued after the note is committed; a failure to
    queue them is logged and does not affect the note.
    """
    session_access.check_can_create_note(db, author_id, session_id, org_id, is_private)
    clean_content = _clean_content(content)

    author = db.get(User, author_id)
    author_role = session_access.determine_author_role(db, author_id, session_id, org_id)

    note = SessionNote(
        session_id=session_id,
        author_id=author_id,
        author_name=author.display_name if author else "Anonymous",
        author_role=author_role.value,
        content=clean_content,
        is_private=is_private,
    )
    db.add(note)
    db.commit()
    db.refresh(note)

    logger.info("Note %s created on session %s (role=%s)", note.id, session_id, author_role.value)

    session = session_access.get_session(db, session_id)
    notification_service.notify_note_added(db, note, session, org_id)
    return note


def list_notes(
    db: Session,
    session_id: UUID,
    actor_id: UUID,
    org_id: UUID | None,
) -> list[SessionNote]:
    """List live notes the actor may see, oldest first."""
    session_access.check_can_access_notes(db, actor_id, session_id, org_id)

    notes = db.query(SessionNote).filter(
        SessionNote.session_id == session_id,
        SessionNote.deleted_at.is_(None),
    ).order_by(SessionNote.created_at).all()

    return [
        note for note in notes
        if session_access.can_view_note(db, actor_id, note, session_id, org_id)
    ]


def update_note(
    db: Session,
    note_id: UUID,
    actor_id: UUID,
    org_id: UUID | None,
    content: str | None = None,
    is_private: bool | None = None,
) -> SessionNote:
    """
    Update a note's content and/or privacy. Author only.

    Making a public note private re-checks the actor's counselor standing;
    other edits do not.
    """
    note = session_access.check_can_edit_note(db, actor_id, note_id)

    if is_private is True and not note.is_private:
        if not session_access.can_make_note_private(db, actor_id, note.session_id, org_id):
            raise session_access.deny(
                actor_id,
                note.session_id,
                session_access.ASSIGNED_COUNSELOR_REQUIRED,
                "assigned_counselor_required",
            )

    if content is not None:
        note.content = _clean_content(content)
    if is_private is not None:
        note.is_private = is_private

    db.commit()
    db.refresh(note)
    return note


def delete_note(db: Session, note_id: UUID, actor_id: UUID) -> SessionNote:
    """Soft-delete a note. Deleting again raises NoteNotFoundError."""
    note = session_access.check_can_delete_note(db, actor_id, note_id)
    note.deleted_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(note)
    logger.info("Note %s deleted", note.id)
    return note


def to_note_read(note: SessionNote) -> NoteRead:
    """Convert SessionNote model to NoteRead schema."""
    return NoteRead(
        id=note.id,
        session_id=note.session_id,
        author_id=note.author_id,
        author_name=note.author_name,
        author_role=note.author_role,
        content=note.content,
        is_private=note.is_private,
        created_at=note.created_at,
        updated_at=note.updated_at,
    )
