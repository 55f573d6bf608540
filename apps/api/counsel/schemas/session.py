"""Pydantic schemas for counseling session access and export."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from counsel.schemas.note import NoteRead


class SessionAccessRead(BaseModel):
    """What the current user may do on a session."""

    session_id: UUID
    can_access: bool
    author_role: str
    can_make_private: bool


class MessageRead(BaseModel):
    id: UUID
    role: str
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class SessionExport(BaseModel):
    id: UUID
    title: str
    status: str
    created_at: datetime
    owner_name: str | None = None
    messages: list[MessageRead]
    notes: list[NoteRead]
