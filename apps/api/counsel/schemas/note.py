"""Pydantic schemas for session notes."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class NoteCreate(BaseModel):
    """Request to add a note to a session."""

    content: str = Field(..., min_length=1, max_length=20000)
    is_private: bool = False


class NoteUpdate(BaseModel):
    """Partial update. Omitted fields are left unchanged."""

    content: str | None = Field(default=None, min_length=1, max_length=20000)
    is_private: bool | None = None


class NoteRead(BaseModel):
    """Note response."""

    id: UUID
    session_id: UUID
    author_id: UUID
    author_name: str
    author_role: str
    content: str
    is_private: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
