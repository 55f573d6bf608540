"""Pydantic schemas for session share links."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class ShareCreate(BaseModel):
    """Request to share a session."""

    session_id: UUID
    allow_notes_access: bool = False
    shared_with: EmailStr | None = None
    expires_in_days: int | None = Field(default=None, ge=1, le=365)


class ShareRead(BaseModel):
    id: UUID
    session_id: UUID
    share_token: str
    shared_with: str | None = None
    allow_notes_access: bool
    expires_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ShareRedeemRead(BaseModel):
    """Result of opening a share link."""

    share_id: UUID
    session_id: UUID
    session_title: str
    allow_notes_access: bool
    can_add_notes: bool
    expires_at: datetime | None = None


class AccessedShareRead(BaseModel):
    """A share the current user has opened."""

    share_id: UUID
    session_id: UUID
    session_title: str
    allow_notes_access: bool
    expires_at: datetime | None = None
    first_accessed_at: datetime
    last_accessed_at: datetime
