"""Pydantic schemas for counselor assignments and coverage grants."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class AssignmentCreate(BaseModel):
    counselor_id: UUID
    member_id: UUID


class AssignmentRead(BaseModel):
    id: UUID
    counselor_id: UUID
    member_id: UUID
    organization_id: UUID
    assigned_by: UUID | None = None
    status: str
    assigned_at: datetime
    ended_at: datetime | None = None

    model_config = {"from_attributes": True}


class CounselorWorkload(BaseModel):
    counselor_id: UUID
    display_name: str
    caseload_count: int


class CoverageGrantCreate(BaseModel):
    """Primary counselor is the caller."""

    backup_counselor_id: UUID
    member_id: UUID
    expires_at: datetime | None = None


class CoverageGrantRead(BaseModel):
    id: UUID
    primary_counselor_id: UUID
    backup_counselor_id: UUID
    member_id: UUID
    created_at: datetime
    expires_at: datetime | None = None
    revoked_at: datetime | None = None

    model_config = {"from_attributes": True}
