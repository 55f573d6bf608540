"""Assignments router - counselor assignments (admin) and coverage grants (counselors)."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from counsel.core.deps import get_db, require_csrf_header, require_roles
from counsel.db.enums import AssignmentStatus, Role
from counsel.schemas.assignment import (
    AssignmentCreate,
    AssignmentRead,
    CounselorWorkload,
    CoverageGrantCreate,
    CoverageGrantRead,
)
from counsel.schemas.auth import UserSession
from counsel.services import assignment_service, coverage_service
from counsel.services.assignment_service import (
    AssignmentNotFoundError,
    AssignmentValidationError,
)
from counsel.services.coverage_service import (
    CoverageForbiddenError,
    CoverageGrantNotFoundError,
    CoverageValidationError,
)

router = APIRouter()

require_admin = require_roles([Role.ADMIN])
require_counselor = require_roles([Role.COUNSELOR])


# =============================================================================
# Assignments (admin)
# =============================================================================

@router.get("/assignments", response_model=list[AssignmentRead])
def list_assignments(
    status: AssignmentStatus | None = None,
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return assignment_service.list_organization_assignments(db, session.org_id, status=status)


@router.get("/assignments/workloads", response_model=list[CounselorWorkload])
def list_workloads(
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Active caseload per counselor."""
    return assignment_service.get_counselor_workloads(db, session.org_id)


@router.post(
    "/assignments",
    response_model=AssignmentRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_assignment(
    data: AssignmentCreate,
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Assign a counselor to a member, replacing any active assignment."""
    try:
        return assignment_service.create_assignment(
            db,
            org_id=session.org_id,
            counselor_id=data.counselor_id,
            member_id=data.member_id,
            assigned_by=session.user_id,
        )
    except AssignmentValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete(
    "/assignments/{assignment_id}",
    response_model=AssignmentRead,
    dependencies=[Depends(require_csrf_header)],
)
def end_assignment(
    assignment_id: UUID,
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return assignment_service.end_assignment(db, assignment_id, session.org_id)
    except AssignmentNotFoundError:
        raise HTTPException(status_code=404, detail="Assignment not found")


# =============================================================================
# Coverage grants (primary counselor is the caller)
# =============================================================================

@router.post(
    "/coverage-grants",
    response_model=CoverageGrantRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_coverage_grant(
    data: CoverageGrantCreate,
    session: UserSession = Depends(require_counselor),
    db: Session = Depends(get_db),
):
    try:
        return coverage_service.create_coverage_grant(
            db,
            primary_counselor_id=session.user_id,
            backup_counselor_id=data.backup_counselor_id,
            member_id=data.member_id,
            org_id=session.org_id,
            expires_at=data.expires_at,
        )
    except CoverageValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CoverageForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.delete(
    "/coverage-grants/{grant_id}",
    response_model=CoverageGrantRead,
    dependencies=[Depends(require_csrf_header)],
)
def revoke_coverage_grant(
    grant_id: UUID,
    session: UserSession = Depends(require_counselor),
    db: Session = Depends(get_db),
):
    try:
        return coverage_service.revoke_coverage_grant(db, grant_id, session.user_id)
    except CoverageGrantNotFoundError:
        raise HTTPException(status_code=404, detail="Coverage grant not found")
    except CoverageForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
