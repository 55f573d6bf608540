"""Counselor assignment service - role resolution and assignment lifecycle.

resolve_role() is the single place that decides how a counselor relates to a
member: assigned (active assignment in the organization), coverage (live
coverage grant, no assignment) or none. Every access decision consumes that
one tag instead of re-deriving it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from counsel.db.enums import AssignmentStatus, CounselorRelationship, Role
from counsel.db.models import CounselorAssignment, Membership, User
from counsel.services import coverage_service

logger = logging.getLogger(__name__)


class AssignmentServiceError(Exception):
    """Base exception for assignment service errors."""

    pass


class AssignmentValidationError(AssignmentServiceError):
    """Counselor or member is not eligible for the assignment."""

    pass


class AssignmentNotFoundError(AssignmentServiceError):
    """Assignment not found."""

    pass


# =============================================================================
# Role resolution
# =============================================================================

@dataclass(frozen=True)
class CounselorRole:
    """How an actor relates to a member as a counselor."""

    relationship: CounselorRelationship

    @property
    def is_assigned(self) -> bool:
        return self.relationship == CounselorRelationship.ASSIGNED

    @property
    def is_coverage(self) -> bool:
        return self.relationship == CounselorRelationship.COVERAGE

    @property
    def has_access(self) -> bool:
        return self.relationship != CounselorRelationship.NONE

    @property
    def role(self) -> str:
        return self.relationship.value


NO_COUNSELOR_ROLE = CounselorRole(CounselorRelationship.NONE)


def get_active_assignment(
    db: Session,
    counselor_id: UUID,
    member_id: UUID,
    org_id: UUID | None,
) -> CounselorAssignment | None:
    """Active assignment of counselor to member in org. No org means no assignment."""
    if not org_id:
        return None
    return (
        db.query(CounselorAssignment)
        .filter(
            CounselorAssignment.counselor_id == counselor_id,
            CounselorAssignment.member_id == member_id,
            CounselorAssignment.organization_id == org_id,
            CounselorAssignment.status == AssignmentStatus.ACTIVE.value,
        )
        .first()
    )


def resolve_role(
    db: Session,
    actor_id: UUID,
    member_id: UUID,
    org_id: UUID | None,
) -> CounselorRole:
    """
    Resolve the actor's counselor relationship to a member.

    Assigned takes precedence over coverage: a counselor holding both an
    active assignment and a live coverage grant resolves to assigned.
    Coverage grants are not organization-scoped.
    """
    if get_active_assignment(db, actor_id, member_id, org_id):
        return CounselorRole(CounselorRelationship.ASSIGNED)
    if coverage_service.find_live_coverage_grant(db, actor_id, member_id):
        return CounselorRole(CounselorRelationship.COVERAGE)
    return NO_COUNSELOR_ROLE


def list_active_counselor_ids(db: Session, member_id: UUID, org_id: UUID) -> list[UUID]:
    """Counselors with an active assignment to the member in the organization."""
    rows = (
        db.query(CounselorAssignment.counselor_id)
        .filter(
            CounselorAssignment.member_id == member_id,
            CounselorAssignment.organization_id == org_id,
            CounselorAssignment.status == AssignmentStatus.ACTIVE.value,
        )
        .all()
    )
    return [row[0] for row in rows]


# =============================================================================
# Assignment lifecycle
# =============================================================================

def _get_membership(db: Session, org_id: UUID, user_id: UUID) -> Membership | None:
    return db.query(Membership).filter(
        Membership.organization_id == org_id,
        Membership.user_id == user_id,
    ).first()


def create_assignment(
    db: Session,
    org_id: UUID,
    counselor_id: UUID,
    member_id: UUID,
    assigned_by: UUID | None,
) -> CounselorAssignment:
    """
    Assign a counselor to a member, replacing any active assignment.

    The previous active assignment (if any) is ended and flushed before the
    new row is inserted so the active-assignment unique index never sees two
    active rows. Both statements commit together.
    """
    counselor_membership = _get_membership(db, org_id, counselor_id)
    if not counselor_membership:
        raise AssignmentValidationError("Counselor is not a member of this organization")
    if counselor_membership.role != Role.COUNSELOR.value:
        raise AssignmentValidationError("User does not have Counselor role")

    if not _get_membership(db, org_id, member_id):
        raise AssignmentValidationError("Member is not part of this organization")

    existing = (
        db.query(CounselorAssignment)
        .filter(
            CounselorAssignment.member_id == member_id,
            CounselorAssignment.organization_id == org_id,
            CounselorAssignment.status == AssignmentStatus.ACTIVE.value,
        )
        .first()
    )
    if existing:
        existing.status = AssignmentStatus.INACTIVE.value
        existing.ended_at = datetime.now(timezone.utc)
        db.flush()

    assignment = CounselorAssignment(
        counselor_id=counselor_id,
        member_id=member_id,
        organization_id=org_id,
        assigned_by=assigned_by,
        status=AssignmentStatus.ACTIVE.value,
    )
    db.add(assignment)
    db.commit()
    db.refresh(assignment)

    logger.info(
        "Counselor assignment %s created (replaced=%s)",
        assignment.id,
        existing.id if existing else None,
    )

    # Import here to avoid circular imports
    from counsel.services import notification_service

    notification_service.notify_assignment_created(db, assignment)
    return assignment


def end_assignment(db: Session, assignment_id: UUID, org_id: UUID) -> CounselorAssignment:
    """End an assignment. Rows are kept for history."""
    assignment = db.query(CounselorAssignment).filter(
        CounselorAssignment.id == assignment_id,
        CounselorAssignment.organization_id == org_id,
    ).first()
    if not assignment:
        raise AssignmentNotFoundError("Assignment not found")

    if assignment.status == AssignmentStatus.ACTIVE.value:
        assignment.status = AssignmentStatus.INACTIVE.value
        assignment.ended_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(assignment)
    return assignment


def list_organization_assignments(
    db: Session,
    org_id: UUID,
    status: AssignmentStatus | None = None,
) -> list[CounselorAssignment]:
    """List assignments for an organization, newest first."""
    query = db.query(CounselorAssignment).options(
        joinedload(CounselorAssignment.counselor),
        joinedload(CounselorAssignment.member),
    ).filter(CounselorAssignment.organization_id == org_id)
    if status:
        query = query.filter(CounselorAssignment.status == status.value)
    return query.order_by(CounselorAssignment.assigned_at.desc()).all()


def list_counselor_members(db: Session, counselor_id: UUID, org_id: UUID) -> list[User]:
    """Members actively assigned to a counselor in an organization."""
    return (
        db.query(User)
        .join(CounselorAssignment, CounselorAssignment.member_id == User.id)
        .filter(
            CounselorAssignment.counselor_id == counselor_id,
            CounselorAssignment.organization_id == org_id,
            CounselorAssignment.status == AssignmentStatus.ACTIVE.value,
        )
        .order_by(User.last_name, User.first_name)
        .all()
    )


def get_counselor_workloads(db: Session, org_id: UUID) -> list[dict]:
    """Active caseload count for every counselor in the organization."""
    caseload = (
        db.query(
            CounselorAssignment.counselor_id,
            func.count(CounselorAssignment.id).label("active_count"),
        )
        .filter(
            CounselorAssignment.organization_id == org_id,
            CounselorAssignment.status == AssignmentStatus.ACTIVE.value,
        )
        .group_by(CounselorAssignment.counselor_id)
        .subquery()
    )
    rows = (
        db.query(User, func.coalesce(caseload.c.active_count, 0))
        .join(Membership, Membership.user_id == User.id)
        .outerjoin(caseload, caseload.c.counselor_id == User.id)
        .filter(
            Membership.organization_id == org_id,
            Membership.role == Role.COUNSELOR.value,
        )
        .order_by(User.last_name, User.first_name)
        .all()
    )
    return [
        {"counselor_id": user.id, "display_name": user.display_name, "caseload_count": count}
        for user, count in rows
    ]
