"""Coverage grant service - temporary backup counselors for a member.

A grant lets a backup counselor act for the primary counselor on one member.
Grants are not organization-scoped. A grant is live while it has not been
revoked and has not expired; revocation keeps the row.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from counsel.db.models import CounselorCoverageGrant, User

logger = logging.getLogger(__name__)


class CoverageServiceError(Exception):
    """Base exception for coverage grant errors."""

    pass


class CoverageGrantNotFoundError(CoverageServiceError):
    """Coverage grant not found (or already revoked)."""

    pass


class CoverageValidationError(CoverageServiceError):
    """Grant request is invalid."""

    pass


class CoverageForbiddenError(CoverageServiceError):
    """Caller is not the member's assigned counselor, or did not issue the grant."""

    pass


def _live_filters(now: datetime):
    return (
        CounselorCoverageGrant.revoked_at.is_(None),
        or_(
            CounselorCoverageGrant.expires_at.is_(None),
            CounselorCoverageGrant.expires_at > now,
        ),
    )


def find_live_coverage_grant(
    db: Session,
    backup_counselor_id: UUID,
    member_id: UUID,
) -> CounselorCoverageGrant | None:
    """Return a live grant naming the counselor as backup for the member."""
    now = datetime.now(timezone.utc)
    return (
        db.query(CounselorCoverageGrant)
        .filter(
            CounselorCoverageGrant.backup_counselor_id == backup_counselor_id,
            CounselorCoverageGrant.member_id == member_id,
            *_live_filters(now),
        )
        .order_by(CounselorCoverageGrant.created_at)
        .first()
    )


def create_coverage_grant(
    db: Session,
    primary_counselor_id: UUID,
    backup_counselor_id: UUID,
    member_id: UUID,
    org_id: UUID | None,
    expires_at: datetime | None = None,
) -> CounselorCoverageGrant:
    """
    Create a coverage grant from the primary counselor to a backup.

    The primary counselor must hold an active assignment to the member in
    org_id; a grant can only hand over access the primary already has.

    Raises:
        CoverageValidationError: Bad ids, past expiry or unknown backup
        CoverageForbiddenError: Primary is not assigned to the member
    """
    # Import here to avoid circular imports
    from counsel.services import assignment_service

    if primary_counselor_id == backup_counselor_id:
        raise CoverageValidationError("Backup counselor must differ from the primary counselor")
    if member_id in (primary_counselor_id, backup_counselor_id):
        raise CoverageValidationError("A counselor cannot cover themselves")
    if expires_at is not None:
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at <= datetime.now(timezone.utc):
            raise CoverageValidationError("Expiry must be in the future")

    if not assignment_service.get_active_assignment(db, primary_counselor_id, member_id, org_id):
        logger.info(
            "Coverage grant refused: counselor %s is not assigned to member %s",
            primary_counselor_id,
            member_id,
        )
        raise CoverageForbiddenError("Only the assigned counselor can grant coverage for this member")

    backup = db.query(User).filter(User.id == backup_counselor_id, User.is_active.is_(True)).first()
    if not backup:
        raise CoverageValidationError("Backup counselor not found")

    grant = CounselorCoverageGrant(
        primary_counselor_id=primary_counselor_id,
        backup_counselor_id=backup_counselor_id,
        member_id=member_id,
        expires_at=expires_at,
    )
    db.add(grant)
    db.commit()
    db.refresh(grant)
    logger.info(
        "Coverage grant %s created for member %s (backup %s)",
        grant.id,
        member_id,
        backup_counselor_id,
    )
    return grant


def revoke_coverage_grant(db: Session, grant_id: UUID, actor_id: UUID) -> CounselorCoverageGrant:
    """Revoke a grant. Only the primary counselor who issued it may revoke."""
    grant = (
        db.query(CounselorCoverageGrant)
        .filter(
            CounselorCoverageGrant.id == grant_id,
            CounselorCoverageGrant.revoked_at.is_(None),
        )
        .first()
    )
    if not grant:
        raise CoverageGrantNotFoundError("Coverage grant not found")
    if grant.primary_counselor_id != actor_id:
        raise CoverageForbiddenError("Only the primary counselor can revoke this grant")

    grant.revoked_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(grant)
    logger.info("Coverage grant %s revoked", grant.id)
    return grant


def list_member_grants(
    db: Session,
    member_id: UUID,
    include_inactive: bool = False,
) -> list[CounselorCoverageGrant]:
    """List coverage grants for a member, newest first."""
    query = db.query(CounselorCoverageGrant).filter(
        CounselorCoverageGrant.member_id == member_id
    )
    if not include_inactive:
        query = query.filter(*_live_filters(datetime.now(timezone.utc)))
    return query.order_by(CounselorCoverageGrant.created_at.desc()).all()
