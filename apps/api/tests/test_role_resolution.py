"""Tests for counselor role resolution (assigned / coverage / none)."""

from counsel.db.enums import AssignmentStatus, CounselorRelationship, Role
from counsel.services import assignment_service

from conftest import assign, create_user, grant_coverage, utc_in


def test_assigned_counselor_resolves_assigned(db, test_org, member, assigned_counselor):
    role = assignment_service.resolve_role(db, assigned_counselor.id, member.id, test_org.id)

    assert role.relationship == CounselorRelationship.ASSIGNED
    assert role.is_assigned
    assert not role.is_coverage
    assert role.has_access
    assert role.role == "assigned"


def test_coverage_counselor_resolves_coverage(db, test_org, member, coverage_counselor):
    role = assignment_service.resolve_role(db, coverage_counselor.id, member.id, test_org.id)

    assert role.relationship == CounselorRelationship.COVERAGE
    assert role.is_coverage
    assert not role.is_assigned
    assert role.has_access
    assert role.role == "coverage"


def test_unrelated_actor_resolves_none(db, test_org, member, outsider):
    role = assignment_service.resolve_role(db, outsider.id, member.id, test_org.id)

    assert role.relationship == CounselorRelationship.NONE
    assert not role.has_access
    assert role.role == "none"


def test_assignment_takes_precedence_over_coverage(db, test_org, member, assigned_counselor):
    other_primary = create_user(db, test_org, Role.COUNSELOR)
    grant_coverage(db, other_primary, assigned_counselor, member)

    role = assignment_service.resolve_role(db, assigned_counselor.id, member.id, test_org.id)

    assert role.role == "assigned"
    assert not role.is_coverage


def test_expired_grant_is_ignored(db, test_org, member, assigned_counselor):
    backup = create_user(db, test_org, Role.COUNSELOR)
    grant_coverage(db, assigned_counselor, backup, member, expires_at=utc_in(hours=-1))

    role = assignment_service.resolve_role(db, backup.id, member.id, test_org.id)

    assert role.role == "none"


def test_revoked_grant_is_ignored(db, test_org, member, assigned_counselor):
    backup = create_user(db, test_org, Role.COUNSELOR)
    grant_coverage(db, assigned_counselor, backup, member, revoked_at=utc_in(minutes=-5))

    role = assignment_service.resolve_role(db, backup.id, member.id, test_org.id)

    assert role.role == "none"


def test_grant_with_future_expiry_is_live(db, test_org, member, assigned_counselor):
    backup = create_user(db, test_org, Role.COUNSELOR)
    grant_coverage(db, assigned_counselor, backup, member, expires_at=utc_in(days=3))

    role = assignment_service.resolve_role(db, backup.id, member.id, test_org.id)

    assert role.role == "coverage"


def test_missing_org_skips_assignment_lookup(db, member, assigned_counselor):
    role = assignment_service.resolve_role(db, assigned_counselor.id, member.id, None)

    assert role.role == "none"


def test_missing_org_still_checks_coverage(db, member, coverage_counselor):
    role = assignment_service.resolve_role(db, coverage_counselor.id, member.id, None)

    assert role.role == "coverage"


def test_assignment_is_org_scoped(db, test_org, other_org, member):
    counselor = create_user(db, other_org, Role.COUNSELOR)
    assign(db, counselor, member, other_org)

    assert assignment_service.resolve_role(db, counselor.id, member.id, test_org.id).role == "none"
    assert assignment_service.resolve_role(db, counselor.id, member.id, other_org.id).role == "assigned"


def test_inactive_assignment_does_not_count(db, test_org, member):
    counselor = create_user(db, test_org, Role.COUNSELOR)
    assignment = assign(db, counselor, member, test_org)
    assignment.status = AssignmentStatus.INACTIVE.value
    db.commit()

    role = assignment_service.resolve_role(db, counselor.id, member.id, test_org.id)

    assert role.role == "none"
