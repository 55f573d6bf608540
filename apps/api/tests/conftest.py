"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, schema created per test
- Organization / user / session factories
- JWT token minting for authenticated tests
- HTTPX AsyncClient over the ASGI app
"""
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Generator

# Must be set before counsel.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("RESEND_API_KEY", "")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from counsel.core.deps import CSRF_HEADER, CSRF_HEADER_VALUE, get_db
from counsel.core.security import create_session_token
from counsel.db.base import Base
from counsel.db.enums import Role, SubscriptionStatus
from counsel.db.models import (
    CounselorAssignment,
    CounselorCoverageGrant,
    CounselSession,
    Membership,
    Organization,
    SessionShare,
    SessionShareAccess,
    Subscription,
    User,
)
from counsel.db.session import SessionLocal, engine
from counsel.main import app


def utc_in(**kwargs) -> datetime:
    return datetime.now(timezone.utc) + timedelta(**kwargs)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema per test on the shared in-memory connection."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_org(db: Session) -> Organization:
    """Create a test organization."""
    org = Organization(
        id=uuid.uuid4(),
        name="Test Organization",
        slug=f"test-org-{uuid.uuid4().hex[:8]}",
    )
    db.add(org)
    db.commit()
    return org


@pytest.fixture(scope="function")
def other_org(db: Session) -> Organization:
    org = Organization(name="Other Organization", slug=f"other-org-{uuid.uuid4().hex[:8]}")
    db.add(org)
    db.commit()
    return org


# =============================================================================
# Factories
# =============================================================================

def create_user(
    db: Session,
    org: Organization | None,
    role: Role = Role.MEMBER,
    first_name: str = "Test",
    last_name: str = "User",
    subscribed: bool = False,
) -> User:
    """Create a user, optionally with a membership and an active subscription."""
    user = User(
        id=uuid.uuid4(),
        email=f"test-{uuid.uuid4().hex[:8]}@test.com",
        first_name=first_name,
        last_name=last_name,
    )
    db.add(user)
    db.flush()

    if org is not None:
        db.add(Membership(user_id=user.id, organization_id=org.id, role=role.value))
    if subscribed:
        db.add(Subscription(user_id=user.id, status=SubscriptionStatus.ACTIVE.value))
    db.commit()
    return user


def create_session(db: Session, owner: User | None, title: str = "Evening check-in") -> CounselSession:
    session = CounselSession(user_id=owner.id if owner else None, title=title)
    db.add(session)
    db.commit()
    return session


def assign(db: Session, counselor: User, member: User, org: Organization) -> CounselorAssignment:
    assignment = CounselorAssignment(
        counselor_id=counselor.id,
        member_id=member.id,
        organization_id=org.id,
    )
    db.add(assignment)
    db.commit()
    return assignment


def grant_coverage(
    db: Session,
    primary: User,
    backup: User,
    member: User,
    expires_at: datetime | None = None,
    revoked_at: datetime | None = None,
) -> CounselorCoverageGrant:
    grant = CounselorCoverageGrant(
        primary_counselor_id=primary.id,
        backup_counselor_id=backup.id,
        member_id=member.id,
        expires_at=expires_at,
        revoked_at=revoked_at,
    )
    db.add(grant)
    db.commit()
    return grant


def share_session(
    db: Session,
    session: CounselSession,
    shared_with: User | None = None,
    allow_notes_access: bool = False,
    expires_at: datetime | None = None,
    redeemed_by: User | None = None,
    created_at: datetime | None = None,
) -> SessionShare:
    share = SessionShare(
        session_id=session.id,
        share_token=uuid.uuid4().hex,
        shared_by=session.user_id,
        shared_with=str(shared_with.id) if shared_with else None,
        allow_notes_access=allow_notes_access,
        expires_at=expires_at,
    )
    if created_at is not None:
        share.created_at = created_at
    db.add(share)
    db.flush()
    if redeemed_by is not None:
        db.add(SessionShareAccess(share_id=share.id, user_id=redeemed_by.id))
    db.commit()
    return share


# =============================================================================
# Cast: one member, her session, two counselors (assigned and coverage)
# =============================================================================

@pytest.fixture
def member(db: Session, test_org: Organization) -> User:
    return create_user(db, test_org, Role.MEMBER, first_name="Mara", last_name="Member", subscribed=True)


@pytest.fixture
def member_session(db: Session, member: User) -> CounselSession:
    return create_session(db, member)


@pytest.fixture
def assigned_counselor(db: Session, test_org: Organization, member: User) -> User:
    counselor = create_user(db, test_org, Role.COUNSELOR, first_name="Cal", last_name="Assigned")
    assign(db, counselor, member, test_org)
    return counselor


@pytest.fixture
def coverage_counselor(
    db: Session, test_org: Organization, member: User, assigned_counselor: User
) -> User:
    backup = create_user(db, test_org, Role.COUNSELOR, first_name="Cory", last_name="Coverage")
    grant_coverage(db, assigned_counselor, backup, member)
    return backup


@pytest.fixture
def outsider(db: Session, test_org: Organization) -> User:
    """Org member with no subscription, share or counselor role."""
    return create_user(db, test_org, Role.MEMBER, first_name="Otto", last_name="Outsider")


@pytest.fixture
def admin(db: Session, test_org: Organization) -> User:
    return create_user(db, test_org, Role.ADMIN, first_name="Ada", last_name="Admin")


# =============================================================================
# Auth / Client Fixtures
# =============================================================================

def auth_headers(user: User, org: Organization, role: Role = Role.MEMBER) -> dict[str, str]:
    """Bearer token plus CSRF header for an authenticated request."""
    token = create_session_token(
        user_id=user.id,
        org_id=org.id,
        role=role.value,
        token_version=user.token_version,
    )
    return {"Authorization": f"Bearer {token}", CSRF_HEADER: CSRF_HEADER_VALUE}


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient bound to the test database session."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
