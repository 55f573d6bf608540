"""Share service - session share links and share-based access resolution.

A share is a capability link for one session. shared_with is NULL for
"anyone holding the token" or the recipient's user id. allow_notes_access
makes the share write-capable for session notes.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from counsel.core.config import settings
from counsel.core.security import generate_share_token
from counsel.db.models import CounselSession, SessionShare, SessionShareAccess, User

logger = logging.getLogger(__name__)


class ShareServiceError(Exception):
    """Base exception for share service errors."""

    pass


class ShareNotFoundError(ShareServiceError):
    """Share link (or access record) not found."""

    pass


class ShareExpiredError(ShareServiceError):
    """Share link has expired."""

    pass


class ShareForbiddenError(ShareServiceError):
    """Actor may not create, use or remove this share."""

    pass


class ShareValidationError(ShareServiceError):
    """Share request is invalid (e.g. unknown recipient)."""

    pass


@dataclass(frozen=True)
class ShareAccess:
    """Result of resolving share access for an actor on a session."""

    has_access: bool
    allow_notes_access: bool
    share_id: UUID | None = None

    @property
    def has_write_share(self) -> bool:
        return self.has_access and self.allow_notes_access


NO_SHARE_ACCESS = ShareAccess(has_access=False, allow_notes_access=False)


def _unexpired(now: datetime):
    return or_(SessionShare.expires_at.is_(None), SessionShare.expires_at > now)


# =============================================================================
# Share resolution
# =============================================================================

def resolve_share(db: Session, actor_id: UUID, session_id: UUID) -> ShareAccess:
    """
    Resolve share access for an actor on a session.

    Matches unexpired shares addressed to the actor or to anyone. When several
    match, a write-capable share wins, then the oldest.
    """
    now = datetime.now(timezone.utc)
    share = (
        db.query(SessionShare)
        .filter(
            SessionShare.session_id == session_id,
            or_(
                SessionShare.shared_with == str(actor_id),
                SessionShare.shared_with.is_(None),
            ),
            _unexpired(now),
        )
        .order_by(SessionShare.allow_notes_access.desc(), SessionShare.created_at)
        .first()
    )
    if not share:
        return NO_SHARE_ACCESS
    return ShareAccess(
        has_access=True,
        allow_notes_access=share.allow_notes_access,
        share_id=share.id,
    )


def has_write_share(db: Session, actor_id: UUID, session_id: UUID) -> bool:
    return resolve_share(db, actor_id, session_id).has_write_share


def list_share_redeemer_ids(db: Session, session_id: UUID) -> list[UUID]:
    """Users who redeemed a non-expired share of the session."""
    now = datetime.now(timezone.utc)
    rows = (
        db.query(SessionShareAccess.user_id)
        .join(SessionShare, SessionShare.id == SessionShareAccess.share_id)
        .filter(SessionShare.session_id == session_id, _unexpired(now))
        .distinct()
        .all()
    )
    return [row[0] for row in rows]


# =============================================================================
# Share lifecycle
# =============================================================================

def create_share(
    db: Session,
    owner_id: UUID,
    session_id: UUID,
    allow_notes_access: bool = False,
    shared_with_email: str | None = None,
    expires_in_days: int | None = None,
) -> SessionShare:
    """Create a share link. Only the session owner can share a session."""
    session = db.query(CounselSession).filter(CounselSession.id == session_id).first()
    if not session:
        raise ShareNotFoundError("Session not found")
    if session.user_id != owner_id:
        raise ShareForbiddenError("You can only share your own conversations")

    shared_with: str | None = None
    if shared_with_email:
        recipient = (
            db.query(User)
            .filter(User.email == shared_with_email.strip().lower())
            .first()
        )
        if not recipient or not recipient.is_active:
            raise ShareValidationError("Recipient must have a registered account")
        shared_with = str(recipient.id)

    days = expires_in_days if expires_in_days is not None else settings.SHARE_DEFAULT_EXPIRES_DAYS
    expires_at = None
    if days:
        expires_at = datetime.now(timezone.utc) + timedelta(days=days)

    share = SessionShare(
        session_id=session_id,
        share_token=generate_share_token(),
        shared_by=owner_id,
        shared_with=shared_with,
        allow_notes_access=allow_notes_access,
        expires_at=expires_at,
    )
    db.add(share)
    db.commit()
    db.refresh(share)
    logger.info(
        "Share %s created for session %s (restricted=%s, notes=%s)",
        share.id,
        session_id,
        shared_with is not None,
        allow_notes_access,
    )
    return share


def _record_access(db: Session, share: SessionShare, user_id: UUID) -> SessionShareAccess:
    access = db.query(SessionShareAccess).filter(
        SessionShareAccess.share_id == share.id,
        SessionShareAccess.user_id == user_id,
    ).first()
    now = datetime.now(timezone.utc)
    if access:
        access.last_accessed_at = now
    else:
        access = SessionShareAccess(
            share_id=share.id,
            user_id=user_id,
            first_accessed_at=now,
            last_accessed_at=now,
        )
        db.add(access)
    return access


def redeem_share(db: Session, share_token: str, user: User) -> dict:
    """
    Validate a share token for a user and record the access.

    Returns the shared session plus whether the user can add notes.
    """
    share = (
        db.query(SessionShare)
        .options(joinedload(SessionShare.session))
        .filter(SessionShare.share_token == share_token)
        .first()
    )
    if not share:
        raise ShareNotFoundError("Share link not found or expired")

    live = (
        db.query(SessionShare.id)
        .filter(SessionShare.id == share.id, _unexpired(datetime.now(timezone.utc)))
        .first()
    )
    if not live:
        raise ShareExpiredError("Share link has expired")

    if share.shared_with and share.shared_with not in (str(user.id), user.email.lower()):
        raise ShareForbiddenError("This share link is not for you")

    is_owner = share.session.user_id == user.id
    if not is_owner:
        _record_access(db, share, user.id)
        db.commit()

    return {
        "share_id": share.id,
        "session": share.session,
        "allow_notes_access": share.allow_notes_access,
        "can_add_notes": is_owner or share.allow_notes_access,
        "expires_at": share.expires_at,
    }


def list_user_shares(db: Session, user_id: UUID) -> list[SessionShare]:
    """Shares created by the user, newest first."""
    return (
        db.query(SessionShare)
        .filter(SessionShare.shared_by == user_id)
        .order_by(SessionShare.created_at.desc())
        .all()
    )


def revoke_share(db: Session, share_id: UUID, user_id: UUID) -> None:
    """Delete a share link. Only its creator can revoke it."""
    share = db.query(SessionShare).filter(SessionShare.id == share_id).first()
    if not share:
        raise ShareNotFoundError("Share not found")
    if share.shared_by != user_id:
        raise ShareForbiddenError("You can only delete your own shares")

    db.delete(share)
    db.commit()
    logger.info("Share %s revoked", share_id)


def list_accessed_shares(db: Session, user_id: UUID) -> list[SessionShareAccess]:
    """Non-dismissed, unexpired shares the user has redeemed, most recent first."""
    now = datetime.now(timezone.utc)
    return (
        db.query(SessionShareAccess)
        .join(SessionShare, SessionShare.id == SessionShareAccess.share_id)
        .options(joinedload(SessionShareAccess.share).joinedload(SessionShare.session))
        .filter(
            SessionShareAccess.user_id == user_id,
            SessionShareAccess.is_dismissed.is_(False),
            _unexpired(now),
        )
        .order_by(SessionShareAccess.last_accessed_at.desc())
        .all()
    )


def dismiss_share(db: Session, share_id: UUID, user_id: UUID) -> SessionShareAccess:
    """Hide a redeemed share from the user's list. Access itself is unaffected."""
    access = db.query(SessionShareAccess).filter(
        SessionShareAccess.share_id == share_id,
        SessionShareAccess.user_id == user_id,
    ).first()
    if not access:
        raise ShareNotFoundError("Access record not found")

    if not access.is_dismissed:
        access.is_dismissed = True
        access.dismissed_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(access)
    return access
