"""Shares router - session share links."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from counsel.core.deps import get_current_session, get_current_user, get_db, require_csrf_header
from counsel.db.models import User
from counsel.schemas.auth import UserSession
from counsel.schemas.share import AccessedShareRead, ShareCreate, ShareRead, ShareRedeemRead
from counsel.services import share_service
from counsel.services.share_service import (
    ShareExpiredError,
    ShareForbiddenError,
    ShareNotFoundError,
    ShareValidationError,
)

router = APIRouter(prefix="/shares", tags=["shares"])


@router.post("", response_model=ShareRead, status_code=201, dependencies=[Depends(require_csrf_header)])
def create_share(
    data: ShareCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Create a share link for one of the caller's sessions."""
    try:
        return share_service.create_share(
            db=db,
            owner_id=session.user_id,
            session_id=data.session_id,
            allow_notes_access=data.allow_notes_access,
            shared_with_email=data.shared_with,
            expires_in_days=data.expires_in_days,
        )
    except ShareNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except ShareForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ShareValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=list[ShareRead])
def list_my_shares(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Share links the caller created."""
    return share_service.list_user_shares(db, session.user_id)


@router.get("/accessed", response_model=list[AccessedShareRead])
def list_accessed_shares(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Shares the caller has opened and not dismissed."""
    accesses = share_service.list_accessed_shares(db, session.user_id)
    return [
        AccessedShareRead(
            share_id=a.share_id,
            session_id=a.share.session_id,
            session_title=a.share.session.title,
            allow_notes_access=a.share.allow_notes_access,
            expires_at=a.share.expires_at,
            first_accessed_at=a.first_accessed_at,
            last_accessed_at=a.last_accessed_at,
        )
        for a in accesses
    ]


@router.post(
    "/{share_token}/redeem",
    response_model=ShareRedeemRead,
    dependencies=[Depends(require_csrf_header)],
)
def redeem_share(
    share_token: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Open a share link. Restricted links only work for their recipient."""
    try:
        result = share_service.redeem_share(db, share_token, user)
    except ShareNotFoundError:
        raise HTTPException(status_code=404, detail="Share link not found or expired")
    except (ShareExpiredError, ShareForbiddenError) as e:
        raise HTTPException(status_code=403, detail=str(e))
    return ShareRedeemRead(
        share_id=result["share_id"],
        session_id=result["session"].id,
        session_title=result["session"].title,
        allow_notes_access=result["allow_notes_access"],
        can_add_notes=result["can_add_notes"],
        expires_at=result["expires_at"],
    )


@router.delete("/{share_id}", status_code=204, dependencies=[Depends(require_csrf_header)])
def revoke_share(
    share_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        share_service.revoke_share(db, share_id, session.user_id)
    except ShareNotFoundError:
        raise HTTPException(status_code=404, detail="Share not found")
    except ShareForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return None


@router.post("/{share_id}/dismiss", status_code=204, dependencies=[Depends(require_csrf_header)])
def dismiss_share(
    share_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Hide an opened share from the caller's list."""
    try:
        share_service.dismiss_share(db, share_id, session.user_id)
    except ShareNotFoundError:
        raise HTTPException(status_code=404, detail="Access record not found")
    return None
