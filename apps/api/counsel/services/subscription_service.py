"""Subscription signal - the only billing fact the access engine consumes."""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from counsel.db.enums import HISTORY_ACCESS_STATUSES
from counsel.db.models import Subscription


def has_history_access(db: Session, user_id: UUID) -> bool:
    """
    True when the user has paid access to saved history and session notes.

    Active or trialing, and the current period has not ended. A missing
    period end means the billing provider has not reported one yet.
    """
    now = datetime.now(timezone.utc)
    row = (
        db.query(Subscription.id)
        .filter(
            Subscription.user_id == user_id,
            Subscription.status.in_(HISTORY_ACCESS_STATUSES),
            or_(
                Subscription.current_period_end.is_(None),
                Subscription.current_period_end > now,
            ),
        )
        .first()
    )
    return row is not None
