"""SQLAlchemy ORM models."""

from counsel.db.models.auth import Membership, Organization, Subscription, User
from counsel.db.models.counseling import (
    CounselorAssignment,
    CounselorCoverageGrant,
    CounselSession,
    SessionMessage,
    SessionNote,
    SessionShare,
    SessionShareAccess,
)
from counsel.db.models.jobs import Job

__all__ = [
    "CounselSession",
    "CounselorAssignment",
    "CounselorCoverageGrant",
    "Job",
    "Membership",
    "Organization",
    "SessionMessage",
    "SessionNote",
    "SessionShare",
    "SessionShareAccess",
    "Subscription",
    "User",
]
