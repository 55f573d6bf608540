"""Enum definitions for application constants."""

from counsel.db.enums.auth import HISTORY_ACCESS_STATUSES, Role, SubscriptionStatus
from counsel.db.enums.counseling import (
    AssignmentStatus,
    CounselorRelationship,
    MessageRole,
    NoteAuthorRole,
    NoteLifecycleState,
    SessionStatus,
)
from counsel.db.enums.jobs import DEFAULT_JOB_STATUS, JobStatus, JobType

__all__ = [
    "AssignmentStatus",
    "CounselorRelationship",
    "DEFAULT_JOB_STATUS",
    "HISTORY_ACCESS_STATUSES",
    "JobStatus",
    "JobType",
    "MessageRole",
    "NoteAuthorRole",
    "NoteLifecycleState",
    "Role",
    "SessionStatus",
    "SubscriptionStatus",
]
