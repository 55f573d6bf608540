"""Counseling domain enums (sessions, assignments, notes)."""

from enum import Enum


class SessionStatus(str, Enum):
    """Lifecycle of a counseling conversation."""

    ACTIVE = "active"
    ARCHIVED = "archived"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class AssignmentStatus(str, Enum):
    """
    Counselor assignment status.

    At most one ACTIVE assignment per (member, organization). Ended
    assignments stay as INACTIVE rows for history.
    """

    ACTIVE = "active"
    INACTIVE = "inactive"


class CounselorRelationship(str, Enum):
    """
    An actor's counseling relationship to a member.

    Produced once by the role resolver and passed down to policy checks.
    Precedence: ASSIGNED > COVERAGE > NONE.
    """

    NONE = "none"
    ASSIGNED = "assigned"
    COVERAGE = "coverage"


class NoteAuthorRole(str, Enum):
    """Role label stamped on a note at creation time."""

    USER = "user"
    COUNSELOR = "counselor"
    VIEWER = "viewer"


class NoteLifecycleState(str, Enum):
    """Soft-delete lifecycle for session notes."""

    ACTIVE = "active"
    DELETED = "deleted"
