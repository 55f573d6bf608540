"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    Organization membership roles.

    - MEMBER: receives counseling, owns their sessions
    - COUNSELOR: can be assigned to members or cover for another counselor
    - ADMIN: manages assignments within the organization
    """

    MEMBER = "member"
    COUNSELOR = "counselor"
    ADMIN = "admin"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    NONE = "none"


# Statuses that unlock saved history and session notes
HISTORY_ACCESS_STATUSES = frozenset({SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value})
