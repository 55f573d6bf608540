"""SQLAlchemy ORM models for counseling sessions, assignments, shares and notes."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from counsel.db.base import Base, utcnow
from counsel.db.enums import AssignmentStatus, NoteLifecycleState, SessionStatus


if TYPE_CHECKING:
    from counsel.db.models.auth import Organization, User


class CounselSession(Base):
    """
    One counseling conversation.

    Owned by the member who created it (user_id, nullable for anonymous
    sessions). Ownership never transfers; shares and counselor roles only
    extend read/write access.
    """

    __tablename__ = "counsel_sessions"
    __table_args__ = (Index("idx_counsel_sessions_user", "user_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), default="Untitled session", nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=SessionStatus.ACTIVE.value, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    user: Mapped[Optional["User"]] = relationship()
    messages: Mapped[list["SessionMessage"]] = relationship(
        back_populates="session",
        order_by="SessionMessage.created_at",
        cascade="all, delete-orphan",
    )


class SessionMessage(Base):
    """A single message in a counseling conversation (user or AI counselor)."""

    __tablename__ = "session_messages"
    __table_args__ = (Index("idx_session_messages_session", "session_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("counsel_sessions.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    session: Mapped["CounselSession"] = relationship(back_populates="messages")


class CounselorAssignment(Base):
    """
    Relationship between one counselor and one member within one organization.

    Invariant: at most one ACTIVE row per (member, organization), enforced by
    the partial unique index below. Rows are never hard-deleted; ending an
    assignment flips status to INACTIVE and stamps ended_at.
    """

    __tablename__ = "counselor_assignments"
    __table_args__ = (
        Index(
            "uq_active_assignment_member_org",
            "member_id",
            "organization_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("idx_assignments_counselor", "counselor_id", "organization_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    counselor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    assigned_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default=AssignmentStatus.ACTIVE.value, nullable=False
    )
    assigned_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(nullable=True)

    counselor: Mapped["User"] = relationship(foreign_keys=[counselor_id])
    member: Mapped["User"] = relationship(foreign_keys=[member_id])
    organization: Mapped["Organization"] = relationship()


class CounselorCoverageGrant(Base):
    """
    Temporary delegation from a primary counselor to a backup for one member.

    Live while revoked_at is NULL and expires_at is NULL or in the future.
    Not organization-scoped.
    """

    __tablename__ = "counselor_coverage_grants"
    __table_args__ = (
        Index("idx_coverage_backup_member", "backup_counselor_id", "member_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    primary_counselor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    backup_counselor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)
    revoked_at: Mapped[datetime | None] = mapped_column(nullable=True)


class SessionShare(Base):
    """
    Capability link granting access to one session.

    shared_with NULL = anyone holding the token; otherwise the recipient's
    user id. allow_notes_access makes the share write-capable for notes.
    """

    __tablename__ = "session_shares"
    __table_args__ = (Index("idx_session_shares_session", "session_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("counsel_sessions.id", ondelete="CASCADE"), nullable=False
    )
    share_token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    shared_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    shared_with: Mapped[str | None] = mapped_column(String(255), nullable=True)
    allow_notes_access: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    session: Mapped["CounselSession"] = relationship()
    accesses: Mapped[list["SessionShareAccess"]] = relationship(
        back_populates="share", cascade="all, delete-orphan"
    )


class SessionShareAccess(Base):
    """A user who redeemed a share link (drives share notifications)."""

    __tablename__ = "session_share_accesses"
    __table_args__ = (
        UniqueConstraint("share_id", "user_id", name="uq_share_access_share_user"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    share_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("session_shares.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    first_accessed_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    last_accessed_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    is_dismissed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    dismissed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    share: Mapped["SessionShare"] = relationship(back_populates="accesses")


class SessionNote(Base):
    """
    Annotation attached to a counseling session.

    author_id is immutable. Soft delete only: deleted_at is set once and the
    row is kept.
    """

    __tablename__ = "session_notes"
    __table_args__ = (Index("idx_session_notes_session", "session_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("counsel_sessions.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    author_name: Mapped[str] = mapped_column(String(255), nullable=False)
    author_role: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)  # HTML allowed, sanitized
    is_private: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    session: Mapped["CounselSession"] = relationship()

    @property
    def lifecycle_state(self) -> NoteLifecycleState:
        if self.deleted_at is not None:
            return NoteLifecycleState.DELETED
        return NoteLifecycleState.ACTIVE
