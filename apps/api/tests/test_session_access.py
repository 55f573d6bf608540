"""Tests for the session access policy engine."""

import uuid

import pytest

from counsel.core import session_access
from counsel.core.session_access import (
    NoteNotFoundError,
    PermissionDeniedError,
    SessionNotFoundError,
)
from counsel.db.enums import NoteAuthorRole, Role
from counsel.db.models import SessionNote, Subscription

from conftest import create_session, create_user, share_session, utc_in


def add_note(db, session, author, author_role=NoteAuthorRole.COUNSELOR, is_private=False):
    note = SessionNote(
        session_id=session.id,
        author_id=author.id,
        author_name=author.display_name,
        author_role=author_role.value,
        content="<p>note</p>",
        is_private=is_private,
    )
    db.add(note)
    db.commit()
    return note


# =============================================================================
# can_access_session
# =============================================================================

def test_owner_can_access_session(db, member, member_session):
    assert session_access.can_access_session(db, member.id, member_session.id)


def test_share_holder_can_access_session(db, member_session, outsider):
    share_session(db, member_session)

    assert session_access.can_access_session(db, outsider.id, member_session.id)


def test_coverage_counselor_can_access_session_without_org(db, member_session, coverage_counselor):
    assert session_access.can_access_session(db, coverage_counselor.id, member_session.id)


def test_assigned_counselor_needs_org_for_session_access(
    db, test_org, member_session, assigned_counselor
):
    assert not session_access.can_access_session(db, assigned_counselor.id, member_session.id)
    assert session_access.can_access_session(
        db, assigned_counselor.id, member_session.id, test_org.id
    )


def test_outsider_cannot_access_session(db, test_org, member_session, outsider):
    assert not session_access.can_access_session(db, outsider.id, member_session.id, test_org.id)


def test_missing_session_is_not_accessible(db, member):
    assert session_access.can_access_session(db, member.id, uuid.uuid4()) is False


# =============================================================================
# check_can_create_note (scenarios A-D)
# =============================================================================

def test_subscribed_owner_can_create_note(db, test_org, member, member_session):
    session_access.check_can_create_note(db, member.id, member_session.id, test_org.id, False)
    session_access.check_can_create_note(db, member.id, member_session.id, test_org.id, True)

    role = session_access.determine_author_role(db, member.id, member_session.id, test_org.id)
    assert role == NoteAuthorRole.USER


def test_unsubscribed_owner_is_denied_even_with_open_write_share(db, test_org, outsider):
    session = create_session(db, outsider)
    share_session(db, session, allow_notes_access=True)

    with pytest.raises(PermissionDeniedError) as exc_info:
        session_access.check_can_create_note(db, outsider.id, session.id, test_org.id, False)

    assert exc_info.value.reason == "Session notes are only available to subscribed users"
    assert exc_info.value.code == "subscription_required"


def test_lapsed_subscription_denies_owner(db, test_org, member, member_session):
    sub = db.query(Subscription).filter(Subscription.user_id == member.id).one()
    sub.current_period_end = utc_in(days=-1)
    db.commit()

    with pytest.raises(PermissionDeniedError):
        session_access.check_can_create_note(db, member.id, member_session.id, test_org.id, False)


def test_assigned_counselor_can_create_private_note(
    db, test_org, member_session, assigned_counselor
):
    session_access.check_can_create_note(
        db, assigned_counselor.id, member_session.id, test_org.id, True
    )


def test_coverage_counselor_cannot_create_private_note(
    db, test_org, member_session, coverage_counselor
):
    with pytest.raises(PermissionDeniedError) as exc_info:
        session_access.check_can_create_note(
            db, coverage_counselor.id, member_session.id, test_org.id, True
        )

    assert exc_info.value.reason == "Coverage counselors cannot create private notes"
    assert exc_info.value.code == "coverage_private_forbidden"

    session_access.check_can_create_note(
        db, coverage_counselor.id, member_session.id, test_org.id, False
    )


def test_coverage_counselor_with_write_share_still_cannot_go_private(
    db, test_org, member_session, coverage_counselor
):
    share_session(db, member_session, shared_with=coverage_counselor, allow_notes_access=True)

    with pytest.raises(PermissionDeniedError) as exc_info:
        session_access.check_can_create_note(
            db, coverage_counselor.id, member_session.id, test_org.id, True
        )
    assert exc_info.value.code == "coverage_private_forbidden"


def test_read_only_share_without_subscription_cannot_create_note(
    db, test_org, member_session, outsider
):
    share_session(db, member_session, shared_with=outsider, allow_notes_access=False)

    with pytest.raises(PermissionDeniedError) as exc_info:
        session_access.check_can_create_note(db, outsider.id, member_session.id, test_org.id, False)

    assert exc_info.value.reason == (
        "Session notes are only available to subscribed users or via shared access "
        "with note permissions"
    )
    assert exc_info.value.code == "share_or_subscription_required"


def test_write_share_allows_note_creation(db, test_org, member_session, outsider):
    share_session(db, member_session, shared_with=outsider, allow_notes_access=True)

    session_access.check_can_create_note(db, outsider.id, member_session.id, test_org.id, False)
    session_access.check_can_create_note(db, outsider.id, member_session.id, test_org.id, True)


def test_subscribed_viewer_falls_through_to_subscription(db, test_org, member_session):
    viewer = create_user(db, test_org, Role.MEMBER, subscribed=True)

    session_access.check_can_create_note(db, viewer.id, member_session.id, test_org.id, False)
    assert (
        session_access.determine_author_role(db, viewer.id, member_session.id, test_org.id)
        == NoteAuthorRole.VIEWER
    )


def test_create_note_on_missing_session(db, test_org, member):
    with pytest.raises(SessionNotFoundError):
        session_access.check_can_create_note(db, member.id, uuid.uuid4(), test_org.id, False)


# =============================================================================
# check_can_access_notes
# =============================================================================

def test_any_share_grants_note_list_access(db, test_org, member_session, outsider):
    share_session(db, member_session, allow_notes_access=False)

    session_access.check_can_access_notes(db, outsider.id, member_session.id, test_org.id)


def test_coverage_counselor_can_list_notes(db, test_org, member_session, coverage_counselor):
    session_access.check_can_access_notes(
        db, coverage_counselor.id, member_session.id, test_org.id
    )


def test_outsider_cannot_list_notes(db, test_org, member_session, outsider):
    with pytest.raises(PermissionDeniedError) as exc_info:
        session_access.check_can_access_notes(db, outsider.id, member_session.id, test_org.id)

    assert exc_info.value.reason == (
        "Session notes are only available to subscribed users or via shared access"
    )


def test_unsubscribed_owner_cannot_list_notes(db, test_org, outsider):
    session = create_session(db, outsider)
    share_session(db, session)

    with pytest.raises(PermissionDeniedError) as exc_info:
        session_access.check_can_access_notes(db, outsider.id, session.id, test_org.id)
    assert exc_info.value.code == "subscription_required"


def test_list_notes_on_missing_session(db, test_org, member):
    with pytest.raises(SessionNotFoundError):
        session_access.check_can_access_notes(db, member.id, uuid.uuid4(), test_org.id)


# =============================================================================
# can_view_note (scenario E and visibility symmetry)
# =============================================================================

def test_public_note_is_visible_to_anyone(db, test_org, member, member_session, outsider):
    note = add_note(db, member_session, member, NoteAuthorRole.USER, is_private=False)

    assert session_access.can_view_note(db, outsider.id, note, member_session.id, test_org.id)


def test_member_sees_counselor_private_note(
    db, test_org, member, member_session, assigned_counselor, coverage_counselor
):
    note = add_note(db, member_session, assigned_counselor, is_private=True)

    assert session_access.can_view_note(db, member.id, note, member_session.id, test_org.id)
    assert not session_access.can_view_note(
        db, coverage_counselor.id, note, member_session.id, test_org.id
    )


def test_private_note_author_always_sees_it(
    db, test_org, member_session, coverage_counselor, outsider
):
    for author in (coverage_counselor, outsider):
        note = add_note(db, member_session, author, NoteAuthorRole.VIEWER, is_private=True)
        assert session_access.can_view_note(db, author.id, note, member_session.id, test_org.id)


def test_assigned_counselor_sees_other_private_notes(
    db, test_org, member, member_session, assigned_counselor
):
    note = add_note(db, member_session, member, NoteAuthorRole.USER, is_private=True)

    assert session_access.can_view_note(
        db, assigned_counselor.id, note, member_session.id, test_org.id
    )


def test_owner_does_not_see_private_viewer_note(db, test_org, member, member_session, outsider):
    note = add_note(db, member_session, outsider, NoteAuthorRole.VIEWER, is_private=True)

    assert not session_access.can_view_note(db, member.id, note, member_session.id, test_org.id)


def test_private_note_hidden_when_session_missing(db, test_org, member, member_session, outsider):
    note = add_note(db, member_session, outsider, is_private=True)

    assert not session_access.can_view_note(db, member.id, note, uuid.uuid4(), test_org.id)


# =============================================================================
# Edit / delete / privacy / author role
# =============================================================================

def test_only_author_can_edit_or_delete(db, test_org, member, member_session, assigned_counselor):
    note = add_note(db, member_session, assigned_counselor)

    assert session_access.check_can_edit_note(db, assigned_counselor.id, note.id).id == note.id
    assert session_access.check_can_delete_note(db, assigned_counselor.id, note.id).id == note.id

    with pytest.raises(PermissionDeniedError) as exc_info:
        session_access.check_can_edit_note(db, member.id, note.id)
    assert exc_info.value.reason == "You can only edit your own notes"
    assert exc_info.value.code == "not_note_author"

    with pytest.raises(PermissionDeniedError) as exc_info:
        session_access.check_can_delete_note(db, member.id, note.id)
    assert exc_info.value.reason == "You can only delete your own notes"


def test_edit_missing_or_deleted_note(db, member_session, assigned_counselor):
    with pytest.raises(NoteNotFoundError):
        session_access.check_can_edit_note(db, assigned_counselor.id, uuid.uuid4())

    note = add_note(db, member_session, assigned_counselor)
    note.deleted_at = utc_in(minutes=-1)
    db.commit()

    with pytest.raises(NoteNotFoundError):
        session_access.check_can_edit_note(db, assigned_counselor.id, note.id)
    with pytest.raises(NoteNotFoundError):
        session_access.check_can_delete_note(db, assigned_counselor.id, note.id)


def test_can_make_note_private(
    db, test_org, member, member_session, assigned_counselor, coverage_counselor, outsider
):
    assert session_access.can_make_note_private(
        db, assigned_counselor.id, member_session.id, test_org.id
    )
    assert not session_access.can_make_note_private(
        db, coverage_counselor.id, member_session.id, test_org.id
    )
    assert not session_access.can_make_note_private(db, outsider.id, member_session.id, test_org.id)


def test_can_make_note_private_on_anonymous_or_missing_session(db, test_org, outsider):
    anonymous = create_session(db, None)

    assert session_access.can_make_note_private(db, outsider.id, anonymous.id, test_org.id)
    assert session_access.can_make_note_private(db, outsider.id, uuid.uuid4(), test_org.id)


def test_determine_author_role(
    db, test_org, member, member_session, assigned_counselor, coverage_counselor, outsider
):
    def role_of(user, session_id=member_session.id):
        return session_access.determine_author_role(db, user.id, session_id, test_org.id)

    assert role_of(member) == NoteAuthorRole.USER
    assert role_of(assigned_counselor) == NoteAuthorRole.COUNSELOR
    assert role_of(coverage_counselor) == NoteAuthorRole.COUNSELOR
    assert role_of(outsider) == NoteAuthorRole.VIEWER
    assert role_of(member, session_id=uuid.uuid4()) == NoteAuthorRole.VIEWER
