"""Structured logging helpers (PHI-safe: identifiers only, never note content)."""

from typing import Any
from uuid import UUID


def build_log_context(
    *,
    user_id: UUID | str | None = None,
    org_id: UUID | str | None = None,
    session_id: UUID | str | None = None,
    note_id: UUID | str | None = None,
    job_id: UUID | str | None = None,
    code: str | None = None,
    route: str | None = None,
) -> dict[str, Any]:
    """Return a PHI-safe log context dict for `extra=`."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = str(user_id)
    if org_id:
        context["org_id"] = str(org_id)
    if session_id:
        context["session_id"] = str(session_id)
    if note_id:
        context["note_id"] = str(note_id)
    if job_id:
        context["job_id"] = str(job_id)
    if code:
        context["code"] = code
    if route:
        context["route"] = route
    return context
