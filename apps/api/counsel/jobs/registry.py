"""Job handler registry."""

from __future__ import annotations

from typing import Awaitable, Callable, Mapping

from counsel.db.enums import JobType
from counsel.jobs.handlers import assignments, notes

JobHandler = Callable[[object, object], Awaitable[None]]

JOB_HANDLERS: Mapping[str, JobHandler] = {
    JobType.NOTE_ADDED_EMAIL.value: notes.process_note_added_email,
    JobType.ASSIGNMENT_EMAIL.value: assignments.process_assignment_email,
}


def resolve_job_handler(job_type: str) -> JobHandler:
    handler = JOB_HANDLERS.get(job_type)
    if not handler:
        raise ValueError(f"Unknown job type: {job_type}")
    return handler
