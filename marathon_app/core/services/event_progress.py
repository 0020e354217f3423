"""Per-event completion tracking."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from marathon_app.core.errors import InvalidEventError
from marathon_app.core.models import Event, Submission


@dataclass(slots=True, frozen=True)
class EventProgress:
    completed: int
    total: int
    percent: int


def rounded_percent(part: int, whole: int) -> int:
    """Integer percentage rounded half up, with an empty whole treated as one."""
    whole = max(whole, 1)
    return (200 * part + whole) // (2 * whole)


def event_progress(event: Event, submissions: Iterable[Submission], user_id: str) -> EventProgress:
    """Count how many of the event's readings ``user_id`` has completed."""
    completed = sum(
        1
        for submission in submissions
        if submission.user_id == user_id and submission.reading_id in event.reading_ids
    )
    total = len(event.reading_ids)
    return EventProgress(completed=completed, total=total, percent=rounded_percent(completed, total))


def is_event_active(event: Event, today: date) -> bool:
    # The start date does not gate activity; only the end date does.
    return today <= event.end_date


def validate_event_fields(
    title: str | None,
    start_date: date | None,
    end_date: date | None,
    reading_ids: Iterable[str],
) -> frozenset[str]:
    """Check an event definition and return its normalized reading id set."""
    if not title or not title.strip():
        raise InvalidEventError("Event title must not be empty.")
    if start_date is None or end_date is None:
        raise InvalidEventError("Event start and end dates are required.")
    if end_date < start_date:
        raise InvalidEventError("Event end date must not precede its start date.")
    ids = frozenset(reading_ids)
    if not ids:
        raise InvalidEventError("Event must reference at least one reading.")
    return ids
