"""Service for storing admin-defined events."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from uuid import uuid4

from marathon_app.core.errors import UnknownEventError
from marathon_app.core.models import Event
from marathon_app.core.services.event_progress import validate_event_fields


class EventRegistry:
    def __init__(self) -> None:
        self._events: list[Event] = []

    def load_events(self, events: Iterable[Event]) -> None:
        self._events = list(events)

    def get_events(self) -> list[Event]:
        return list(self._events)

    def get_event(self, event_id: str) -> Event:
        for event in self._events:
            if event.id == event_id:
                return event
        raise UnknownEventError(event_id)

    def create_event(
        self,
        title: str | None,
        start_date: date | None,
        end_date: date | None,
        reading_ids: Iterable[str],
        description: str | None = None,
    ) -> Event:
        """Validate and store a new event. Nothing is stored when validation fails."""
        ids = validate_event_fields(title, start_date, end_date, reading_ids)
        event = Event(
            id=f"e-{uuid4().hex}",
            title=title.strip(),
            start_date=start_date,
            end_date=end_date,
            reading_ids=ids,
            description=(description or "").strip() or None,
        )
        self._events.append(event)
        return event

    def delete_event(self, event_id: str) -> Event:
        event = self.get_event(event_id)
        self._events.remove(event)
        return event
