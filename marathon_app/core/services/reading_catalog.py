"""Service for managing the collection of dated readings."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import date
from uuid import uuid4

from marathon_app.core.errors import InvalidReadingError, UnknownReadingError
from marathon_app.core.models import QuizOption, Reading


class ReadingCatalog:
    """Manages the lifecycle and storage of readings."""

    def __init__(self) -> None:
        self._readings: list[Reading] = []

    def load_readings(self, readings: Iterable[Reading]) -> None:
        """Replace the catalog with previously stored readings."""
        self._readings = list(readings)

    def get_readings(self) -> list[Reading]:
        return list(self._readings)

    def get_reading(self, reading_id: str) -> Reading:
        for reading in self._readings:
            if reading.id == reading_id:
                return reading
        raise UnknownReadingError(reading_id)

    def has_reading(self, reading_id: str) -> bool:
        return any(r.id == reading_id for r in self._readings)

    def add_reading(self, reading: Reading) -> Reading:
        prepared = self._prepare_reading(reading)
        self._readings.append(prepared)
        return prepared

    def bulk_add_readings(self, readings: Iterable[Reading]) -> list[Reading]:
        """Append imported readings as-is, skipping rows without a date or title."""
        added: list[Reading] = []
        for reading in readings:
            if reading.date is None or not reading.title.strip():
                continue
            if not reading.id or self.has_reading(reading.id):
                reading = replace(reading, id=self._next_reading_id())
            self._readings.append(reading)
            added.append(reading)
        return added

    def delete_reading(self, reading_id: str) -> Reading:
        reading = self.get_reading(reading_id)
        self._readings.remove(reading)
        return reading

    def todays_reading(self, today: date) -> Reading | None:
        return next((r for r in self._readings if r.date == today), None)

    def search_readings(self, query: str = "") -> list[Reading]:
        needle = query.strip().lower()
        matches = [
            r
            for r in self._readings
            if needle in r.title.lower() or needle in r.date.isoformat()
        ]
        return sorted(matches, key=lambda r: r.date, reverse=True)

    def _prepare_reading(self, reading: Reading) -> Reading:
        """Validate and normalize a directly entered reading."""
        title = reading.title.strip()
        if not title:
            raise InvalidReadingError("Reading title must not be empty.")
        if reading.bonus_points < 0:
            raise InvalidReadingError("Bonus points must not be negative.")

        question = (reading.question or "").strip() or None
        options = self._validate_options(reading.options) if question else ()
        correct_option_id = reading.correct_option_id if question else None
        if question:
            if not options:
                raise InvalidReadingError("A quiz question needs at least one option.")
            if correct_option_id not in {option.id for option in options}:
                raise InvalidReadingError("Correct option must be one of the reading's options.")

        reading_id = reading.id
        if not reading_id or self.has_reading(reading_id):
            reading_id = self._next_reading_id()

        return replace(
            reading,
            id=reading_id,
            title=title,
            question=question,
            options=options,
            correct_option_id=correct_option_id,
        )

    @staticmethod
    def _next_reading_id() -> str:
        return f"r-{uuid4().hex}"

    @staticmethod
    def _validate_options(options: Iterable[QuizOption]) -> tuple[QuizOption, ...]:
        cleaned = tuple(QuizOption(id=o.id.strip(), text=o.text.strip()) for o in options)
        if any(not option.id or not option.text for option in cleaned):
            raise InvalidReadingError("Option ids and text cannot be empty.")
        ids = [option.id for option in cleaned]
        if len(ids) != len(set(ids)):
            raise InvalidReadingError("Option ids must be unique within a reading.")
        return cleaned
