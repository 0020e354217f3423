"""Domain models for the reading marathon."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class UserRole(str, Enum):
    """Capability level of a user."""

    ADMIN = "ADMIN"
    PARTICIPANT = "PARTICIPANT"


@dataclass(slots=True, frozen=True)
class QuizOption:
    """One selectable answer of a reading quiz."""

    id: str
    text: str


@dataclass(slots=True, frozen=True)
class Reading:
    """A dated reading, optionally carrying a single-choice quiz."""

    id: str
    date: date
    title: str
    question: str | None = None
    options: tuple[QuizOption, ...] = ()
    correct_option_id: str | None = None
    bonus_points: int = 0

    @property
    def has_quiz(self) -> bool:
        return bool(self.question)


@dataclass(slots=True)
class User:
    """Participant or administrator with a denormalized running score."""

    id: str
    name: str
    group: str
    role: UserRole = UserRole.PARTICIPANT
    total_score: int = 0

    @property
    def is_participant(self) -> bool:
        return self.role is UserRole.PARTICIPANT


@dataclass(slots=True, frozen=True)
class Submission:
    """Ledger entry recording one user's completion of one reading."""

    user_id: str
    reading_id: str
    completed_at: datetime
    score: int
    quiz_answer_id: str | None = None
    is_correct: bool = False


@dataclass(slots=True, frozen=True)
class Event:
    """Date-bounded mini challenge over a subset of readings."""

    id: str
    title: str
    start_date: date
    end_date: date
    reading_ids: frozenset[str] = field(default_factory=frozenset)
    description: str | None = None
