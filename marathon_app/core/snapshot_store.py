"""JSON snapshot persistence for the marathon collections.

The store is a collaborator of ``MarathonManager``: the manager hands it a
complete snapshot after every mutation and reads one back at start-up. The
document layout is a single object with one array per collection, so the file
stays readable and can be edited by hand between runs:

    {"readings": [...], "users": [...], "submissions": [...],
     "groups": ["..."], "events": [...]}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
import json
import logging
from pathlib import Path
from typing import Any, Protocol

from marathon_app.core.errors import SnapshotError
from marathon_app.core.models import Event, QuizOption, Reading, Submission, User, UserRole

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MarathonSnapshot:
    """Point-in-time copy of every collection."""

    readings: list[Reading] = field(default_factory=list)
    users: list[User] = field(default_factory=list)
    submissions: list[Submission] = field(default_factory=list)
    groups: list[str] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)


class SnapshotStore(Protocol):
    def load(self) -> MarathonSnapshot | None: ...

    def save(self, snapshot: MarathonSnapshot) -> None: ...


class JsonSnapshotStore:
    """Reads and writes a snapshot as one UTF-8 JSON document."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path.resolve()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def load(self) -> MarathonSnapshot | None:
        if not self._file_path.exists():
            return None
        try:
            document = json.loads(self._file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise SnapshotError(f"Snapshot file is not valid JSON: {exc}") from exc
        snapshot = decode_snapshot(document)
        logger.info(
            "Loaded snapshot from %s (%d readings, %d users, %d submissions)",
            self._file_path,
            len(snapshot.readings),
            len(snapshot.users),
            len(snapshot.submissions),
        )
        return snapshot

    def save(self, snapshot: MarathonSnapshot) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
        temp_path.write_text(
            json.dumps(encode_snapshot(snapshot), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        temp_path.replace(self._file_path)


def encode_snapshot(snapshot: MarathonSnapshot) -> dict[str, Any]:
    return {
        "readings": [_encode_reading(r) for r in snapshot.readings],
        "users": [_encode_user(u) for u in snapshot.users],
        "submissions": [_encode_submission(s) for s in snapshot.submissions],
        "groups": list(snapshot.groups),
        "events": [_encode_event(e) for e in snapshot.events],
    }


def decode_snapshot(document: Any) -> MarathonSnapshot:
    if not isinstance(document, dict):
        raise SnapshotError("Snapshot document must be a JSON object.")
    try:
        return MarathonSnapshot(
            readings=[_decode_reading(r) for r in document.get("readings", [])],
            users=[_decode_user(u) for u in document.get("users", [])],
            submissions=[_decode_submission(s) for s in document.get("submissions", [])],
            groups=[str(g) for g in document.get("groups", [])],
            events=[_decode_event(e) for e in document.get("events", [])],
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise SnapshotError(f"Malformed snapshot record: {exc}") from exc


def _encode_reading(reading: Reading) -> dict[str, Any]:
    return {
        "id": reading.id,
        "date": reading.date.isoformat(),
        "title": reading.title,
        "question": reading.question,
        "options": [{"id": o.id, "text": o.text} for o in reading.options],
        "correct_option_id": reading.correct_option_id,
        "bonus_points": reading.bonus_points,
    }


def _decode_reading(record: dict[str, Any]) -> Reading:
    return Reading(
        id=record["id"],
        date=date.fromisoformat(record["date"]),
        title=record["title"],
        question=record.get("question"),
        options=tuple(QuizOption(id=o["id"], text=o["text"]) for o in record.get("options") or []),
        correct_option_id=record.get("correct_option_id"),
        bonus_points=int(record.get("bonus_points", 0)),
    )


def _encode_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "group": user.group,
        "role": user.role.value,
        "total_score": user.total_score,
    }


def _decode_user(record: dict[str, Any]) -> User:
    return User(
        id=record["id"],
        name=record["name"],
        group=record["group"],
        role=UserRole(record.get("role", UserRole.PARTICIPANT.value)),
        total_score=int(record.get("total_score", 0)),
    )


def _encode_submission(submission: Submission) -> dict[str, Any]:
    return {
        "user_id": submission.user_id,
        "reading_id": submission.reading_id,
        "completed_at": submission.completed_at.isoformat(),
        "quiz_answer_id": submission.quiz_answer_id,
        "is_correct": submission.is_correct,
        "score": submission.score,
    }


def _decode_submission(record: dict[str, Any]) -> Submission:
    return Submission(
        user_id=record["user_id"],
        reading_id=record["reading_id"],
        completed_at=datetime.fromisoformat(record["completed_at"]),
        score=int(record["score"]),
        quiz_answer_id=record.get("quiz_answer_id"),
        is_correct=bool(record.get("is_correct", False)),
    )


def _encode_event(event: Event) -> dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "start_date": event.start_date.isoformat(),
        "end_date": event.end_date.isoformat(),
        "reading_ids": sorted(event.reading_ids),
    }


def _decode_event(record: dict[str, Any]) -> Event:
    return Event(
        id=record["id"],
        title=record["title"],
        description=record.get("description"),
        start_date=date.fromisoformat(record["start_date"]),
        end_date=date.fromisoformat(record["end_date"]),
        reading_ids=frozenset(record.get("reading_ids", [])),
    )
