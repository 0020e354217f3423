"""Business logic for the reading marathon shared between the API and tooling."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date
import logging
from threading import Lock

from marathon_app.core.clock import Clock, SystemClock
from marathon_app.core.errors import PermissionDeniedError, SnapshotError
from marathon_app.core.models import Event, Reading, Submission, User, UserRole
from marathon_app.core.seed_data import build_seed_snapshot
from marathon_app.core.services import ranking
from marathon_app.core.services.event_progress import EventProgress, event_progress, is_event_active
from marathon_app.core.services.event_registry import EventRegistry
from marathon_app.core.services.participant_summary import ParticipantSummary, build_participant_summary
from marathon_app.core.services.ranking import GroupRankRow, IndividualRankRow
from marathon_app.core.services.reading_catalog import ReadingCatalog
from marathon_app.core.services.roster import GroupSummary, Roster
from marathon_app.core.services.submission_ledger import CompletionResult, ScoreDrift, SubmissionLedger
from marathon_app.core.snapshot_store import MarathonSnapshot, SnapshotStore

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class EventStatus:
    """An event together with one user's progress through it."""

    event: Event
    progress: EventProgress
    is_active: bool


class MarathonManager:
    """Facade for the marathon services: catalog, roster, ledger and events.

    Every public method runs under one lock. A completion therefore appends its
    submission and raises the user's total before any reader can look, and the
    values handed out are copies that later mutations cannot reach.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        store: SnapshotStore | None = None,
        snapshot: MarathonSnapshot | None = None,
    ) -> None:
        self._lock = Lock()
        self._clock: Clock = clock or SystemClock()
        self._store = store

        # Services
        self._catalog = ReadingCatalog()
        self._roster = Roster()
        self._ledger = SubmissionLedger()
        self._events = EventRegistry()

        if snapshot is None and store is not None:
            snapshot = store.load()
        if snapshot is None:
            snapshot = build_seed_snapshot(self._clock.today())
            logger.info("No stored snapshot found; starting from seed data")
        self._restore(snapshot)

    # --- Reading Catalog Delegation ---

    def get_readings(self) -> list[Reading]:
        with self._lock:
            return self._catalog.get_readings()

    def get_reading(self, reading_id: str) -> Reading:
        with self._lock:
            return self._catalog.get_reading(reading_id)

    def get_todays_reading(self) -> Reading | None:
        with self._lock:
            return self._catalog.todays_reading(self._clock.today())

    def search_readings(self, query: str = "") -> list[Reading]:
        with self._lock:
            return self._catalog.search_readings(query)

    def add_reading(self, reading: Reading) -> Reading:
        with self._lock:
            checkpoint = self._checkpoint()
            added = self._catalog.add_reading(reading)
            logger.info("Added reading %s for %s", added.id, added.date.isoformat())
            self._persist(checkpoint)
            return added

    def bulk_add_readings(self, readings: Iterable[Reading]) -> list[Reading]:
        with self._lock:
            checkpoint = self._checkpoint()
            added = self._catalog.bulk_add_readings(readings)
            logger.info("Bulk imported %d readings", len(added))
            self._persist(checkpoint)
            return added

    def delete_reading(self, reading_id: str) -> Reading:
        # Submissions that reference the reading stay in the ledger.
        with self._lock:
            checkpoint = self._checkpoint()
            removed = self._catalog.delete_reading(reading_id)
            logger.info("Deleted reading %s", reading_id)
            self._persist(checkpoint)
            return removed

    # --- Roster Delegation ---

    def get_users(self) -> list[User]:
        with self._lock:
            return [replace(u) for u in self._roster.get_users()]

    def get_user(self, user_id: str) -> User:
        with self._lock:
            return replace(self._roster.get_user(user_id))

    def find_participant_by_name(self, name: str) -> User | None:
        with self._lock:
            user = self._roster.find_participant_by_name(name)
            return replace(user) if user else None

    def search_users(self, query: str = "") -> list[User]:
        with self._lock:
            return [replace(u) for u in self._roster.search_users(query)]

    def join(self, name: str, group: str) -> User:
        with self._lock:
            checkpoint = self._checkpoint()
            user = self._roster.join(name, group)
            logger.info("Participant %s joined group %s", user.id, user.group)
            self._persist(checkpoint)
            return replace(user)

    def update_user(
        self,
        user_id: str,
        name: str | None = None,
        group: str | None = None,
        total_score: int | None = None,
    ) -> User:
        with self._lock:
            checkpoint = self._checkpoint()
            user = self._roster.update_user(user_id, name=name, group=group, total_score=total_score)
            if total_score is not None and total_score != self._ledger.score_sum(user_id):
                logger.warning("Total score for %s edited away from its ledger sum", user_id)
            self._persist(checkpoint)
            return replace(user)

    def delete_user(self, user_id: str) -> int:
        """Delete a user and their submissions; returns the number of submissions removed."""
        with self._lock:
            checkpoint = self._checkpoint()
            self._roster.delete_user(user_id)
            removed = self._ledger.remove_user(user_id)
            logger.info("Deleted user %s and %d submissions", user_id, removed)
            self._persist(checkpoint)
            return removed

    def require_admin(self, user_id: str | None) -> User:
        with self._lock:
            if not user_id:
                raise PermissionDeniedError("Admin identity required.")
            user = self._roster.get_user(user_id)
            if user.role is not UserRole.ADMIN:
                raise PermissionDeniedError(f"User '{user_id}' is not an admin.")
            return replace(user)

    # --- Groups ---

    def list_groups(self) -> list[GroupSummary]:
        with self._lock:
            return self._roster.list_groups()

    def add_group(self, name: str) -> str:
        with self._lock:
            checkpoint = self._checkpoint()
            added = self._roster.add_group(name)
            self._persist(checkpoint)
            return added

    def rename_group(self, old_name: str, new_name: str) -> int:
        with self._lock:
            checkpoint = self._checkpoint()
            moved = self._roster.rename_group(old_name, new_name)
            logger.info("Renamed group %s to %s (%d members)", old_name, new_name, moved)
            self._persist(checkpoint)
            return moved

    def delete_group(self, name: str) -> None:
        with self._lock:
            checkpoint = self._checkpoint()
            self._roster.delete_group(name)
            self._persist(checkpoint)

    # --- Submission Ledger ---

    def record_completion(
        self,
        user_id: str,
        reading_id: str,
        quiz_answer_id: str | None = None,
    ) -> CompletionResult:
        with self._lock:
            checkpoint = self._checkpoint()
            user = self._roster.get_user(user_id)
            reading = self._catalog.get_reading(reading_id)
            result = self._ledger.record_completion(user, reading, quiz_answer_id, self._clock.now())
            self._persist(checkpoint)
            return result

    def has_completed(self, user_id: str, reading_id: str) -> bool:
        with self._lock:
            return self._ledger.has_submission(user_id, reading_id)

    def get_submissions(self, user_id: str | None = None) -> list[Submission]:
        with self._lock:
            if user_id is None:
                return self._ledger.get_submissions()
            return self._ledger.get_user_submissions(user_id)

    def find_score_drift(self) -> list[ScoreDrift]:
        with self._lock:
            return self._ledger.find_score_drift(self._roster.get_users())

    def recompute_totals(self) -> list[ScoreDrift]:
        with self._lock:
            checkpoint = self._checkpoint()
            repaired = self._ledger.recompute_totals(self._roster.get_users())
            if repaired:
                self._persist(checkpoint)
            return repaired

    # --- Rankings ---

    def rank_individuals(self, limit: int | None = None) -> list[IndividualRankRow]:
        with self._lock:
            return ranking.rank_individuals(self._roster.get_users(), limit=limit)

    def rank_groups(self, limit: int | None = None) -> list[GroupRankRow]:
        with self._lock:
            return ranking.rank_groups(self._roster.get_users(), limit=limit)

    def rank_within_group(self, group_name: str, limit: int | None = None) -> list[IndividualRankRow]:
        with self._lock:
            return ranking.rank_within_group(self._roster.get_users(), group_name, limit=limit)

    def participant_summary(self, user_id: str) -> ParticipantSummary:
        with self._lock:
            user = self._roster.get_user(user_id)
            return build_participant_summary(
                user=user,
                users=self._roster.get_users(),
                submissions=self._ledger.get_submissions(),
                reading_ids={r.id for r in self._catalog.get_readings()},
                todays_reading=self._catalog.todays_reading(self._clock.today()),
            )

    # --- Events ---

    def get_events(self) -> list[Event]:
        with self._lock:
            return self._events.get_events()

    def create_event(
        self,
        title: str | None,
        start_date: date | None,
        end_date: date | None,
        reading_ids: Iterable[str],
        description: str | None = None,
    ) -> Event:
        with self._lock:
            checkpoint = self._checkpoint()
            event = self._events.create_event(title, start_date, end_date, reading_ids, description)
            logger.info("Created event %s with %d readings", event.id, len(event.reading_ids))
            self._persist(checkpoint)
            return event

    def delete_event(self, event_id: str) -> Event:
        with self._lock:
            checkpoint = self._checkpoint()
            removed = self._events.delete_event(event_id)
            self._persist(checkpoint)
            return removed

    def get_event_progress(self, event_id: str, user_id: str) -> EventProgress:
        with self._lock:
            event = self._events.get_event(event_id)
            return event_progress(event, self._ledger.get_submissions(), user_id)

    def events_for_user(self, user_id: str) -> list[EventStatus]:
        with self._lock:
            self._roster.get_user(user_id)
            submissions = self._ledger.get_user_submissions(user_id)
            today = self._clock.today()
            return [
                EventStatus(
                    event=event,
                    progress=event_progress(event, submissions, user_id),
                    is_active=is_event_active(event, today),
                )
                for event in self._events.get_events()
            ]

    # --- Snapshot ---

    def snapshot(self) -> MarathonSnapshot:
        with self._lock:
            return self._build_snapshot()

    def _build_snapshot(self) -> MarathonSnapshot:
        return MarathonSnapshot(
            readings=self._catalog.get_readings(),
            users=[replace(u) for u in self._roster.get_users()],
            submissions=self._ledger.get_submissions(),
            groups=self._roster.get_registered_groups(),
            events=self._events.get_events(),
        )

    def _restore(self, snapshot: MarathonSnapshot) -> None:
        self._catalog.load_readings(snapshot.readings)
        self._roster.load([replace(u) for u in snapshot.users], snapshot.groups)
        self._ledger.load(snapshot.submissions)
        self._events.load_events(snapshot.events)

    def _checkpoint(self) -> MarathonSnapshot | None:
        return self._build_snapshot() if self._store is not None else None

    def _persist(self, checkpoint: MarathonSnapshot | None) -> None:
        """Save the current state, or restore ``checkpoint`` if the save fails."""
        if self._store is None:
            return
        try:
            self._store.save(self._build_snapshot())
        except (OSError, SnapshotError) as exc:
            logger.error("Failed to save marathon state, rolling back: %s", exc)
            if checkpoint is not None:
                self._restore(checkpoint)
            raise SnapshotError(f"Could not save marathon state: {exc}") from exc
