"""Append-only record of reading completions."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
import logging

from marathon_app.core.errors import AlreadySubmittedError
from marathon_app.core.models import Reading, Submission, User
from marathon_app.core.services.scoring import is_correct_answer, score_completion

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CompletionResult:
    """Outcome of an accepted completion."""

    submission: Submission
    total_score: int


@dataclass(slots=True, frozen=True)
class ScoreDrift:
    """A user whose cached total disagrees with the ledger."""

    user_id: str
    recorded_total: int
    ledger_total: int


class SubmissionLedger:
    """Stores at most one submission per (user, reading) pair.

    The ledger is not synchronized on its own; ``MarathonManager`` serializes
    access so that an appended submission and the matching ``total_score``
    increment are published together.
    """

    def __init__(self) -> None:
        self._submissions: list[Submission] = []
        self._keys: set[tuple[str, str]] = set()

    def load(self, submissions: Iterable[Submission]) -> None:
        """Replace the ledger contents, dropping repeated pairs."""
        self._submissions = []
        self._keys = set()
        for submission in submissions:
            key = (submission.user_id, submission.reading_id)
            if key in self._keys:
                logger.warning("Dropping repeated submission for %s / %s", *key)
                continue
            self._keys.add(key)
            self._submissions.append(submission)

    def has_submission(self, user_id: str, reading_id: str) -> bool:
        return (user_id, reading_id) in self._keys

    def record_completion(
        self,
        user: User,
        reading: Reading,
        chosen_option_id: str | None,
        now: datetime,
    ) -> CompletionResult:
        """Append a scored submission and bump the user's running total."""
        if self.has_submission(user.id, reading.id):
            raise AlreadySubmittedError(user.id, reading.id)

        score = score_completion(reading, now.date(), chosen_option_id)
        submission = Submission(
            user_id=user.id,
            reading_id=reading.id,
            completed_at=now,
            score=score,
            quiz_answer_id=chosen_option_id,
            is_correct=is_correct_answer(reading, chosen_option_id),
        )
        self._submissions.append(submission)
        self._keys.add((user.id, reading.id))
        user.total_score += score
        logger.info(
            "User %s completed reading %s for %d points (total %d)",
            user.id,
            reading.id,
            score,
            user.total_score,
        )
        return CompletionResult(submission=submission, total_score=user.total_score)

    def get_submissions(self) -> list[Submission]:
        return list(self._submissions)

    def get_user_submissions(self, user_id: str) -> list[Submission]:
        return [s for s in self._submissions if s.user_id == user_id]

    def count_for_user(self, user_id: str) -> int:
        return sum(1 for s in self._submissions if s.user_id == user_id)

    def score_sum(self, user_id: str) -> int:
        return sum(s.score for s in self._submissions if s.user_id == user_id)

    def remove_user(self, user_id: str) -> int:
        """Delete every entry owned by ``user_id`` and return how many were removed."""
        kept = [s for s in self._submissions if s.user_id != user_id]
        removed = len(self._submissions) - len(kept)
        self._submissions = kept
        self._keys = {key for key in self._keys if key[0] != user_id}
        return removed

    def find_score_drift(self, users: Iterable[User]) -> list[ScoreDrift]:
        drifts: list[ScoreDrift] = []
        for user in users:
            ledger_total = self.score_sum(user.id)
            if user.total_score != ledger_total:
                drifts.append(
                    ScoreDrift(
                        user_id=user.id,
                        recorded_total=user.total_score,
                        ledger_total=ledger_total,
                    )
                )
        return drifts

    def recompute_totals(self, users: Iterable[User]) -> list[ScoreDrift]:
        """Reset drifted totals to the ledger sum; returns what was repaired."""
        users = list(users)
        drifts = self.find_score_drift(users)
        by_id = {user.id: user for user in users}
        for drift in drifts:
            by_id[drift.user_id].total_score = drift.ledger_total
            logger.warning(
                "Repaired total for %s: %d -> %d",
                drift.user_id,
                drift.recorded_total,
                drift.ledger_total,
            )
        return drifts
