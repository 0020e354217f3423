"""Point rules applied when a reading is marked complete."""

from __future__ import annotations

from datetime import date

from marathon_app.constants.scoring_constants import FULL_SCORE, LATE_SCORE
from marathon_app.core.models import Reading


def is_correct_answer(reading: Reading, chosen_option_id: str | None) -> bool:
    """Return True when the chosen option matches the reading's correct option."""
    if chosen_option_id is None or reading.correct_option_id is None:
        return False
    return chosen_option_id == reading.correct_option_id


def base_score(reading: Reading, submission_date: date) -> int:
    return FULL_SCORE if submission_date == reading.date else LATE_SCORE


def bonus_score(reading: Reading, chosen_option_id: str | None) -> int:
    if not reading.has_quiz:
        return 0
    return reading.bonus_points if is_correct_answer(reading, chosen_option_id) else 0


def score_completion(
    reading: Reading,
    submission_date: date,
    chosen_option_id: str | None = None,
) -> int:
    """Compute the points for completing ``reading`` on ``submission_date``.

    Completing on the reading's own date earns the full score, any other date
    earns the late score. The bonus depends only on quiz correctness.
    """
    return base_score(reading, submission_date) + bonus_score(reading, chosen_option_id)
