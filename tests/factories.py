"""Builders for test records."""

from __future__ import annotations

from datetime import date

from marathon_app.core.models import QuizOption, Reading

TODAY = date(2024, 1, 10)


def make_reading(
    reading_id: str = "r1",
    day: date = TODAY,
    bonus_points: int = 2,
    with_quiz: bool = True,
) -> Reading:
    if not with_quiz:
        return Reading(id=reading_id, date=day, title=f"Reading {reading_id}", bonus_points=bonus_points)
    return Reading(
        id=reading_id,
        date=day,
        title=f"Reading {reading_id}",
        question="Which option is right?",
        options=(QuizOption(id="a", text="Right"), QuizOption(id="b", text="Wrong")),
        correct_option_id="a",
        bonus_points=bonus_points,
    )
