"""Starter content used when no stored snapshot exists."""

from __future__ import annotations

from datetime import date

from marathon_app.constants.scoring_constants import DEFAULT_BONUS_POINTS
from marathon_app.core.models import QuizOption, Reading, User, UserRole
from marathon_app.core.snapshot_store import MarathonSnapshot

ADMIN_GROUP = "Administration"


def build_seed_snapshot(today: date) -> MarathonSnapshot:
    """Return a fresh snapshot with one reading for ``today`` and two participants."""
    readings = [
        Reading(
            id="1",
            date=today,
            title="Genesis 1-3",
            question="What did God create on the first day?",
            options=(
                QuizOption(id="a", text="Light"),
                QuizOption(id="b", text="Animals"),
                QuizOption(id="c", text="Mankind"),
            ),
            correct_option_id="a",
            bonus_points=DEFAULT_BONUS_POINTS,
        )
    ]
    users = [
        User(id="u1", name="Mina Samir", group="First Group", role=UserRole.PARTICIPANT),
        User(id="u2", name="Mariam Girgis", group="First Group", role=UserRole.PARTICIPANT),
        User(id="admin", name="Service Leader", group=ADMIN_GROUP, role=UserRole.ADMIN),
    ]
    groups: list[str] = []
    for user in users:
        if user.group not in groups:
            groups.append(user.group)
    return MarathonSnapshot(readings=readings, users=users, submissions=[], groups=groups, events=[])
