"""Leaderboards derived from the user roster."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from marathon_app.core.models import User


@dataclass(slots=True, frozen=True)
class IndividualRankRow:
    """Immutable leaderboard snapshot for one participant."""

    user_id: str
    name: str
    group: str
    total_score: int
    rank: int


@dataclass(slots=True, frozen=True)
class GroupRankRow:
    """Immutable leaderboard snapshot for one group."""

    group_name: str
    total_score: int
    member_count: int
    rank: int


def rank_individuals(users: Iterable[User], limit: int | None = None) -> list[IndividualRankRow]:
    """Rank participants by total score.

    ``sorted`` is stable, so equal scores keep their input order and receive
    consecutive ranks rather than a shared one.
    """
    participants = [user for user in users if user.is_participant]
    ordered = sorted(participants, key=lambda u: -u.total_score)
    rows = [
        IndividualRankRow(
            user_id=user.id,
            name=user.name,
            group=user.group,
            total_score=user.total_score,
            rank=index + 1,
        )
        for index, user in enumerate(ordered)
    ]
    return _apply_limit(rows, limit)


def rank_groups(users: Iterable[User], limit: int | None = None) -> list[GroupRankRow]:
    """Rank groups by the summed score of their participants; admins never count."""
    totals: dict[str, int] = {}
    members: dict[str, int] = {}
    for user in users:
        if not user.is_participant:
            continue
        totals[user.group] = totals.get(user.group, 0) + user.total_score
        members[user.group] = members.get(user.group, 0) + 1

    ordered = sorted(totals.items(), key=lambda item: -item[1])
    rows = [
        GroupRankRow(
            group_name=name,
            total_score=score,
            member_count=members[name],
            rank=index + 1,
        )
        for index, (name, score) in enumerate(ordered)
    ]
    return _apply_limit(rows, limit)


def rank_within_group(
    users: Iterable[User],
    group_name: str,
    limit: int | None = None,
) -> list[IndividualRankRow]:
    return rank_individuals((u for u in users if u.group == group_name), limit=limit)


def find_individual_rank(users: Iterable[User], user_id: str) -> int | None:
    return next((row.rank for row in rank_individuals(users) if row.user_id == user_id), None)


def points_behind_leader(rows: list[GroupRankRow], group_name: str) -> int:
    """Distance between ``group_name`` and the leading group, never negative."""
    if not rows:
        return 0
    own = next((row.total_score for row in rows if row.group_name == group_name), 0)
    return max(0, rows[0].total_score - own)


def _apply_limit(rows: list, limit: int | None) -> list:
    if limit is None:
        return rows
    if limit < 1:
        raise ValueError("Leaderboard limit must be a positive integer.")
    return rows[:limit]
