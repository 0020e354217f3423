"""Dashboard statistics for a single participant."""

from __future__ import annotations

from dataclasses import dataclass

from marathon_app.core.models import Reading, Submission, User
from marathon_app.core.services.event_progress import rounded_percent
from marathon_app.core.services.ranking import find_individual_rank, points_behind_leader, rank_groups


@dataclass(slots=True, frozen=True)
class ParticipantSummary:
    user_id: str
    name: str
    group: str
    total_score: int
    rank: int | None
    completed_count: int
    completion_percent: int
    group_rank: int | None
    points_behind_leader: int
    todays_reading_id: str | None
    todays_reading_completed: bool


def build_participant_summary(
    user: User,
    users: list[User],
    submissions: list[Submission],
    reading_ids: set[str],
    todays_reading: Reading | None,
) -> ParticipantSummary:
    own = [s for s in submissions if s.user_id == user.id]
    # Orphaned entries count as reading days but not toward catalog completion.
    still_listed = [s for s in own if s.reading_id in reading_ids]
    group_rows = rank_groups(users)
    group_rank = next((row.rank for row in group_rows if row.group_name == user.group), None)
    todays_completed = todays_reading is not None and any(
        s.reading_id == todays_reading.id for s in own
    )
    return ParticipantSummary(
        user_id=user.id,
        name=user.name,
        group=user.group,
        total_score=user.total_score,
        rank=find_individual_rank(users, user.id),
        completed_count=len(own),
        completion_percent=rounded_percent(len(still_listed), len(reading_ids)),
        group_rank=group_rank,
        points_behind_leader=points_behind_leader(group_rows, user.group),
        todays_reading_id=todays_reading.id if todays_reading else None,
        todays_reading_completed=todays_completed,
    )
