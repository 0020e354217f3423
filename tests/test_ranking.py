"""
Tests for individual and group leaderboards.
"""

import pytest

from marathon_app.core.models import User, UserRole
from marathon_app.core.services.ranking import (
    find_individual_rank,
    points_behind_leader,
    rank_groups,
    rank_individuals,
    rank_within_group,
)


def _participant(user_id, score, group="Alpha"):
    return User(id=user_id, name=user_id.upper(), group=group, total_score=score)


def _admin(score, group="Alpha"):
    return User(id="admin", name="Admin", group=group, role=UserRole.ADMIN, total_score=score)


class TestRankIndividuals:
    """Participant ordering and tie-breaks."""

    def test_ties_keep_input_order(self):
        users = [_participant("a", 50), _participant("b", 50), _participant("c", 30)]

        rows = rank_individuals(users)

        assert [row.user_id for row in rows] == ["a", "b", "c"]
        assert [row.rank for row in rows] == [1, 2, 3]

    def test_ties_order_follows_input_not_id(self):
        users = [_participant("b", 50), _participant("a", 50)]
        assert [row.user_id for row in rank_individuals(users)] == ["b", "a"]

    def test_sorted_descending(self):
        users = [_participant("a", 5), _participant("b", 40), _participant("c", 12)]
        assert [row.user_id for row in rank_individuals(users)] == ["b", "c", "a"]

    def test_admins_excluded(self):
        users = [_participant("a", 5), _admin(1000)]
        assert [row.user_id for row in rank_individuals(users)] == ["a"]

    def test_limit(self):
        users = [_participant(str(i), i) for i in range(20)]
        rows = rank_individuals(users, limit=10)
        assert len(rows) == 10
        assert rows[0].total_score == 19

    @pytest.mark.parametrize("limit", [0, -1])
    def test_non_positive_limit_rejected(self, limit):
        users = [_participant("a", 5), _participant("b", 4), _participant("c", 3)]
        with pytest.raises(ValueError):
            rank_individuals(users, limit=limit)

    def test_empty_roster(self):
        assert rank_individuals([]) == []

    def test_drifted_totals_are_ranked_as_recorded(self):
        users = [_participant("a", -7), _participant("b", 0)]
        assert [row.user_id for row in rank_individuals(users)] == ["b", "a"]

    def test_find_rank(self):
        users = [_participant("a", 5), _participant("b", 40)]
        assert find_individual_rank(users, "a") == 2
        assert find_individual_rank(users, "missing") is None


class TestRankGroups:
    """Group sums exclude admins."""

    def test_sums_and_order(self):
        users = [
            _participant("a", 10, "Alpha"),
            _participant("b", 15, "Beta"),
            _participant("c", 10, "Alpha"),
        ]

        rows = rank_groups(users)

        assert [(row.group_name, row.total_score, row.rank) for row in rows] == [
            ("Alpha", 20, 1),
            ("Beta", 15, 2),
        ]
        assert rows[0].member_count == 2

    def test_admin_score_never_counts(self):
        users = [_participant("a", 10, "Alpha"), _admin(500, "Alpha")]
        rows = rank_groups(users)
        assert rows[0].total_score == 10
        assert rows[0].member_count == 1

    def test_admin_only_group_absent(self):
        users = [_participant("a", 10, "Alpha"), _admin(500, "Admins")]
        assert [row.group_name for row in rank_groups(users)] == ["Alpha"]

    def test_group_ties_keep_first_seen_order(self):
        users = [_participant("a", 10, "Beta"), _participant("b", 10, "Alpha")]
        rows = rank_groups(users)
        assert [(row.group_name, row.rank) for row in rows] == [("Beta", 1), ("Alpha", 2)]

    def test_negative_limit_rejected(self):
        users = [_participant("a", 10, "Beta"), _participant("b", 10, "Alpha")]
        with pytest.raises(ValueError):
            rank_groups(users, limit=-1)


class TestRankWithinGroup:
    def test_restricted_to_group(self):
        users = [
            _participant("a", 10, "Alpha"),
            _participant("b", 99, "Beta"),
            _participant("c", 20, "Alpha"),
        ]

        rows = rank_within_group(users, "Alpha")

        assert [(row.user_id, row.rank) for row in rows] == [("c", 1), ("a", 2)]

    def test_unknown_group_is_empty(self):
        assert rank_within_group([_participant("a", 1)], "Nope") == []


class TestPointsBehindLeader:
    def test_leader_is_zero(self):
        rows = rank_groups([_participant("a", 30, "Alpha"), _participant("b", 10, "Beta")])
        assert points_behind_leader(rows, "Alpha") == 0

    def test_trailing_group(self):
        rows = rank_groups([_participant("a", 30, "Alpha"), _participant("b", 10, "Beta")])
        assert points_behind_leader(rows, "Beta") == 20

    def test_empty_rows(self):
        assert points_behind_leader([], "Alpha") == 0
