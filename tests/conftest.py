"""Shared fixtures for the marathon tests."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from factories import make_reading
from marathon_app.core.clock import FixedClock
from marathon_app.core.marathon_manager import MarathonManager
from marathon_app.core.models import User, UserRole
from marathon_app.core.snapshot_store import MarathonSnapshot


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 1, 10, 8, 30, tzinfo=timezone.utc))


@pytest.fixture
def snapshot() -> MarathonSnapshot:
    return MarathonSnapshot(
        readings=[
            make_reading("r1", date(2024, 1, 10)),
            make_reading("r2", date(2024, 1, 11)),
            make_reading("r3", date(2024, 1, 12), with_quiz=False),
        ],
        users=[
            User(id="u1", name="Mina", group="Alpha"),
            User(id="u2", name="Mariam", group="Alpha"),
            User(id="u3", name="Youssef", group="Beta"),
            User(id="admin", name="Leader", group="Admins", role=UserRole.ADMIN),
        ],
        groups=["Alpha", "Beta", "Admins"],
    )


@pytest.fixture
def manager(clock: FixedClock, snapshot: MarathonSnapshot) -> MarathonManager:
    return MarathonManager(clock=clock, snapshot=snapshot)
