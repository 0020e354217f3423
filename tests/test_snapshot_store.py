"""
Tests for the JSON snapshot store.
"""

from datetime import date, datetime, timezone
import json

import pytest

from factories import make_reading
from marathon_app.core.errors import SnapshotError
from marathon_app.core.models import Event, Submission, User, UserRole
from marathon_app.core.snapshot_store import JsonSnapshotStore, MarathonSnapshot, decode_snapshot


@pytest.fixture
def store(tmp_path) -> JsonSnapshotStore:
    return JsonSnapshotStore(tmp_path / "data" / "marathon.json")


class TestJsonSnapshotStore:
    def test_missing_file_loads_none(self, store):
        assert store.load() is None

    def test_saved_snapshot_restores_every_collection(self, store):
        snapshot = MarathonSnapshot(
            readings=[make_reading("r1", date(2024, 1, 10)), make_reading("r2", with_quiz=False)],
            users=[
                User(id="u1", name="Mina", group="Alpha", total_score=12),
                User(id="admin", name="Leader", group="Admins", role=UserRole.ADMIN),
            ],
            submissions=[
                Submission(
                    user_id="u1",
                    reading_id="r1",
                    completed_at=datetime(2024, 1, 10, 9, 15, tzinfo=timezone.utc),
                    score=12,
                    quiz_answer_id="a",
                    is_correct=True,
                )
            ],
            groups=["Alpha", "Admins", "Empty"],
            events=[
                Event(
                    id="e1",
                    title="Week",
                    start_date=date(2024, 1, 1),
                    end_date=date(2024, 1, 7),
                    reading_ids=frozenset({"r1", "r2"}),
                    description="*Go*",
                )
            ],
        )

        store.save(snapshot)
        loaded = store.load()

        assert loaded.readings == snapshot.readings
        assert loaded.users == snapshot.users
        assert loaded.submissions == snapshot.submissions
        assert loaded.groups == snapshot.groups
        assert loaded.events == snapshot.events

    def test_file_is_readable_json(self, store):
        store.save(MarathonSnapshot(groups=["مجموعة"]))
        document = json.loads(store.file_path.read_text(encoding="utf-8"))
        assert document["groups"] == ["مجموعة"]
        assert set(document) == {"readings", "users", "submissions", "groups", "events"}

    def test_invalid_json_raises(self, store):
        store.file_path.parent.mkdir(parents=True, exist_ok=True)
        store.file_path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SnapshotError):
            store.load()


class TestDecodeSnapshot:
    def test_non_object_rejected(self):
        with pytest.raises(SnapshotError):
            decode_snapshot([])

    def test_missing_field_rejected(self):
        with pytest.raises(SnapshotError):
            decode_snapshot({"users": [{"id": "u1"}]})

    def test_defaults_for_optional_fields(self):
        snapshot = decode_snapshot({"users": [{"id": "u1", "name": "Mina", "group": "Alpha"}]})
        assert snapshot.users[0].role is UserRole.PARTICIPANT
        assert snapshot.users[0].total_score == 0
