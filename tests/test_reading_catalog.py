"""
Tests for the reading catalog.
"""

from dataclasses import replace
from datetime import date

import pytest

from factories import make_reading
from marathon_app.core.errors import InvalidReadingError, UnknownReadingError
from marathon_app.core.models import QuizOption, Reading
from marathon_app.core.services.reading_catalog import ReadingCatalog


@pytest.fixture
def catalog() -> ReadingCatalog:
    return ReadingCatalog()


class TestAddReading:
    """Direct entry validation."""

    def test_add_keeps_given_id(self, catalog):
        added = catalog.add_reading(make_reading("r1"))
        assert added.id == "r1"
        assert catalog.get_reading("r1") == added

    def test_blank_id_is_generated(self, catalog):
        added = catalog.add_reading(make_reading(""))
        assert added.id.startswith("r-")

    def test_colliding_id_is_replaced(self, catalog):
        catalog.add_reading(make_reading("r1"))
        second = catalog.add_reading(make_reading("r1"))
        assert second.id != "r1"
        assert len(catalog.get_readings()) == 2

    def test_title_is_stripped(self, catalog):
        added = catalog.add_reading(replace(make_reading(), title="  Genesis 1-3  "))
        assert added.title == "Genesis 1-3"

    def test_empty_title_rejected(self, catalog):
        with pytest.raises(InvalidReadingError):
            catalog.add_reading(replace(make_reading(), title=" "))

    def test_negative_bonus_rejected(self, catalog):
        with pytest.raises(InvalidReadingError):
            catalog.add_reading(make_reading(bonus_points=-1))

    def test_correct_option_must_exist(self, catalog):
        with pytest.raises(InvalidReadingError):
            catalog.add_reading(replace(make_reading(), correct_option_id="z"))

    def test_duplicate_option_ids_rejected(self, catalog):
        options = (QuizOption(id="a", text="One"), QuizOption(id="a", text="Two"))
        with pytest.raises(InvalidReadingError):
            catalog.add_reading(replace(make_reading(), options=options))

    def test_question_without_options_rejected(self, catalog):
        with pytest.raises(InvalidReadingError):
            catalog.add_reading(replace(make_reading(), options=()))

    def test_quiz_fields_dropped_without_question(self, catalog):
        reading = replace(make_reading(), question="   ")
        added = catalog.add_reading(reading)
        assert added.question is None
        assert added.options == ()
        assert added.correct_option_id is None


class TestBulkAdd:
    def test_rows_without_title_skipped(self, catalog):
        rows = [
            make_reading("b1"),
            Reading(id="b2", date=date(2024, 1, 11), title="  "),
        ]
        added = catalog.bulk_add_readings(rows)
        assert [r.id for r in added] == ["b1"]


class TestLookup:
    def test_unknown_reading(self, catalog):
        with pytest.raises(UnknownReadingError):
            catalog.get_reading("missing")

    def test_delete(self, catalog):
        catalog.add_reading(make_reading("r1"))
        catalog.delete_reading("r1")
        assert not catalog.has_reading("r1")

    def test_delete_unknown(self, catalog):
        with pytest.raises(UnknownReadingError):
            catalog.delete_reading("missing")

    def test_todays_reading_is_first_match(self, catalog):
        catalog.add_reading(make_reading("r1", date(2024, 1, 10)))
        catalog.add_reading(make_reading("r2", date(2024, 1, 10)))
        assert catalog.todays_reading(date(2024, 1, 10)).id == "r1"
        assert catalog.todays_reading(date(2024, 1, 9)) is None

    def test_search_by_title_and_date(self, catalog):
        catalog.add_reading(replace(make_reading("r1", date(2024, 1, 10)), title="Genesis 1"))
        catalog.add_reading(replace(make_reading("r2", date(2024, 2, 3)), title="Exodus 1"))
        catalog.add_reading(replace(make_reading("r3", date(2024, 1, 20)), title="Genesis 2"))

        assert [r.id for r in catalog.search_readings("genesis")] == ["r3", "r1"]
        assert [r.id for r in catalog.search_readings("2024-02")] == ["r2"]
        assert [r.id for r in catalog.search_readings()] == ["r2", "r3", "r1"]
