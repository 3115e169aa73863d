from datetime import datetime, timezone
import logging

from app.schemas.timetable import TimetableSettings
from app.services.equality import (
    collection_equal,
    grouped_collection_equal,
    normalize_item,
    project_collection,
    settings_equal,
)


def test_settings_equal_is_reflexive_and_ignores_day_order():
    settings = {"number_of_periods": 6, "active_days": ["Monday", "Tuesday", "Friday"]}
    shuffled = {"number_of_periods": 6, "active_days": ["Friday", "Monday", "Tuesday"]}

    assert settings_equal(settings, settings)
    assert settings_equal(settings, shuffled)
    assert settings["active_days"] == ["Monday", "Tuesday", "Friday"]


def test_settings_equal_detects_differences_and_handles_missing_values():
    base = TimetableSettings(number_of_periods=5, active_days=["Monday", "Tuesday"])
    more_periods = TimetableSettings(number_of_periods=6, active_days=["Monday", "Tuesday"])
    other_days = TimetableSettings(number_of_periods=5, active_days=["Monday", "Wednesday"])

    assert not settings_equal(base, more_periods)
    assert not settings_equal(base, other_days)
    assert settings_equal(None, None)
    assert not settings_equal(base, None)
    assert not settings_equal(None, base)


def test_collection_equal_ignores_order_timestamps_and_absent_defaults():
    stored = [
        {
            "date": "2024-05-01",
            "period": 2,
            "subject_id_override": None,
            "text": "",
            "show_on_calendar": False,
            "is_manually_cleared": False,
            "updated_at": datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc),
        },
        {
            "date": "2024-05-01",
            "period": 1,
            "subject_id_override": "math",
            "text": "Quiz",
            "show_on_calendar": True,
            "is_manually_cleared": False,
            "updated_at": datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc),
        },
    ]
    local = [
        {"date": "2024-05-01", "period": 1, "subject_id_override": "math", "text": "Quiz", "show_on_calendar": True},
        {"date": "2024-05-01", "period": 2},
    ]

    assert collection_equal(stored, local)
    assert collection_equal(local, stored)


def test_collection_equal_detects_value_and_length_changes():
    first = [{"id": "Monday_1", "day": "Monday", "period": 1, "subject_id": "math"}]
    changed = [{"id": "Monday_1", "day": "Monday", "period": 1, "subject_id": "eng"}]

    assert not collection_equal(first, changed)
    assert not collection_equal(first, first + changed)
    assert not collection_equal(first, None)
    assert collection_equal(None, None)
    assert collection_equal([], [])


def test_collection_equal_uses_caller_supplied_ignored_fields():
    a = [{"id": "x", "room": "101", "subject_id": "math"}]
    b = [{"id": "x", "room": "202", "subject_id": "math"}]

    assert not collection_equal(a, b)
    assert collection_equal(a, b, ignored_fields=("room",))


def test_collection_equal_matches_normalized_copy():
    items = [
        {"date": "2024-05-02", "period": 3, "text": "Bring calculators"},
        {"date": "2024-05-02", "period": 1, "is_manually_cleared": True},
    ]
    normalized = [normalize_item(item) for item in items]

    assert collection_equal(items, normalized)


def test_unserializable_values_fall_back_to_identity_comparison(caplog):
    marker = object()
    items = [{"period": 1, "payload": marker}, {"period": 1, "payload": object()}]

    projection = project_collection(items)
    assert not projection.ok
    assert projection.items is None

    with caplog.at_level(logging.WARNING, logger="app.services.equality"):
        assert collection_equal(items, items)
        assert not collection_equal(items, list(items))
    assert "identity comparison" in caplog.text


def test_grouped_collection_equal_compares_keys_and_groups():
    stored = {
        "2024-05-01": [{"date": "2024-05-01", "period": 1, "text": "Quiz"}],
        "2024-05-02": [],
    }
    same = {
        "2024-05-02": [],
        "2024-05-01": [{"date": "2024-05-01", "period": 1, "text": "Quiz", "updated_at": "later"}],
    }
    missing_key = {"2024-05-01": [{"date": "2024-05-01", "period": 1, "text": "Quiz"}]}
    changed = {
        "2024-05-01": [{"date": "2024-05-01", "period": 1, "text": "Test"}],
        "2024-05-02": [],
    }

    assert grouped_collection_equal(stored, same)
    assert not grouped_collection_equal(stored, missing_key)
    assert not grouped_collection_equal(stored, changed)
    assert grouped_collection_equal(None, None)
    assert not grouped_collection_equal(stored, None)


def test_settings_with_unorderable_days_fall_back_to_identity(caplog):
    first = {"number_of_periods": 5, "active_days": ["Monday", None]}
    second = {"number_of_periods": 5, "active_days": [None, "Monday"]}

    with caplog.at_level(logging.WARNING, logger="app.services.equality"):
        assert not settings_equal(first, second)
        assert settings_equal(first, first)
    assert "identity comparison" in caplog.text


def test_collection_equal_is_order_insensitive_when_views_differ_only_by_container():
    listed = {"date": "2024-05-01", "period": 1, "tags": ["a"]}
    tupled = {"date": "2024-05-01", "period": 1, "tags": ("a",)}

    assert collection_equal([listed, tupled], [tupled, listed])
    assert collection_equal([tupled, listed], [listed, tupled])
    assert not collection_equal([listed, listed], [listed, tupled])
