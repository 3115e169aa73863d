"""Semantic equality for timetable state.

Used to decide whether an incoming edit differs from what is already stored,
so that no-op writes (and the log entries and propagation they trigger) are
skipped. Volatile fields are projected away, absent optional fields are
filled with their defaults and collections are compared order-insensitively.
None of these helpers raise: a collection that cannot be projected falls
back to an identity comparison.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime
from enum import Enum
import json
import logging
from typing import Any, NamedTuple

logger = logging.getLogger(__name__)

DEFAULT_IGNORED_FIELDS: tuple[str, ...] = ("updated_at", "created_at", "ai_summary_last_generated_at")

DEFAULT_FIELD_VALUES: Mapping[str, Any] = {
    "subject_id_override": None,
    "show_on_calendar": False,
    "is_manually_cleared": False,
    "text": "",
}


class Projection(NamedTuple):
    items: list[Any] | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def settings_equal(a: Any | None, b: Any | None) -> bool:
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    if _field(a, "number_of_periods") != _field(b, "number_of_periods"):
        return False
    days_a = project_days(a)
    days_b = project_days(b)
    if not (days_a.ok and days_b.ok):
        logger.warning("Falling back to identity comparison: %s", days_a.error or days_b.error)
        return a is b
    return days_a.items == days_b.items


def _day_value(day: Any) -> Any:
    return day.value if isinstance(day, Enum) else day


def project_days(settings: Any) -> Projection:
    """Active days of ``settings`` in sorted order; unorderable values yield an error projection."""
    try:
        days = sorted(_day_value(day) for day in (_field(settings, "active_days") or []))
    except TypeError as exc:
        return Projection(None, str(exc))
    return Projection(days)


def _as_dict(item: Any) -> dict[str, Any]:
    if isinstance(item, Mapping):
        return dict(item)
    if hasattr(item, "model_dump"):
        return item.model_dump()
    raise TypeError(f"Cannot compare values of type {type(item).__name__}")


def normalize_item(
    item: Any,
    ignored_fields: Iterable[str] = DEFAULT_IGNORED_FIELDS,
    defaults: Mapping[str, Any] = DEFAULT_FIELD_VALUES,
) -> dict[str, Any]:
    """Comparison-only view of ``item``: ignored fields dropped, defaults filled in."""
    view = _as_dict(item)
    for name in ignored_fields:
        view.pop(name, None)
    for name, default in defaults.items():
        if view.get(name) is None:
            view[name] = default
    return view


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _canonical(value: Any) -> Any:
    if isinstance(value, Mapping):
        return sorted(((str(key), _canonical(item)) for key, item in value.items()), key=lambda pair: pair[0])
    if isinstance(value, list):
        return [_canonical(item) for item in value]
    if isinstance(value, tuple):
        return tuple(_canonical(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return sorted((_canonical(item) for item in value), key=repr)
    return value


def _sort_key(view: Mapping[str, Any]) -> tuple[str, str, str]:
    fallback = json.dumps(view, sort_keys=True, default=_json_default)
    # JSON erases container types; the repr keeps views that tie on it in a stable order.
    exact = repr(_canonical(view))
    if view.get("id"):
        return str(view["id"]), fallback, exact
    period = view.get("period")
    if view.get("date") and period is not None:
        return f"{view['date']}_{period}", fallback, exact
    if view.get("day") and period is not None:
        return f"{_day_value(view['day'])}_{period}", fallback, exact
    return fallback, fallback, exact


def project_collection(
    items: Iterable[Any],
    ignored_fields: Iterable[str] = DEFAULT_IGNORED_FIELDS,
    defaults: Mapping[str, Any] = DEFAULT_FIELD_VALUES,
) -> Projection:
    ignored = tuple(ignored_fields)
    try:
        views = [normalize_item(item, ignored, defaults) for item in items]
        views.sort(key=_sort_key)
    except (TypeError, ValueError) as exc:
        return Projection(None, str(exc))
    return Projection(views)


def collection_equal(
    arr1: Sequence[Any] | None,
    arr2: Sequence[Any] | None,
    ignored_fields: Iterable[str] = DEFAULT_IGNORED_FIELDS,
) -> bool:
    if arr1 is None and arr2 is None:
        return True
    if arr1 is None or arr2 is None:
        return False
    if len(arr1) != len(arr2):
        return False

    ignored = tuple(ignored_fields)
    first = project_collection(arr1, ignored)
    second = project_collection(arr2, ignored)
    if not (first.ok and second.ok):
        logger.warning("Falling back to identity comparison: %s", first.error or second.error)
        return arr1 is arr2
    return first.items == second.items


def grouped_collection_equal(
    map1: Mapping[str, Sequence[Any]] | None,
    map2: Mapping[str, Sequence[Any]] | None,
    ignored_fields: Iterable[str] = DEFAULT_IGNORED_FIELDS,
) -> bool:
    if map1 is None and map2 is None:
        return True
    if map1 is None or map2 is None:
        return False
    if set(map1) != set(map2):
        return False
    ignored = tuple(ignored_fields)
    return all(collection_equal(map1[key], map2[key], ignored) for key in map1)
