"""Effective daily schedule = fixed weekly template + per-date overrides.

A per-date override carries its subject as a tagged variant rather than a
nullable id, because "follow the template" and "no subject today" are both
legitimate answers and must never be confused:

* ``inherit``  - use whatever the fixed slot says for that weekday/period
* ``none``     - explicitly no subject on that date
* ``specific`` - a given subject id

A manually cleared override wins over everything else.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date as date_type
from enum import Enum
from typing import Iterable, Protocol

WEEKDAY_ORDER = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class OverrideKind(str, Enum):
    inherit = "inherit"
    none = "none"
    specific = "specific"


@dataclass(frozen=True)
class SubjectOverride:
    kind: OverrideKind
    subject_id: str | None = None

    def __post_init__(self) -> None:
        if self.kind == OverrideKind.specific and not self.subject_id:
            raise ValueError("A specific override needs a subject id")
        if self.kind != OverrideKind.specific and self.subject_id is not None:
            raise ValueError(f"An '{self.kind.value}' override cannot carry a subject id")

    @classmethod
    def inherit(cls) -> "SubjectOverride":
        return cls(OverrideKind.inherit)

    @classmethod
    def no_subject(cls) -> "SubjectOverride":
        return cls(OverrideKind.none)

    @classmethod
    def specific(cls, subject_id: str) -> "SubjectOverride":
        return cls(OverrideKind.specific, subject_id)

    @classmethod
    def from_wire(cls, value: str | None, *, present: bool) -> "SubjectOverride":
        """Decode the JSON shape: key absent -> inherit, null -> none, string -> specific."""
        if not present:
            return cls.inherit()
        if value is None:
            return cls.no_subject()
        return cls.specific(value)

    def to_wire(self) -> str | None:
        """Inverse of ``from_wire`` for present keys; inherit has no wire value and maps to None."""
        return self.subject_id if self.kind == OverrideKind.specific else None

    def apply(self, fixed_subject_id: str | None) -> str | None:
        if self.kind == OverrideKind.inherit:
            return fixed_subject_id
        if self.kind == OverrideKind.none:
            return None
        return self.subject_id


class FixedSlotLike(Protocol):
    day: str
    period: int
    subject_id: str | None


class AnnouncementLike(Protocol):
    period: int
    subject_override: SubjectOverride
    text: str
    show_on_calendar: bool
    is_manually_cleared: bool


@dataclass(frozen=True)
class EffectiveSlot:
    date: str
    period: int
    subject_id: str | None
    fixed_subject_id: str | None
    text: str = ""
    show_on_calendar: bool = False
    is_manually_cleared: bool = False
    has_override: bool = False

    @property
    def subject_changed(self) -> bool:
        return self.subject_id != self.fixed_subject_id


def resolve_slot(
    date: str,
    period: int,
    fixed_slot: FixedSlotLike | None,
    announcement: AnnouncementLike | None,
) -> EffectiveSlot:
    fixed_subject_id = fixed_slot.subject_id if fixed_slot is not None else None

    if announcement is None:
        return EffectiveSlot(date=date, period=period, subject_id=fixed_subject_id, fixed_subject_id=fixed_subject_id)

    if announcement.is_manually_cleared:
        return EffectiveSlot(
            date=date,
            period=period,
            subject_id=None,
            fixed_subject_id=fixed_subject_id,
            is_manually_cleared=True,
            has_override=True,
        )

    return EffectiveSlot(
        date=date,
        period=period,
        subject_id=announcement.subject_override.apply(fixed_subject_id),
        fixed_subject_id=fixed_subject_id,
        text=announcement.text or "",
        show_on_calendar=bool(announcement.show_on_calendar),
        has_override=True,
    )


def _day_name(day) -> str:
    return getattr(day, "value", day)


def weekday_for(value: str | date_type) -> str:
    if isinstance(value, str):
        value = date_type.fromisoformat(value)
    return WEEKDAY_ORDER[value.weekday()]


def resolve_day(
    date: str,
    *,
    number_of_periods: int,
    active_days: Iterable[str],
    fixed_slots: Iterable[FixedSlotLike],
    announcements: Iterable[AnnouncementLike],
) -> list[EffectiveSlot]:
    """Resolve every period of ``date``; inactive weekdays have no slots."""
    weekday = weekday_for(date)
    if weekday not in {_day_name(day) for day in active_days}:
        return []

    fixed_by_period = {slot.period: slot for slot in fixed_slots if _day_name(slot.day) == weekday}
    announcements_by_period = {item.period: item for item in announcements}
    return [
        resolve_slot(date, period, fixed_by_period.get(period), announcements_by_period.get(period))
        for period in range(1, number_of_periods + 1)
    ]
