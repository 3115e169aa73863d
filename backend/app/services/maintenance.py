from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.models.announcement import DailyAnnouncement
from app.models.timetable import FixedTimeSlot
from app.schemas.timetable import TimetableSettings


def reshape_fixed_timetable(db: Session, class_id: str, settings: TimetableSettings) -> tuple[int, int]:
    """Make the fixed timetable cover exactly ``active_days x 1..number_of_periods``.

    Missing slots are created empty, slots outside the grid are deleted and
    existing slots keep their subject. Returns ``(created, deleted)``.
    """
    desired = {(day, period) for day in settings.active_days for period in range(1, settings.number_of_periods + 1)}
    existing = list(db.execute(select(FixedTimeSlot).where(FixedTimeSlot.class_id == class_id)).scalars())
    existing_keys = {(slot.day, slot.period) for slot in existing}

    deleted = 0
    for slot in existing:
        if (slot.day, slot.period) not in desired:
            db.delete(slot)
            deleted += 1

    now = datetime.now(timezone.utc)
    created = 0
    for day, period in sorted(desired - existing_keys):
        db.add(FixedTimeSlot(class_id=class_id, day=day, period=period, subject_id=None, updated_at=now))
        created += 1
    return created, deleted


def reset_future_announcements(db: Session, class_id: str, *, today: date) -> int:
    """Drop every per-date override from ``today`` on, manual clears included."""
    result = db.execute(
        delete(DailyAnnouncement).where(
            DailyAnnouncement.class_id == class_id,
            DailyAnnouncement.date >= today.isoformat(),
        )
    )
    return result.rowcount or 0
