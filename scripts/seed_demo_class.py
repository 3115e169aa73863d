"""Seed a demo class with subjects, settings and a weekly template.

Run:
  PYTHONPATH=backend python scripts/seed_demo_class.py
"""

from __future__ import annotations

import os

from app.core.security import UserRole, create_access_token
from app.db.bootstrap import ensure_schema
from app.db.session import SessionLocal
from app.schemas.subject import SubjectCreate
from app.schemas.timetable import FixedTimeSlotPayload, TimetableSettingsUpdate
from app.services.store import TimetableStore

CLASS_ID = os.getenv("DEMO_CLASS_ID", "demo-class")
SEED_USER = "seed-script"
WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
PERIODS = 6

SUBJECTS = [
    ("Mathematics", "Ms. Sato"),
    ("English", "Mr. Brown"),
    ("Science", "Dr. Ito"),
    ("History", None),
    ("Physical Education", "Coach Lee"),
    ("Art", None),
]


def _ensure_subjects(store: TimetableStore) -> list[str]:
    existing = {subject.name: subject.id for subject in store.list_subjects(CLASS_ID)}
    ids: list[str] = []
    for name, teacher in SUBJECTS:
        if name in existing:
            ids.append(existing[name])
            continue
        subject = store.create_subject(CLASS_ID, SubjectCreate(name=name, teacher_name=teacher), SEED_USER)
        ids.append(subject.id)
    return ids


def _template(subject_ids: list[str]) -> list[FixedTimeSlotPayload]:
    slots: list[FixedTimeSlotPayload] = []
    for day_index, day in enumerate(WEEKDAYS):
        for period in range(1, PERIODS + 1):
            subject_id = subject_ids[(day_index + period - 1) % len(subject_ids)]
            slots.append(FixedTimeSlotPayload(day=day, period=period, subject_id=subject_id))
    return slots


def main() -> None:
    ensure_schema()
    session = SessionLocal()
    try:
        store = TimetableStore(session)
        store.update_settings(
            CLASS_ID,
            TimetableSettingsUpdate(number_of_periods=PERIODS, active_days=WEEKDAYS),
            SEED_USER,
        )
        subject_ids = _ensure_subjects(store)
        updated = store.update_fixed_slots(CLASS_ID, _template(subject_ids), SEED_USER)
    finally:
        session.close()

    print(f"Demo class '{CLASS_ID}' ready: {len(subject_ids)} subjects, {updated} template slots written.")
    print("\nTokens for local testing:")
    print(f"  - admin:   {create_access_token('demo-admin', role=UserRole.class_admin, class_id=CLASS_ID)}")
    print(f"  - student: {create_access_token('demo-student', role=UserRole.student, class_id=CLASS_ID)}")


if __name__ == "__main__":
    main()
