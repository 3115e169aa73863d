"""Revert, or re-apply, the change an activity log entry describes.

Mutating store operations log ``before``/``after`` snapshots. Restoring a
snapshot makes the stored entity match it again; a ``None`` snapshot means the
entity did not exist. Rolling back a ``rollback_action`` entry re-applies the
``after`` snapshot of the entry it reverted. Changes are only staged on the
session; the caller commits and logs.
"""
from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Callable

from sqlalchemy.orm import Session

from app.core.exceptions import RollbackNotSupportedError
from app.models.activity_log import ActivityLog
from app.models.announcement import DailyAnnouncement, GeneralAnnouncement
from app.models.assignment import Assignment, AssignmentDuePeriod
from app.models.school_event import SchoolEvent
from app.models.subject import Subject
from app.models.timetable import FixedTimeSlot, TimetableSettingsRecord
from app.schemas.timetable import TimetableSettings
from app.services.equality import settings_equal
from app.services.maintenance import reshape_fixed_timetable
from app.services.overrides import OverrideKind, SubjectOverride

logger = logging.getLogger(__name__)

Restorer = Callable[[Session, str, dict, str], dict]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _split_slot_id(slot_id: str) -> tuple[str, int]:
    prefix, _, period = slot_id.rpartition("_")
    if not prefix or not period.isdigit():
        raise ValueError(f"Invalid slot id: {slot_id}")
    return prefix, int(period)


def _reference(details: dict) -> dict:
    reference = details.get("before") or details.get("after")
    if not isinstance(reference, dict):
        raise ValueError("Log entry has no snapshot to restore from")
    return reference


def restore_settings(db: Session, class_id: str, details: dict, key: str) -> dict:
    state = details.get(key)
    if not state:
        raise ValueError("Settings snapshot is empty")
    settings = TimetableSettings.model_validate(state)
    record = db.get(TimetableSettingsRecord, class_id)
    if record is None:
        record = TimetableSettingsRecord(class_id=class_id)
        db.add(record)
    layout_unchanged = settings_equal(record, settings)
    record.number_of_periods = settings.number_of_periods
    record.active_days = list(settings.active_days)
    record.student_permissions = settings.student_permissions.model_dump()
    if not layout_unchanged:
        created, deleted = reshape_fixed_timetable(db, class_id, settings)
        return {"restored": "settings", "fixed_slots": {"created": created, "deleted": deleted}}
    return {"restored": "settings"}


def restore_fixed_slots(db: Session, class_id: str, details: dict, key: str) -> dict:
    entries = details.get(key)
    if not isinstance(entries, list):
        raise ValueError("Fixed timetable snapshot must be a list of slots")
    now = _utcnow()
    restored = 0
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("id"), str):
            continue
        day, period = _split_slot_id(entry["id"])
        slot = db.get(FixedTimeSlot, (class_id, day, period))
        if slot is None:
            # The slot left the grid since; there is nothing to restore it into.
            continue
        slot.subject_id = entry.get("subject_id")
        if "room" in entry:
            slot.room = entry["room"]
        slot.updated_at = now
        restored += 1
    return {"restored_slots_count": restored}


def _apply_announcement(db: Session, class_id: str, date_value: str, period: int, state: dict | None) -> None:
    record = db.get(DailyAnnouncement, (class_id, date_value, period))
    if state is None:
        if record is not None:
            db.delete(record)
        return
    if record is None:
        record = DailyAnnouncement(class_id=class_id, date=date_value, period=period)
        db.add(record)
    record.subject_override = SubjectOverride(
        OverrideKind(state.get("subject_override_kind") or OverrideKind.inherit.value),
        state.get("subject_id_override"),
    )
    record.text = state.get("text") or ""
    record.show_on_calendar = bool(state.get("show_on_calendar"))
    record.is_manually_cleared = bool(state.get("is_manually_cleared"))
    record.updated_at = _utcnow()


def restore_announcement(db: Session, class_id: str, details: dict, key: str) -> dict:
    reference = _reference(details)
    date_value, period = reference["date"], int(reference["period"])
    _apply_announcement(db, class_id, date_value, period, details.get(key))
    return {"restored_slot": f"{date_value}_{period}"}


def restore_announcement_batch(db: Session, class_id: str, details: dict, key: str) -> dict:
    before = details.get("before") or {}
    after = details.get("after") or {}
    if not isinstance(before, dict) or not isinstance(after, dict):
        raise ValueError("Announcement batch snapshots must map slot ids to states")
    states = details.get(key) or {}
    slot_ids = sorted(set(before) | set(after))
    for slot_id in slot_ids:
        date_value, period = _split_slot_id(slot_id)
        _apply_announcement(db, class_id, date_value, period, states.get(slot_id))
    return {"restored_slots_count": len(slot_ids)}


def restore_general_announcement(db: Session, class_id: str, details: dict, key: str) -> dict:
    date_value = details.get("date")
    if not date_value:
        raise ValueError("General announcement log entry has no date")
    state = details.get(key)
    record = db.get(GeneralAnnouncement, (class_id, date_value))
    if state is None:
        if record is not None:
            db.delete(record)
        return {"restored_date": date_value}
    if record is None:
        record = GeneralAnnouncement(class_id=class_id, date=date_value)
        db.add(record)
    record.content = state.get("content") or ""
    record.ai_summary = state.get("ai_summary")
    record.ai_summary_last_generated_at = _parse_datetime(state.get("ai_summary_last_generated_at"))
    record.updated_at = _utcnow()
    return {"restored_date": date_value}


def _entity_restorer(model, fields: tuple[str, ...], coerce: dict[str, Callable[[Any], Any]] | None = None) -> Restorer:
    coerce = coerce or {}

    def restore(db: Session, class_id: str, details: dict, key: str) -> dict:
        entity_id = _reference(details).get("id")
        if not entity_id:
            raise ValueError(f"{model.__name__} log entry has no id")
        entity = db.get(model, entity_id)
        if entity is not None and entity.class_id != class_id:
            raise ValueError(f"{model.__name__} {entity_id} belongs to another class")
        state = details.get(key)
        if state is None:
            if entity is not None:
                db.delete(entity)
            return {"restored_id": entity_id}
        if entity is None:
            entity = model(id=entity_id, class_id=class_id)
            db.add(entity)
        for name in fields:
            value = state.get(name)
            setattr(entity, name, coerce[name](value) if name in coerce else value)
        if hasattr(entity, "updated_at"):
            entity.updated_at = _utcnow()
        return {"restored_id": entity_id}

    return restore


def _due_period(value: Any) -> AssignmentDuePeriod | None:
    return AssignmentDuePeriod(value) if value else None


restore_subject = _entity_restorer(Subject, ("name", "teacher_name"))
restore_event = _entity_restorer(SchoolEvent, ("title", "start_date", "end_date", "description"))
restore_assignment = _entity_restorer(
    Assignment,
    (
        "title",
        "description",
        "subject_id",
        "custom_subject_name",
        "due_date",
        "due_period",
        "submission_method",
        "target_audience",
    ),
    coerce={"due_period": _due_period},
)

RESTORERS: dict[str, Restorer] = {
    "update_settings": restore_settings,
    "batch_update_fixed_timetable": restore_fixed_slots,
    "reset_fixed_timetable": restore_fixed_slots,
    "upsert_announcement": restore_announcement,
    "clear_announcement_slot": restore_announcement,
    "delete_announcement": restore_announcement,
    "batch_upsert_announcements": restore_announcement_batch,
    "upsert_general_announcement": restore_general_announcement,
    "delete_general_announcement": restore_general_announcement,
    "add_subject": restore_subject,
    "update_subject": restore_subject,
    "delete_subject": restore_subject,
    "add_event": restore_event,
    "update_event": restore_event,
    "delete_event": restore_event,
    "add_assignment": restore_assignment,
    "update_assignment": restore_assignment,
    "delete_assignment": restore_assignment,
}


def _restore(db: Session, entry: ActivityLog, action: str, details: dict, key: str) -> dict:
    restorer = RESTORERS.get(action)
    if restorer is None:
        raise RollbackNotSupportedError(f"Action '{action}' cannot be rolled back automatically")
    try:
        return restorer(db, entry.class_id, details or {}, key)
    except (KeyError, TypeError, ValueError) as exc:
        raise RollbackNotSupportedError(f"Log entry {entry.id} cannot be rolled back: {exc}") from exc


def revert_entry(
    db: Session,
    entry: ActivityLog,
    find_entry: Callable[[str], ActivityLog | None],
) -> tuple[str, dict]:
    """Stage the reversal of ``entry``; returns the action name and details to log for it."""
    if entry.action == "rollback_action":
        original_id = (entry.details or {}).get("original_log_id")
        original = find_entry(original_id) if original_id else None
        if original is None:
            raise RollbackNotSupportedError(f"Original log entry for rollback {entry.id} not found")
        logger.info("Re-applying %s (%s) undone by rollback %s", original.action, original.id, entry.id)
        result = _restore(db, original, original.action, original.details, "after")
        return "rollback_rollback_action", {
            "original_rollback_log_id": entry.id,
            "reapplied_original_log_id": original.id,
            "reapplied_action": original.action,
            **result,
        }

    logger.info("Rolling back %s (%s)", entry.action, entry.id)
    result = _restore(db, entry, entry.action, entry.details, "before")
    return "rollback_action", {"original_log_id": entry.id, "original_action": entry.action, **result}
