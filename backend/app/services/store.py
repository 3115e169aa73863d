from __future__ import annotations

from collections import defaultdict
from contextlib import contextmanager
from datetime import date, datetime, timezone
import functools
import logging

from sqlalchemy import select
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import ResourceNotFoundError, RollbackNotSupportedError, StorageUnavailableError
from app.models.activity_log import ActivityLog
from app.models.announcement import DailyAnnouncement, GeneralAnnouncement
from app.models.assignment import Assignment
from app.models.school_event import SchoolEvent
from app.models.subject import Subject
from app.models.timetable import FixedTimeSlot, TimetableSettingsRecord
from app.schemas.announcement import DailyAnnouncementBatchEntry, DailyAnnouncementUpsert
from app.schemas.assignment import AssignmentCreate, AssignmentQuery, AssignmentUpdate
from app.schemas.school_event import SchoolEventCreate, SchoolEventUpdate
from app.schemas.subject import SubjectCreate, SubjectUpdate
from app.schemas.timetable import (
    FixedTimeSlotPayload,
    StudentPermissions,
    TimetableSettings,
    TimetableSettingsUpdate,
)
from app.services.audit import log_activity
from app.services.equality import collection_equal, grouped_collection_equal, settings_equal
from app.services.maintenance import reset_future_announcements, reshape_fixed_timetable
from app.services.overrides import WEEKDAY_ORDER, SubjectOverride
from app.services.rollback import revert_entry

logger = logging.getLogger(__name__)

SUMMARY_PREVIEW_LENGTH = 50


@contextmanager
def storage_errors(db: Session):
    try:
        yield
    except (OperationalError, InterfaceError, DisconnectionError) as exc:
        db.rollback()
        logger.warning("Database unavailable: %s", exc)
        raise StorageUnavailableError(str(exc)) from exc


def _translated(method):
    @functools.wraps(method)
    def wrapper(self: "TimetableStore", *args, **kwargs):
        with storage_errors(self.db):
            return method(self, *args, **kwargs)

    return wrapper


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_timetable_settings() -> TimetableSettings:
    settings = get_settings()
    return TimetableSettings(
        number_of_periods=settings.default_number_of_periods,
        active_days=list(settings.default_active_days),
        student_permissions=StudentPermissions(),
    )


def fixed_slot_view(slot) -> dict:
    return {
        "id": slot.id,
        "day": slot.day,
        "period": slot.period,
        "subject_id": slot.subject_id,
        "room": slot.room,
    }


def announcement_view(
    date_value: str,
    period: int,
    override: SubjectOverride,
    *,
    text: str,
    show_on_calendar: bool,
    is_manually_cleared: bool,
    updated_at: datetime | None = None,
) -> dict:
    return {
        "date": date_value,
        "period": period,
        "subject_override_kind": override.kind.value,
        "subject_id_override": override.subject_id,
        "text": text,
        "show_on_calendar": show_on_calendar,
        "is_manually_cleared": is_manually_cleared,
        "updated_at": updated_at,
    }


def record_view(record: DailyAnnouncement) -> dict:
    return announcement_view(
        record.date,
        record.period,
        record.subject_override,
        text=record.text,
        show_on_calendar=record.show_on_calendar,
        is_manually_cleared=record.is_manually_cleared,
        updated_at=record.updated_at,
    )


def proposed_view(date_value: str, period: int, payload: DailyAnnouncementUpsert) -> dict:
    if payload.is_manually_cleared:
        return announcement_view(
            date_value,
            period,
            payload.subject_override,
            text="",
            show_on_calendar=False,
            is_manually_cleared=True,
        )
    return announcement_view(
        date_value,
        period,
        payload.subject_override,
        text=payload.text.strip(),
        show_on_calendar=payload.show_on_calendar,
        is_manually_cleared=False,
    )


def general_view(record: GeneralAnnouncement) -> dict:
    return {
        "date": record.date,
        "content": record.content,
        "ai_summary": record.ai_summary,
        "ai_summary_last_generated_at": record.ai_summary_last_generated_at,
    }


def subject_view(subject: Subject) -> dict:
    return {"id": subject.id, "name": subject.name, "teacher_name": subject.teacher_name}


EVENT_FIELDS = ("title", "start_date", "end_date", "description")
ASSIGNMENT_FIELDS = (
    "title",
    "description",
    "subject_id",
    "custom_subject_name",
    "due_date",
    "due_period",
    "submission_method",
    "target_audience",
)


def event_view(event: SchoolEvent) -> dict:
    return {"id": event.id, **{name: getattr(event, name) for name in EVENT_FIELDS}}


def assignment_view(assignment: Assignment) -> dict:
    view = {"id": assignment.id, **{name: getattr(assignment, name) for name in ASSIGNMENT_FIELDS}}
    if view["due_period"] is not None:
        view["due_period"] = getattr(view["due_period"], "value", view["due_period"])
    return view


ASSIGNMENT_SEARCH_FIELDS = ("title", "description", "custom_subject_name", "submission_method", "target_audience")


def _assignment_matches(assignment: Assignment, term: str) -> bool:
    return any(term in (getattr(assignment, name) or "").lower() for name in ASSIGNMENT_SEARCH_FIELDS)


CALENDAR_TYPE_ORDER = {"event": 1, "assignment": 2, "announcement": 3}


def calendar_sort_key(item) -> tuple:
    """Date first, then events before assignments before announcements."""
    if item.item_type == "event":
        return item.start_date, CALENDAR_TYPE_ORDER["event"]
    if item.item_type == "assignment":
        created = item.created_at.isoformat() if item.created_at is not None else ""
        return item.due_date, CALENDAR_TYPE_ORDER["assignment"], item.title, created
    return item.date, CALENDAR_TYPE_ORDER["announcement"], item.period


class TimetableStore:
    """Class-scoped reads and writes for timetable state.

    Mutations commit before returning and append an activity log entry;
    edits that would not change anything are detected up front and skipped.
    """

    def __init__(self, db: Session):
        self.db = db

    def log_action(self, class_id: str, user_id: str | None, action: str, details: dict | None = None) -> ActivityLog:
        return log_activity(self.db, class_id=class_id, user_id=user_id, action=action, details=details)

    # -- settings -----------------------------------------------------------

    def _settings_record(self, class_id: str) -> TimetableSettingsRecord | None:
        return self.db.get(TimetableSettingsRecord, class_id)

    @_translated
    def get_settings(self, class_id: str) -> TimetableSettings:
        record = self._settings_record(class_id)
        if record is not None:
            return self._settings_from_record(record)

        logger.info("Initializing default timetable settings for class %s", class_id)
        defaults = default_timetable_settings()
        self.db.add(
            TimetableSettingsRecord(
                class_id=class_id,
                number_of_periods=defaults.number_of_periods,
                active_days=list(defaults.active_days),
                student_permissions=defaults.student_permissions.model_dump(),
            )
        )
        reshape_fixed_timetable(self.db, class_id, defaults)
        self.log_action(class_id, "system", "initialize_settings", {"before": None, "after": defaults})
        self.db.commit()
        return defaults

    @staticmethod
    def _settings_from_record(record: TimetableSettingsRecord) -> TimetableSettings:
        defaults = default_timetable_settings()
        permissions = {**defaults.student_permissions.model_dump(), **(record.student_permissions or {})}
        return TimetableSettings(
            number_of_periods=record.number_of_periods,
            active_days=list(record.active_days or defaults.active_days),
            student_permissions=StudentPermissions(**permissions),
        )

    @_translated
    def update_settings(self, class_id: str, update: TimetableSettingsUpdate, user_id: str) -> TimetableSettings:
        current = self.get_settings(class_id)
        merged = update.merged_onto(current)
        layout_unchanged = settings_equal(current, merged)
        if layout_unchanged and current.student_permissions == merged.student_permissions:
            return current

        record = self._settings_record(class_id)
        record.number_of_periods = merged.number_of_periods
        record.active_days = list(merged.active_days)
        record.student_permissions = merged.student_permissions.model_dump()

        details: dict = {"before": current, "after": merged}
        if not layout_unchanged:
            created, deleted = reshape_fixed_timetable(self.db, class_id, merged)
            details["fixed_slots"] = {"created": created, "deleted": deleted}
        self.log_action(class_id, user_id, "update_settings", details)
        self.db.commit()
        return merged

    # -- fixed timetable ----------------------------------------------------

    @_translated
    def list_fixed_slots(self, class_id: str) -> list[FixedTimeSlot]:
        slots = list(self.db.execute(select(FixedTimeSlot).where(FixedTimeSlot.class_id == class_id)).scalars())
        slots.sort(key=lambda slot: (WEEKDAY_ORDER.index(slot.day), slot.period))
        return slots

    @_translated
    def update_fixed_slots(self, class_id: str, slots: list[FixedTimeSlotPayload], user_id: str) -> int:
        existing = {slot.id: slot for slot in self.list_fixed_slots(class_id)}
        current_views = [fixed_slot_view(existing[slot.id]) for slot in slots if slot.id in existing]
        incoming_views = [fixed_slot_view(slot) for slot in slots]
        if collection_equal(current_views, incoming_views):
            return 0

        now = _utcnow()
        before: list[dict] = []
        after: list[dict] = []
        for slot in slots:
            record = existing.get(slot.id)
            if record is not None and collection_equal([fixed_slot_view(record)], [fixed_slot_view(slot)]):
                continue
            before.append(fixed_slot_view(record) if record is not None else {"id": slot.id, "subject_id": None})
            if record is None:
                record = FixedTimeSlot(class_id=class_id, day=slot.day, period=slot.period)
                self.db.add(record)
            record.subject_id = slot.subject_id
            record.room = slot.room
            record.updated_at = now
            after.append(fixed_slot_view(slot))

        if after:
            self.log_action(
                class_id,
                user_id,
                "batch_update_fixed_timetable",
                {"before": before, "after": after, "count": len(after)},
            )
            self.db.commit()
        return len(after)

    @_translated
    def reset_fixed_slots(self, class_id: str, user_id: str) -> int:
        before: list[dict] = []
        now = _utcnow()
        for slot in self.list_fixed_slots(class_id):
            if slot.subject_id is None:
                continue
            before.append({"id": slot.id, "subject_id": slot.subject_id})
            slot.subject_id = None
            slot.updated_at = now
        if before:
            after = [{"id": item["id"], "subject_id": None} for item in before]
            self.log_action(
                class_id,
                user_id,
                "reset_fixed_timetable",
                {"before": before, "after": after, "count": len(before)},
            )
            self.db.commit()
        return len(before)

    # -- daily announcements ------------------------------------------------

    def _announcement(self, class_id: str, date_value: str, period: int) -> DailyAnnouncement | None:
        return self.db.get(DailyAnnouncement, (class_id, date_value, period))

    @_translated
    def list_announcements(self, class_id: str, date_value: str) -> list[DailyAnnouncement]:
        query = (
            select(DailyAnnouncement)
            .where(DailyAnnouncement.class_id == class_id, DailyAnnouncement.date == date_value)
            .order_by(DailyAnnouncement.period)
        )
        return list(self.db.execute(query).scalars())

    def _apply_upsert(
        self,
        class_id: str,
        date_value: str,
        period: int,
        payload: DailyAnnouncementUpsert,
        record: DailyAnnouncement | None,
    ) -> DailyAnnouncement:
        view = proposed_view(date_value, period, payload)
        if record is None:
            record = DailyAnnouncement(class_id=class_id, date=date_value, period=period)
            self.db.add(record)
        record.subject_override = payload.subject_override
        record.text = view["text"]
        record.show_on_calendar = view["show_on_calendar"]
        record.is_manually_cleared = view["is_manually_cleared"]
        record.updated_at = _utcnow()
        return record

    @_translated
    def upsert_announcement(
        self,
        class_id: str,
        date_value: str,
        period: int,
        payload: DailyAnnouncementUpsert,
        user_id: str,
    ) -> tuple[DailyAnnouncement, bool]:
        record = self._announcement(class_id, date_value, period)
        before = record_view(record) if record is not None else None
        if before is not None and collection_equal([before], [proposed_view(date_value, period, payload)]):
            return record, False

        record = self._apply_upsert(class_id, date_value, period, payload, record)
        action = "clear_announcement_slot" if payload.is_manually_cleared else "upsert_announcement"
        self.log_action(class_id, user_id, action, {"before": before, "after": record_view(record)})
        self.db.commit()
        return record, True

    @_translated
    def batch_upsert_announcements(
        self,
        class_id: str,
        entries: list[DailyAnnouncementBatchEntry],
        user_id: str,
    ) -> int:
        current: dict[str, list[dict]] = defaultdict(list)
        proposed: dict[str, list[dict]] = defaultdict(list)
        records: dict[tuple[str, int], DailyAnnouncement | None] = {}
        for entry in entries:
            key = (entry.date, entry.period)
            if key not in records:
                records[key] = self._announcement(class_id, entry.date, entry.period)
                if records[key] is not None:
                    current[entry.date].append(record_view(records[key]))
            proposed[entry.date].append(proposed_view(entry.date, entry.period, entry))

        if grouped_collection_equal(current, proposed):
            return 0

        before: dict[str, dict | None] = {}
        after: dict[str, dict] = {}
        for entry in entries:
            key = (entry.date, entry.period)
            record = records[key]
            existing_view = record_view(record) if record is not None else None
            if existing_view is not None and collection_equal(
                [existing_view], [proposed_view(entry.date, entry.period, entry)]
            ):
                continue
            slot_id = f"{entry.date}_{entry.period}"
            before.setdefault(slot_id, existing_view)
            records[key] = self._apply_upsert(class_id, entry.date, entry.period, entry, record)
            after[slot_id] = record_view(records[key])

        if after:
            self.log_action(
                class_id,
                user_id,
                "batch_upsert_announcements",
                {"count": len(after), "before": before, "after": after},
            )
            self.db.commit()
        return len(after)

    @_translated
    def delete_announcement(self, class_id: str, date_value: str, period: int, user_id: str) -> bool:
        record = self._announcement(class_id, date_value, period)
        if record is None:
            return False
        before = record_view(record)
        self.db.delete(record)
        self.log_action(class_id, user_id, "delete_announcement", {"before": before, "after": None})
        self.db.commit()
        return True

    @_translated
    def reset_future_announcements(self, class_id: str, user_id: str, *, today: date | None = None) -> int:
        today = today or _utcnow().date()
        removed = reset_future_announcements(self.db, class_id, today=today)
        if removed:
            self.log_action(
                class_id,
                user_id,
                "reset_future_daily_announcements",
                {"from_date": today, "count": removed},
            )
            self.db.commit()
        return removed

    @_translated
    def calendar_announcements(self, class_id: str, start: date, end: date) -> list[DailyAnnouncement]:
        query = (
            select(DailyAnnouncement)
            .where(
                DailyAnnouncement.class_id == class_id,
                DailyAnnouncement.date >= start.isoformat(),
                DailyAnnouncement.date <= end.isoformat(),
                DailyAnnouncement.show_on_calendar.is_(True),
                DailyAnnouncement.is_manually_cleared.is_(False),
            )
            .order_by(DailyAnnouncement.date, DailyAnnouncement.period)
        )
        return list(self.db.execute(query).scalars())

    @_translated
    def calendar_items(self, class_id: str, start: date, end: date) -> list:
        """Events overlapping the range, assignments due in it and announcements shown on the calendar."""
        events = self.db.execute(
            select(SchoolEvent).where(
                SchoolEvent.class_id == class_id,
                SchoolEvent.start_date <= end.isoformat(),
                SchoolEvent.end_date >= start.isoformat(),
            )
        ).scalars()
        assignments = self.db.execute(
            select(Assignment).where(
                Assignment.class_id == class_id,
                Assignment.due_date >= start.isoformat(),
                Assignment.due_date <= end.isoformat(),
            )
        ).scalars()
        items = [*events, *assignments, *self.calendar_announcements(class_id, start, end)]
        items.sort(key=calendar_sort_key)
        return items

    # -- general announcements ----------------------------------------------

    @_translated
    def get_general_announcement(self, class_id: str, date_value: str) -> GeneralAnnouncement | None:
        return self.db.get(GeneralAnnouncement, (class_id, date_value))

    @_translated
    def upsert_general_announcement(
        self,
        class_id: str,
        date_value: str,
        content: str,
        user_id: str,
    ) -> GeneralAnnouncement | None:
        trimmed = content.strip()
        record = self.get_general_announcement(class_id, date_value)

        if not trimmed:
            if record is None:
                return None
            if not record.content and record.ai_summary is None:
                return record
            before = general_view(record)
            record.content = ""
            record.ai_summary = None
            record.ai_summary_last_generated_at = None
            record.updated_at = _utcnow()
            self.log_action(
                class_id,
                user_id,
                "delete_general_announcement",
                {"date": date_value, "before": before, "after": general_view(record)},
            )
            self.db.commit()
            return record

        if record is not None and record.content == trimmed:
            return record

        before = general_view(record) if record is not None else None
        if record is None:
            record = GeneralAnnouncement(class_id=class_id, date=date_value)
            self.db.add(record)
        record.content = trimmed
        # A summary of the previous text no longer describes this one.
        record.ai_summary = None
        record.ai_summary_last_generated_at = None
        record.updated_at = _utcnow()
        self.log_action(
            class_id,
            user_id,
            "upsert_general_announcement",
            {"date": date_value, "before": before, "after": general_view(record)},
        )
        self.db.commit()
        return record

    @_translated
    def set_ai_summary(
        self,
        class_id: str,
        date_value: str,
        summary: str,
        generated_at: datetime,
        user_id: str,
    ) -> GeneralAnnouncement:
        record = self.get_general_announcement(class_id, date_value)
        if record is None:
            raise ResourceNotFoundError("General announcement", f"{class_id}/{date_value}")
        record.ai_summary = summary
        record.ai_summary_last_generated_at = generated_at
        self.log_action(
            class_id,
            user_id,
            "generate_ai_summary",
            {"date": date_value, "summary_length": len(summary)},
        )
        self.db.commit()
        return record

    @_translated
    def clear_ai_summary(
        self,
        class_id: str,
        date_value: str,
        user_id: str,
        *,
        action: str = "delete_ai_summary",
    ) -> bool:
        record = self.get_general_announcement(class_id, date_value)
        if record is None or (record.ai_summary is None and record.ai_summary_last_generated_at is None):
            return False
        previous = record.ai_summary or ""
        record.ai_summary = None
        record.ai_summary_last_generated_at = None
        preview = previous[:SUMMARY_PREVIEW_LENGTH] + "..." if previous else "N/A"
        self.log_action(class_id, user_id, action, {"date": date_value, "deleted_summary_preview": preview})
        self.db.commit()
        return True

    # -- subjects -------------------------------------------------------------

    @_translated
    def list_subjects(self, class_id: str) -> list[Subject]:
        query = select(Subject).where(Subject.class_id == class_id).order_by(Subject.name)
        return list(self.db.execute(query).scalars())

    def _subject(self, class_id: str, subject_id: str) -> Subject:
        subject = self.db.get(Subject, subject_id)
        if subject is None or subject.class_id != class_id:
            raise ResourceNotFoundError("Subject", subject_id)
        return subject

    @_translated
    def create_subject(self, class_id: str, payload: SubjectCreate, user_id: str) -> Subject:
        subject = Subject(class_id=class_id, name=payload.name, teacher_name=payload.teacher_name)
        self.db.add(subject)
        self.db.flush()
        self.log_action(class_id, user_id, "add_subject", {"before": None, "after": subject_view(subject)})
        self.db.commit()
        return subject

    @_translated
    def update_subject(self, class_id: str, subject_id: str, payload: SubjectUpdate, user_id: str) -> Subject:
        subject = self._subject(class_id, subject_id)
        if {"name": subject.name, "teacher_name": subject.teacher_name} == payload.model_dump():
            return subject
        before = subject_view(subject)
        subject.name = payload.name
        subject.teacher_name = payload.teacher_name
        self.log_action(
            class_id,
            user_id,
            "update_subject",
            {"id": subject_id, "before": before, "after": subject_view(subject)},
        )
        self.db.commit()
        return subject

    @_translated
    def delete_subject(self, class_id: str, subject_id: str, user_id: str) -> None:
        subject = self._subject(class_id, subject_id)
        slots = self.db.execute(
            select(FixedTimeSlot).where(FixedTimeSlot.class_id == class_id, FixedTimeSlot.subject_id == subject_id)
        ).scalars()
        cleared = 0
        for slot in slots:
            slot.subject_id = None
            cleared += 1
        before = subject_view(subject)
        self.db.delete(subject)
        self.log_action(
            class_id,
            user_id,
            "delete_subject",
            {"before": before, "after": None, "cleared_fixed_slots": cleared},
        )
        self.db.commit()

    # -- school events --------------------------------------------------------

    @_translated
    def list_school_events(self, class_id: str) -> list[SchoolEvent]:
        query = (
            select(SchoolEvent)
            .where(SchoolEvent.class_id == class_id)
            .order_by(SchoolEvent.start_date, SchoolEvent.title)
        )
        return list(self.db.execute(query).scalars())

    def _school_event(self, class_id: str, event_id: str) -> SchoolEvent | None:
        event = self.db.get(SchoolEvent, event_id)
        if event is None or event.class_id != class_id:
            return None
        return event

    @_translated
    def create_school_event(self, class_id: str, payload: SchoolEventCreate, user_id: str) -> SchoolEvent:
        now = _utcnow()
        event = SchoolEvent(class_id=class_id, **payload.model_dump(), created_at=now, updated_at=now)
        self.db.add(event)
        self.db.flush()
        self.log_action(class_id, user_id, "add_event", {"before": None, "after": event_view(event)})
        self.db.commit()
        return event

    @_translated
    def update_school_event(
        self,
        class_id: str,
        event_id: str,
        payload: SchoolEventUpdate,
        user_id: str,
    ) -> SchoolEvent:
        event = self._school_event(class_id, event_id)
        if event is None:
            raise ResourceNotFoundError("School event", event_id)
        before = event_view(event)
        if collection_equal([before], [{"id": event_id, **payload.model_dump()}]):
            return event
        for name, value in payload.model_dump().items():
            setattr(event, name, value)
        event.updated_at = _utcnow()
        self.log_action(class_id, user_id, "update_event", {"before": before, "after": event_view(event)})
        self.db.commit()
        return event

    @_translated
    def delete_school_event(self, class_id: str, event_id: str, user_id: str) -> bool:
        event = self._school_event(class_id, event_id)
        if event is None:
            return False
        before = event_view(event)
        self.db.delete(event)
        self.log_action(class_id, user_id, "delete_event", {"before": before, "after": None})
        self.db.commit()
        return True

    # -- assignments ----------------------------------------------------------

    @_translated
    def list_assignments(
        self,
        class_id: str,
        filters: AssignmentQuery,
        *,
        today: date | None = None,
    ) -> list[Assignment]:
        """Assignments matching ``filters``; past-due ones only when asked for."""
        today = today or _utcnow().date()
        query = select(Assignment).where(Assignment.class_id == class_id)
        if filters.without_subject:
            query = query.where(Assignment.subject_id.is_(None))
        elif filters.subject_id is not None:
            query = query.where(Assignment.subject_id == filters.subject_id)
        if filters.due_date_start:
            query = query.where(Assignment.due_date >= filters.due_date_start)
        if filters.due_date_end:
            query = query.where(Assignment.due_date <= filters.due_date_end)
        if filters.due_period is not None:
            query = query.where(Assignment.due_period == filters.due_period)
        if not filters.include_past_due:
            query = query.where(Assignment.due_date >= today.isoformat())

        column = getattr(Assignment, filters.sort)
        query = query.order_by(column.desc() if filters.direction == "desc" else column.asc())
        if filters.sort != "due_date":
            query = query.order_by(Assignment.due_date.asc())
        assignments = list(self.db.execute(query).scalars())

        term = (filters.search or "").strip().lower()
        if term:
            assignments = [item for item in assignments if _assignment_matches(item, term)]
        return assignments

    def _assignment(self, class_id: str, assignment_id: str) -> Assignment | None:
        assignment = self.db.get(Assignment, assignment_id)
        if assignment is None or assignment.class_id != class_id:
            return None
        return assignment

    @_translated
    def create_assignment(self, class_id: str, payload: AssignmentCreate, user_id: str) -> Assignment:
        now = _utcnow()
        assignment = Assignment(class_id=class_id, **payload.model_dump(), created_at=now, updated_at=now)
        self.db.add(assignment)
        self.db.flush()
        self.log_action(class_id, user_id, "add_assignment", {"before": None, "after": assignment_view(assignment)})
        self.db.commit()
        return assignment

    @_translated
    def update_assignment(
        self,
        class_id: str,
        assignment_id: str,
        payload: AssignmentUpdate,
        user_id: str,
    ) -> Assignment:
        assignment = self._assignment(class_id, assignment_id)
        if assignment is None:
            raise ResourceNotFoundError("Assignment", assignment_id)
        before = assignment_view(assignment)
        changes = payload.changes()
        if collection_equal([before], [{**before, **changes}]):
            return assignment
        for name, value in changes.items():
            setattr(assignment, name, value)
        assignment.updated_at = _utcnow()
        self.log_action(
            class_id,
            user_id,
            "update_assignment",
            {"assignment_id": assignment_id, "before": before, "after": assignment_view(assignment)},
        )
        self.db.commit()
        return assignment

    @_translated
    def delete_assignment(self, class_id: str, assignment_id: str, user_id: str) -> bool:
        assignment = self._assignment(class_id, assignment_id)
        if assignment is None:
            return False
        before = assignment_view(assignment)
        self.db.delete(assignment)
        self.log_action(
            class_id,
            user_id,
            "delete_assignment",
            {"assignment_id": assignment_id, "before": before, "after": None},
        )
        self.db.commit()
        return True

    # -- activity log ---------------------------------------------------------

    def _log_entry(self, class_id: str, log_id: str) -> ActivityLog | None:
        entry = self.db.get(ActivityLog, log_id)
        if entry is None or entry.class_id != class_id:
            return None
        return entry

    @_translated
    def rollback_action(self, class_id: str, log_id: str, user_id: str) -> ActivityLog:
        entry = self._log_entry(class_id, log_id)
        if entry is None:
            raise ResourceNotFoundError("Activity log", log_id)
        original_action = entry.action
        try:
            action, details = revert_entry(self.db, entry, lambda other_id: self._log_entry(class_id, other_id))
        except RollbackNotSupportedError as exc:
            self.db.rollback()
            logger.warning("Rollback of %s (%s) in class %s failed: %s", original_action, log_id, class_id, exc.message)
            self.log_action(
                class_id,
                user_id,
                "rollback_action_failed",
                {"original_log_id": log_id, "original_action": original_action, "error": exc.message},
            )
            self.db.commit()
            raise
        record = self.log_action(class_id, user_id, action, details)
        self.db.commit()
        return record

    @_translated
    def list_logs(self, class_id: str, *, limit: int = 100) -> list[ActivityLog]:
        query = (
            select(ActivityLog)
            .where(ActivityLog.class_id == class_id)
            .order_by(ActivityLog.created_at.desc())
            .limit(limit)
        )
        return list(self.db.execute(query).scalars())
