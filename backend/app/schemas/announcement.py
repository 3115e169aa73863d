from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.timetable import validate_iso_date
from app.services.overrides import EffectiveSlot, OverrideKind, SubjectOverride


class DailyAnnouncementUpsert(BaseModel):
    """One slot edit.

    ``subject_id_override`` is tri-state on the wire: omit the key to follow
    the fixed timetable, send ``null`` for "no subject", or a subject id.
    """

    subject_id_override: str | None = None
    text: str = Field(default="", max_length=5000)
    show_on_calendar: bool = False
    is_manually_cleared: bool = False

    @field_validator("subject_id_override")
    @classmethod
    def reject_blank_subject(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("subject_id_override must be a subject id or null")
        return value

    @property
    def subject_override(self) -> SubjectOverride:
        return SubjectOverride.from_wire(
            self.subject_id_override,
            present="subject_id_override" in self.model_fields_set,
        )


class DailyAnnouncementBatchEntry(DailyAnnouncementUpsert):
    date: str
    period: int = Field(ge=1, le=20)

    @field_validator("date")
    @classmethod
    def check_date(cls, value: str) -> str:
        return validate_iso_date(value)


class DailyAnnouncementBatch(BaseModel):
    entries: list[DailyAnnouncementBatchEntry] = Field(min_length=1, max_length=500)


class SubjectOverrideOut(BaseModel):
    kind: OverrideKind
    subject_id: str | None = None


class DailyAnnouncementOut(BaseModel):
    id: str
    date: str
    period: int
    subject_override: SubjectOverrideOut
    text: str
    show_on_calendar: bool
    is_manually_cleared: bool
    updated_at: datetime | None = None
    item_type: Literal["announcement"] = "announcement"

    @classmethod
    def from_record(cls, record) -> "DailyAnnouncementOut":
        override = record.subject_override
        return cls(
            id=record.id,
            date=record.date,
            period=record.period,
            subject_override=SubjectOverrideOut(kind=override.kind, subject_id=override.subject_id),
            text=record.text,
            show_on_calendar=record.show_on_calendar,
            is_manually_cleared=record.is_manually_cleared,
            updated_at=record.updated_at,
        )


class BatchResult(BaseModel):
    updated: int


class EffectiveSlotOut(BaseModel):
    date: str
    period: int
    subject_id: str | None
    fixed_subject_id: str | None
    subject_changed: bool
    text: str
    show_on_calendar: bool
    is_manually_cleared: bool
    has_override: bool

    @classmethod
    def from_slot(cls, slot: EffectiveSlot) -> "EffectiveSlotOut":
        return cls(
            date=slot.date,
            period=slot.period,
            subject_id=slot.subject_id,
            fixed_subject_id=slot.fixed_subject_id,
            subject_changed=slot.subject_changed,
            text=slot.text,
            show_on_calendar=slot.show_on_calendar,
            is_manually_cleared=slot.is_manually_cleared,
            has_override=slot.has_override,
        )


class DayScheduleOut(BaseModel):
    date: str
    day: str
    slots: list[EffectiveSlotOut]


class GeneralAnnouncementUpdate(BaseModel):
    content: str = Field(default="", max_length=20000)


class GeneralAnnouncementOut(BaseModel):
    id: str
    date: str
    content: str
    ai_summary: str | None = None
    ai_summary_last_generated_at: datetime | None = None
    updated_at: datetime | None = None
    item_type: Literal["general"] = "general"

    model_config = {"from_attributes": True}


class SummaryOut(BaseModel):
    summary: str | None
