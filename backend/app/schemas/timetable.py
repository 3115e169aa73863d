from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from app.services.overrides import WEEKDAY_ORDER

DAY_VALUES = set(WEEKDAY_ORDER)


def validate_iso_date(value: str) -> str:
    cleaned = value.strip()
    try:
        date.fromisoformat(cleaned)
    except ValueError as exc:
        raise ValueError("Date must be in YYYY-MM-DD format") from exc
    if len(cleaned) != 10:
        raise ValueError("Date must be in YYYY-MM-DD format")
    return cleaned


def validate_day(value: str) -> str:
    day = value.strip()
    if day not in DAY_VALUES:
        raise ValueError(f"Invalid day value: {day}")
    return day


class StudentPermissions(BaseModel):
    can_edit_assignments: bool = False
    can_edit_general_announcements: bool = False
    can_edit_time_slots: bool = True
    can_use_ai_summary: bool = True
    can_edit_subjects: bool = False
    can_add_school_events: bool = False


class TimetableSettings(BaseModel):
    number_of_periods: int = Field(ge=0, le=20)
    active_days: list[str] = Field(default_factory=list, max_length=7)
    student_permissions: StudentPermissions = Field(default_factory=StudentPermissions)

    model_config = {"from_attributes": True}

    @field_validator("active_days")
    @classmethod
    def validate_active_days(cls, value: list[str]) -> list[str]:
        cleaned = [validate_day(day) for day in value]
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("Duplicate active days")
        return cleaned


class StudentPermissionsUpdate(BaseModel):
    can_edit_assignments: bool | None = None
    can_edit_general_announcements: bool | None = None
    can_edit_time_slots: bool | None = None
    can_use_ai_summary: bool | None = None
    can_edit_subjects: bool | None = None
    can_add_school_events: bool | None = None


class TimetableSettingsUpdate(BaseModel):
    number_of_periods: int | None = Field(default=None, ge=0, le=20)
    active_days: list[str] | None = Field(default=None, max_length=7)
    student_permissions: StudentPermissionsUpdate | None = None

    @field_validator("active_days")
    @classmethod
    def validate_active_days(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return value
        cleaned = [validate_day(day) for day in value]
        if not cleaned:
            raise ValueError("At least one active day is required")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("Duplicate active days")
        return cleaned

    def merged_onto(self, current: TimetableSettings) -> TimetableSettings:
        permissions = current.student_permissions.model_dump()
        if self.student_permissions is not None:
            permissions.update(self.student_permissions.model_dump(exclude_none=True))
        return TimetableSettings(
            number_of_periods=(
                self.number_of_periods if self.number_of_periods is not None else current.number_of_periods
            ),
            active_days=self.active_days if self.active_days is not None else list(current.active_days),
            student_permissions=StudentPermissions(**permissions),
        )


class FixedTimeSlotPayload(BaseModel):
    day: str
    period: int = Field(ge=1, le=20)
    subject_id: str | None = None
    room: str | None = Field(default=None, max_length=50)

    @field_validator("day")
    @classmethod
    def check_day(cls, value: str) -> str:
        return validate_day(value)

    @property
    def id(self) -> str:
        return f"{self.day}_{self.period}"


class FixedTimetableUpdate(BaseModel):
    slots: list[FixedTimeSlotPayload] = Field(default_factory=list, max_length=200)

    @model_validator(mode="after")
    def validate_unique_slots(self) -> "FixedTimetableUpdate":
        seen: set[str] = set()
        duplicates: set[str] = set()
        for slot in self.slots:
            if slot.id in seen:
                duplicates.add(slot.id)
            seen.add(slot.id)
        if duplicates:
            raise ValueError(f"Duplicate slot entries: {', '.join(sorted(duplicates))}")
        return self


class FixedTimeSlotOut(BaseModel):
    id: str
    day: str
    period: int
    subject_id: str | None
    room: str | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
