from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.models.assignment import AssignmentDuePeriod
from app.schemas.timetable import validate_iso_date


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class AssignmentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    subject_id: str | None = None
    custom_subject_name: str | None = Field(default=None, max_length=200)
    due_date: str
    due_period: AssignmentDuePeriod | None = None
    submission_method: str | None = Field(default=None, max_length=200)
    target_audience: str | None = Field(default=None, max_length=200)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Assignment title cannot be blank")
        return cleaned

    @field_validator("description")
    @classmethod
    def strip_description(cls, value: str) -> str:
        return value.strip()

    @field_validator("subject_id", "custom_subject_name", "submission_method", "target_audience")
    @classmethod
    def blank_is_none(cls, value: str | None) -> str | None:
        return _optional_text(value)

    @field_validator("due_date")
    @classmethod
    def check_due_date(cls, value: str) -> str:
        return validate_iso_date(value)


class AssignmentUpdate(BaseModel):
    """Partial update: only the keys present in the request are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    subject_id: str | None = None
    custom_subject_name: str | None = Field(default=None, max_length=200)
    due_date: str | None = None
    due_period: AssignmentDuePeriod | None = None
    submission_method: str | None = Field(default=None, max_length=200)
    target_audience: str | None = Field(default=None, max_length=200)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError("Assignment title cannot be null")
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Assignment title cannot be blank")
        return cleaned

    @field_validator("description")
    @classmethod
    def strip_description(cls, value: str | None) -> str:
        return (value or "").strip()

    @field_validator("subject_id", "custom_subject_name", "submission_method", "target_audience")
    @classmethod
    def blank_is_none(cls, value: str | None) -> str | None:
        return _optional_text(value)

    @field_validator("due_date")
    @classmethod
    def check_due_date(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("due_date cannot be null")
        return validate_iso_date(value)

    def changes(self) -> dict:
        return self.model_dump(include=self.model_fields_set)


AssignmentSortField = Literal["title", "subject_id", "due_date", "created_at"]


class AssignmentQuery(BaseModel):
    search: str | None = None
    subject_id: str | None = None
    without_subject: bool = False
    due_date_start: str | None = None
    due_date_end: str | None = None
    due_period: AssignmentDuePeriod | None = None
    include_past_due: bool = False
    sort: AssignmentSortField = "due_date"
    direction: Literal["asc", "desc"] = "asc"

    @field_validator("due_date_start", "due_date_end")
    @classmethod
    def check_dates(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return validate_iso_date(value)


class AssignmentOut(BaseModel):
    id: str
    title: str
    description: str
    subject_id: str | None
    custom_subject_name: str | None = None
    due_date: str
    due_period: AssignmentDuePeriod | None = None
    submission_method: str | None = None
    target_audience: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    item_type: Literal["assignment"] = "assignment"

    model_config = {"from_attributes": True}
