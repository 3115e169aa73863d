from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.timetable import validate_iso_date


class SchoolEventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    start_date: str
    end_date: str | None = None
    description: str = Field(default="", max_length=5000)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Event title cannot be blank")
        return cleaned

    @field_validator("start_date")
    @classmethod
    def check_start_date(cls, value: str) -> str:
        return validate_iso_date(value)

    @field_validator("end_date")
    @classmethod
    def check_end_date(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return validate_iso_date(value)

    @model_validator(mode="after")
    def default_and_order_dates(self) -> "SchoolEventCreate":
        if self.end_date is None:
            self.end_date = self.start_date
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        self.description = self.description.strip()
        return self


class SchoolEventUpdate(SchoolEventCreate):
    pass


class SchoolEventOut(BaseModel):
    id: str
    title: str
    start_date: str
    end_date: str
    description: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    item_type: Literal["event"] = "event"

    model_config = {"from_attributes": True}
