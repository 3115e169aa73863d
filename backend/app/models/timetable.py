from datetime import datetime

from sqlalchemy import DateTime, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class TimetableSettingsRecord(Base):
    __tablename__ = "timetable_settings"

    class_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    number_of_periods: Mapped[int] = mapped_column(Integer, nullable=False, default=7)
    active_days: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    student_permissions: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())


class FixedTimeSlot(Base):
    __tablename__ = "fixed_time_slots"

    class_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    day: Mapped[str] = mapped_column(String(10), primary_key=True)
    period: Mapped[int] = mapped_column(Integer, primary_key=True)
    subject_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    room: Mapped[str | None] = mapped_column(String(50), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def id(self) -> str:
        return f"{self.day}_{self.period}"
