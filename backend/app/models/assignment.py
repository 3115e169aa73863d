import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class AssignmentDuePeriod(str, Enum):
    morning = "morning"
    period_1 = "period_1"
    period_2 = "period_2"
    period_3 = "period_3"
    period_4 = "period_4"
    period_5 = "period_5"
    period_6 = "period_6"
    period_7 = "period_7"


class Assignment(Base):
    __tablename__ = "assignments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    class_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    subject_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    custom_subject_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    due_date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    due_period: Mapped[AssignmentDuePeriod | None] = mapped_column(
        SAEnum(AssignmentDuePeriod, name="assignment_due_period"),
        nullable=True,
    )
    submission_method: Mapped[str | None] = mapped_column(String(200), nullable=True)
    target_audience: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    item_type = "assignment"
