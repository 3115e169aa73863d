from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.services.overrides import OverrideKind, SubjectOverride


class DailyAnnouncement(Base):
    __tablename__ = "daily_announcements"

    class_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    date: Mapped[str] = mapped_column(String(10), primary_key=True)
    period: Mapped[int] = mapped_column(Integer, primary_key=True)
    subject_override_kind: Mapped[OverrideKind] = mapped_column(
        SAEnum(OverrideKind, name="subject_override_kind"),
        nullable=False,
        default=OverrideKind.inherit,
    )
    subject_id_override: Mapped[str | None] = mapped_column(String(36), nullable=True)
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    show_on_calendar: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_manually_cleared: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    item_type = "announcement"

    @property
    def id(self) -> str:
        return f"{self.date}_{self.period}"

    @property
    def subject_override(self) -> SubjectOverride:
        return SubjectOverride(self.subject_override_kind or OverrideKind.inherit, self.subject_id_override)

    @subject_override.setter
    def subject_override(self, value: SubjectOverride) -> None:
        self.subject_override_kind = value.kind
        self.subject_id_override = value.subject_id


class GeneralAnnouncement(Base):
    __tablename__ = "general_announcements"

    class_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    date: Mapped[str] = mapped_column(String(10), primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    ai_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_summary_last_generated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    item_type = "general"

    @property
    def id(self) -> str:
        return self.date
