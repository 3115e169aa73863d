from __future__ import annotations

import logging

from sqlalchemy import inspect

from app.db.base import Base
from app.db.session import engine
import app.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "timetable_settings": {"class_id", "number_of_periods", "active_days", "student_permissions"},
    "fixed_time_slots": {"class_id", "day", "period", "subject_id"},
    "daily_announcements": {
        "class_id",
        "date",
        "period",
        "subject_override_kind",
        "subject_id_override",
        "is_manually_cleared",
    },
    "general_announcements": {"class_id", "date", "content", "ai_summary", "ai_summary_last_generated_at"},
    "subjects": {"id", "class_id", "name", "teacher_name"},
    "school_events": {"id", "class_id", "title", "start_date", "end_date"},
    "assignments": {"id", "class_id", "title", "subject_id", "due_date", "due_period"},
}


def missing_schema_items() -> tuple[list[str], dict[str, list[str]]]:
    with engine.connect() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
        missing_columns: dict[str, list[str]] = {}
        for table_name, required in REQUIRED_COLUMNS.items():
            if table_name not in table_names:
                continue
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            missing = sorted(required - existing)
            if missing:
                missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_schema() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        missing_tables, missing_columns = missing_schema_items()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Schema bootstrap failed")
        raise RuntimeError("Schema bootstrap failed") from exc

    if missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        flat = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise RuntimeError(f"Missing required columns: {', '.join(flat)}; run the alembic migrations")
