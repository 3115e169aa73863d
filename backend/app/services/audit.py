from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from app.models.activity_log import ActivityLog


def prepare_state_for_log(state: Any) -> Any:
    """Turn ``state`` into plain JSON: datetimes become ISO strings, enums their values."""
    if state is None:
        return None
    if isinstance(state, (datetime, date)):
        return state.isoformat()
    if isinstance(state, Enum):
        return state.value
    if hasattr(state, "model_dump"):
        return prepare_state_for_log(state.model_dump())
    if is_dataclass(state) and not isinstance(state, type):
        return prepare_state_for_log(asdict(state))
    if isinstance(state, dict):
        return {str(key): prepare_state_for_log(value) for key, value in state.items()}
    if isinstance(state, (list, tuple, set)):
        return [prepare_state_for_log(item) for item in state]
    return state


def log_activity(
    db: Session,
    *,
    class_id: str,
    user_id: str | None,
    action: str,
    details: dict | None = None,
) -> ActivityLog:
    record = ActivityLog(
        class_id=class_id,
        user_id=user_id,
        action=action,
        details=prepare_state_for_log(details or {}),
    )
    db.add(record)
    return record
