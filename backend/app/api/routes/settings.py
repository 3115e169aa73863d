from fastapi import APIRouter, Depends

from app.api.deps import get_class_member, get_store, require_class_admin
from app.core.security import Principal
from app.schemas.timetable import TimetableSettings, TimetableSettingsUpdate
from app.services.store import TimetableStore

router = APIRouter()


@router.get("/classes/{class_id}/settings", response_model=TimetableSettings)
def get_timetable_settings(
    class_id: str,
    current_user: Principal = Depends(get_class_member),
    store: TimetableStore = Depends(get_store),
) -> TimetableSettings:
    return store.get_settings(class_id)


@router.put("/classes/{class_id}/settings", response_model=TimetableSettings)
def update_timetable_settings(
    class_id: str,
    payload: TimetableSettingsUpdate,
    current_user: Principal = Depends(require_class_admin),
    store: TimetableStore = Depends(get_store),
) -> TimetableSettings:
    return store.update_settings(class_id, payload, current_user.user_id)
