from fastapi import APIRouter, Depends, Query

from app.api.deps import get_store, require_class_admin
from app.core.security import Principal
from app.schemas.activity import ActivityLogOut
from app.services.store import TimetableStore

router = APIRouter()


@router.get("/classes/{class_id}/logs", response_model=list[ActivityLogOut])
def list_activity_logs(
    class_id: str,
    limit: int = Query(default=100, ge=1, le=500),
    current_user: Principal = Depends(require_class_admin),
    store: TimetableStore = Depends(get_store),
) -> list[ActivityLogOut]:
    return store.list_logs(class_id, limit=limit)


@router.post("/classes/{class_id}/logs/{log_id}/rollback", response_model=ActivityLogOut)
def rollback_activity(
    class_id: str,
    log_id: str,
    current_user: Principal = Depends(require_class_admin),
    store: TimetableStore = Depends(get_store),
) -> ActivityLogOut:
    return store.rollback_action(class_id, log_id, current_user.user_id)
