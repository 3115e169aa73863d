from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_class_member, get_store, require_class_admin
from app.core.security import Principal
from app.schemas.announcement import BatchResult
from app.schemas.timetable import FixedTimeSlotOut, FixedTimetableUpdate
from app.services.store import TimetableStore

router = APIRouter()


@router.get("/classes/{class_id}/fixed-timetable", response_model=list[FixedTimeSlotOut])
def list_fixed_timetable(
    class_id: str,
    current_user: Principal = Depends(get_class_member),
    store: TimetableStore = Depends(get_store),
) -> list[FixedTimeSlotOut]:
    # First read materializes the default grid.
    store.get_settings(class_id)
    return store.list_fixed_slots(class_id)


@router.put("/classes/{class_id}/fixed-timetable", response_model=BatchResult)
def update_fixed_timetable(
    class_id: str,
    payload: FixedTimetableUpdate,
    current_user: Principal = Depends(require_class_admin),
    store: TimetableStore = Depends(get_store),
) -> BatchResult:
    settings = store.get_settings(class_id)
    outside = [
        slot.id
        for slot in payload.slots
        if slot.day not in settings.active_days or slot.period > settings.number_of_periods
    ]
    if outside:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Slots outside the class timetable: {', '.join(outside)}",
        )
    updated = store.update_fixed_slots(class_id, payload.slots, current_user.user_id)
    return BatchResult(updated=updated)


@router.post("/classes/{class_id}/fixed-timetable/reset", response_model=BatchResult)
def reset_fixed_timetable(
    class_id: str,
    current_user: Principal = Depends(require_class_admin),
    store: TimetableStore = Depends(get_store),
) -> BatchResult:
    return BatchResult(updated=store.reset_fixed_slots(class_id, current_user.user_id))
