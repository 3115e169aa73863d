import calendar
from datetime import date as date_type

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from app.api.deps import (
    get_class_member,
    get_date,
    get_store,
    parse_iso_date,
    require_class_admin,
    require_permission,
)
from app.core.security import Principal
from app.schemas.announcement import (
    BatchResult,
    DailyAnnouncementBatch,
    DailyAnnouncementOut,
    DailyAnnouncementUpsert,
    DayScheduleOut,
    EffectiveSlotOut,
)
from app.schemas.calendar import CalendarItemOut, calendar_item_out
from app.services.overrides import resolve_day, weekday_for
from app.services.store import TimetableStore

router = APIRouter()


def _check_period(store: TimetableStore, class_id: str, period: int) -> None:
    settings = store.get_settings(class_id)
    if period > settings.number_of_periods:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Period {period} is outside the class timetable ({settings.number_of_periods} periods)",
        )


@router.get("/classes/{class_id}/announcements", response_model=list[DailyAnnouncementOut])
def list_daily_announcements(
    class_id: str,
    date: str = Query(...),
    current_user: Principal = Depends(get_class_member),
    store: TimetableStore = Depends(get_store),
) -> list[DailyAnnouncementOut]:
    records = store.list_announcements(class_id, parse_iso_date(date))
    return [DailyAnnouncementOut.from_record(record) for record in records]


@router.put("/classes/{class_id}/announcements/{date}/{period}", response_model=DailyAnnouncementOut)
def upsert_daily_announcement(
    class_id: str,
    payload: DailyAnnouncementUpsert,
    period: int = Path(ge=1, le=20),
    date: str = Depends(get_date),
    current_user: Principal = Depends(require_permission("can_edit_time_slots")),
    store: TimetableStore = Depends(get_store),
) -> DailyAnnouncementOut:
    _check_period(store, class_id, period)
    record, _ = store.upsert_announcement(class_id, date, period, payload, current_user.user_id)
    return DailyAnnouncementOut.from_record(record)


@router.post("/classes/{class_id}/announcements/batch", response_model=BatchResult)
def batch_upsert_daily_announcements(
    class_id: str,
    payload: DailyAnnouncementBatch,
    current_user: Principal = Depends(require_permission("can_edit_time_slots")),
    store: TimetableStore = Depends(get_store),
) -> BatchResult:
    for entry in payload.entries:
        _check_period(store, class_id, entry.period)
    return BatchResult(updated=store.batch_upsert_announcements(class_id, payload.entries, current_user.user_id))


@router.delete("/classes/{class_id}/announcements/{date}/{period}", status_code=status.HTTP_204_NO_CONTENT)
def delete_daily_announcement(
    class_id: str,
    period: int = Path(ge=1, le=20),
    date: str = Depends(get_date),
    current_user: Principal = Depends(require_permission("can_edit_time_slots")),
    store: TimetableStore = Depends(get_store),
) -> Response:
    store.delete_announcement(class_id, date, period, current_user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/classes/{class_id}/announcements/reset-future", response_model=BatchResult)
def reset_future_daily_announcements(
    class_id: str,
    current_user: Principal = Depends(require_class_admin),
    store: TimetableStore = Depends(get_store),
) -> BatchResult:
    return BatchResult(updated=store.reset_future_announcements(class_id, current_user.user_id))


@router.get("/classes/{class_id}/schedule/{date}", response_model=DayScheduleOut)
def get_day_schedule(
    class_id: str,
    date: str = Depends(get_date),
    current_user: Principal = Depends(get_class_member),
    store: TimetableStore = Depends(get_store),
) -> DayScheduleOut:
    settings = store.get_settings(class_id)
    slots = resolve_day(
        date,
        number_of_periods=settings.number_of_periods,
        active_days=settings.active_days,
        fixed_slots=store.list_fixed_slots(class_id),
        announcements=store.list_announcements(class_id, date),
    )
    return DayScheduleOut(
        date=date,
        day=weekday_for(date),
        slots=[EffectiveSlotOut.from_slot(slot) for slot in slots],
    )


@router.get("/classes/{class_id}/calendar", response_model=list[CalendarItemOut])
def list_calendar_items(
    class_id: str,
    year: int = Query(ge=1970, le=9999),
    month: int = Query(ge=1, le=12),
    current_user: Principal = Depends(get_class_member),
    store: TimetableStore = Depends(get_store),
) -> list[CalendarItemOut]:
    start = date_type(year, month, 1)
    end = date_type(year, month, calendar.monthrange(year, month)[1])
    return [calendar_item_out(item) for item in store.calendar_items(class_id, start, end)]
