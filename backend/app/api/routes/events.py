from fastapi import APIRouter, Depends, Response, status

from app.api.deps import get_class_member, get_store, require_permission
from app.core.security import Principal
from app.schemas.school_event import SchoolEventCreate, SchoolEventOut, SchoolEventUpdate
from app.services.store import TimetableStore

router = APIRouter()


@router.get("/classes/{class_id}/events", response_model=list[SchoolEventOut])
def list_school_events(
    class_id: str,
    current_user: Principal = Depends(get_class_member),
    store: TimetableStore = Depends(get_store),
) -> list[SchoolEventOut]:
    return store.list_school_events(class_id)


@router.post("/classes/{class_id}/events", response_model=SchoolEventOut, status_code=status.HTTP_201_CREATED)
def create_school_event(
    class_id: str,
    payload: SchoolEventCreate,
    current_user: Principal = Depends(require_permission("can_add_school_events")),
    store: TimetableStore = Depends(get_store),
) -> SchoolEventOut:
    return store.create_school_event(class_id, payload, current_user.user_id)


@router.put("/classes/{class_id}/events/{event_id}", response_model=SchoolEventOut)
def update_school_event(
    class_id: str,
    event_id: str,
    payload: SchoolEventUpdate,
    current_user: Principal = Depends(require_permission("can_add_school_events")),
    store: TimetableStore = Depends(get_store),
) -> SchoolEventOut:
    return store.update_school_event(class_id, event_id, payload, current_user.user_id)


@router.delete("/classes/{class_id}/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_school_event(
    class_id: str,
    event_id: str,
    current_user: Principal = Depends(require_permission("can_add_school_events")),
    store: TimetableStore = Depends(get_store),
) -> Response:
    store.delete_school_event(class_id, event_id, current_user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
