from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import ValidationError

from app.api.deps import get_class_member, get_store, require_permission
from app.core.security import Principal
from app.models.assignment import AssignmentDuePeriod
from app.schemas.assignment import (
    AssignmentCreate,
    AssignmentOut,
    AssignmentQuery,
    AssignmentSortField,
    AssignmentUpdate,
)
from app.services.store import TimetableStore

router = APIRouter()


def get_assignment_query(
    search: str | None = Query(default=None, max_length=200),
    subject_id: str | None = Query(default=None),
    without_subject: bool = Query(default=False),
    due_date_start: str | None = Query(default=None),
    due_date_end: str | None = Query(default=None),
    due_period: AssignmentDuePeriod | None = Query(default=None),
    include_past_due: bool = Query(default=False),
    sort: AssignmentSortField = Query(default="due_date"),
    direction: str = Query(default="asc", pattern="^(asc|desc)$"),
) -> AssignmentQuery:
    try:
        return AssignmentQuery(
            search=search,
            subject_id=subject_id,
            without_subject=without_subject,
            due_date_start=due_date_start,
            due_date_end=due_date_end,
            due_period=due_period,
            include_past_due=include_past_due,
            sort=sort,
            direction=direction,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.errors()[0]["msg"]) from exc


@router.get("/classes/{class_id}/assignments", response_model=list[AssignmentOut])
def list_assignments(
    class_id: str,
    filters: AssignmentQuery = Depends(get_assignment_query),
    current_user: Principal = Depends(get_class_member),
    store: TimetableStore = Depends(get_store),
) -> list[AssignmentOut]:
    return store.list_assignments(class_id, filters)


@router.post("/classes/{class_id}/assignments", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED)
def create_assignment(
    class_id: str,
    payload: AssignmentCreate,
    current_user: Principal = Depends(require_permission("can_edit_assignments")),
    store: TimetableStore = Depends(get_store),
) -> AssignmentOut:
    return store.create_assignment(class_id, payload, current_user.user_id)


@router.patch("/classes/{class_id}/assignments/{assignment_id}", response_model=AssignmentOut)
def update_assignment(
    class_id: str,
    assignment_id: str,
    payload: AssignmentUpdate,
    current_user: Principal = Depends(require_permission("can_edit_assignments")),
    store: TimetableStore = Depends(get_store),
) -> AssignmentOut:
    return store.update_assignment(class_id, assignment_id, payload, current_user.user_id)


@router.delete("/classes/{class_id}/assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(
    class_id: str,
    assignment_id: str,
    current_user: Principal = Depends(require_permission("can_edit_assignments")),
    store: TimetableStore = Depends(get_store),
) -> Response:
    store.delete_assignment(class_id, assignment_id, current_user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
