from fastapi import APIRouter, Depends, Response, status

from app.api.deps import get_class_member, get_store, require_permission
from app.core.security import Principal
from app.schemas.subject import SubjectCreate, SubjectOut, SubjectUpdate
from app.services.store import TimetableStore

router = APIRouter()


@router.get("/classes/{class_id}/subjects", response_model=list[SubjectOut])
def list_subjects(
    class_id: str,
    current_user: Principal = Depends(get_class_member),
    store: TimetableStore = Depends(get_store),
) -> list[SubjectOut]:
    return store.list_subjects(class_id)


@router.post("/classes/{class_id}/subjects", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def create_subject(
    class_id: str,
    payload: SubjectCreate,
    current_user: Principal = Depends(require_permission("can_edit_subjects")),
    store: TimetableStore = Depends(get_store),
) -> SubjectOut:
    return store.create_subject(class_id, payload, current_user.user_id)


@router.put("/classes/{class_id}/subjects/{subject_id}", response_model=SubjectOut)
def update_subject(
    class_id: str,
    subject_id: str,
    payload: SubjectUpdate,
    current_user: Principal = Depends(require_permission("can_edit_subjects")),
    store: TimetableStore = Depends(get_store),
) -> SubjectOut:
    return store.update_subject(class_id, subject_id, payload, current_user.user_id)


@router.delete("/classes/{class_id}/subjects/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subject(
    class_id: str,
    subject_id: str,
    current_user: Principal = Depends(require_permission("can_edit_subjects")),
    store: TimetableStore = Depends(get_store),
) -> Response:
    store.delete_subject(class_id, subject_id, current_user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
