from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.api.deps import get_class_member, get_date, get_store, get_summary_orchestrator, require_permission
from app.core.security import Principal
from app.schemas.announcement import GeneralAnnouncementOut, GeneralAnnouncementUpdate, SummaryOut
from app.services.store import TimetableStore
from app.services.summaries import SummaryOrchestrator

router = APIRouter()


@router.get("/classes/{class_id}/general-announcements/{date}", response_model=GeneralAnnouncementOut)
def get_general_announcement(
    class_id: str,
    date: str = Depends(get_date),
    current_user: Principal = Depends(get_class_member),
    store: TimetableStore = Depends(get_store),
) -> GeneralAnnouncementOut:
    record = store.get_general_announcement(class_id, date)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="General announcement not found")
    return record


@router.put("/classes/{class_id}/general-announcements/{date}", response_model=GeneralAnnouncementOut | None)
def upsert_general_announcement(
    class_id: str,
    payload: GeneralAnnouncementUpdate,
    date: str = Depends(get_date),
    current_user: Principal = Depends(require_permission("can_edit_general_announcements")),
    store: TimetableStore = Depends(get_store),
) -> GeneralAnnouncementOut | None:
    return store.upsert_general_announcement(class_id, date, payload.content, current_user.user_id)


@router.post("/classes/{class_id}/general-announcements/{date}/summary", response_model=SummaryOut)
async def generate_summary(
    class_id: str,
    date: str = Depends(get_date),
    current_user: Principal = Depends(require_permission("can_use_ai_summary")),
    orchestrator: SummaryOrchestrator = Depends(get_summary_orchestrator),
) -> SummaryOut:
    summary = await orchestrator.request_summary_generation(class_id, date, current_user.user_id)
    return SummaryOut(summary=summary)


@router.delete("/classes/{class_id}/general-announcements/{date}/summary", status_code=status.HTTP_204_NO_CONTENT)
async def delete_summary(
    class_id: str,
    date: str = Depends(get_date),
    current_user: Principal = Depends(require_permission("can_use_ai_summary")),
    orchestrator: SummaryOrchestrator = Depends(get_summary_orchestrator),
) -> Response:
    await orchestrator.request_summary_deletion(class_id, date, current_user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
