from datetime import datetime

from pydantic import BaseModel


class ActivityLogOut(BaseModel):
    id: str
    class_id: str
    user_id: str | None
    action: str
    details: dict
    created_at: datetime

    model_config = {"from_attributes": True}
