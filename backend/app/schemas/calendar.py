from typing import Annotated, Union

from pydantic import Field

from app.schemas.announcement import DailyAnnouncementOut
from app.schemas.assignment import AssignmentOut
from app.schemas.school_event import SchoolEventOut

CalendarItemOut = Annotated[
    Union[SchoolEventOut, AssignmentOut, DailyAnnouncementOut],
    Field(discriminator="item_type"),
]


def calendar_item_out(item) -> SchoolEventOut | AssignmentOut | DailyAnnouncementOut:
    if item.item_type == "event":
        return SchoolEventOut.model_validate(item)
    if item.item_type == "assignment":
        return AssignmentOut.model_validate(item)
    return DailyAnnouncementOut.from_record(item)
