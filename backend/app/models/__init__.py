from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.announcement import DailyAnnouncement, GeneralAnnouncement  # noqa: F401
from app.models.assignment import Assignment, AssignmentDuePeriod  # noqa: F401
from app.models.school_event import SchoolEvent  # noqa: F401
from app.models.subject import Subject  # noqa: F401
from app.models.timetable import FixedTimeSlot, TimetableSettingsRecord  # noqa: F401
