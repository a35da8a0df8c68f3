from app.models.activity_log import ActivityAction, ActivityLog  # noqa: F401
from app.models.leave_request import LeaveRequest, LeaveStatus  # noqa: F401
from app.models.subject import Subject, SubjectType  # noqa: F401
from app.models.timetable import TimetableDocument, schedule_key  # noqa: F401
