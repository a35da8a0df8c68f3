import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class ActivityAction(str, Enum):
    slot_add = "timetable.slot.add"
    slot_remove = "timetable.slot.remove"
    subject_create = "subject.create"
    subject_delete = "subject.delete"
    leave_status_update = "leave.status.update"
    leave_delete = "leave.delete"

    @property
    def entity_type(self) -> str:
        return ACTION_ENTITY_TYPES[self]


ACTION_ENTITY_TYPES = {
    ActivityAction.slot_add: "timetable",
    ActivityAction.slot_remove: "timetable",
    ActivityAction.subject_create: "subject",
    ActivityAction.subject_delete: "subject",
    ActivityAction.leave_status_update: "leave_request",
    ActivityAction.leave_delete: "leave_request",
}


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    # Stored as the action's dotted value so the column stays a plain string.
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    entity_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
