from datetime import datetime

from pydantic import BaseModel, ConfigDict

from app.models.activity_log import ActivityAction


class SlotActivityDetails(BaseModel):
    """What an activity row records about a slot add or remove."""

    slot_id: str
    day: str | None = None
    time: str | None = None
    subject: str | None = None
    teacher: str | None = None
    revision: int | None = None


class ActivityLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str | None
    action: ActivityAction
    entity_type: str | None
    entity_id: str | None
    details: dict
    created_at: datetime
