from __future__ import annotations

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.models.activity_log import ActivityAction, ActivityLog
from app.schemas.user import CurrentUser


def log_activity(
    db: Session,
    *,
    user: CurrentUser | None,
    action: ActivityAction,
    entity_id: str | None = None,
    details: BaseModel | dict | None = None,
) -> ActivityLog:
    """Stage an activity row in ``db``; the caller commits it with its own change."""
    if isinstance(details, BaseModel):
        details = details.model_dump(mode="json", exclude_none=True)
    record = ActivityLog(
        user_id=user.id if user is not None else None,
        action=action.value,
        entity_type=action.entity_type,
        entity_id=entity_id,
        details=details or {},
    )
    db.add(record)
    return record
