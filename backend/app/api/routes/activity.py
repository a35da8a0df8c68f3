from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.models.activity_log import ActivityAction, ActivityLog
from app.schemas.activity import ActivityLogOut
from app.schemas.user import CurrentUser, UserRole

router = APIRouter()


@router.get("/activity/logs", response_model=list[ActivityLogOut])
def list_activity_logs(
    action: ActivityAction | None = Query(default=None),
    limit: int = Query(default=200, ge=1, le=500),
    current_user: CurrentUser = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> list[ActivityLogOut]:
    query = select(ActivityLog)
    if action:
        query = query.where(ActivityLog.action == action.value)
    query = query.order_by(ActivityLog.created_at.desc()).limit(limit)
    return list(db.execute(query).scalars())
