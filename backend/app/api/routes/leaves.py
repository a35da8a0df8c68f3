from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_roles
from app.models.activity_log import ActivityAction
from app.models.leave_request import LeaveRequest, LeaveStatus
from app.schemas.leave import LeaveRequestCreate, LeaveRequestOut, LeaveRequestStatusUpdate
from app.schemas.user import CurrentUser, UserRole
from app.services.audit import log_activity

router = APIRouter()


def _normalize_text(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


@router.get("/leaves", response_model=list[LeaveRequestOut])
def list_leave_requests(
    leave_status: LeaveStatus | None = Query(default=None, alias="status"),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[LeaveRequestOut]:
    query = select(LeaveRequest)
    if current_user.role != UserRole.admin:
        query = query.where(LeaveRequest.user_id == current_user.id)
    if leave_status is not None:
        query = query.where(LeaveRequest.status == leave_status)
    query = query.order_by(LeaveRequest.applied_at.desc())
    return list(db.execute(query).scalars())


@router.post(
    "/leaves",
    response_model=LeaveRequestOut,
    status_code=status.HTTP_201_CREATED,
)
def create_leave_request(
    payload: LeaveRequestCreate,
    current_user: CurrentUser = Depends(require_roles(UserRole.teacher, UserRole.student)),
    db: Session = Depends(get_db),
) -> LeaveRequestOut:
    request = LeaveRequest(
        user_id=current_user.id,
        name=current_user.name,
        role=current_user.role.value,
        reason=payload.reason,
        from_date=payload.from_date,
        to_date=payload.to_date,
        status=LeaveStatus.pending,
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    return request


@router.put("/leaves/{leave_id}/status", response_model=LeaveRequestOut)
def update_leave_status(
    leave_id: str,
    payload: LeaveRequestStatusUpdate,
    current_user: CurrentUser = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> LeaveRequestOut:
    request = db.get(LeaveRequest, leave_id)
    if request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leave request not found")

    request.status = payload.status
    request.admin_comment = _normalize_text(payload.admin_comment)
    request.reviewed_by_id = current_user.id
    request.reviewed_at = datetime.now(timezone.utc)
    log_activity(
        db,
        user=current_user,
        action=ActivityAction.leave_status_update,
        entity_id=request.id,
        details={"status": payload.status.value, "reviewed_user_id": request.user_id},
    )
    db.commit()
    db.refresh(request)
    return request


@router.delete("/leaves/{leave_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_leave_request(
    leave_id: str,
    current_user: CurrentUser = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> None:
    request = db.get(LeaveRequest, leave_id)
    if request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leave request not found")
    db.delete(request)
    log_activity(
        db,
        user=current_user,
        action=ActivityAction.leave_delete,
        entity_id=leave_id,
        details={"user_id": request.user_id, "status": request.status.value},
    )
    db.commit()
