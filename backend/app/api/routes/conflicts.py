from fastapi import APIRouter, Depends, Query

from app.api.deps import get_schedule_store, require_roles
from app.schemas.conflict import TeacherConflictReport
from app.schemas.user import CurrentUser, UserRole
from app.services.conflict_service import ConflictService
from app.services.schedule_store import SqlScheduleStore

router = APIRouter()


@router.get("/", response_model=TeacherConflictReport)
def teacher_conflict_report(
    year: str = Query(min_length=1, max_length=50),
    current_user: CurrentUser = Depends(require_roles(UserRole.admin)),
    store: SqlScheduleStore = Depends(get_schedule_store),
) -> TeacherConflictReport:
    year = year.strip()
    service = ConflictService(year, store.get_all(year))
    return service.detect_conflicts()
