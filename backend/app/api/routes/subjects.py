from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_roles
from app.models.activity_log import ActivityAction
from app.models.subject import Subject
from app.schemas.subject import SubjectCatalogue, SubjectCreate, SubjectOut
from app.schemas.user import CurrentUser, UserRole
from app.services.audit import log_activity
from app.services.subjects import list_subjects_for_year

router = APIRouter()


@router.get("/", response_model=SubjectCatalogue)
def list_subjects(
    year: str = Query(min_length=1, max_length=50),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SubjectCatalogue:
    return list_subjects_for_year(db, year)


@router.post("/", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def create_subject(
    payload: SubjectCreate,
    current_user: CurrentUser = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> SubjectOut:
    existing = db.execute(
        select(Subject).where(Subject.year == payload.year, Subject.name == payload.name)
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Subject already exists for this year")
    subject = Subject(**payload.model_dump())
    db.add(subject)
    db.flush()
    log_activity(
        db,
        user=current_user,
        action=ActivityAction.subject_create,
        entity_id=subject.id,
        details={"name": subject.name, "year": subject.year, "teacher": subject.teacher},
    )
    db.commit()
    db.refresh(subject)
    return subject


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subject(
    subject_id: str,
    current_user: CurrentUser = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> None:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    db.delete(subject)
    log_activity(
        db,
        user=current_user,
        action=ActivityAction.subject_delete,
        entity_id=subject_id,
        details={"name": subject.name, "year": subject.year},
    )
    db.commit()
