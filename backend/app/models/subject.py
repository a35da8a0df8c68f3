import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class SubjectType(str, Enum):
    lecture = "Lecture"
    lab = "Lab"
    project = "Project"


class Subject(Base):
    __tablename__ = "subjects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    teacher: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    type: Mapped[SubjectType] = mapped_column(
        SAEnum(SubjectType, name="subject_type"),
        nullable=False,
        default=SubjectType.lecture,
    )
    hours_per_week: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    year: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
