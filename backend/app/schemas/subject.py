from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator

from app.models.subject import SubjectType


class SubjectBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    teacher: str = Field(default="", max_length=200)
    type: SubjectType = SubjectType.lecture
    hours_per_week: int = Field(
        default=3,
        ge=0,
        le=40,
        validation_alias=AliasChoices("hours_per_week", "hoursPerWeek"),
    )
    year: str = Field(min_length=1, max_length=50)

    @field_validator("name", "teacher", "year")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()


class SubjectCreate(SubjectBase):
    @field_validator("name", "year")
    @classmethod
    def require_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Value cannot be blank")
        return value


class SubjectOut(SubjectBase):
    id: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class SubjectCatalogue(BaseModel):
    year: str
    source: Literal["store", "fallback"]
    subjects: list[SubjectOut]
