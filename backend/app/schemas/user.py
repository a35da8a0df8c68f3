from enum import Enum

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    admin = "admin"
    teacher = "teacher"
    student = "student"


class CurrentUser(BaseModel):
    """Principal resolved from a verified bearer token."""

    id: str = Field(min_length=1)
    name: str = "Unknown"
    role: UserRole
