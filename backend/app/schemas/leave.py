from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.leave_request import LeaveStatus


class LeaveRequestCreate(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)
    from_date: date
    to_date: date

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please enter a reason for your leave")
        return value

    @model_validator(mode="after")
    def check_range(self) -> "LeaveRequestCreate":
        if self.to_date < self.from_date:
            raise ValueError("to_date cannot be before from_date")
        return self


class LeaveRequestStatusUpdate(BaseModel):
    status: LeaveStatus
    admin_comment: str | None = Field(default=None, max_length=1000)


class LeaveRequestOut(BaseModel):
    id: str
    user_id: str
    name: str
    role: str
    reason: str
    from_date: date
    to_date: date
    status: LeaveStatus
    admin_comment: str | None = None
    reviewed_by_id: str | None = None
    reviewed_at: datetime | None = None
    applied_at: datetime

    model_config = {"from_attributes": True}
