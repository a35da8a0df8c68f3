from pydantic import BaseModel, Field


class BookedSlot(BaseModel):
    class_name: str
    slot_id: str
    subject: str
    room: str = ""


class TeacherDoubleBooking(BaseModel):
    teacher: str
    day: str
    time: str
    slots: list[BookedSlot]


class TeacherConflictReport(BaseModel):
    year: str
    schedules_scanned: int = 0
    slots_scanned: int = 0
    conflicts: list[TeacherDoubleBooking] = Field(default_factory=list)
