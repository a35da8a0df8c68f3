from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class Slot(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    day: str
    time: str
    subject: str
    teacher: str = ""
    room: str = ""


class SlotCandidate(BaseModel):
    """Slot fields as entered by an admin, before validation and id assignment.

    ``teacher`` is ``None`` when the client did not send one; the add-slot
    route then pre-fills it from the subject catalogue. An explicit empty
    string marks the slot as unassigned.
    """

    day: str = Field(default="", max_length=32)
    time: str = Field(default="", max_length=32)
    subject: str = Field(default="", max_length=200)
    teacher: str | None = Field(default=None, max_length=200)
    room: str = Field(default="", max_length=100)


class Schedule(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    year: str
    class_name: str = Field(alias="class")
    slots: list[Slot] = Field(default_factory=list)
    revision: int = 0

    def slot_ids(self) -> set[str]:
        return {slot.id for slot in self.slots}


class SlotAdded(BaseModel):
    outcome: Literal["added"] = "added"
    slot: Slot


class SlotConflict(BaseModel):
    outcome: Literal["conflict"] = "conflict"
    teacher: str
    day: str
    time: str
    existing_class: str
    existing_slot_id: str


AddSlotResult = Union[SlotAdded, SlotConflict]


class TimetableOptions(BaseModel):
    days: list[str]
    times: list[str]
