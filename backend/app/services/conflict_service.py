from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from app.schemas.conflict import BookedSlot, TeacherConflictReport, TeacherDoubleBooking
from app.schemas.timetable import Schedule, Slot, SlotConflict

BookingKey = tuple[str, str, str]


def booking_key(slot: Slot) -> BookingKey | None:
    """(teacher, day, time) for a slot, or None when no teacher is assigned.

    Unassigned slots never take part in teacher conflicts.
    """
    teacher = slot.teacher.strip()
    if not teacher:
        return None
    return teacher, slot.day, slot.time


def find_teacher_conflict(schedules: Iterable[Schedule], candidate: Slot) -> SlotConflict | None:
    wanted = booking_key(candidate)
    if wanted is None:
        return None
    # The target class is part of the scan too: a repeat booking in the same
    # class is rejected the same way as one in another class.
    for schedule in schedules:
        for slot in schedule.slots:
            if booking_key(slot) == wanted:
                return SlotConflict(
                    teacher=candidate.teacher,
                    day=candidate.day,
                    time=candidate.time,
                    existing_class=schedule.class_name,
                    existing_slot_id=slot.id,
                )
    return None


class ConflictService:
    def __init__(self, year: str, schedules: list[Schedule]):
        self.year = year
        self.schedules = schedules

    def detect_conflicts(self) -> TeacherConflictReport:
        bookings: dict[BookingKey, list[BookedSlot]] = defaultdict(list)
        slots_scanned = 0
        for schedule in self.schedules:
            for slot in schedule.slots:
                slots_scanned += 1
                key = booking_key(slot)
                if key is None:
                    continue
                bookings[key].append(
                    BookedSlot(
                        class_name=schedule.class_name,
                        slot_id=slot.id,
                        subject=slot.subject,
                        room=slot.room,
                    )
                )

        conflicts = [
            TeacherDoubleBooking(teacher=teacher, day=day, time=time, slots=booked)
            for (teacher, day, time), booked in bookings.items()
            if len(booked) > 1
        ]
        conflicts.sort(key=lambda item: (item.teacher, item.day, item.time))
        return TeacherConflictReport(
            year=self.year,
            schedules_scanned=len(self.schedules),
            slots_scanned=slots_scanned,
            conflicts=conflicts,
        )
