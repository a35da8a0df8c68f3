from app.schemas.timetable import Schedule, Slot
from app.services.conflict_service import ConflictService, booking_key, find_teacher_conflict


def slot(slot_id, teacher, day="Monday", time="8:45-9:45", subject="DBMS"):
    return Slot(id=slot_id, day=day, time=time, subject=subject, teacher=teacher)


def test_booking_key_ignores_unassigned_teacher():
    assert booking_key(slot("s1", "")) is None
    assert booking_key(slot("s1", "   ")) is None
    assert booking_key(slot("s1", "Dr. Rao")) == ("Dr. Rao", "Monday", "8:45-9:45")


def test_find_teacher_conflict_matches_exact_triple_only():
    schedules = [
        Schedule(year="2025", class_name="BE-A", slots=[slot("a1", "Dr. Rao")]),
        Schedule(year="2025", class_name="BE-C", slots=[slot("c1", "Dr. Rao", time="9:45-10:45")]),
    ]

    conflict = find_teacher_conflict(schedules, slot("new", "Dr. Rao"))
    assert conflict is not None
    assert conflict.existing_class == "BE-A"

    assert find_teacher_conflict(schedules, slot("new", "dr. rao")) is None
    assert find_teacher_conflict(schedules, slot("new", "Dr. Rao", day="Tuesday")) is None


def test_detect_conflicts_reports_double_bookings_across_classes():
    schedules = [
        Schedule(year="2025", class_name="BE-A", slots=[slot("a1", "Dr. Rao"), slot("a2", "")]),
        Schedule(
            year="2025",
            class_name="BE-B",
            slots=[slot("b1", "Dr. Rao", subject="DBMS Lab"), slot("b2", "")],
        ),
        Schedule(year="2025", class_name="BE-C", slots=[slot("c1", "Dr. Iyer")]),
    ]

    report = ConflictService("2025", schedules).detect_conflicts()

    assert report.schedules_scanned == 3
    assert report.slots_scanned == 5
    assert len(report.conflicts) == 1
    conflict = report.conflicts[0]
    assert (conflict.teacher, conflict.day, conflict.time) == ("Dr. Rao", "Monday", "8:45-9:45")
    assert {(item.class_name, item.slot_id) for item in conflict.slots} == {("BE-A", "a1"), ("BE-B", "b1")}


def test_no_conflicts():
    schedules = [
        Schedule(year="2025", class_name="BE-A", slots=[slot("a1", "Dr. Rao")]),
        Schedule(year="2025", class_name="BE-B", slots=[slot("b1", "Dr. Rao", day="Tuesday")]),
    ]

    report = ConflictService("2025", schedules).detect_conflicts()

    assert report.conflicts == []
