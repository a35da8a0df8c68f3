import pytest

from app.core.exceptions import (
    ScheduleNotFoundError,
    ScheduleRevisionError,
    SlotValidationError,
    StoreUnavailableError,
)
from app.schemas.timetable import Slot, SlotAdded, SlotCandidate, SlotConflict
from app.services.slot_manager import SlotManager


class RecordingStore:
    """Wraps a real store and records writes; can be told to fail a call."""

    def __init__(self, inner, fail_on=None):
        self.inner = inner
        self.fail_on = fail_on
        self.writes = []
        self.calls = []

    def _maybe_fail(self, name, operation):
        self.calls.append(name)
        if self.fail_on == name:
            raise StoreUnavailableError(operation)

    def get(self, year, class_name):
        self._maybe_fail("get", "read")
        return self.inner.get(year, class_name)

    def get_all(self, year):
        self._maybe_fail("get_all", "scan")
        return self.inner.get_all(year)

    def upsert(self, year, class_name, slots, *, expected_revision=None, actor_id=None):
        self._maybe_fail("upsert", "commit")
        self.writes.append((year, class_name, list(slots)))
        return self.inner.upsert(
            year, class_name, slots, expected_revision=expected_revision, actor_id=actor_id
        )

    def subscribe(self, year, class_name, listener):
        return self.inner.subscribe(year, class_name, listener)


def seed(store, year, class_name, *slots):
    store.upsert(year, class_name, [Slot(**slot) for slot in slots])


RAO_MONDAY = {
    "id": "a1",
    "day": "Monday",
    "time": "8:45-9:45",
    "subject": "Operating Systems",
    "teacher": "Dr. Rao",
    "room": "301",
}


@pytest.mark.parametrize(
    "candidate",
    [
        SlotCandidate(day="", time="8:45-9:45", subject="DBMS", teacher="Dr. Rao"),
        SlotCandidate(day="Monday", time="", subject="DBMS", teacher="Dr. Rao"),
        SlotCandidate(day="Monday", time="8:45-9:45", subject="   ", teacher="Dr. Rao"),
    ],
)
def test_add_slot_rejects_missing_required_fields_without_touching_store(store, candidate):
    recording = RecordingStore(store)
    manager = SlotManager(recording)

    with pytest.raises(SlotValidationError):
        manager.add_slot("2025", "BE-B", candidate)

    assert recording.calls == []
    assert store.get_all("2025") == []


def test_add_slot_rejects_unknown_day_and_period(manager):
    with pytest.raises(SlotValidationError) as excinfo:
        manager.add_slot("2025", "BE-B", SlotCandidate(day="Saturday", time="7:00-8:00", subject="DBMS"))

    assert set(excinfo.value.details) == {"day", "time"}


def test_add_slot_rejects_malformed_key(manager):
    with pytest.raises(SlotValidationError):
        manager.add_slot("2025_A", "BE-B", SlotCandidate(day="Monday", time="8:45-9:45", subject="DBMS"))
    with pytest.raises(SlotValidationError):
        manager.add_slot("2025", " ", SlotCandidate(day="Monday", time="8:45-9:45", subject="DBMS"))


def test_cross_class_conflict_is_rejected_and_nothing_is_written(store):
    seed(store, "2025", "BE-A", RAO_MONDAY)
    recording = RecordingStore(store)
    manager = SlotManager(recording)

    result = manager.add_slot(
        "2025",
        "BE-B",
        SlotCandidate(day="Monday", time="8:45-9:45", subject="DBMS", teacher="Dr. Rao"),
    )

    assert isinstance(result, SlotConflict)
    assert (result.teacher, result.day, result.time) == ("Dr. Rao", "Monday", "8:45-9:45")
    assert result.existing_class == "BE-A"
    assert result.existing_slot_id == "a1"
    assert recording.writes == []
    assert store.get("2025", "BE-B").slots == []
    assert [slot.id for slot in store.get("2025", "BE-A").slots] == ["a1"]


def test_non_conflicting_teacher_is_added_to_target_only(store, manager):
    seed(store, "2025", "BE-A", RAO_MONDAY)

    result = manager.add_slot(
        "2025",
        "BE-B",
        SlotCandidate(day="Monday", time="8:45-9:45", subject="DBMS", teacher="Dr. Iyer", room="204"),
    )

    assert isinstance(result, SlotAdded)
    assert result.slot.teacher == "Dr. Iyer"
    assert result.slot.id
    target = store.get("2025", "BE-B")
    assert target.slots == [result.slot]
    assert [slot.id for slot in store.get("2025", "BE-A").slots] == ["a1"]


def test_same_class_repeat_booking_is_a_conflict(store, manager):
    seed(store, "2025", "BE-B", RAO_MONDAY)

    result = manager.add_slot(
        "2025",
        "BE-B",
        SlotCandidate(day="Monday", time="8:45-9:45", subject="DBMS Lab", teacher="Dr. Rao"),
    )

    assert isinstance(result, SlotConflict)
    assert result.existing_class == "BE-B"
    assert len(store.get("2025", "BE-B").slots) == 1


def test_other_years_are_not_scanned(store, manager):
    seed(store, "2024", "BE-A", RAO_MONDAY)

    result = manager.add_slot(
        "2025",
        "BE-A",
        SlotCandidate(day="Monday", time="8:45-9:45", subject="DBMS", teacher="Dr. Rao"),
    )

    assert isinstance(result, SlotAdded)


def test_unassigned_slots_never_conflict(store, manager):
    seed(store, "2025", "BE-A", {**RAO_MONDAY, "teacher": ""})

    result = manager.add_slot(
        "2025",
        "BE-B",
        SlotCandidate(day="Monday", time="8:45-9:45", subject="Library", teacher="  "),
    )

    assert isinstance(result, SlotAdded)
    assert result.slot.teacher == ""


def test_add_appends_exactly_one_slot_in_insertion_order(store, manager):
    first = manager.add_slot("2025", "BE-B", SlotCandidate(day="Friday", time="2:00-3:00", subject="CN"))
    second = manager.add_slot("2025", "BE-B", SlotCandidate(day="Monday", time="8:45-9:45", subject="OS"))

    stored = store.get("2025", "BE-B")
    assert [slot.id for slot in stored.slots] == [first.slot.id, second.slot.id]


def test_colliding_generated_id_is_replaced(store):
    seed(store, "2025", "BE-B", RAO_MONDAY)
    ids = iter(["a1", "a1", "b2"])
    manager = SlotManager(store, id_factory=lambda: next(ids))

    result = manager.add_slot("2025", "BE-B", SlotCandidate(day="Tuesday", time="8:45-9:45", subject="OS"))

    assert result.slot.id == "b2"
    assert [slot.id for slot in store.get("2025", "BE-B").slots] == ["a1", "b2"]


def test_store_failure_during_scan_writes_nothing(store):
    recording = RecordingStore(store, fail_on="get_all")
    manager = SlotManager(recording)

    with pytest.raises(StoreUnavailableError):
        manager.add_slot("2025", "BE-B", SlotCandidate(day="Monday", time="8:45-9:45", subject="DBMS"))

    assert recording.writes == []
    assert store.get_all("2025") == []


def test_store_failure_during_commit_propagates(store):
    recording = RecordingStore(store, fail_on="upsert")
    manager = SlotManager(recording)

    with pytest.raises(StoreUnavailableError):
        manager.add_slot("2025", "BE-B", SlotCandidate(day="Monday", time="8:45-9:45", subject="DBMS"))

    assert store.get("2025", "BE-B").slots == []


def test_remove_slot_keeps_remaining_order(store, manager):
    seed(
        store,
        "2025",
        "BE-B",
        {**RAO_MONDAY, "id": "s1"},
        {**RAO_MONDAY, "id": "s2", "day": "Tuesday"},
        {**RAO_MONDAY, "id": "s3", "day": "Wednesday"},
    )

    schedule = manager.remove_slot("2025", "BE-B", "s2")

    assert [slot.id for slot in schedule.slots] == ["s1", "s3"]
    assert [slot.id for slot in store.get("2025", "BE-B").slots] == ["s1", "s3"]


def test_remove_unknown_slot_is_a_noop(store, manager):
    seed(store, "2025", "BE-B", RAO_MONDAY)
    before = store.get("2025", "BE-B")

    after = manager.remove_slot("2025", "BE-B", "missing")

    assert after.slots == before.slots
    assert after.revision == before.revision


def test_remove_from_missing_schedule_succeeds_with_empty_list(store, manager):
    schedule = manager.remove_slot("2025", "BE-C", "anything")

    assert schedule.slots == []
    assert [item.class_name for item in store.get_all("2025")] == ["BE-C"]


def test_remove_slot_reports_unreadable_schedule_as_not_found(store):
    manager = SlotManager(RecordingStore(store, fail_on="get"))

    with pytest.raises(ScheduleNotFoundError):
        manager.remove_slot("2025", "BE-B", "s1")


def test_list_slots_uses_calendar_order(store, manager):
    seed(
        store,
        "2025",
        "BE-B",
        {**RAO_MONDAY, "id": "fri", "day": "Friday"},
        {**RAO_MONDAY, "id": "thu", "day": "Thursday"},
        {**RAO_MONDAY, "id": "mon-late", "day": "Monday", "time": "2:00-3:00"},
        {**RAO_MONDAY, "id": "wed", "day": "Wednesday"},
        {**RAO_MONDAY, "id": "tue", "day": "Tuesday"},
        {**RAO_MONDAY, "id": "mon", "day": "Monday"},
    )

    slots = manager.list_slots("2025", "BE-B")

    assert [slot.id for slot in slots] == ["mon", "mon-late", "tue", "wed", "thu", "fri"]
    # Listing is a projection; the stored order is untouched.
    assert store.get("2025", "BE-B").slots[0].id == "fri"


def test_strict_commit_rejects_stale_schedule(store):
    class StaleStore(RecordingStore):
        def get_all(self, year):
            schedules = self.inner.get_all(year)
            # Another writer lands between the scan and the commit.
            self.inner.upsert("2025", "BE-B", [Slot(**{**RAO_MONDAY, "id": "late"})])
            return schedules

    manager = SlotManager(StaleStore(store), strict_commit=True)

    with pytest.raises(ScheduleRevisionError):
        manager.add_slot("2025", "BE-B", SlotCandidate(day="Tuesday", time="8:45-9:45", subject="OS"))

    assert [slot.id for slot in store.get("2025", "BE-B").slots] == ["late"]
