"""Conflict-aware slot management on top of a :class:`ScheduleStore`.

``add_slot`` reads every schedule of the year, rejects the candidate if its
teacher is already booked for the same day and period anywhere, and only
then writes the target schedule. The scan and the write are two store
calls, so two admins booking the same teacher at once can both pass the
scan; enable ``strict_commit`` to at least reject lost updates on the
target schedule, and use the year audit in ``conflict_service`` to find
double bookings that slipped through.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence

from app.core.config import DEFAULT_DAYS, DEFAULT_PERIODS
from app.core.exceptions import ScheduleNotFoundError, SlotValidationError, StoreUnavailableError
from app.models.timetable import schedule_key
from app.schemas.timetable import AddSlotResult, Schedule, Slot, SlotAdded, SlotCandidate
from app.services.conflict_service import find_teacher_conflict
from app.services.schedule_store import ScheduleStore, normalize_key

logger = logging.getLogger(__name__)


def new_slot_id() -> str:
    return str(uuid.uuid4())


def sort_slots(slots: Sequence[Slot], days: Sequence[str], periods: Sequence[str]) -> list[Slot]:
    """Weekly order: configured day order first, then period order.

    Unknown days or periods go last; ties keep insertion order.
    """
    day_rank = {day: index for index, day in enumerate(days)}
    period_rank = {period: index for index, period in enumerate(periods)}
    return sorted(
        slots,
        key=lambda slot: (
            day_rank.get(slot.day, len(day_rank)),
            period_rank.get(slot.time, len(period_rank)),
        ),
    )


class SlotManager:
    def __init__(
        self,
        store: ScheduleStore,
        *,
        days: Sequence[str] = DEFAULT_DAYS,
        periods: Sequence[str] = DEFAULT_PERIODS,
        strict_commit: bool = False,
        id_factory: Callable[[], str] = new_slot_id,
    ) -> None:
        self.store = store
        self.days = list(days)
        self.periods = list(periods)
        self.strict_commit = strict_commit
        self._id_factory = id_factory

    def _validate(self, candidate: SlotCandidate) -> SlotCandidate:
        cleaned = SlotCandidate(
            day=candidate.day.strip(),
            time=candidate.time.strip(),
            subject=candidate.subject.strip(),
            teacher=(candidate.teacher or "").strip(),
            room=candidate.room.strip(),
        )
        problems: dict[str, str] = {}
        for field in ("day", "time", "subject"):
            if not getattr(cleaned, field):
                problems[field] = "This field is required"
        if cleaned.day and cleaned.day not in self.days:
            problems["day"] = f"Unknown day; expected one of {', '.join(self.days)}"
        if cleaned.time and cleaned.time not in self.periods:
            problems["time"] = f"Unknown period; expected one of {', '.join(self.periods)}"
        if problems:
            raise SlotValidationError("Please fill all fields!", details=problems)
        return cleaned

    def _fresh_id(self, taken: set[str]) -> str:
        slot_id = self._id_factory()
        while slot_id in taken:
            slot_id = self._id_factory()
        return slot_id

    def add_slot(
        self,
        year: str,
        class_name: str,
        candidate: SlotCandidate,
        *,
        actor_id: str | None = None,
    ) -> AddSlotResult:
        year, class_name = normalize_key(year, class_name)
        cleaned = self._validate(candidate)
        slot = Slot(
            id=self._id_factory(),
            day=cleaned.day,
            time=cleaned.time,
            subject=cleaned.subject,
            teacher=cleaned.teacher or "",
            room=cleaned.room,
        )

        schedules = self.store.get_all(year)

        conflict = find_teacher_conflict(schedules, slot)
        if conflict is not None:
            logger.info(
                "Rejected slot for %s: %s already teaches %s at %s (%s)",
                schedule_key(year, class_name),
                conflict.teacher,
                conflict.day,
                conflict.time,
                conflict.existing_class,
            )
            return conflict

        target = next(
            (schedule for schedule in schedules if schedule.class_name == class_name),
            Schedule(year=year, class_name=class_name),
        )
        if slot.id in target.slot_ids():
            slot = slot.model_copy(update={"id": self._fresh_id(target.slot_ids())})

        self.store.upsert(
            year,
            class_name,
            [*target.slots, slot],
            expected_revision=target.revision if self.strict_commit else None,
            actor_id=actor_id,
        )
        logger.info("Added slot %s to %s", slot.id, schedule_key(year, class_name))
        return SlotAdded(slot=slot)

    def remove_slot(
        self,
        year: str,
        class_name: str,
        slot_id: str,
        *,
        actor_id: str | None = None,
    ) -> Schedule:
        year, class_name = normalize_key(year, class_name)
        try:
            schedule = self.store.get(year, class_name)
        except StoreUnavailableError as exc:
            raise ScheduleNotFoundError(schedule_key(year, class_name)) from exc

        remaining = [slot for slot in schedule.slots if slot.id != slot_id]
        if len(remaining) == len(schedule.slots):
            logger.debug("Slot %s not present in %s", slot_id, schedule_key(year, class_name))

        return self.store.upsert(
            year,
            class_name,
            remaining,
            expected_revision=schedule.revision if self.strict_commit else None,
            actor_id=actor_id,
        )

    def view_schedule(self, year: str, class_name: str) -> Schedule:
        schedule = self.store.get(year, class_name)
        return schedule.model_copy(update={"slots": sort_slots(schedule.slots, self.days, self.periods)})

    def list_slots(self, year: str, class_name: str) -> list[Slot]:
        return self.view_schedule(year, class_name).slots
