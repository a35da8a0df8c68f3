"""Schedule store adapter.

Maps a (year, class) pair onto one ``timetable`` document whose ``slots``
field is replaced wholesale on every write. Reads and writes are separate
calls: nothing here makes ``get_all`` followed by ``upsert`` atomic. Callers
that need to reject lost updates on a single document pass
``expected_revision`` to turn the write into a compare-and-swap.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from threading import RLock
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ScheduleRevisionError, SlotValidationError, StoreUnavailableError
from app.models.timetable import TimetableDocument, schedule_key
from app.schemas.timetable import Schedule, Slot
from app.services.schedule_hub import ScheduleHub, ScheduleListener, Subscription, schedule_hub

logger = logging.getLogger(__name__)


def normalize_key(year: str, class_name: str) -> tuple[str, str]:
    year = (year or "").strip()
    class_name = (class_name or "").strip()
    problems: dict[str, str] = {}
    if not year:
        problems["year"] = "Year is required"
    elif "_" in year:
        problems["year"] = "Year cannot contain '_'"
    if not class_name:
        problems["class"] = "Class is required"
    if problems:
        raise SlotValidationError("Invalid timetable key", details=problems)
    return year, class_name


class ScheduleStore(Protocol):
    def get(self, year: str, class_name: str) -> Schedule: ...

    def get_all(self, year: str) -> list[Schedule]: ...

    def upsert(
        self,
        year: str,
        class_name: str,
        slots: Sequence[Slot],
        *,
        expected_revision: int | None = None,
        actor_id: str | None = None,
    ) -> Schedule: ...

    def subscribe(self, year: str, class_name: str, listener: ScheduleListener) -> Subscription: ...


def _to_schedule(document: TimetableDocument) -> Schedule:
    return Schedule(
        year=document.year,
        class_name=document.class_name,
        slots=[Slot.model_validate(item) for item in document.slots or []],
        revision=document.revision,
    )


class SqlScheduleStore:
    def __init__(self, db: Session, hub: ScheduleHub | None = None) -> None:
        self._db = db
        self._hub = hub if hub is not None else schedule_hub

    def _load(self, key: str) -> TimetableDocument | None:
        query = (
            select(TimetableDocument)
            .where(TimetableDocument.key == key)
            .execution_options(populate_existing=True)
        )
        return self._db.execute(query).scalar_one_or_none()

    def get(self, year: str, class_name: str) -> Schedule:
        year, class_name = normalize_key(year, class_name)
        try:
            document = self._load(schedule_key(year, class_name))
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.error("Reading timetable %s_%s failed: %s", year, class_name, exc)
            raise StoreUnavailableError("read") from exc
        if document is None:
            return Schedule(year=year, class_name=class_name)
        return _to_schedule(document)

    def get_all(self, year: str) -> list[Schedule]:
        year = (year or "").strip()
        query = (
            select(TimetableDocument)
            .where(TimetableDocument.year == year)
            .order_by(TimetableDocument.key)
            .execution_options(populate_existing=True)
        )
        try:
            documents = list(self._db.execute(query).scalars())
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.error("Scanning timetables for %s failed: %s", year, exc)
            raise StoreUnavailableError("scan") from exc
        return [_to_schedule(document) for document in documents]

    def upsert(
        self,
        year: str,
        class_name: str,
        slots: Sequence[Slot],
        *,
        expected_revision: int | None = None,
        actor_id: str | None = None,
    ) -> Schedule:
        year, class_name = normalize_key(year, class_name)
        key = schedule_key(year, class_name)
        payload = [slot.model_dump() for slot in slots]

        try:
            document = self._load(key)
            current_revision = document.revision if document is not None else 0
            if expected_revision is not None and expected_revision != current_revision:
                raise ScheduleRevisionError(key, expected_revision, current_revision)

            if document is not None and document.slots == payload:
                return _to_schedule(document)

            if document is None:
                self._db.add(
                    TimetableDocument(
                        key=key,
                        year=year,
                        class_name=class_name,
                        slots=payload,
                        revision=1,
                        updated_by_id=actor_id,
                    )
                )
                self._db.flush()
            else:
                statement = update(TimetableDocument).where(TimetableDocument.key == key)
                if expected_revision is not None:
                    statement = statement.where(TimetableDocument.revision == expected_revision)
                statement = statement.values(
                    slots=payload,
                    revision=TimetableDocument.revision + 1,
                    updated_by_id=actor_id,
                ).execution_options(synchronize_session=False)
                result = self._db.execute(statement)
                if expected_revision is not None and result.rowcount != 1:
                    raise ScheduleRevisionError(key, expected_revision, None)
            self._db.commit()
        except ScheduleRevisionError:
            self._db.rollback()
            raise
        except IntegrityError as exc:
            # Someone else created the document between our read and insert.
            self._db.rollback()
            if expected_revision is not None:
                raise ScheduleRevisionError(key, expected_revision, None) from exc
            logger.error("Creating timetable %s collided with a concurrent write", key)
            raise StoreUnavailableError("commit") from exc
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.error("Writing timetable %s failed: %s", key, exc)
            raise StoreUnavailableError("commit") from exc

        stored = self.get(year, class_name)
        logger.debug("Stored timetable %s revision=%d slots=%d", key, stored.revision, len(stored.slots))
        self._hub.publish(key, stored)
        return stored

    def subscribe(self, year: str, class_name: str, listener: ScheduleListener) -> Subscription:
        """Register ``listener`` and hand it the current schedule.

        The listener is registered before the initial read so a write landing
        in between is still delivered; stale revisions are dropped.
        """
        year, class_name = normalize_key(year, class_name)
        ordered = _RevisionOrderedListener(listener)
        subscription = self._hub.add_listener(schedule_key(year, class_name), ordered)
        try:
            current = self.get(year, class_name)
        except StoreUnavailableError:
            subscription.cancel()
            raise
        ordered(current)
        return subscription


class _RevisionOrderedListener:
    """Forwards schedules whose revision is newer than the last one forwarded."""

    def __init__(self, listener: ScheduleListener) -> None:
        self._listener = listener
        self._lock = RLock()
        self._last_revision: int | None = None

    def __call__(self, schedule: Schedule) -> None:
        with self._lock:
            if self._last_revision is not None and schedule.revision <= self._last_revision:
                return
            self._last_revision = schedule.revision
            self._listener(schedule)
