from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from threading import Lock

from app.schemas.timetable import Schedule

logger = logging.getLogger(__name__)

ScheduleListener = Callable[[Schedule], None]


class Subscription:
    """Handle returned by :meth:`ScheduleHub.add_listener`; ``cancel`` is idempotent."""

    def __init__(self, hub: "ScheduleHub", key: str, listener: ScheduleListener) -> None:
        self._hub = hub
        self.key = key
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._hub._remove(self.key, self._listener)


class ScheduleHub:
    """Fan-out of committed schedules to in-process listeners.

    Listeners run synchronously in the writer's thread, so they must only
    hand the schedule off (e.g. onto an event loop) and return.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[ScheduleListener]] = defaultdict(list)
        self._lock = Lock()

    def add_listener(self, key: str, listener: ScheduleListener) -> Subscription:
        with self._lock:
            self._listeners[key].append(listener)
        return Subscription(self, key, listener)

    def _remove(self, key: str, listener: ScheduleListener) -> None:
        with self._lock:
            listeners = self._listeners.get(key)
            if not listeners:
                return
            try:
                listeners.remove(listener)
            except ValueError:
                return
            if not listeners:
                self._listeners.pop(key, None)

    def listener_count(self, key: str) -> int:
        with self._lock:
            return len(self._listeners.get(key, ()))

    def publish(self, key: str, schedule: Schedule) -> None:
        with self._lock:
            listeners = list(self._listeners.get(key, ()))

        for listener in listeners:
            try:
                listener(schedule)
            except Exception:
                logger.exception("Timetable listener for %s failed", key)


schedule_hub = ScheduleHub()
