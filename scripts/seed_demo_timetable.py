"""Seed a demo week for one class and print tokens for each role.

Run:
  PYTHONPATH=backend python scripts/seed_demo_timetable.py [YEAR] [CLASS]
"""

from __future__ import annotations

import sys

from app.core.config import get_settings
from app.core.security import create_access_token
from app.db.bootstrap import ensure_schema
from app.db.session import SessionLocal
from app.schemas.timetable import SlotAdded, SlotCandidate
from app.services.schedule_store import SqlScheduleStore
from app.services.slot_manager import SlotManager
from app.services.subjects import list_subjects_for_year

DEMO_ACCOUNTS = [
    ("demo-admin", "Demo Admin", "admin"),
    ("demo-teacher", "Dr. Rao", "teacher"),
    ("demo-student", "Demo Student", "student"),
]


def _seed(year: str, class_name: str) -> None:
    settings = get_settings()
    with SessionLocal() as db:
        catalogue = list_subjects_for_year(db, year)
        if not catalogue.subjects:
            print(f"No subjects known for {year}; nothing to seed.")
            return

        manager = SlotManager(
            SqlScheduleStore(db),
            days=settings.timetable_days,
            periods=settings.timetable_periods,
        )
        cells = [(day, period) for day in settings.timetable_days for period in settings.timetable_periods]
        for index, (day, period) in enumerate(cells):
            subject = catalogue.subjects[index % len(catalogue.subjects)]
            result = manager.add_slot(
                year,
                class_name,
                SlotCandidate(day=day, time=period, subject=subject.name, teacher=subject.teacher),
                actor_id="demo-admin",
            )
            if isinstance(result, SlotAdded):
                print(f"  + {day:<10} {period:<12} {subject.name} ({subject.teacher or 'unassigned'})")
            else:
                print(f"  ! {day:<10} {period:<12} skipped, {result.teacher} busy in {result.existing_class}")


def _print_tokens() -> None:
    print("\nBearer tokens:")
    for user_id, name, role in DEMO_ACCOUNTS:
        print(f"- {role:<8} {create_access_token(user_id, name=name, role=role)}")


def main() -> None:
    year = sys.argv[1] if len(sys.argv) > 1 else "2025"
    class_name = sys.argv[2] if len(sys.argv) > 2 else "BE-A"
    ensure_schema()
    print(f"Seeding {year}_{class_name}")
    _seed(year, class_name)
    _print_tokens()


if __name__ == "__main__":
    main()
