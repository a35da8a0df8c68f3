from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine as default_engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "timetable": {"key", "year", "class", "slots", "revision"},
    "subjects": {"id", "name", "teacher", "type", "hours_per_week", "year"},
    "leave_requests": {"id", "user_id", "reason", "from_date", "to_date", "status", "applied_at"},
    "activity_logs": {"id", "action", "details", "created_at"},
}


def missing_schema(bind: Engine | None = None) -> tuple[list[str], dict[str, list[str]]]:
    target = bind or default_engine
    with target.connect() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables: list[str] = []
        missing_columns: dict[str, list[str]] = {}
        for table_name, columns in REQUIRED_COLUMNS.items():
            if table_name not in table_names:
                missing_tables.append(table_name)
                continue
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            missing = sorted(columns - existing)
            if missing:
                missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_schema(bind: Engine | None = None) -> None:
    """Create any missing tables.

    Alembic owns column changes; this only covers fresh databases so a
    development server can start without running migrations first.
    """
    target = bind or default_engine
    missing_tables, missing_columns = missing_schema(target)
    if missing_tables:
        logger.info("Creating missing tables: %s", ", ".join(missing_tables))
        Base.metadata.create_all(bind=target)
    if missing_columns:
        logger.warning("Schema is missing columns, run alembic upgrade: %s", missing_columns)
