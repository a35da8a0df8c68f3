from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.subject import Subject
from app.schemas.subject import SubjectCatalogue, SubjectOut

logger = logging.getLogger(__name__)

PACKAGED_SUBJECTS = Path(__file__).resolve().parents[1] / "data" / "subjects.json"


@lru_cache
def _read_fallback(path: Path) -> tuple[SubjectOut, ...]:
    with path.open(encoding="utf-8") as handle:
        raw = json.load(handle)
    return tuple(SubjectOut.model_validate(item) for item in raw)


def fallback_subjects(year: str, path: Path | None = None) -> list[SubjectOut]:
    source = path or get_settings().subjects_fallback_path or PACKAGED_SUBJECTS
    return [subject for subject in _read_fallback(Path(source)) if subject.year == year]


def list_subjects_for_year(db: Session, year: str) -> SubjectCatalogue:
    """Subjects for ``year`` from the store, or the static list when it has none.

    A store failure here is not an error for the caller: the form still needs
    something to offer, so it degrades to the static list.
    """
    year = year.strip()
    try:
        query = select(Subject).where(Subject.year == year).order_by(Subject.name)
        rows = list(db.execute(query).scalars())
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Subject lookup for %s failed, using static list: %s", year, exc)
        rows = []
    else:
        if rows:
            return SubjectCatalogue(
                year=year,
                source="store",
                subjects=[SubjectOut.model_validate(row) for row in rows],
            )

    return SubjectCatalogue(year=year, source="fallback", subjects=fallback_subjects(year))


def find_subject(catalogue: SubjectCatalogue, name: str) -> SubjectOut | None:
    wanted = name.strip()
    return next((subject for subject in catalogue.subjects if subject.name == wanted), None)
