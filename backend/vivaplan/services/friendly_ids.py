"""Friendly, human-readable identifiers (GR1001, EX1001, STSET2025001).

Numbers come from one counter row per category, advanced with a single
``UPDATE ... RETURNING`` so two concurrent creators never read the same value.
"""
from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import update
from sqlalchemy.orm import Session

from vivaplan.core.config import get_settings
from vivaplan.models.id_sequence import IdSequence

logger = logging.getLogger(__name__)


def next_sequence_value(db: Session, category: str, *, start: int) -> int:
    statement = (
        update(IdSequence)
        .where(IdSequence.category == category)
        .values(last_value=IdSequence.last_value + 1)
        .returning(IdSequence.last_value)
        .execution_options(synchronize_session=False)
    )
    value = db.execute(statement).scalar_one_or_none()
    if value is not None:
        return value

    # First use of the category. A racing first insert fails on the primary key
    # and surfaces as an IntegrityError to the caller.
    logger.info("Starting id sequence %s at %s", category, start)
    db.add(IdSequence(category=category, last_value=start))
    db.flush()
    return start


def next_group_code(db: Session) -> str:
    number = next_sequence_value(db, "group", start=get_settings().first_group_number)
    return f"GR{number}"


def next_examiner_code(db: Session) -> str:
    number = next_sequence_value(db, "examiner", start=get_settings().first_examiner_number)
    return f"EX{number}"


def next_student_code(db: Session, department: str, *, today: date | None = None) -> str:
    year = (today or date.today()).year
    department = department.upper()
    number = next_sequence_value(db, f"student:{department}:{year}", start=1)
    return f"ST{department}{year}{number:03d}"
