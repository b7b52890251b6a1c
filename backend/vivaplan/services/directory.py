"""Resolution of friendly codes to stored records.

Every cross-entity reference arriving from a client is a friendly code; it is
turned into the internal record here, before any scheduling query runs.
"""
from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from vivaplan.core.exceptions import ResourceNotFoundError, ValidationFailedError
from vivaplan.models.examiner import Examiner
from vivaplan.models.module import Module
from vivaplan.models.student import Student
from vivaplan.models.student_group import StudentGroup
from vivaplan.models.venue import Venue


def resolve_students(db: Session, codes: Sequence[str]) -> list[Student]:
    """Return students in the order of ``codes``; every code must exist."""
    if not codes:
        return []
    found = {
        item.student_code: item
        for item in db.execute(select(Student).where(Student.student_code.in_(list(codes)))).scalars()
    }
    missing = [code for code in codes if code not in found]
    if missing:
        raise ValidationFailedError(
            "One or more student IDs are invalid",
            details=[{"field": "students", "message": f"Unknown student ID {code}"} for code in missing],
        )
    return [found[code] for code in codes]


def resolve_examiners(db: Session, codes: Sequence[str]) -> list[Examiner]:
    if not codes:
        return []
    found = {
        item.examiner_code: item
        for item in db.execute(select(Examiner).where(Examiner.examiner_code.in_(list(codes)))).scalars()
    }
    missing = [code for code in codes if code not in found]
    if missing:
        raise ValidationFailedError(
            "One or more examiner IDs are invalid",
            details=[{"field": "examiners", "message": f"Unknown examiner ID {code}"} for code in missing],
        )
    return [found[code] for code in codes]


def resolve_venue(db: Session, code: str) -> Venue:
    venue = db.execute(select(Venue).where(Venue.venue_code == code)).scalar_one_or_none()
    if venue is None:
        raise ValidationFailedError(
            f"Invalid Venue ID ({code}).",
            details=[{"field": "venue", "message": f"Unknown venue ID {code}"}],
        )
    return venue


def resolve_group(db: Session, code: str) -> StudentGroup:
    group = db.execute(select(StudentGroup).where(StudentGroup.group_code == code)).scalar_one_or_none()
    if group is None:
        raise ValidationFailedError(
            "Invalid Group ID. Group does not exist.",
            details=[{"field": "group_id", "message": f"Unknown group ID {code}"}],
        )
    return group


def get_student_or_404(db: Session, code: str) -> Student:
    student = db.execute(select(Student).where(Student.student_code == code)).scalar_one_or_none()
    if student is None:
        raise ResourceNotFoundError("Student", code)
    return student


def get_examiner_or_404(db: Session, code: str) -> Examiner:
    examiner = db.execute(select(Examiner).where(Examiner.examiner_code == code)).scalar_one_or_none()
    if examiner is None:
        raise ResourceNotFoundError("Examiner", code)
    return examiner


def existing_codes(db: Session, column, codes: set[str]) -> set[str]:
    if not codes:
        return set()
    return set(db.execute(select(column).where(column.in_(sorted(codes)))).scalars())


def existing_module_codes(db: Session, codes: set[str]) -> set[str]:
    return existing_codes(db, Module.module_code, codes)


def existing_examiner_codes(db: Session, codes: set[str]) -> set[str]:
    return existing_codes(db, Examiner.examiner_code, codes)


def existing_venue_codes(db: Session, codes: set[str]) -> set[str]:
    return existing_codes(db, Venue.venue_code, codes)
