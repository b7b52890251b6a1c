"""Presentation slot availability.

Two ranges [s1, e1) and [s2, e2) on the same date overlap iff s1 < e2 and
s2 < e1, so a slot ending exactly when another begins is free. Examiners, the
venue and students are probed independently; a hit on any one of them makes
the slot unavailable.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from vivaplan.models.examiner import Examiner
from vivaplan.models.presentation import Presentation, presentation_examiners, presentation_students
from vivaplan.models.student import Student
from vivaplan.schemas.common import minutes_to_hhmm, parse_time_to_minutes

DAY_START = "08:00"
DAY_END = "18:00"


@dataclass(frozen=True)
class SlotConflict:
    resource: str
    presentation_id: str
    presentation_title: str
    start_time: str
    end_time: str

    def describe(self) -> str:
        return (
            f"Selected time slot is not available: {self.resource} already booked for "
            f"'{self.presentation_title}' ({self.start_time}-{self.end_time})"
        )


def _overlapping(on_date: date, start_time: str, end_time: str, ignore_presentation_id: str | None):
    statement = select(Presentation).where(
        Presentation.date == on_date,
        Presentation.start_time < end_time,
        Presentation.end_time > start_time,
    )
    if ignore_presentation_id is not None:
        statement = statement.where(Presentation.id != ignore_presentation_id)
    return statement


def find_conflict(
    db: Session,
    *,
    on_date: date,
    start_time: str,
    end_time: str,
    examiner_ids: Sequence[str] = (),
    venue_id: str | None = None,
    student_ids: Sequence[str] = (),
    ignore_presentation_id: str | None = None,
) -> SlotConflict | None:
    probes = []
    if examiner_ids:
        probes.append(
            (
                "examiner",
                _overlapping(on_date, start_time, end_time, ignore_presentation_id)
                .join(presentation_examiners, presentation_examiners.c.presentation_id == Presentation.id)
                .where(presentation_examiners.c.examiner_id.in_(list(examiner_ids))),
            )
        )
    if venue_id:
        probes.append(
            (
                "venue",
                _overlapping(on_date, start_time, end_time, ignore_presentation_id).where(
                    Presentation.venue_id == venue_id
                ),
            )
        )
    if student_ids:
        probes.append(
            (
                "student",
                _overlapping(on_date, start_time, end_time, ignore_presentation_id)
                .join(presentation_students, presentation_students.c.presentation_id == Presentation.id)
                .where(presentation_students.c.student_id.in_(list(student_ids))),
            )
        )

    for resource, statement in probes:
        hit = db.execute(statement.limit(1)).unique().scalars().first()
        if hit is not None:
            return SlotConflict(
                resource=resource,
                presentation_id=hit.id,
                presentation_title=hit.title,
                start_time=hit.start_time,
                end_time=hit.end_time,
            )
    return None


def is_slot_free(
    db: Session,
    *,
    on_date: date,
    start_time: str,
    end_time: str,
    examiner_ids: Sequence[str] = (),
    venue_id: str | None = None,
    student_ids: Sequence[str] = (),
    ignore_presentation_id: str | None = None,
) -> bool:
    return (
        find_conflict(
            db,
            on_date=on_date,
            start_time=start_time,
            end_time=end_time,
            examiner_ids=examiner_ids,
            venue_id=venue_id,
            student_ids=student_ids,
            ignore_presentation_id=ignore_presentation_id,
        )
        is None
    )


def find_free_windows(
    db: Session,
    *,
    on_date: date,
    department: str,
    student_ids: Sequence[str],
    examiner_ids: Sequence[str],
    venue_id: str | None,
    duration: int,
) -> list[str]:
    """Gaps of at least ``duration`` minutes between 08:00 and 18:00.

    Only presentations of ``department`` that share a student or an examiner
    (and the venue, when one is given) block time.
    """
    statement = select(Presentation).where(
        Presentation.date == on_date,
        Presentation.department == department,
        or_(
            Presentation.students.any(Student.id.in_(list(student_ids))),
            Presentation.examiners.any(Examiner.id.in_(list(examiner_ids))),
        ),
    )
    if venue_id:
        statement = statement.where(Presentation.venue_id == venue_id)
    booked = list(db.execute(statement).unique().scalars())
    if not booked:
        return [f"{DAY_START} - {DAY_END}"]

    busy = sorted(
        (parse_time_to_minutes(item.start_time), parse_time_to_minutes(item.end_time)) for item in booked
    )
    windows: list[str] = []
    cursor = parse_time_to_minutes(DAY_START)
    day_end = parse_time_to_minutes(DAY_END)
    for start, end in busy:
        if start > cursor and start - cursor >= duration:
            windows.append(f"{minutes_to_hhmm(cursor)} - {minutes_to_hhmm(start)}")
        cursor = max(cursor, end)
    if cursor < day_end and day_end - cursor >= duration:
        windows.append(f"{minutes_to_hhmm(cursor)} - {minutes_to_hhmm(day_end)}")
    return windows
