"""Validation of weekly lecture schedules before they are persisted.

A submission is checked in this order, the first failure aborting the whole
submission: duplicate lectures within the submission, group reference,
overlaps inside one day, module/lecturer/venue references, and finally
double-booking of a venue or lecturer against every other stored timetable.
"""
from __future__ import annotations

import logging
from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.orm import Session

from vivaplan.core.exceptions import ScheduleConflictError, ValidationFailedError
from vivaplan.models.student_group import StudentGroup
from vivaplan.models.timetable import Timetable
from vivaplan.schemas.common import WEEKDAYS
from vivaplan.schemas.timetable import LecturePayload, TimetableSubmission
from vivaplan.services.directory import (
    existing_examiner_codes,
    existing_module_codes,
    existing_venue_codes,
    resolve_group,
)
from vivaplan.services.timetable_queries import LectureEntry, iter_lectures, load_timetables

logger = logging.getLogger(__name__)


def _lecture_key(day: str, lecture: LecturePayload) -> tuple[str, str, str, str, str]:
    return (day, lecture.start_time, lecture.end_time, lecture.lecturer_id, lecture.venue_id)


def _lectures_by_day(submission: TimetableSubmission) -> dict[str, list[LecturePayload]]:
    by_day: dict[str, list[LecturePayload]] = defaultdict(list)
    for entry in submission.schedule:
        by_day[entry.day].extend(entry.lectures)
    return {
        day: sorted(by_day[day], key=lambda item: (item.start_time, item.end_time))
        for day in WEEKDAYS
        if day in by_day
    }


def reject_duplicate_lectures(submission: TimetableSubmission) -> None:
    seen: set[tuple[str, str, str, str, str]] = set()
    for entry in submission.schedule:
        for lecture in entry.lectures:
            key = _lecture_key(entry.day, lecture)
            if key in seen:
                raise ValidationFailedError(
                    "Duplicate lecture detected in the submission!",
                    details={"day": entry.day, "duplicateLecture": lecture.model_dump()},
                )
            seen.add(key)


def reject_overlaps_within_day(submission: TimetableSubmission, group_code: str) -> None:
    for day, lectures in _lectures_by_day(submission).items():
        for previous, current in zip(lectures, lectures[1:]):
            if previous.end_time > current.start_time:
                raise ScheduleConflictError(
                    f"Time conflict detected in group {group_code} on {day}: "
                    f"{current.start_time}-{current.end_time} overlaps with "
                    f"{previous.start_time}-{previous.end_time}",
                    details={
                        "resource": "group",
                        "code": group_code,
                        "day": day,
                        "first": {"start_time": previous.start_time, "end_time": previous.end_time},
                        "second": {"start_time": current.start_time, "end_time": current.end_time},
                    },
                )


def reject_unknown_references(db: Session, submission: TimetableSubmission) -> None:
    lectures = [lecture for entry in submission.schedule for lecture in entry.lectures]
    modules = existing_module_codes(db, {item.module_code for item in lectures})
    lecturers = existing_examiner_codes(db, {item.lecturer_id for item in lectures})
    venues = existing_venue_codes(db, {item.venue_id for item in lectures})

    for lecture in lectures:
        if lecture.module_code not in modules:
            raise ValidationFailedError(
                f"Invalid Module Code ({lecture.module_code}).",
                details=[{"field": "module_code", "message": f"Unknown module {lecture.module_code}"}],
            )
        if lecture.lecturer_id not in lecturers:
            raise ValidationFailedError(
                f"Invalid Lecturer ID ({lecture.lecturer_id}).",
                details=[{"field": "lecturer_id", "message": f"Unknown lecturer {lecture.lecturer_id}"}],
            )
        if lecture.venue_id not in venues:
            raise ValidationFailedError(
                f"Invalid Venue ID ({lecture.venue_id}).",
                details=[{"field": "venue_id", "message": f"Unknown venue {lecture.venue_id}"}],
            )


def _booking_conflict(day: str, lecture: LecturePayload, existing: LectureEntry) -> ScheduleConflictError:
    if existing.venue_id == lecture.venue_id:
        resource, code = "venue", lecture.venue_id
    else:
        resource, code = "lecturer", lecture.lecturer_id
    return ScheduleConflictError(
        f"Schedule conflict: {resource} {code} is already booked on {day} "
        f"{existing.start_time}-{existing.end_time} (group {existing.group_code}).",
        details={
            "resource": resource,
            "code": code,
            "day": day,
            "start_time": existing.start_time,
            "end_time": existing.end_time,
            "group_id": existing.group_code,
        },
    )


def reject_cross_timetable_conflicts(
    db: Session,
    submission: TimetableSubmission,
    *,
    exclude_timetable_id: str | None = None,
) -> None:
    booked: dict[str, list[LectureEntry]] = defaultdict(list)
    for entry in iter_lectures(load_timetables(db, exclude_id=exclude_timetable_id)):
        booked[entry.day].append(entry)

    for day, lectures in _lectures_by_day(submission).items():
        for lecture in lectures:
            for existing in booked.get(day, []):
                if existing.venue_id != lecture.venue_id and existing.lecturer_id != lecture.lecturer_id:
                    continue
                if existing.overlaps(lecture.start_time, lecture.end_time):
                    raise _booking_conflict(day, lecture, existing)


def validate_timetable_submission(
    db: Session,
    submission: TimetableSubmission,
    *,
    exclude_timetable_id: str | None = None,
) -> StudentGroup:
    """Run every check and return the resolved group; raises on the first failure."""
    reject_duplicate_lectures(submission)
    group = resolve_group(db, submission.group_id)

    owner = db.execute(
        select(Timetable.id).where(Timetable.group_id == group.id, Timetable.id != (exclude_timetable_id or ""))
    ).scalar_one_or_none()
    if owner is not None:
        raise ScheduleConflictError(
            f"A timetable already exists for group {group.group_code}.",
            details={"resource": "group", "code": group.group_code, "timetable_id": owner},
        )

    reject_overlaps_within_day(submission, group.group_code)
    reject_unknown_references(db, submission)
    reject_cross_timetable_conflicts(db, submission, exclude_timetable_id=exclude_timetable_id)
    logger.debug("Timetable submission for group %s passed validation", group.group_code)
    return group


def schedule_document(submission: TimetableSubmission) -> list[dict]:
    """Day-ordered JSON document stored on the timetable, lectures sorted by start time."""
    return [
        {"day": day, "lectures": [lecture.model_dump() for lecture in lectures]}
        for day, lectures in _lectures_by_day(submission).items()
    ]
