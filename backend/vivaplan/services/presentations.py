from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from vivaplan.core.exceptions import ResourceNotFoundError, ScheduleConflictError
from vivaplan.models.examiner import Examiner
from vivaplan.models.presentation import Presentation
from vivaplan.models.reschedule_request import RescheduleRequest
from vivaplan.models.student import Student
from vivaplan.models.user import User
from vivaplan.schemas.common import parse_time_to_minutes
from vivaplan.schemas.presentation import PresentationCreate, PresentationUpdate
from vivaplan.services.audit import log_activity
from vivaplan.services.availability import find_conflict
from vivaplan.services.directory import resolve_examiners, resolve_students, resolve_venue
from vivaplan.services.lecture_clashes import notify_lecture_clashes
from vivaplan.services.notifications import notify_presentation_scheduled, notify_presentation_updated

logger = logging.getLogger(__name__)


def ensure_slot_free(
    db: Session,
    *,
    on_date: date,
    start_time: str,
    end_time: str,
    examiners: Sequence[Examiner],
    venue_id: str,
    students: Sequence[Student],
    ignore_presentation_id: str | None = None,
) -> None:
    conflict = find_conflict(
        db,
        on_date=on_date,
        start_time=start_time,
        end_time=end_time,
        examiner_ids=[item.id for item in examiners],
        venue_id=venue_id,
        student_ids=[item.id for item in students],
        ignore_presentation_id=ignore_presentation_id,
    )
    if conflict is not None:
        raise ScheduleConflictError(
            conflict.describe(),
            details={
                "resource": conflict.resource,
                "presentation_id": conflict.presentation_id,
                "start_time": conflict.start_time,
                "end_time": conflict.end_time,
            },
        )


def get_presentation_or_404(db: Session, presentation_id: str) -> Presentation:
    presentation = db.get(Presentation, presentation_id)
    if presentation is None:
        raise ResourceNotFoundError("Presentation", presentation_id)
    return presentation


def create_presentation(db: Session, *, payload: PresentationCreate, user: User) -> Presentation:
    students = resolve_students(db, payload.students)
    examiners = resolve_examiners(db, payload.examiners)
    venue = resolve_venue(db, payload.venue)
    ensure_slot_free(
        db,
        on_date=payload.date,
        start_time=payload.time_range.start_time,
        end_time=payload.time_range.end_time,
        examiners=examiners,
        venue_id=venue.id,
        students=students,
    )

    presentation = Presentation(
        title=payload.title,
        department=payload.department,
        date=payload.date,
        start_time=payload.time_range.start_time,
        end_time=payload.time_range.end_time,
        duration=payload.duration,
        num_of_examiners=payload.num_of_examiners,
        venue=venue,
        examiners=examiners,
        students=students,
    )
    db.add(presentation)
    db.flush()
    log_activity(
        db,
        user=user,
        action="presentation.created",
        entity_type="presentation",
        entity_id=presentation.id,
        details={"date": payload.date.isoformat(), "venue": venue.venue_code},
    )
    db.commit()
    db.refresh(presentation)
    logger.info("Scheduled presentation %s on %s", presentation.id, presentation.date)

    notify_presentation_scheduled(presentation)
    notify_lecture_clashes(db, list(presentation.examiners), presentation.date)
    return presentation


def update_presentation(
    db: Session,
    *,
    presentation: Presentation,
    payload: PresentationUpdate,
    user: User,
) -> Presentation:
    students = resolve_students(db, payload.students) if payload.students is not None else list(presentation.students)
    examiners = (
        resolve_examiners(db, payload.examiners) if payload.examiners is not None else list(presentation.examiners)
    )
    venue = resolve_venue(db, payload.venue) if payload.venue is not None else presentation.venue
    on_date = payload.date or presentation.date
    start_time = payload.time_range.start_time if payload.time_range else presentation.start_time
    end_time = payload.time_range.end_time if payload.time_range else presentation.end_time

    slot_changed = (
        on_date != presentation.date
        or start_time != presentation.start_time
        or end_time != presentation.end_time
        or venue.id != presentation.venue_id
    )
    participants_changed = (
        {item.id for item in examiners} != {item.id for item in presentation.examiners}
        or {item.id for item in students} != {item.id for item in presentation.students}
    )
    if slot_changed or participants_changed:
        ensure_slot_free(
            db,
            on_date=on_date,
            start_time=start_time,
            end_time=end_time,
            examiners=examiners,
            venue_id=venue.id,
            students=students,
            ignore_presentation_id=presentation.id,
        )

    for field in ("title", "department", "num_of_examiners", "duration"):
        value = getattr(payload, field)
        if value is not None:
            setattr(presentation, field, value)
    if payload.time_range is not None and payload.duration is None:
        presentation.duration = parse_time_to_minutes(end_time) - parse_time_to_minutes(start_time)
    presentation.date = on_date
    presentation.start_time = start_time
    presentation.end_time = end_time
    presentation.venue = venue
    presentation.students = students
    presentation.examiners = examiners
    log_activity(
        db,
        user=user,
        action="presentation.updated",
        entity_type="presentation",
        entity_id=presentation.id,
        details={"slot_changed": slot_changed, "participants_changed": participants_changed},
    )
    db.commit()
    db.refresh(presentation)

    notify_presentation_updated(presentation)
    if slot_changed:
        notify_lecture_clashes(db, list(presentation.examiners), presentation.date)
    return presentation


def delete_presentation(db: Session, *, presentation: Presentation, user: User) -> None:
    db.execute(delete(RescheduleRequest).where(RescheduleRequest.presentation_id == presentation.id))
    log_activity(db, user=user, action="presentation.deleted", entity_type="presentation", entity_id=presentation.id)
    db.delete(presentation)
    db.commit()


def presentations_for_codes(db: Session, *, student_codes=(), examiner_codes=()) -> list[Presentation]:
    conditions = []
    if student_codes:
        conditions.append(Presentation.students.any(Student.student_code.in_(list(student_codes))))
    if examiner_codes:
        conditions.append(Presentation.examiners.any(Examiner.examiner_code.in_(list(examiner_codes))))
    if not conditions:
        return []
    statement = select(Presentation).where(or_(*conditions)).order_by(Presentation.date, Presentation.start_time)
    return list(db.execute(statement).unique().scalars())
