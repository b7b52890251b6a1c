from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from vivaplan.api.deps import get_current_user, get_db, require_roles
from vivaplan.core.exceptions import EmptyResultError, ResourceNotFoundError
from vivaplan.models.student_group import StudentGroup, group_members
from vivaplan.models.timetable import Timetable
from vivaplan.models.user import User, UserRole
from vivaplan.schemas.presentation import MessageOut
from vivaplan.schemas.timetable import (
    FilteredTimetableOut,
    HourSlot,
    LecturerFreeTimesOut,
    TimetableOut,
    TimetableSubmission,
    TimetableWriteResult,
)
from vivaplan.services.audit import log_activity
from vivaplan.services.directory import get_student_or_404
from vivaplan.services.groups import get_group_or_404
from vivaplan.services.timetable_queries import filter_schedule, lecturer_free_times, load_timetables
from vivaplan.services.timetable_validator import schedule_document, validate_timetable_submission

router = APIRouter()


def _get_timetable_or_404(db: Session, timetable_id: str) -> Timetable:
    timetable = db.get(Timetable, timetable_id)
    if timetable is None:
        raise ResourceNotFoundError("Timetable", timetable_id)
    return timetable


def _not_found(message: str) -> EmptyResultError:
    return EmptyResultError(message)


@router.post("/", response_model=TimetableWriteResult, status_code=status.HTTP_201_CREATED)
def create_timetable(
    payload: TimetableSubmission,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> TimetableWriteResult:
    group = validate_timetable_submission(db, payload)
    timetable = Timetable(group=group, schedule=schedule_document(payload), updated_by_id=current_user.id)
    db.add(timetable)
    db.flush()
    log_activity(
        db,
        user=current_user,
        action="timetable.created",
        entity_type="timetable",
        entity_id=timetable.id,
        details={"group_id": group.group_code},
    )
    db.commit()
    db.refresh(timetable)
    return TimetableWriteResult(message="Timetable created successfully!", timetable=TimetableOut.from_model(timetable))


@router.get("/", response_model=list[TimetableOut])
def list_timetables(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[TimetableOut]:
    return [TimetableOut.from_model(item) for item in load_timetables(db)]


@router.get("/group/{group_id}", response_model=TimetableOut)
def get_group_timetable(
    group_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TimetableOut:
    group = get_group_or_404(db, group_id)
    timetable = db.execute(select(Timetable).where(Timetable.group_id == group.id)).unique().scalar_one_or_none()
    if timetable is None:
        raise _not_found("Timetable not found for this group")
    return TimetableOut.from_model(timetable)


@router.get("/student/{student_id}", response_model=TimetableOut)
def get_student_timetable(
    student_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TimetableOut:
    student = get_student_or_404(db, student_id)
    group = db.execute(
        select(StudentGroup)
        .join(group_members, group_members.c.group_id == StudentGroup.id)
        .where(group_members.c.student_id == student.id)
    ).scalar_one_or_none()
    if group is None:
        raise _not_found("Student is not assigned to any group.")
    timetable = db.execute(select(Timetable).where(Timetable.group_id == group.id)).unique().scalar_one_or_none()
    if timetable is None:
        raise _not_found("No timetable found for this student group.")
    return TimetableOut.from_model(timetable)


@router.get("/examiner/{examiner_id}", response_model=list[FilteredTimetableOut])
def get_examiner_timetable(
    examiner_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[FilteredTimetableOut]:
    views = [
        FilteredTimetableOut(
            group_id=item.group.group_code,
            schedule=filter_schedule(item, lambda lecture: lecture["lecturer_id"] == examiner_id),
        )
        for item in load_timetables(db)
    ]
    views = [view for view in views if any(day["lectures"] for day in view.schedule)]
    if not views:
        raise _not_found("No scheduled lectures found for this examiner.")
    return views


@router.get("/venue/{venue_id}", response_model=list[FilteredTimetableOut])
def get_venue_timetable(
    venue_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[FilteredTimetableOut]:
    views = [
        FilteredTimetableOut(
            group_id=item.group.group_code,
            schedule=filter_schedule(item, lambda lecture: lecture["venue_id"] == venue_id),
        )
        for item in load_timetables(db)
    ]
    return [view for view in views if any(day["lectures"] for day in view.schedule)]


@router.get("/lecturer/{lecturer_id}/free-times", response_model=LecturerFreeTimesOut)
def get_lecturer_free_times(
    lecturer_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> LecturerFreeTimesOut:
    timetables = load_timetables(db)
    teaches = any(
        lecture["lecturer_id"] == lecturer_id
        for item in timetables
        for day in item.schedule
        for lecture in day.get("lectures", [])
    )
    if not teaches:
        raise _not_found("No timetable found for this lecturer.")
    free = lecturer_free_times(timetables, lecturer_id)
    return LecturerFreeTimesOut(
        lecturer_id=lecturer_id,
        free_times={
            day: [HourSlot(start_time=start, end_time=end) for start, end in slots] for day, slots in free.items()
        },
    )


@router.get("/{timetable_id}", response_model=TimetableOut)
def get_timetable(
    timetable_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TimetableOut:
    return TimetableOut.from_model(_get_timetable_or_404(db, timetable_id))


@router.put("/{timetable_id}", response_model=TimetableWriteResult)
def update_timetable(
    timetable_id: str,
    payload: TimetableSubmission,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> TimetableWriteResult:
    timetable = _get_timetable_or_404(db, timetable_id)
    group = validate_timetable_submission(db, payload, exclude_timetable_id=timetable.id)
    timetable.group = group
    timetable.schedule = schedule_document(payload)
    timetable.updated_by_id = current_user.id
    log_activity(
        db,
        user=current_user,
        action="timetable.updated",
        entity_type="timetable",
        entity_id=timetable.id,
        details={"group_id": group.group_code},
    )
    db.commit()
    db.refresh(timetable)
    return TimetableWriteResult(message="Timetable updated successfully!", timetable=TimetableOut.from_model(timetable))


@router.delete("/{timetable_id}", response_model=MessageOut)
def delete_timetable(
    timetable_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> MessageOut:
    timetable = _get_timetable_or_404(db, timetable_id)
    log_activity(db, user=current_user, action="timetable.deleted", entity_type="timetable", entity_id=timetable.id)
    db.delete(timetable)
    db.commit()
    return MessageOut(message="Timetable deleted successfully")
