
from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from vivaplan.api.deps import get_current_user, get_db, require_roles
from vivaplan.core.config import Settings, get_settings
from vivaplan.core.exceptions import EmptyResultError
from vivaplan.models.presentation import Presentation
from vivaplan.models.reschedule_request import RescheduleStatus
from vivaplan.models.user import User, UserRole
from vivaplan.schemas.directory import ExaminerBrief, VenueBrief
from vivaplan.schemas.presentation import (
    AvailabilityQuery,
    AvailabilityWindow,
    MessageOut,
    PresentationCreate,
    PresentationOut,
    PresentationUpdate,
    RescheduleDecision,
    RescheduleDecisionOut,
    RescheduleRequestCreate,
    RescheduleRequestOut,
    RescheduleSuggestRequest,
    SlotSuggestionOut,
    SuggestSlotRequest,
    TimeRange,
)
from vivaplan.services import presentations as presentation_service
from vivaplan.services import reschedule as reschedule_service
from vivaplan.services.availability import find_free_windows
from vivaplan.services.directory import get_student_or_404, resolve_examiners, resolve_students, resolve_venue
from vivaplan.services.slot_suggestion import SlotSuggestion, SlotSuggestionEngine

router = APIRouter()


def _suggestion_out(suggestion: SlotSuggestion) -> SlotSuggestionOut:
    return SlotSuggestionOut(
        date=suggestion.date,
        time_range=TimeRange(start_time=suggestion.start_time, end_time=suggestion.end_time),
        examiners=[ExaminerBrief.model_validate(item) for item in suggestion.examiners],
        venue=VenueBrief.model_validate(suggestion.venue),
        department=suggestion.department,
    )


def _non_empty(presentations: list[Presentation], message: str) -> list[PresentationOut]:
    if not presentations:
        raise EmptyResultError(message)
    return [PresentationOut.from_model(item) for item in presentations]


@router.post("/", response_model=PresentationOut, status_code=status.HTTP_201_CREATED)
def create_presentation(
    payload: PresentationCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> PresentationOut:
    presentation = presentation_service.create_presentation(db, payload=payload, user=current_user)
    return PresentationOut.from_model(presentation)


@router.get("/", response_model=list[PresentationOut])
def list_presentations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[PresentationOut]:
    statement = select(Presentation).order_by(Presentation.date, Presentation.start_time)
    return [PresentationOut.from_model(item) for item in db.execute(statement).unique().scalars()]


@router.post("/check-availability", response_model=list[AvailabilityWindow])
def check_availability(
    payload: AvailabilityQuery,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[AvailabilityWindow]:
    students = resolve_students(db, payload.students)
    examiners = resolve_examiners(db, payload.examiners)
    venue = resolve_venue(db, payload.venue) if payload.venue else None
    windows = find_free_windows(
        db,
        on_date=payload.date,
        department=payload.department,
        student_ids=[item.id for item in students],
        examiner_ids=[item.id for item in examiners],
        venue_id=venue.id if venue else None,
        duration=payload.duration,
    )
    return [AvailabilityWindow(time_slot=window) for window in windows]


@router.post("/suggest-slot", response_model=SlotSuggestionOut)
def suggest_slot(
    payload: SuggestSlotRequest,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> SlotSuggestionOut:
    students = resolve_students(db, payload.students)
    engine = SlotSuggestionEngine(db, settings)
    return _suggestion_out(engine.suggest(students, payload.num_examiners, payload.duration))


@router.post("/suggest-slot/reschedule", response_model=SlotSuggestionOut)
def suggest_reschedule_slot(
    payload: RescheduleSuggestRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> SlotSuggestionOut:
    presentation = presentation_service.get_presentation_or_404(db, payload.presentation_id)
    engine = SlotSuggestionEngine(db, settings)
    return _suggestion_out(engine.suggest_for_reschedule(presentation))


@router.post("/reschedule-request", response_model=RescheduleRequestOut, status_code=status.HTTP_201_CREATED)
def request_reschedule(
    payload: RescheduleRequestCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RescheduleRequestOut:
    request = reschedule_service.create_reschedule_request(db, payload=payload, user=current_user)
    return RescheduleRequestOut.from_model(request)


@router.post("/reschedule-request/decide", response_model=RescheduleDecisionOut)
def decide_reschedule(
    payload: RescheduleDecision,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> RescheduleDecisionOut:
    request = reschedule_service.decide_reschedule_request(
        db, request_id=payload.request_id, action=payload.action, user=current_user
    )
    if request.status == RescheduleStatus.approved:
        message = "Reschedule request approved, presentation updated"
    else:
        message = "Reschedule request rejected successfully"
    return RescheduleDecisionOut(message=message, request=RescheduleRequestOut.from_model(request))


@router.get("/reschedule-requests", response_model=list[RescheduleRequestOut])
def list_reschedule_requests(
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> list[RescheduleRequestOut]:
    return [RescheduleRequestOut.from_model(item) for item in reschedule_service.list_requests(db)]


@router.get("/reschedule-requests/mine", response_model=list[RescheduleRequestOut])
def list_my_reschedule_requests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[RescheduleRequestOut]:
    requests = reschedule_service.list_requests(db, requested_by=current_user)
    return [RescheduleRequestOut.from_model(item) for item in requests]


@router.delete("/reschedule-requests/rejected/stale", response_model=MessageOut)
def purge_stale_rejected(
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> MessageOut:
    deleted = reschedule_service.purge_stale_rejected_requests(db, settings=settings)
    return MessageOut(message=f"Deleted {deleted} old rejected requests.")


@router.delete("/reschedule-requests/mine/{request_status}", response_model=MessageOut)
def delete_my_requests(
    request_status: RescheduleStatus,
    current_user: User = Depends(require_roles(UserRole.examiner)),
    db: Session = Depends(get_db),
) -> MessageOut:
    deleted = reschedule_service.delete_own_requests(db, user=current_user, status=request_status)
    return MessageOut(message=f"Deleted {deleted} {request_status.value.lower()} requests.")


@router.delete("/reschedule-requests/{request_id}", response_model=MessageOut)
def delete_reschedule_request(
    request_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> MessageOut:
    reschedule_service.delete_request(db, request_id)
    return MessageOut(message="Reschedule request deleted successfully")


@router.get("/examiner/me", response_model=list[PresentationOut])
def my_examiner_presentations(
    current_user: User = Depends(require_roles(UserRole.examiner)),
    db: Session = Depends(get_db),
) -> list[PresentationOut]:
    codes = [current_user.user_code] if current_user.user_code else []
    found = presentation_service.presentations_for_codes(db, examiner_codes=codes)
    return _non_empty(found, "No presentations found for this examiner")


@router.get("/student/{student_id}", response_model=list[PresentationOut])
def student_presentations(
    student_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[PresentationOut]:
    student = get_student_or_404(db, student_id)
    found = presentation_service.presentations_for_codes(db, student_codes=[student.student_code])
    return _non_empty(found, "No presentations found for this student")


@router.get("/user/{user_code}", response_model=list[PresentationOut])
def user_presentations(
    user_code: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[PresentationOut]:
    found = presentation_service.presentations_for_codes(db, student_codes=[user_code], examiner_codes=[user_code])
    return _non_empty(found, "No presentations found for this user")


@router.get("/{presentation_id}", response_model=PresentationOut)
def get_presentation(
    presentation_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PresentationOut:
    return PresentationOut.from_model(presentation_service.get_presentation_or_404(db, presentation_id))


@router.put("/{presentation_id}", response_model=PresentationOut)
def update_presentation(
    presentation_id: str,
    payload: PresentationUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> PresentationOut:
    presentation = presentation_service.get_presentation_or_404(db, presentation_id)
    updated = presentation_service.update_presentation(db, presentation=presentation, payload=payload, user=current_user)
    return PresentationOut.from_model(updated)


@router.delete("/{presentation_id}", response_model=MessageOut)
def delete_presentation(
    presentation_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> MessageOut:
    presentation = presentation_service.get_presentation_or_404(db, presentation_id)
    presentation_service.delete_presentation(db, presentation=presentation, user=current_user)
    return MessageOut(message="Presentation deleted successfully")
