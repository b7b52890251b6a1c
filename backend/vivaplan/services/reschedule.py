"""Reschedule requests: Pending -> Approved | Rejected.

Approval re-runs the availability probe against the presentation's own
examiners and students plus the requested venue. A slot that has been taken
since the request was filed turns the request Rejected instead. Emails go out
only after the state change is committed, and their failure is only logged.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from vivaplan.core.config import Settings, get_settings
from vivaplan.core.exceptions import InvalidStateError, ResourceNotFoundError, ScheduleConflictError
from vivaplan.models.reschedule_request import RescheduleRequest, RescheduleStatus
from vivaplan.models.user import User
from vivaplan.schemas.common import parse_time_to_minutes
from vivaplan.schemas.presentation import RescheduleRequestCreate
from vivaplan.services.audit import log_activity
from vivaplan.services.availability import find_conflict
from vivaplan.services.directory import resolve_venue
from vivaplan.services.lecture_clashes import notify_lecture_clashes
from vivaplan.services.notifications import notify_presentation_rescheduled, send_best_effort
from vivaplan.services.presentations import get_presentation_or_404

logger = logging.getLogger(__name__)


def create_reschedule_request(db: Session, *, payload: RescheduleRequestCreate, user: User) -> RescheduleRequest:
    presentation = get_presentation_or_404(db, payload.presentation_id)
    venue = resolve_venue(db, payload.venue)

    request = RescheduleRequest(
        presentation_id=presentation.id,
        requested_by_user_id=user.id,
        requested_by_role=user.role.value,
        requestor_email=payload.requestor_email or user.email,
        requested_date=payload.date,
        requested_start_time=payload.time_range.start_time,
        requested_end_time=payload.time_range.end_time,
        requested_venue_id=venue.id,
        reason=payload.reason,
        status=RescheduleStatus.pending,
    )
    db.add(request)
    db.flush()
    log_activity(
        db,
        user=user,
        action="reschedule.requested",
        entity_type="reschedule_request",
        entity_id=request.id,
        details={"presentation_id": presentation.id, "date": payload.date.isoformat()},
    )
    db.commit()
    db.refresh(request)
    return request


def _close(db: Session, request: RescheduleRequest, status: RescheduleStatus, user: User, **details) -> None:
    request.status = status
    request.decided_by_id = user.id
    request.decided_at = datetime.now(timezone.utc)
    log_activity(
        db,
        user=user,
        action=f"reschedule.{status.value.lower()}",
        entity_type="reschedule_request",
        entity_id=request.id,
        details=details,
    )
    db.commit()


def reject_reschedule_request(db: Session, request: RescheduleRequest, *, user: User) -> RescheduleRequest:
    _close(db, request, RescheduleStatus.rejected, user, automatic=False)
    send_best_effort(
        request.requestor_email,
        "Reschedule Request Rejected",
        f"Your request has been rejected. Reason: {request.reason or 'N/A'}",
    )
    return request


def approve_reschedule_request(db: Session, request: RescheduleRequest, *, user: User) -> RescheduleRequest:
    presentation = request.presentation
    conflict = find_conflict(
        db,
        on_date=request.requested_date,
        start_time=request.requested_start_time,
        end_time=request.requested_end_time,
        examiner_ids=[item.id for item in presentation.examiners],
        venue_id=request.requested_venue_id,
        student_ids=[item.id for item in presentation.students],
        ignore_presentation_id=presentation.id,
    )
    if conflict is not None:
        _close(db, request, RescheduleStatus.rejected, user, automatic=True, conflict=conflict.resource)
        logger.info("Reschedule request %s rejected automatically: %s", request.id, conflict.describe())
        send_best_effort(
            request.requestor_email,
            "Reschedule Request Rejected - Time slot unavailable",
            "Requested time slot is not available",
        )
        raise ScheduleConflictError(
            "Time slot is not available. Request automatically rejected.",
            details={"resource": conflict.resource, "presentation_id": conflict.presentation_id},
        )

    presentation.date = request.requested_date
    presentation.start_time = request.requested_start_time
    presentation.end_time = request.requested_end_time
    presentation.duration = parse_time_to_minutes(request.requested_end_time) - parse_time_to_minutes(
        request.requested_start_time
    )
    presentation.venue_id = request.requested_venue_id
    _close(db, request, RescheduleStatus.approved, user, presentation_id=presentation.id)
    db.refresh(presentation)

    send_best_effort(
        request.requestor_email,
        "Reschedule Request Approved",
        f"Your request was approved. New Date: {presentation.date.isoformat()} "
        f"Time: {presentation.start_time} - {presentation.end_time}",
    )
    notify_presentation_rescheduled(presentation)
    notify_lecture_clashes(db, list(presentation.examiners), presentation.date)
    return request


def decide_reschedule_request(db: Session, *, request_id: str, action: str, user: User) -> RescheduleRequest:
    request = db.get(RescheduleRequest, request_id)
    if request is None:
        raise ResourceNotFoundError("Reschedule request", request_id)
    if request.status != RescheduleStatus.pending:
        raise InvalidStateError(
            f"Reschedule request is already {request.status.value}",
            details={"status": request.status.value},
        )
    if action == "Reject":
        return reject_reschedule_request(db, request, user=user)
    return approve_reschedule_request(db, request, user=user)


def list_requests(db: Session, *, requested_by: User | None = None) -> list[RescheduleRequest]:
    statement = select(RescheduleRequest).order_by(RescheduleRequest.created_at.desc())
    if requested_by is not None:
        statement = statement.where(RescheduleRequest.requested_by_user_id == requested_by.id)
    return list(db.execute(statement).unique().scalars())


def delete_request(db: Session, request_id: str) -> None:
    request = db.get(RescheduleRequest, request_id)
    if request is None:
        raise ResourceNotFoundError("Reschedule request", request_id)
    db.delete(request)
    db.commit()


def purge_stale_rejected_requests(
    db: Session,
    *,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> int:
    settings = settings or get_settings()
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=settings.stale_rejected_request_days)
    result = db.execute(
        delete(RescheduleRequest)
        .where(
            RescheduleRequest.status == RescheduleStatus.rejected,
            RescheduleRequest.created_at < cutoff,
        )
        .execution_options(synchronize_session="fetch")
    )
    db.commit()
    logger.info("Purged %s rejected reschedule requests older than %s", result.rowcount, cutoff.isoformat())
    return result.rowcount


def delete_own_requests(db: Session, *, user: User, status: RescheduleStatus) -> int:
    if status == RescheduleStatus.pending:
        raise InvalidStateError("Only Approved or Rejected requests can be cleared")
    result = db.execute(
        delete(RescheduleRequest).where(
            RescheduleRequest.requested_by_user_id == user.id,
            RescheduleRequest.status == status,
        )
    )
    db.commit()
    return result.rowcount
