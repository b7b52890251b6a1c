from datetime import date, datetime, timedelta, timezone

import pytest

from vivaplan.core.exceptions import InvalidStateError
from vivaplan.models.presentation import Presentation
from vivaplan.models.reschedule_request import RescheduleRequest, RescheduleStatus
from vivaplan.models.user import UserRole
from vivaplan.services import email as email_service
from vivaplan.services.reschedule import delete_own_requests, purge_stale_rejected_requests

VIVA_DAY = date(2025, 1, 10)


@pytest.fixture()
def scheduled(seed):
    student = seed.student("Sam Student")
    examiner = seed.examiner("Ada Examiner")
    venue = seed.venue("V1")
    seed.venue("V2")
    presentation = seed.presentation(
        on_date=VIVA_DAY,
        start_time="10:00",
        end_time="11:00",
        venue=venue,
        examiners=[examiner],
        students=[student],
    )
    user = seed.user(examiner.email, UserRole.examiner, user_code=examiner.examiner_code)
    return presentation, examiner, student, user


def _request_move(client, headers, presentation_id, *, on_date="2025-01-12", start="14:00", end="15:00", venue="V2"):
    response = client.post(
        "/api/presentations/reschedule-request",
        json={
            "presentationId": presentation_id,
            "date": on_date,
            "timeRange": {"startTime": start, "endTime": end},
            "venue": venue,
            "reason": "Conference travel",
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_request_starts_pending_with_requestor_email(client, scheduled, login_as):
    presentation, examiner, _, _ = scheduled

    created = _request_move(client, login_as(examiner.email), presentation.id)

    assert created["status"] == "Pending"
    assert created["requestorEmail"] == examiner.email
    assert created["requestedBy"]["role"] == "examiner"
    assert created["requestedSlot"]["venue"]["venue_id"] == "V2"


def test_approval_moves_presentation_and_notifies(client, db_session, scheduled, login_as, admin_headers, outbox):
    presentation, examiner, student, _ = scheduled
    created = _request_move(client, login_as(examiner.email), presentation.id)
    outbox.clear()

    response = client.post(
        "/api/presentations/reschedule-request/decide",
        json={"requestId": created["id"], "action": "Approve"},
        headers=admin_headers,
    )

    assert response.status_code == 200, response.text
    assert response.json()["message"] == "Reschedule request approved, presentation updated"
    assert response.json()["request"]["status"] == "Approved"

    db_session.expire_all()
    moved = db_session.get(Presentation, presentation.id)
    assert moved.date == date(2025, 1, 12)
    assert (moved.start_time, moved.end_time) == ("14:00", "15:00")
    assert moved.venue.venue_code == "V2"
    assert moved.duration == 60

    subjects = {(to, subject) for to, subject, _ in outbox}
    assert (examiner.email, "Reschedule Request Approved") in subjects
    assert (examiner.email, "Presentation Rescheduled - Examiner Notification") in subjects
    assert (student.email, "Presentation Rescheduled - Student Notification") in subjects


def test_approval_of_taken_slot_rejects_request(client, db_session, seed, scheduled, login_as, admin_headers, outbox):
    presentation, examiner, _, _ = scheduled
    created = _request_move(client, login_as(examiner.email), presentation.id)
    venue_before = presentation.venue_id
    # The examiner takes another booking after the request was filed.
    seed.presentation(
        on_date=date(2025, 1, 12),
        start_time="14:30",
        end_time="15:30",
        venue=seed.venue("V3"),
        examiners=[examiner],
        title="Late booking",
    )
    outbox.clear()

    response = client.post(
        "/api/presentations/reschedule-request/decide",
        json={"requestId": created["id"], "action": "Approve"},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Time slot is not available. Request automatically rejected."

    db_session.expire_all()
    assert db_session.get(RescheduleRequest, created["id"]).status == RescheduleStatus.rejected
    unchanged = db_session.get(Presentation, presentation.id)
    assert (unchanged.date, unchanged.start_time, unchanged.venue_id) == (VIVA_DAY, "10:00", venue_before)
    assert [to for to, _, _ in outbox] == [examiner.email]


def test_rejecting_and_deciding_twice(client, scheduled, login_as, admin_headers, outbox):
    presentation, examiner, _, _ = scheduled
    created = _request_move(client, login_as(examiner.email), presentation.id)
    decide = {"requestId": created["id"], "action": "Reject"}

    first = client.post("/api/presentations/reschedule-request/decide", json=decide, headers=admin_headers)
    second = client.post("/api/presentations/reschedule-request/decide", json=decide, headers=admin_headers)

    assert first.status_code == 200
    assert first.json()["message"] == "Reschedule request rejected successfully"
    assert "Reschedule Request Rejected" in [subject for _, subject, _ in outbox]
    assert second.status_code == 400
    assert second.json()["message"] == "Reschedule request is already Rejected"


def test_unknown_request_and_action(client, admin_headers):
    missing = client.post(
        "/api/presentations/reschedule-request/decide",
        json={"requestId": "nope", "action": "Approve"},
        headers=admin_headers,
    )
    bad_action = client.post(
        "/api/presentations/reschedule-request/decide",
        json={"requestId": "nope", "action": "Maybe"},
        headers=admin_headers,
    )

    assert missing.status_code == 404
    assert bad_action.status_code == 400


def test_email_failure_does_not_undo_approval(client, db_session, scheduled, login_as, admin_headers, monkeypatch):
    presentation, examiner, _, _ = scheduled
    created = _request_move(client, login_as(examiner.email), presentation.id)

    def broken_send_email(**kwargs):
        raise email_service.EmailDeliveryError("SMTP is down")

    monkeypatch.setattr(email_service, "send_email", broken_send_email)

    response = client.post(
        "/api/presentations/reschedule-request/decide",
        json={"requestId": created["id"], "action": "Approve"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.get(RescheduleRequest, created["id"]).status == RescheduleStatus.approved


def test_request_listings(client, scheduled, login_as, admin_headers):
    presentation, examiner, _, _ = scheduled
    examiner_headers = login_as(examiner.email)
    _request_move(client, examiner_headers, presentation.id)

    everything = client.get("/api/presentations/reschedule-requests", headers=admin_headers)
    mine = client.get("/api/presentations/reschedule-requests/mine", headers=examiner_headers)
    forbidden = client.get("/api/presentations/reschedule-requests", headers=examiner_headers)

    assert len(everything.json()) == 1
    assert mine.json()[0]["presentationTitle"] == "Final viva"
    assert forbidden.status_code == 401


def _stored_request(db_session, presentation, user, status, created_at):
    request = RescheduleRequest(
        presentation_id=presentation.id,
        requested_by_user_id=user.id,
        requested_by_role=user.role.value,
        requestor_email=user.email,
        requested_date=VIVA_DAY,
        requested_start_time="12:00",
        requested_end_time="13:00",
        requested_venue_id=presentation.venue_id,
        status=status,
        created_at=created_at,
    )
    db_session.add(request)
    db_session.commit()
    return request


def test_purge_removes_only_old_rejected_requests(db_session, scheduled):
    presentation, _, _, user = scheduled
    now = datetime(2025, 1, 20, 12, 0, tzinfo=timezone.utc)
    old_rejected = _stored_request(db_session, presentation, user, RescheduleStatus.rejected, now - timedelta(days=3))
    fresh_rejected = _stored_request(db_session, presentation, user, RescheduleStatus.rejected, now - timedelta(hours=5))
    old_pending = _stored_request(db_session, presentation, user, RescheduleStatus.pending, now - timedelta(days=9))
    old_rejected_id = old_rejected.id

    deleted = purge_stale_rejected_requests(db_session, now=now)

    assert deleted == 1
    remaining = {item.id for item in db_session.query(RescheduleRequest).all()}
    assert remaining == {fresh_rejected.id, old_pending.id}
    assert old_rejected_id not in remaining


def test_examiner_clears_own_closed_requests(db_session, scheduled, seed):
    presentation, _, _, user = scheduled
    stranger = seed.user("stranger@example.com", UserRole.user)
    now = datetime.now(timezone.utc)
    _stored_request(db_session, presentation, user, RescheduleStatus.approved, now)
    _stored_request(db_session, presentation, user, RescheduleStatus.pending, now)
    _stored_request(db_session, presentation, stranger, RescheduleStatus.approved, now)

    deleted = delete_own_requests(db_session, user=user, status=RescheduleStatus.approved)

    assert deleted == 1
    with pytest.raises(InvalidStateError):
        delete_own_requests(db_session, user=user, status=RescheduleStatus.pending)
    assert db_session.query(RescheduleRequest).count() == 2


def test_clear_endpoint_and_admin_delete(client, db_session, scheduled, login_as, admin_headers):
    presentation, examiner, _, user = scheduled
    examiner_headers = login_as(examiner.email)
    done = _stored_request(db_session, presentation, user, RescheduleStatus.rejected, datetime.now(timezone.utc))
    done_id = done.id
    open_request = _stored_request(db_session, presentation, user, RescheduleStatus.pending, datetime.now(timezone.utc))

    cleared = client.delete("/api/presentations/reschedule-requests/mine/Rejected", headers=examiner_headers)
    refused = client.delete("/api/presentations/reschedule-requests/mine/Pending", headers=examiner_headers)
    removed = client.delete(f"/api/presentations/reschedule-requests/{open_request.id}", headers=admin_headers)

    assert cleared.json()["message"] == "Deleted 1 rejected requests."
    assert refused.status_code == 400
    assert removed.status_code == 200
    db_session.expire_all()
    assert db_session.get(RescheduleRequest, done_id) is None
