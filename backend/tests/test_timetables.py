import pytest

from vivaplan.core.exceptions import ValidationFailedError
from vivaplan.schemas.timetable import TimetableSubmission
from vivaplan.services import timetable_validator


def _lecture(start, end, lecturer="EX1001", venue="LH1", module="SE101"):
    return {"start_time": start, "end_time": end, "module_code": module, "lecturer_id": lecturer, "venue_id": venue}


@pytest.fixture()
def catalogue(seed):
    """Two groups, two lecturers, two lecture halls and one module."""
    first_group = seed.group([seed.student("Sam Student")])
    second_group = seed.group([seed.student("Kim Student")])
    lecturers = [seed.examiner("Ada Examiner"), seed.examiner("Bo Examiner")]
    seed.venue("LH1")
    seed.venue("LH2")
    seed.module("SE101")
    return first_group, second_group, lecturers


def _submit(client, headers, group_code, schedule):
    return client.post("/api/timetables/", json={"group_id": group_code, "schedule": schedule}, headers=headers)


def test_duplicate_lecture_is_rejected_before_any_query(db_session, monkeypatch):
    def no_queries(*args, **kwargs):
        raise AssertionError("database was consulted")

    monkeypatch.setattr(timetable_validator, "resolve_group", no_queries)
    monkeypatch.setattr(timetable_validator, "load_timetables", no_queries)
    submission = TimetableSubmission(
        group_id="GR1001",
        schedule=[{"day": "Monday", "lectures": [_lecture("09:00", "10:00"), _lecture("09:00", "10:00")]}],
    )

    with pytest.raises(ValidationFailedError, match="Duplicate lecture detected in the submission!"):
        timetable_validator.validate_timetable_submission(db_session, submission)


def test_create_timetable_stores_day_ordered_schedule(client, catalogue, admin_headers):
    first_group, _, _ = catalogue

    response = _submit(
        client,
        admin_headers,
        first_group.group_code,
        [
            {"day": "Wednesday", "lectures": [_lecture("13:00", "14:00")]},
            {"day": "Monday", "lectures": [_lecture("11:00", "12:00"), _lecture("09:00", "10:00")]},
        ],
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["message"] == "Timetable created successfully!"
    schedule = body["timetable"]["schedule"]
    assert [day["day"] for day in schedule] == ["Monday", "Wednesday"]
    assert [item["start_time"] for item in schedule[0]["lectures"]] == ["09:00", "11:00"]


def test_overlap_inside_one_day_is_rejected_but_adjacent_is_fine(client, catalogue, admin_headers):
    first_group, _, _ = catalogue

    overlapping = _submit(
        client,
        admin_headers,
        first_group.group_code,
        [{"day": "Monday", "lectures": [_lecture("09:00", "10:30"), _lecture("10:00", "11:00", venue="LH2")]}],
    )
    adjacent = _submit(
        client,
        admin_headers,
        first_group.group_code,
        [{"day": "Monday", "lectures": [_lecture("09:00", "10:00"), _lecture("10:00", "11:00", venue="LH2")]}],
    )

    assert overlapping.status_code == 400
    assert overlapping.json()["message"].startswith("Time conflict detected in group GR1001 on Monday")
    assert adjacent.status_code == 201, adjacent.text


@pytest.mark.parametrize(
    ("lecture", "message"),
    [
        (_lecture("09:00", "10:00", module="XX999"), "Invalid Module Code (XX999)."),
        (_lecture("09:00", "10:00", lecturer="EX9999"), "Invalid Lecturer ID (EX9999)."),
        (_lecture("09:00", "10:00", venue="NOPE"), "Invalid Venue ID (NOPE)."),
    ],
)
def test_unknown_references(client, catalogue, admin_headers, lecture, message):
    first_group, _, _ = catalogue

    response = _submit(client, admin_headers, first_group.group_code, [{"day": "Friday", "lectures": [lecture]}])

    assert response.status_code == 400
    assert response.json()["message"] == message


def test_unknown_group(client, catalogue, admin_headers):
    response = _submit(client, admin_headers, "GR9999", [{"day": "Friday", "lectures": [_lecture("09:00", "10:00")]}])

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid Group ID. Group does not exist."


def test_lecturer_and_venue_cannot_be_double_booked_across_groups(client, catalogue, admin_headers):
    first_group, second_group, _ = catalogue
    created = _submit(
        client, admin_headers, first_group.group_code, [{"day": "Tuesday", "lectures": [_lecture("09:00", "11:00")]}]
    )
    assert created.status_code == 201

    same_lecturer = _submit(
        client,
        admin_headers,
        second_group.group_code,
        [{"day": "Tuesday", "lectures": [_lecture("10:00", "12:00", venue="LH2")]}],
    )
    same_venue = _submit(
        client,
        admin_headers,
        second_group.group_code,
        [{"day": "Tuesday", "lectures": [_lecture("10:30", "11:30", lecturer="EX1002")]}],
    )
    other_day = _submit(
        client,
        admin_headers,
        second_group.group_code,
        [{"day": "Wednesday", "lectures": [_lecture("09:00", "11:00")]}],
    )

    assert same_lecturer.status_code == 400
    assert same_lecturer.json()["details"]["resource"] == "lecturer"
    assert same_lecturer.json()["details"]["group_id"] == "GR1001"
    assert same_venue.status_code == 400
    assert same_venue.json()["details"]["resource"] == "venue"
    assert other_day.status_code == 201


def test_one_timetable_per_group_and_idempotent_update(client, catalogue, admin_headers):
    first_group, _, _ = catalogue
    schedule = [{"day": "Thursday", "lectures": [_lecture("09:00", "10:00")]}]
    created = _submit(client, admin_headers, first_group.group_code, schedule)
    timetable_id = created.json()["timetable"]["id"]

    second = _submit(client, admin_headers, first_group.group_code, schedule)
    updated = client.put(
        f"/api/timetables/{timetable_id}",
        json={"group_id": first_group.group_code, "schedule": schedule},
        headers=admin_headers,
    )

    assert second.status_code == 400
    assert second.json()["message"] == "A timetable already exists for group GR1001."
    assert updated.status_code == 200, updated.text
    assert updated.json()["message"] == "Timetable updated successfully!"


def test_timetable_views(client, catalogue, admin_headers):
    first_group, second_group, _ = catalogue
    _submit(
        client,
        admin_headers,
        first_group.group_code,
        [{"day": "Monday", "lectures": [_lecture("09:00", "10:00"), _lecture("13:00", "14:00", lecturer="EX1002")]}],
    )
    student_code = first_group.students[0].student_code

    by_group = client.get(f"/api/timetables/group/{first_group.group_code}", headers=admin_headers)
    by_student = client.get(f"/api/timetables/student/{student_code}", headers=admin_headers)
    by_examiner = client.get("/api/timetables/examiner/EX1002", headers=admin_headers)
    by_venue = client.get("/api/timetables/venue/LH1", headers=admin_headers)
    no_timetable = client.get(f"/api/timetables/group/{second_group.group_code}", headers=admin_headers)

    assert by_group.status_code == 200
    assert by_student.json()["group_id"] == "GR1001"
    lectures = by_examiner.json()[0]["schedule"][0]["lectures"]
    assert [item["start_time"] for item in lectures] == ["13:00"]
    assert len(by_venue.json()[0]["schedule"][0]["lectures"]) == 2
    assert no_timetable.status_code == 404
    assert no_timetable.json() == {"message": "Timetable not found for this group", "details": {}}


def test_lecturer_free_times(client, catalogue, admin_headers):
    first_group, _, _ = catalogue
    _submit(
        client,
        admin_headers,
        first_group.group_code,
        [{"day": "Monday", "lectures": [_lecture("09:30", "11:00")]}],
    )

    response = client.get("/api/timetables/lecturer/EX1001/free-times", headers=admin_headers)
    missing = client.get("/api/timetables/lecturer/EX1002/free-times", headers=admin_headers)

    assert response.status_code == 200
    monday = [slot["startTime"] for slot in response.json()["freeTimes"]["Monday"]]
    assert monday == ["08:00", "11:00", "12:00", "13:00", "14:00", "15:00", "16:00"]
    assert len(response.json()["freeTimes"]["Tuesday"]) == 9
    assert missing.status_code == 404


def test_delete_timetable(client, catalogue, admin_headers):
    first_group, _, _ = catalogue
    created = _submit(
        client, admin_headers, first_group.group_code, [{"day": "Friday", "lectures": [_lecture("09:00", "10:00")]}]
    )
    timetable_id = created.json()["timetable"]["id"]

    deleted = client.delete(f"/api/timetables/{timetable_id}", headers=admin_headers)
    gone = client.get(f"/api/timetables/{timetable_id}", headers=admin_headers)

    assert deleted.status_code == 200
    assert gone.status_code == 404
