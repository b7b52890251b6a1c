from datetime import date

from vivaplan.models.id_sequence import IdSequence
from vivaplan.services.friendly_ids import (
    next_examiner_code,
    next_group_code,
    next_sequence_value,
    next_student_code,
)


def test_sequence_starts_at_given_value_then_increments(db_session):
    assert next_sequence_value(db_session, "widgets", start=5) == 5
    assert next_sequence_value(db_session, "widgets", start=5) == 6
    assert next_sequence_value(db_session, "gadgets", start=1) == 1
    db_session.commit()

    assert db_session.get(IdSequence, "widgets").last_value == 6


def test_group_and_examiner_codes(db_session):
    assert [next_group_code(db_session) for _ in range(2)] == ["GR1001", "GR1002"]
    assert next_examiner_code(db_session) == "EX1001"


def test_student_codes_are_per_department_and_year(db_session):
    jan = date(2025, 1, 1)

    assert next_student_code(db_session, "se", today=jan) == "STSE2025001"
    assert next_student_code(db_session, "SE", today=jan) == "STSE2025002"
    assert next_student_code(db_session, "CS", today=jan) == "STCS2025001"
    assert next_student_code(db_session, "SE", today=date(2026, 3, 1)) == "STSE2026001"
