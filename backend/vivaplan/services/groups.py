from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from vivaplan.core.exceptions import ResourceNotFoundError, ValidationFailedError
from vivaplan.models.student import Student
from vivaplan.models.student_group import StudentGroup, group_members


def get_group_or_404(db: Session, group_code: str) -> StudentGroup:
    group = db.execute(select(StudentGroup).where(StudentGroup.group_code == group_code)).scalar_one_or_none()
    if group is None:
        raise ResourceNotFoundError("Student group", group_code)
    return group


def ensure_unassigned(db: Session, students: Sequence[Student], *, exclude_group_id: str | None = None) -> None:
    """A student may belong to one group only."""
    statement = (
        select(StudentGroup.group_code)
        .join(group_members, group_members.c.group_id == StudentGroup.id)
        .where(group_members.c.student_id.in_([item.id for item in students]))
    )
    if exclude_group_id is not None:
        statement = statement.where(StudentGroup.id != exclude_group_id)
    taken = db.execute(statement.limit(1)).scalar_one_or_none()
    if taken is not None:
        raise ValidationFailedError(
            f"One or more students are already assigned to another group (Group ID: {taken}).",
            details=[{"field": "students", "message": f"Already in group {taken}"}],
        )
