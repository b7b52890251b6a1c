from __future__ import annotations

import logging
import secrets

from sqlalchemy import select
from sqlalchemy.orm import Session

from vivaplan.core.config import Settings, get_settings
from vivaplan.core.security import get_password_hash
from vivaplan.models.examiner import Examiner
from vivaplan.models.student import Student
from vivaplan.models.user import User, UserRole
from vivaplan.services.friendly_ids import next_student_code
from vivaplan.services.identity import GoogleIdentity

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


def linked_profile(db: Session, email: str) -> tuple[UserRole, str | None]:
    """Role and friendly code implied by a directory record sharing the email."""
    student = db.execute(select(Student).where(Student.email == email)).scalar_one_or_none()
    if student is not None:
        return UserRole.student, student.student_code
    examiner = db.execute(select(Examiner).where(Examiner.email == email)).scalar_one_or_none()
    if examiner is not None:
        return UserRole.examiner, examiner.examiner_code
    return UserRole.user, None


def provision_google_user(db: Session, identity: GoogleIdentity, settings: Settings | None = None) -> User:
    """Return the user for a verified Google identity, creating a student record on first sign-in."""
    user = get_user_by_email(db, identity.email)
    if user is not None:
        return user

    settings = settings or get_settings()
    role, code = linked_profile(db, identity.email)
    if code is None:
        department = settings.default_student_department
        student = Student(
            student_code=next_student_code(db, department),
            name=identity.name,
            email=identity.email,
            department=department,
        )
        db.add(student)
        role, code = UserRole.student, student.student_code
        logger.info("Created student %s for Google account %s", code, identity.email)

    user = User(
        username=identity.name,
        email=identity.email,
        # Google users never sign in with a password; store an unguessable one.
        hashed_password=get_password_hash(secrets.token_urlsafe(24)),
        role=role,
        user_code=code,
        profile_picture=identity.picture,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
