"""Seed a small department for trying VivaPlan locally.

Creates an admin account, examiners, students, venues, modules and one student
group, plus login accounts linked to every examiner and student. Running it
again updates the same records instead of duplicating them.

Run:
  PYTHONPATH=backend python scripts/seed_demo_data.py
"""

from __future__ import annotations

import os

from sqlalchemy import func, select

from vivaplan.core.security import get_password_hash
from vivaplan.db.bootstrap import ensure_runtime_schema
from vivaplan.db.session import SessionLocal
from vivaplan.models.examiner import Examiner
from vivaplan.models.module import Module
from vivaplan.models.student import Student
from vivaplan.models.student_group import StudentGroup
from vivaplan.models.user import User, UserRole
from vivaplan.models.venue import Venue
from vivaplan.services.friendly_ids import next_examiner_code, next_group_code, next_student_code

DEFAULT_PASSWORD = os.getenv("SEED_DEFAULT_PASSWORD", "VivaPlan123!")
RESET_PASSWORDS = os.getenv("SEED_RESET_PASSWORDS", "true").strip().lower() in {"1", "true", "yes", "on"}
MOCK_EMAIL_DOMAIN = os.getenv("SEED_MOCK_EMAIL_DOMAIN", "university.edu").strip().lower() or "university.edu"
DEPARTMENT = "SE"

ADMIN_EMAIL = f"admin@{MOCK_EMAIL_DOMAIN}"

EXAMINERS = [
    "Dr. Nimal Perera",
    "Dr. Kumari Silva",
    "Prof. Ruwan Jayasinghe",
    "Dr. Ayesha Fernando",
]

STUDENTS = [
    "Dilan Wickramasinghe",
    "Tharushi Bandara",
    "Kasun Rathnayake",
    "Ishara Gunawardena",
    "Mihiri Senanayake",
    "Sachin Abeywardena",
]

VENUES = [
    ("A401", "Main Building Lecture Hall", 120),
    ("B502", "Computing Lab 2", 40),
    ("N3C", "New Building Seminar Room", 25),
]

MODULES = [
    ("SE3010", "Software Engineering Process"),
    ("SE3020", "Distributed Systems"),
    ("SE3030", "Software Architecture"),
    ("SE3040", "Application Frameworks"),
]


def _email_for(name: str) -> str:
    local = "".join(ch for ch in name.lower().replace("dr.", "").replace("prof.", "") if ch.isalnum() or ch == " ")
    return f"{'.'.join(local.split())}@{MOCK_EMAIL_DOMAIN}"


def upsert_user(session, *, name: str, email: str, role: UserRole, user_code: str | None) -> User:
    user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None:
        user = User(
            username=name,
            email=email,
            hashed_password=get_password_hash(DEFAULT_PASSWORD),
            role=role,
            user_code=user_code,
        )
        session.add(user)
        return user
    user.username = name
    user.role = role
    user.user_code = user_code
    if RESET_PASSWORDS:
        user.hashed_password = get_password_hash(DEFAULT_PASSWORD)
    return user


def seed_examiners(session) -> list[Examiner]:
    examiners = []
    for name in EXAMINERS:
        email = _email_for(name)
        examiner = session.execute(select(Examiner).where(Examiner.email == email)).scalar_one_or_none()
        if examiner is None:
            examiner = Examiner(examiner_code=next_examiner_code(session), name=name, email=email, department=DEPARTMENT)
            session.add(examiner)
        examiner.name = name
        upsert_user(session, name=name, email=email, role=UserRole.examiner, user_code=examiner.examiner_code)
        examiners.append(examiner)
    return examiners


def seed_students(session) -> list[Student]:
    students = []
    for name in STUDENTS:
        email = _email_for(name)
        student = session.execute(select(Student).where(Student.email == email)).scalar_one_or_none()
        if student is None:
            student = Student(
                student_code=next_student_code(session, DEPARTMENT),
                name=name,
                email=email,
                department=DEPARTMENT,
            )
            session.add(student)
        upsert_user(session, name=name, email=email, role=UserRole.student, user_code=student.student_code)
        students.append(student)
    return students


def upsert_venues(session) -> None:
    for code, name, capacity in VENUES:
        venue = session.execute(select(Venue).where(Venue.venue_code == code)).scalar_one_or_none()
        if venue is None:
            session.add(Venue(venue_code=code, name=name, capacity=capacity))
        else:
            venue.name = name
            venue.capacity = capacity


def upsert_modules(session) -> None:
    for code, name in MODULES:
        module = session.execute(select(Module).where(Module.module_code == code)).scalar_one_or_none()
        if module is None:
            session.add(Module(module_code=code, name=name))
        else:
            module.name = name


def ensure_group(session, students: list[Student]) -> StudentGroup:
    session.flush()
    existing = session.execute(
        select(StudentGroup).where(StudentGroup.students.any(Student.id == students[0].id))
    ).scalar_one_or_none()
    if existing is not None:
        return existing
    group = StudentGroup(group_code=next_group_code(session), department=DEPARTMENT, students=students)
    session.add(group)
    return group


def main() -> None:
    ensure_runtime_schema()
    with SessionLocal() as session:
        upsert_user(session, name="Scheduling Office", email=ADMIN_EMAIL, role=UserRole.admin, user_code=None)
        seed_examiners(session)
        students = seed_students(session)
        upsert_venues(session)
        upsert_modules(session)
        group = ensure_group(session, students)
        session.commit()

        rows = session.execute(select(User.role, func.count(User.id)).group_by(User.role)).all()
        role_counts = {role.value: int(count) for role, count in rows}
        group_code = group.group_code

    print("Demo data seeded successfully.")
    print("")
    print(f"Student group: {group_code}")
    print(f"User counts by role: {role_counts}")
    print("")
    print("Login credentials for seeded users (all use same password):")
    print(f"  Password: {DEFAULT_PASSWORD}")
    print(f"  Admin:    {ADMIN_EMAIL}")
    print(f"  Examiner: {_email_for(EXAMINERS[0])}")
    print(f"  Student:  {_email_for(STUDENTS[0])}")


if __name__ == "__main__":
    main()
