import os
import tempfile
from datetime import date

# Point the application engine at a throwaway file before anything imports it.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="vivaplan-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+pysqlite:///{os.path.join(_TEST_DB_DIR, 'app.db')}")
os.environ.setdefault("SMTP_HOST", "")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vivaplan.api.deps import get_db
from vivaplan.core.security import get_password_hash
from vivaplan.db.base import Base
from vivaplan.main import app
from vivaplan.models.examiner import Examiner
from vivaplan.models.module import Module
from vivaplan.models.presentation import Presentation
from vivaplan.models.student import Student
from vivaplan.models.student_group import StudentGroup
from vivaplan.models.timetable import Timetable
from vivaplan.models.user import User, UserRole
from vivaplan.models.venue import Venue
from vivaplan.services import email as email_service
from vivaplan.services.friendly_ids import next_examiner_code, next_group_code, next_student_code
from vivaplan.services.rate_limit import signin_limiter

PASSWORD = "password123"


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    signin_limiter.reset()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    signin_limiter.reset()


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Every email the code tries to send, as (to, subject, body)."""
    sent: list[tuple[str, str, str]] = []

    def fake_send_email(*, to_email: str, subject: str, text_content: str, settings=None):
        sent.append((to_email, subject, text_content))

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return sent


class Seeder:
    """Writes directory records straight to the database."""

    def __init__(self, db):
        self.db = db

    def _save(self, record):
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def student(self, name: str, department: str = "SE", email: str | None = None) -> Student:
        code = next_student_code(self.db, department, today=date(2025, 1, 1))
        return self._save(
            Student(
                student_code=code,
                name=name,
                email=email or f"{name.lower().replace(' ', '.')}@students.example.com",
                department=department,
            )
        )

    def examiner(self, name: str, department: str = "SE", email: str | None = None) -> Examiner:
        return self._save(
            Examiner(
                examiner_code=next_examiner_code(self.db),
                name=name,
                email=email or f"{name.lower().replace(' ', '.')}@staff.example.com",
                department=department,
            )
        )

    def venue(self, code: str, name: str | None = None) -> Venue:
        return self._save(Venue(venue_code=code, name=name or f"Room {code}", capacity=40))

    def module(self, code: str) -> Module:
        return self._save(Module(module_code=code, name=f"Module {code}"))

    def group(self, students: list[Student], department: str = "SE") -> StudentGroup:
        return self._save(StudentGroup(group_code=next_group_code(self.db), department=department, students=students))

    def timetable(self, group: StudentGroup, schedule: list[dict]) -> Timetable:
        return self._save(Timetable(group=group, schedule=schedule))

    def presentation(
        self,
        *,
        on_date: date,
        start_time: str,
        end_time: str,
        venue: Venue,
        examiners: list[Examiner] = (),
        students: list[Student] = (),
        title: str = "Final viva",
        department: str = "SE",
    ) -> Presentation:
        return self._save(
            Presentation(
                title=title,
                department=department,
                date=on_date,
                start_time=start_time,
                end_time=end_time,
                duration=60,
                num_of_examiners=max(1, len(examiners)),
                venue=venue,
                examiners=list(examiners),
                students=list(students),
            )
        )

    def user(self, email: str, role: UserRole, user_code: str | None = None) -> User:
        return self._save(
            User(
                username=email.split("@")[0],
                email=email,
                hashed_password=get_password_hash(PASSWORD),
                role=role,
                user_code=user_code,
            )
        )


@pytest.fixture()
def seed(db_session):
    return Seeder(db_session)


@pytest.fixture()
def login_as(client):
    def _login(email: str, password: str = PASSWORD) -> dict[str, str]:
        response = client.post("/api/auth/signin", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login


@pytest.fixture()
def admin_headers(seed, login_as):
    seed.user("admin@example.com", UserRole.admin)
    return login_as("admin@example.com")
