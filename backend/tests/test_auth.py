from datetime import date

import pytest

from vivaplan.api.deps import get_identity_verifier
from vivaplan.core.exceptions import AuthenticationError
from vivaplan.main import app
from vivaplan.models.user import UserRole
from vivaplan.services.identity import GoogleIdentity


def _signup(client, email, password="password123", username="someone"):
    return client.post("/api/auth/signup", json={"username": username, "email": email, "password": password})


def test_signup_creates_plain_user_even_for_directory_emails(client, seed):
    seed.student("Sam Student", email="sam@example.com")
    seed.examiner("Ada Examiner", email="ada@example.com")

    as_student = _signup(client, "Sam@Example.com")
    as_examiner = _signup(client, "ada@example.com")
    plain = _signup(client, "visitor@example.com")

    assert as_student.status_code == 201, as_student.text
    assert (as_student.json()["role"], as_student.json()["user_code"]) == ("user", None)
    assert (as_examiner.json()["role"], as_examiner.json()["user_code"]) == ("user", None)
    assert (plain.json()["role"], plain.json()["user_code"]) == ("user", None)


def test_signup_rejects_duplicates_and_short_passwords(client):
    assert _signup(client, "sam@example.com").status_code == 201

    duplicate = _signup(client, "sam@example.com")
    short = _signup(client, "kim@example.com", password="short")

    assert duplicate.status_code == 409
    assert short.status_code == 400
    assert short.json()["details"][0]["field"] == "password"


def test_signin_outcomes(client):
    _signup(client, "sam@example.com")

    unknown = client.post("/api/auth/signin", json={"email": "nobody@example.com", "password": "password123"})
    wrong = client.post("/api/auth/signin", json={"email": "sam@example.com", "password": "not-the-one"})
    right = client.post("/api/auth/signin", json={"email": "sam@example.com", "password": "password123"})

    assert unknown.status_code == 404
    assert wrong.status_code == 401
    assert wrong.json()["detail"] == "Wrong credentials"
    assert right.status_code == 200
    assert right.json()["token_type"] == "bearer"
    assert "access_token" in right.cookies


def test_cookie_session_and_signout(client, seed):
    student = seed.student("Sam Student", email="sam@example.com")
    _signup(client, "sam@example.com")
    client.post("/api/auth/signin", json={"email": "sam@example.com", "password": "password123"})

    with_cookie = client.get(f"/api/students/{student.student_code}")
    signout = client.get("/api/auth/signout")
    client.cookies.clear()
    after = client.get(f"/api/students/{student.student_code}")

    assert with_cookie.status_code == 200
    assert signout.json() == {"message": "Signout success!"}
    assert after.status_code == 401


def test_invalid_bearer_token(client):
    response = client.get("/api/students/", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["message"] == "Could not validate credentials"


def test_role_mismatch_is_unauthorized(client, seed, login_as):
    seed.user("student@example.com", UserRole.student)
    headers = login_as("student@example.com")

    response = client.post("/api/venues/", json={"venue_id": "LH1", "name": "Hall"}, headers=headers)

    assert response.status_code == 401
    assert response.json()["message"] == "Insufficient permissions for this action"


def test_signin_is_rate_limited(client):
    _signup(client, "sam@example.com")
    payload = {"email": "sam@example.com", "password": "wrong-password"}

    statuses = [client.post("/api/auth/signin", json=payload).status_code for _ in range(13)]

    assert statuses[:12] == [401] * 12
    assert statuses[12] == 429


class FakeVerifier:
    def __init__(self, identity=None):
        self.identity = identity
        self.tokens = []

    def verify(self, id_token):
        self.tokens.append(id_token)
        if self.identity is None:
            raise AuthenticationError("Invalid Google token")
        return self.identity


@pytest.fixture()
def google(client):
    verifier = FakeVerifier(GoogleIdentity(email="new.person@gmail.com", name="New Person"))
    app.dependency_overrides[get_identity_verifier] = lambda: verifier
    return verifier


def test_google_sign_in_provisions_student(client, google):
    first = client.post("/api/auth/google", json={"credential": "token-1"})
    again = client.get("/api/auth/google/callback", params={"token": "token-2"})

    assert first.status_code == 200, first.text
    user = first.json()["user"]
    assert user["role"] == "student"
    assert user["user_code"] == f"STGEN{date.today().year}001"
    assert again.json()["user"]["id"] == user["id"]
    assert google.tokens == ["token-1", "token-2"]


def test_google_sign_in_reuses_examiner_record(client, seed, google):
    examiner = seed.examiner("New Person", email="new.person@gmail.com")

    response = client.post("/api/auth/google", json={"credential": "token"})

    assert response.json()["user"]["role"] == "examiner"
    assert response.json()["user"]["user_code"] == examiner.examiner_code


def test_google_sign_in_rejected_token(client, google):
    google.identity = None

    response = client.post("/api/auth/google", json={"credential": "bad"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid Google token"
