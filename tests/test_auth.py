from datetime import timedelta

from jose import jwt

from config import settings
from conftest import TEST_PASSWORD, auth_headers
from models.users import User
from utils.bootstrap import DEMO_EMAIL, ensure_demo_user
from utils.tokenJWT import create_access_token


def test_signup_creates_employee_and_returns_token(client):
    response = client.post("/auth/signup", json={
        "email": "NewUser@Example.com",
        "password": "pw123456",
        "name": "New User",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["user"]["email"] == "newuser@example.com"
    assert body["user"]["role"] == "employee"

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["name"] == "New User"


def test_signup_rejects_duplicate_email(client, employee):
    response = client.post("/auth/signup", json={
        "email": employee.email,
        "password": "pw123456",
        "name": "Someone Else",
    })
    assert response.status_code == 400
    assert response.json() == {"error": "User already exists"}


def test_signup_requires_name(client):
    response = client.post("/auth/signup", json={"email": "a@example.com", "password": "pw"})
    assert response.status_code == 400
    assert "error" in response.json()


def test_login_success_and_failures(client, technician):
    ok = client.post("/auth/login", json={"email": technician.email, "password": TEST_PASSWORD})
    assert ok.status_code == 200
    assert ok.json()["user"]["role"] == "technician"

    claims = jwt.decode(ok.json()["token"], settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert claims["userId"] == technician.id
    assert claims["role"] == "technician"

    wrong = client.post("/auth/login", json={"email": technician.email, "password": "nope"})
    assert wrong.status_code == 401
    assert wrong.json() == {"error": "Invalid credentials"}

    unknown = client.post("/auth/login", json={"email": "ghost@example.com", "password": "nope"})
    assert unknown.status_code == 401


def test_me_includes_team(client, technician, technician_headers):
    response = client.get("/auth/me", headers=technician_headers)
    assert response.status_code == 200
    assert response.json()["team_name"] == "Mechanics"


def test_missing_token_is_rejected_without_bypass(client):
    response = client.get("/auth/me")
    assert response.status_code == 401


def test_invalid_and_expired_tokens_are_rejected_without_bypass(client, employee):
    invalid = client.get("/teams", headers={"Authorization": "Bearer not-a-token"})
    assert invalid.status_code == 401

    expired = create_access_token(employee, expires_delta=timedelta(seconds=-5))
    response = client.get("/teams", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401


def test_bypass_resolves_to_default_manager(client, db_session, monkeypatch):
    monkeypatch.setattr(settings, "AUTH_BYPASS", True)
    ensure_demo_user(db_session)

    me = client.get("/auth/me")
    assert me.status_code == 200
    assert me.json()["id"] == 1

    # An invalid token falls back to the same identity
    created = client.post("/teams", json={"name": "Night Shift"},
                          headers={"Authorization": "Bearer garbage"})
    assert created.status_code == 201


def test_demo_user_email_clash_is_logged_not_raised(db_session, make_user):
    make_user(role="manager", email=DEMO_EMAIL)

    assert ensure_demo_user(db_session, user_id=7) is None
    assert db_session.get(User, 7) is None
    assert db_session.query(User).filter(User.email == DEMO_EMAIL).count() == 1


def test_bypass_does_not_override_valid_token(client, employee, monkeypatch):
    monkeypatch.setattr(settings, "AUTH_BYPASS", True)
    response = client.post("/teams", json={"name": "Blocked"}, headers=auth_headers(employee))
    assert response.status_code == 403


def test_token_without_role_is_authentication_required(client, employee):
    token = jwt.encode({"userId": employee.id, "email": employee.email},
                       settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    response = client.get("/users", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required"}
