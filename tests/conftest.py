import os

# Settings are read at import time; configure before the app is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_BYPASS"] = "false"
os.environ["ENFORCE_ROLE_POLICY"] = "true"
os.environ["ENVIRONMENT"] = "production"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models.users import User
from models.team import Team
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token

TEST_PASSWORD = "Secret123!"


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db_session):
    def _make_user(role="employee", name=None, email=None, team_id=None):
        user = User(
            email=email or f"{role}{db_session.query(User).count() + 1}@example.com",
            password_hash=get_password_hash(TEST_PASSWORD),
            name=name or f"Test {role.capitalize()}",
            role=role,
            team_id=team_id,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture()
def team(db_session):
    team = Team(name="Mechanics")
    db_session.add(team)
    db_session.commit()
    db_session.refresh(team)
    return team


@pytest.fixture()
def manager(make_user):
    return make_user("manager", name="Mia Manager")


@pytest.fixture()
def technician(make_user, team):
    return make_user("technician", name="Tom Technician", team_id=team.id)


@pytest.fixture()
def employee(make_user):
    return make_user("employee", name="Eve Employee")


@pytest.fixture()
def manager_headers(manager):
    return auth_headers(manager)


@pytest.fixture()
def technician_headers(technician):
    return auth_headers(technician)


@pytest.fixture()
def employee_headers(employee):
    return auth_headers(employee)


@pytest.fixture()
def equipment(client, manager_headers, team):
    response = client.post(
        "/equipment",
        json={"name": "Motor A", "category": "Motors", "location": "Line 1", "maintenance_team_id": team.id},
        headers=manager_headers,
    )
    assert response.status_code == 201
    return response.json()
