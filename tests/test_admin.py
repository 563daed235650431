from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

import main
from config import settings
from database import get_db
from main import app
from models.team import Team


def test_team_creation_is_manager_only(client, employee_headers, technician_headers, manager_headers):
    for headers in (employee_headers, technician_headers):
        denied = client.post("/teams", json={"name": "Electricians"}, headers=headers)
        assert denied.status_code == 403
        assert denied.json() == {"error": "Forbidden", "message": "Access denied. Required role: manager"}

    created = client.post("/teams", json={"name": "Electricians"}, headers=manager_headers)
    assert created.status_code == 201
    assert created.json()["name"] == "Electricians"


def test_team_creation_requires_name(client, manager_headers):
    response = client.post("/teams", json={"name": "  "}, headers=manager_headers)
    assert response.status_code == 400
    assert response.json() == {"error": "Name is required"}


def test_list_and_get_teams(client, db_session, employee_headers):
    db_session.add_all([Team(name="Welding"), Team(name="Assembly"), Team(name="Painting")])
    db_session.commit()

    listed = client.get("/teams", headers=employee_headers)
    assert listed.status_code == 200
    assert [t["name"] for t in listed.json()] == ["Assembly", "Painting", "Welding"]

    team_id = listed.json()[0]["id"]
    assert client.get(f"/teams/{team_id}", headers=employee_headers).json()["name"] == "Assembly"
    assert client.get("/teams/9999", headers=employee_headers).status_code == 404


def test_user_listing_is_manager_only(client, employee_headers, technician_headers):
    assert client.get("/users", headers=employee_headers).status_code == 403
    assert client.get("/users/technicians", headers=technician_headers).status_code == 403


def test_users_ordered_by_role_then_name(client, make_user, manager, manager_headers, technician, employee):
    make_user("technician", name="Alan Tech")

    response = client.get("/users", headers=manager_headers)
    assert response.status_code == 200
    rows = [(u["role"], u["name"]) for u in response.json()]
    assert rows == [
        ("employee", "Eve Employee"),
        ("manager", "Mia Manager"),
        ("technician", "Alan Tech"),
        ("technician", "Tom Technician"),
    ]
    tom = next(u for u in response.json() if u["name"] == "Tom Technician")
    assert tom["team_name"] == "Mechanics"


def test_list_technicians(client, make_user, manager_headers, technician, employee):
    make_user("technician", name="Alan Tech")

    response = client.get("/users/technicians", headers=manager_headers)
    assert response.status_code == 200
    assert [u["name"] for u in response.json()] == ["Alan Tech", "Tom Technician"]


def test_assign_and_unassign_team(client, manager_headers, employee, team):
    assigned = client.patch(f"/users/{employee.id}/team", json={"team_id": team.id}, headers=manager_headers)
    assert assigned.status_code == 200
    assert assigned.json()["team_id"] == team.id
    assert assigned.json()["team_name"] == "Mechanics"

    cleared = client.patch(f"/users/{employee.id}/team", json={"team_id": None}, headers=manager_headers)
    assert cleared.status_code == 200
    assert cleared.json()["team_id"] is None

    assert client.patch(f"/users/{employee.id}/team", json={"team_id": 999},
                        headers=manager_headers).status_code == 404
    assert client.patch("/users/999/team", json={"team_id": team.id},
                        headers=manager_headers).status_code == 404


def test_change_role(client, manager_headers, employee, employee_headers):
    denied = client.patch(f"/users/{employee.id}/role", json={"role": "manager"}, headers=employee_headers)
    assert denied.status_code == 403

    invalid = client.patch(f"/users/{employee.id}/role", json={"role": "admin"}, headers=manager_headers)
    assert invalid.status_code == 400
    assert invalid.json() == {"error": "Invalid role"}

    changed = client.patch(f"/users/{employee.id}/role", json={"role": "technician"}, headers=manager_headers)
    assert changed.status_code == 200
    assert changed.json()["role"] == "technician"

    assert client.patch("/users/999/role", json={"role": "employee"}, headers=manager_headers).status_code == 404


def test_audit_log_records_mutations(client, manager, manager_headers, employee_headers):
    client.post("/teams", json={"name": "Hydraulics"}, headers=manager_headers)
    client.post("/equipment", json={"name": "Lift"}, headers=manager_headers)

    assert client.get("/logs", headers=employee_headers).status_code == 403

    response = client.get("/logs", headers=manager_headers)
    assert response.status_code == 200
    page = response.json()
    actions = {item["action"] for item in page["items"]}
    assert {"TEAM_CREATE", "EQUIPMENT_CREATE"} <= actions
    assert all(item["user_id"] == manager.id for item in page["items"])

    filtered = client.get("/logs", params={"resource": "teams"}, headers=manager_headers).json()
    assert [item["action"] for item in filtered["items"]] == ["TEAM_CREATE"]
    assert filtered["total"] == 1


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


class _UnreachableDatabase:
    def query(self, *args, **kwargs):
        raise OperationalError("SELECT teams.id FROM teams", {}, Exception("db down"))


def test_storage_error_hides_message_in_production(client, employee_headers):
    app.dependency_overrides[get_db] = lambda: _UnreachableDatabase()

    response = client.get("/teams", headers=employee_headers)
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_storage_error_includes_message_in_development(client, employee_headers, monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    app.dependency_overrides[get_db] = lambda: _UnreachableDatabase()

    response = client.get("/teams", headers=employee_headers)
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Internal server error"
    assert "db down" in body["message"]


def test_lifespan_initialises_database(monkeypatch):
    calls = []
    monkeypatch.setattr(main, "init_db", lambda: calls.append("init_db"))

    with TestClient(app) as started:
        assert started.get("/").status_code == 200
    assert calls == ["init_db"]
