"""
Users API: provisioning with temporary passwords, listing, role/status
updates and deactivation.
"""

from workhours.models import db
from workhours.models.user import Session, User
from workhours.utils.crypto import verify_password


def test_manager_creates_user_with_temporary_password(client, manager_headers, outbox):
    res = client.post(
        "/api/users", json={"name": "New Hire", "email": "New.Hire@Example.com"}, headers=manager_headers,
    )
    assert res.status_code == 201
    data = res.get_json()["data"]
    temp = data["temporaryPassword"]
    assert len(temp) == 16
    assert data["user"]["email"] == "new.hire@example.com"
    assert data["user"]["passwordResetRequired"] is True
    assert "passwordHash" not in data["user"]

    user = User.query.filter_by(email="new.hire@example.com").one()
    assert verify_password(temp, user.password_hash)

    assert len(outbox) == 1
    assert outbox[0]["to"] == "new.hire@example.com"
    assert temp in outbox[0]["text"]
    assert "http://localhost:5000/login" in outbox[0]["text"]


def test_send_email_false(client, admin_headers, outbox):
    res = client.post(
        "/api/users", json={"name": "Quiet", "email": "quiet@example.com", "sendEmail": False},
        headers=admin_headers,
    )
    assert res.status_code == 201
    assert outbox == []


def test_duplicate_email_conflict(client, user, admin_headers):
    res = client.post("/api/users", json={"name": "Dup", "email": user.email.upper()}, headers=admin_headers)
    assert res.status_code == 409
    assert res.get_json()["error"]["code"] == "CONFLICT"


def test_only_admin_creates_admins(client, manager_headers, admin_headers):
    body = {"name": "Boss", "email": "boss@example.com", "role": "admin"}
    assert client.post("/api/users", json=body, headers=manager_headers).status_code == 400
    assert client.post("/api/users", json=body, headers=admin_headers).status_code == 201


def test_plain_user_cannot_list_or_create(client, user_headers):
    assert client.get("/api/users", headers=user_headers).status_code == 403
    assert client.post("/api/users", json={"name": "x", "email": "x@example.com"},
                       headers=user_headers).status_code == 403


def test_list_active_only(client, make_user, manager_headers):
    make_user(status="inactive", name="Zed Gone")
    everyone = client.get("/api/users", headers=manager_headers).get_json()["data"]
    active = client.get("/api/users?activeOnly=true", headers=manager_headers).get_json()["data"]
    assert "Zed Gone" in [u["name"] for u in everyone]
    assert "Zed Gone" not in [u["name"] for u in active]
    assert all("passwordHash" not in u for u in everyone)


def test_admin_updates_role(client, user, admin_headers, manager_headers):
    assert client.put(f"/api/users/{user.id}", json={"role": "manager"},
                      headers=manager_headers).status_code == 403
    res = client.put(f"/api/users/{user.id}", json={"role": "manager"}, headers=admin_headers)
    assert res.status_code == 200
    assert res.get_json()["data"]["role"] == "manager"


def test_role_change_applies_to_existing_session(client, user, user_headers, admin_headers):
    assert client.get("/api/users", headers=user_headers).status_code == 403
    client.put(f"/api/users/{user.id}", json={"role": "manager"}, headers=admin_headers)
    assert client.get("/api/users", headers=user_headers).status_code == 200


def test_deactivate_revokes_sessions(client, user, user_headers, admin_headers):
    assert client.get("/api/auth/me", headers=user_headers).status_code == 200
    res = client.delete(f"/api/users/{user.id}", headers=admin_headers)
    assert res.status_code == 200
    assert res.get_json()["data"]["status"] == "inactive"

    db.session.expire_all()
    assert Session.query.filter_by(user_id=user.id, is_active=True).count() == 0
    assert client.get("/api/auth/me", headers=user_headers).status_code == 401
