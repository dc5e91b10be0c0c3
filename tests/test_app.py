"""
Application shell: health check, error envelope, CLI.
"""

from workhours.models import db
from workhours.models.user import User
from workhours.services import work_log_service
from workhours.utils.crypto import verify_password


def test_health_ok(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    body = res.get_json()
    assert body["success"] is True
    assert body["data"]["status"] == "ok"
    assert body["data"]["database"] == "ok"


def test_health_reports_database_failure(client, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("connection refused")

    monkeypatch.setattr(db.session, "execute", broken)
    res = client.get("/api/health")
    assert res.status_code == 503
    assert res.get_json()["data"]["database"] == "error"


def test_unknown_api_route_uses_envelope(client, user_headers):
    res = client.get("/api/nope", headers=user_headers)
    assert res.status_code == 404
    assert res.get_json() == {"success": False, "error": {"code": "NOT_FOUND", "message": "No route for /api/nope"}}


def test_method_not_allowed(client, user_headers):
    res = client.patch("/api/work-logs", headers=user_headers)
    assert res.status_code == 405
    assert res.get_json()["error"]["code"] == "METHOD_NOT_ALLOWED"


def test_unexpected_error_hides_details(client, user_headers, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("database password is hunter2")

    monkeypatch.setattr(work_log_service, "search_work_logs", boom)
    res = client.get("/api/work-logs", headers=user_headers)
    assert res.status_code == 500
    err = res.get_json()["error"]
    assert err["code"] == "INTERNAL_ERROR"
    assert "details" not in err
    assert "hunter2" not in err["message"]


def test_request_id_and_timing_headers(client):
    res = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
    assert res.status_code == 200
    assert res.headers["X-Request-ID"] == "abc-123"
    assert float(res.headers["X-Request-Duration-Ms"]) >= 0


def test_seed_admin_cli(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["seed-admin", "--email", "Root@Example.com", "--name", "Root",
                                 "--password", "Sup3r-Secret"])
    assert result.exit_code == 0, result.output
    assert "Admin ready" in result.output

    admin = User.query.filter_by(email="root@example.com").one()
    assert admin.role == "admin"
    assert verify_password("Sup3r-Secret", admin.password_hash)


def test_seed_admin_rejects_weak_password(app):
    result = app.test_cli_runner().invoke(args=["seed-admin", "--email", "a@example.com", "--password", "weak"])
    assert result.exit_code != 0
