"""
Shared pytest fixtures for the Work Hours Tracker test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_user / auth_headers: users with real JWT sessions
    - admin, manager, user, other_user (+ *_headers)
    - project, category, make_log: catalog rows and work logs
"""

from datetime import date

import pytest

from workhours import create_app
from workhours.models import db as _db
from workhours.models.catalog import Project, WorkCategory
from workhours.models.team import Team, TeamMember
from workhours.models.user import User
from workhours.models.work_log import WorkLog
from workhours.services import jwt_service
from workhours.utils.crypto import hash_password

DEFAULT_PASSWORD = "Str0ngPass!"


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()
        app.extensions["workhours.email"].outbox.clear()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def outbox(app):
    """Messages captured by the preview email provider."""
    return app.extensions["workhours.email"].outbox


# ── Users & sessions ─────────────────────────────────────────────────────


@pytest.fixture()
def make_user():
    """Factory: persist a user with a known password."""
    counter = {"n": 0}

    def _make(role="user", *, name=None, email=None, status="active", password=DEFAULT_PASSWORD):
        counter["n"] += 1
        n = counter["n"]
        u = User(
            name=name or f"{role.title()} {n}",
            email=email or f"{role}{n}@example.com",
            password_hash=hash_password(password),
            role=role,
            status=status,
        )
        _db.session.add(u)
        _db.session.commit()
        return u

    return _make


@pytest.fixture()
def auth_headers():
    """Factory: open a real session for ``user`` and return the bearer header."""

    def _headers(user):
        bundle = jwt_service.issue_session(user, ip_address="127.0.0.1", user_agent="pytest")
        return {"Authorization": f"Bearer {bundle['accessToken']}"}

    return _headers


@pytest.fixture()
def admin(make_user):
    return make_user("admin", name="Ada Admin")


@pytest.fixture()
def manager(make_user):
    return make_user("manager", name="Max Manager")


@pytest.fixture()
def user(make_user):
    return make_user("user", name="Uma User")


@pytest.fixture()
def other_user(make_user):
    return make_user("user", name="Otto Other")


@pytest.fixture()
def admin_headers(admin, auth_headers):
    return auth_headers(admin)


@pytest.fixture()
def manager_headers(manager, auth_headers):
    return auth_headers(manager)


@pytest.fixture()
def user_headers(user, auth_headers):
    return auth_headers(user)


@pytest.fixture()
def other_headers(other_user, auth_headers):
    return auth_headers(other_user)


# ── Catalog & work logs ──────────────────────────────────────────────────


@pytest.fixture()
def project():
    p = Project(name="Apollo", description="Moonshot")
    _db.session.add(p)
    _db.session.commit()
    return p


@pytest.fixture()
def category():
    c = WorkCategory(name="Development", display_order=1)
    _db.session.add(c)
    _db.session.commit()
    return c


@pytest.fixture()
def make_team():
    """Factory: team with ``members`` as (user, role) pairs."""

    def _make(name="Core", members=()):
        team = Team(name=name)
        _db.session.add(team)
        _db.session.flush()
        for member, role in members:
            _db.session.add(TeamMember(team_id=team.id, user_id=member.id, role=role))
        _db.session.commit()
        return team

    return _make


@pytest.fixture()
def make_log(project, category):
    """Factory: persist a work log for ``owner``."""

    def _make(owner, *, day=None, hours="2", details=None, project_id=None, category_id=None):
        log = WorkLog(
            user_id=owner.id,
            date=day or date.today(),
            hours=hours,
            project_id=project_id or project.id,
            category_id=category_id or category.id,
            details=details,
        )
        _db.session.add(log)
        _db.session.commit()
        return log

    return _make
