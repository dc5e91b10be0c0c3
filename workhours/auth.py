"""
Work Hours Tracker
Role checks and route decorators.

Provides:
    - Role hierarchy (admin > manager > user) and ``has_role``
    - ``Caller``: the identity the session gate resolves for a request
    - ``require_auth`` / ``require_role`` route decorators

The session gate (``workhours.middleware.session_gate``) fills
``g.current_user`` before any view runs; these decorators only read it.
"""

import functools
from dataclasses import dataclass

from flask import g

from workhours.core.exceptions import ForbiddenError, UnauthorizedError

# ── Roles ────────────────────────────────────────────────────────────────────

ROLE_RANK = {
    "admin": 3,
    "manager": 2,
    "user": 1,
}


def has_role(actual_role: str | None, required_role: str) -> bool:
    """True iff ``actual_role`` ranks at or above ``required_role``.

    Unknown roles rank below everything.
    """
    return ROLE_RANK.get(actual_role or "", 0) >= ROLE_RANK.get(required_role, 99)


@dataclass(frozen=True)
class Caller:
    id: str
    role: str
    email: str | None = None
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def current_caller() -> Caller:
    """Return the authenticated caller or raise UnauthorizedError."""
    caller = getattr(g, "current_user", None)
    if caller is None:
        raise UnauthorizedError()
    return caller


# ── Decorators ───────────────────────────────────────────────────────────────


def require_auth(f):
    """Reject the request with 401 unless a caller has been resolved."""

    @functools.wraps(f)
    def decorated(*args, **kwargs):
        current_caller()
        return f(*args, **kwargs)

    return decorated


def require_role(minimum_role: str):
    """
    Decorator enforcing a minimum role.

    Usage:
        @bp.route("/projects", methods=["POST"])
        @require_role("admin")
        def create_project():
            ...
    """

    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            caller = current_caller()
            if not has_role(caller.role, minimum_role):
                raise ForbiddenError(f"This action requires the '{minimum_role}' role")
            return f(*args, **kwargs)

        return decorated

    return decorator
