"""
Session gate: resolves ``g.current_user`` for every /api/ request.

Order:
  1. Public paths (health, login, password recovery) skip the gate.
  2. Auth bypass (DISABLE_AUTH, already validated at startup) resolves
     to the development admin.
  3. ``Authorization: Bearer <jwt>`` must decode, map to an active
     session row and an active user. Anything else is a 401.
"""

import logging

import jwt as pyjwt
from flask import g, request

from workhours.auth import Caller
from workhours.core.exceptions import UnauthorizedError
from workhours.models import db
from workhours.models.user import User
from workhours.services.jwt_service import decode_access_token, get_active_session
from workhours.settings import get_settings

logger = logging.getLogger(__name__)

PUBLIC_PREFIXES = (
    "/api/health",
    "/api/auth/login",
    "/api/auth/forgot-password",
    "/api/auth/reset-password",
)


def resolve_bearer_caller(auth_header: str) -> tuple[Caller, str]:
    """Return (caller, jti) for a bearer header or raise UnauthorizedError."""
    if not auth_header.startswith("Bearer "):
        raise UnauthorizedError()
    token = auth_header[7:].strip()
    try:
        payload = decode_access_token(token)
    except pyjwt.ExpiredSignatureError as exc:
        raise UnauthorizedError("Session expired") from exc
    except pyjwt.InvalidTokenError as exc:
        raise UnauthorizedError("Invalid session token") from exc

    if get_active_session(payload["jti"]) is None:
        raise UnauthorizedError("Session has been revoked")

    user = db.session.get(User, payload["sub"])
    if user is None or not user.is_active:
        raise UnauthorizedError("Account is not active")

    # Role is read from the row, not the token, so demotions apply immediately
    return Caller(id=user.id, role=user.role, email=user.email, name=user.name), payload["jti"]


def init_session_gate(app):
    """Register the gate as a before_request hook."""

    @app.before_request
    def _session_gate():
        g.current_user = None
        g.token_jti = None

        path = request.path
        if not path.startswith("/api/") or request.method == "OPTIONS":
            return
        if path.startswith(PUBLIC_PREFIXES):
            return

        settings = get_settings()
        if settings.auth_disabled:
            g.current_user = Caller(id=settings.dev_user_id, role="admin", name="Development Admin")
            return

        g.current_user, g.token_jti = resolve_bearer_caller(request.headers.get("Authorization", ""))
