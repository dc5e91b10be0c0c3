"""
JWT Service: access token issue/verify plus the session table behind it.

Access token lifetime: JWT_ACCESS_EXPIRES seconds (default 8 hours)
Algorithm:             HS256

Token payload:
{
    "sub": <user_id>,
    "role": "admin" | "manager" | "user",
    "type": "access",
    "iat": <issued_at>,
    "exp": <expires_at>,
    "jti": <unique_id>
}

Every token has a matching ``sessions`` row keyed by sha256(jti); logout
and password resets deactivate rows, which invalidates the token even
before it expires.
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from workhours.models import db
from workhours.models.user import Session
from workhours.utils.crypto import hash_token

DEFAULT_ACCESS_EXPIRES = 28800  # 8 hours
ALGORITHM = "HS256"


def _get_secret():
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


def _get_access_expires():
    return current_app.config.get("JWT_ACCESS_EXPIRES", DEFAULT_ACCESS_EXPIRES)


# ═══════════════════════════════════════════════════════════════
# Tokens
# ═══════════════════════════════════════════════════════════════
def generate_access_token(user_id: str, role: str) -> tuple[str, str, datetime]:
    """Return (token, jti, expires_at)."""
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(seconds=_get_access_expires())
    jti = str(uuid.uuid4())
    payload = {
        "sub": user_id,
        "role": role,
        "type": "access",
        "iat": now,
        "exp": expires_at,
        "jti": jti,
    }
    return jwt.encode(payload, _get_secret(), algorithm=ALGORITHM), jti, expires_at


def decode_access_token(token: str) -> dict:
    """
    Decode and verify an access token.

    Raises jwt.InvalidTokenError (or a subclass such as ExpiredSignatureError).
    """
    payload = jwt.decode(token, _get_secret(), algorithms=[ALGORITHM])
    if payload.get("type") != "access":
        raise jwt.InvalidTokenError(f"Expected access token, got {payload.get('type')}")
    if not payload.get("sub") or not payload.get("jti"):
        raise jwt.InvalidTokenError("Token is missing sub/jti")
    return payload


# ═══════════════════════════════════════════════════════════════
# Sessions
# ═══════════════════════════════════════════════════════════════
def issue_session(user, ip_address: str | None = None, user_agent: str | None = None) -> dict:
    """Create a session row and return the token bundle for the login response."""
    token, jti, expires_at = generate_access_token(user.id, user.role)
    db.session.add(Session(
        user_id=user.id,
        token_hash=hash_token(jti),
        ip_address=ip_address,
        user_agent=(user_agent or "")[:500],
        expires_at=expires_at,
    ))
    user.last_login_at = datetime.now(timezone.utc)
    db.session.commit()
    return {
        "accessToken": token,
        "tokenType": "Bearer",
        "expiresIn": _get_access_expires(),
    }


def get_active_session(jti: str) -> Session | None:
    session = Session.query.filter_by(token_hash=hash_token(jti), is_active=True).first()
    if session is None or session.is_expired:
        return None
    return session


def revoke_session(jti: str) -> bool:
    """Deactivate the session behind a token. Returns False if none was active."""
    session = Session.query.filter_by(token_hash=hash_token(jti), is_active=True).first()
    if session is None:
        return False
    session.is_active = False
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: str, commit: bool = True) -> None:
    Session.query.filter_by(user_id=user_id, is_active=True).update({"is_active": False})
    if commit:
        db.session.commit()
