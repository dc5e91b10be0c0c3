"""
User Service: provisioning, listing, deactivation.
"""

import logging
from datetime import datetime, timezone

from workhours.core.exceptions import ConflictError
from workhours.models import db
from workhours.models.user import User
from workhours.services.email_service import EmailDeliveryError
from workhours.services.jwt_service import revoke_all_user_sessions
from workhours.utils.crypto import generate_temporary_password, hash_password
from workhours.utils.helpers import commit_or_raise, get_or_404

logger = logging.getLogger(__name__)


def get_user_by_email(email: str) -> User | None:
    return User.query.filter(db.func.lower(User.email) == email.strip().lower()).first()


def list_users(active_only: bool = False) -> list[dict]:
    q = User.query
    if active_only:
        q = q.filter(User.status == "active")
    return [u.to_dict() for u in q.order_by(User.name, User.email).all()]


def create_user(data, email_service=None, login_url: str = "") -> tuple[dict, str]:
    """Provision a user with a one-time temporary password.

    Returns ``(user_dict, temporary_password)``. The password is never
    stored in clear and is not retrievable afterwards. A failing welcome
    email is logged and does not undo the user.
    """
    if get_user_by_email(data.email):
        raise ConflictError("A user with this email already exists", field="email")

    temporary_password = generate_temporary_password()
    user = User(
        name=data.name,
        email=data.email,
        role=data.role,
        status="active",
        password_hash=hash_password(temporary_password),
        password_reset_required=True,
    )
    db.session.add(user)
    commit_or_raise()
    logger.info("User created: %s role=%s", user.email, user.role)

    if data.send_email and email_service is not None:
        try:
            email_service.send_template(
                "welcome",
                to_email=user.email,
                context={
                    "name": user.name,
                    "email": user.email,
                    "temporary_password": temporary_password,
                    "login_url": login_url,
                },
            )
        except EmailDeliveryError:
            logger.warning("Welcome email to %s failed; user was created anyway", user.email)

    return user.to_dict(), temporary_password


def update_user(user_id: str, changes: dict) -> dict:
    user = get_or_404(User, user_id, "User")
    for attr, value in changes.items():
        setattr(user, attr, value)
    if changes.get("status") == "inactive":
        revoke_all_user_sessions(user.id, commit=False)
    commit_or_raise()
    return user.to_dict()


def deactivate_user(user_id: str) -> dict:
    """Users are never hard-deleted; deactivation also ends their sessions."""
    user = get_or_404(User, user_id, "User")
    user.status = "inactive"
    revoke_all_user_sessions(user.id, commit=False)
    commit_or_raise()
    logger.info("User deactivated: %s", user.email)
    return user.to_dict()


def seed_admin(email: str, name: str, password: str) -> User:
    """Create an admin, or promote and reset an existing account."""
    user = get_user_by_email(email)
    if user is None:
        user = User(email=email.strip().lower(), name=name)
        db.session.add(user)
    user.role = "admin"
    user.status = "active"
    user.password_hash = hash_password(password)
    user.password_reset_required = False
    user.last_password_change = datetime.now(timezone.utc)
    commit_or_raise()
    return user


def ensure_user(user_id: str, *, email: str, name: str, role: str) -> User:
    """Make sure a row exists for a fixed id (development auth bypass)."""
    user = db.session.get(User, user_id)
    if user is None:
        user = User(id=user_id, email=email, name=name, role=role, status="active")
        db.session.add(user)
        commit_or_raise()
    return user
