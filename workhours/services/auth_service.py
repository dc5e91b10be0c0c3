"""
Authentication flows: login, password change, forgot/reset password.
"""

import logging
from datetime import datetime, timedelta, timezone

from workhours.core.exceptions import ForbiddenError, UnauthorizedError, ValidationError
from workhours.models import db
from workhours.models.user import PasswordResetToken, User
from workhours.services import jwt_service
from workhours.services.email_service import EmailDeliveryError
from workhours.services.password_service import check_password_strength
from workhours.services.user_service import get_user_by_email
from workhours.utils.crypto import (
    generate_reset_token,
    hash_password,
    hash_token,
    verify_password,
)
from workhours.utils.errors import E
from workhours.utils.helpers import commit_or_raise, get_or_404

logger = logging.getLogger(__name__)

RESET_TOKEN_TTL = timedelta(hours=1)


def login(email: str, password: str, ip_address=None, user_agent=None) -> dict:
    """Verify credentials and open a session. Same message for unknown email and bad password."""
    user = get_user_by_email(email) if email else None
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", email)
        raise UnauthorizedError("Invalid email or password")
    if not user.is_active:
        raise ForbiddenError("Account is inactive")

    bundle = jwt_service.issue_session(user, ip_address=ip_address, user_agent=user_agent)
    bundle["user"] = user.to_dict()
    return bundle


def _assert_strong(password: str) -> None:
    strength = check_password_strength(password)
    if not strength.is_valid:
        raise ValidationError(
            "Password does not meet the strength requirements",
            details={"errors": strength.errors, "suggestions": strength.suggestions},
            code=E.WEAK_PASSWORD,
        )


def _set_password(user: User, password: str) -> None:
    user.password_hash = hash_password(password)
    user.password_reset_required = False
    user.last_password_change = datetime.now(timezone.utc)


def change_password(user_id: str, data) -> None:
    user = get_or_404(User, user_id, "User")
    _assert_strong(data.new_password)
    if not verify_password(data.current_password, user.password_hash):
        raise ValidationError("Current password is incorrect", code=E.INVALID_PASSWORD)
    if verify_password(data.new_password, user.password_hash):
        raise ValidationError("New password must be different from the current password", code=E.SAME_PASSWORD)
    _set_password(user, data.new_password)
    commit_or_raise()
    logger.info("Password changed for user %s", user.id)


def request_password_reset(email: str, email_service, base_url: str) -> None:
    """Store a hashed one-hour token and email the link.

    Silent for unknown or inactive addresses so the endpoint cannot be used
    to probe which emails have accounts.
    """
    user = get_user_by_email(email) if email else None
    if user is None or not user.is_active:
        logger.info("Password reset requested for unknown/inactive address")
        return

    token = generate_reset_token()
    db.session.add(PasswordResetToken(
        user_id=user.id,
        token_hash=hash_token(token),
        expires_at=datetime.now(timezone.utc) + RESET_TOKEN_TTL,
    ))
    commit_or_raise()

    try:
        email_service.send_template(
            "password_reset",
            to_email=user.email,
            context={"name": user.name or user.email, "reset_url": f"{base_url}/reset-password?token={token}"},
        )
    except EmailDeliveryError:
        logger.warning("Password reset email to user %s failed", user.id)


def reset_password(token: str, password: str) -> None:
    record = (
        PasswordResetToken.query.filter_by(token_hash=hash_token(token or "")).first()
        if token else None
    )
    if record is None or record.used_at is not None:
        raise ValidationError("Invalid or already used reset token", code=E.INVALID_TOKEN)
    if record.is_expired:
        raise ValidationError("Reset token has expired", code=E.EXPIRED_TOKEN)
    _assert_strong(password)

    user = record.user
    _set_password(user, password)
    record.used_at = datetime.now(timezone.utc)
    jwt_service.revoke_all_user_sessions(user.id, commit=False)
    commit_or_raise()
    logger.info("Password reset completed for user %s", user.id)
