"""
Auth Blueprint: JWT session endpoints.

  POST /api/auth/login             email + password -> access token (rate limited)
  POST /api/auth/logout            revoke the caller's session
  GET  /api/auth/me                current user profile
  POST /api/auth/change-password   authenticated password change
  POST /api/auth/forgot-password   email a one-hour reset link (always 200)
  POST /api/auth/reset-password    set a new password from a reset token
  POST /api/auth/password-strength score a candidate password
"""

from flask import Blueprint, current_app, g, request

from workhours import limiter
from workhours.auth import current_caller, require_auth
from workhours.core.exceptions import ValidationError
from workhours.models.user import User
from workhours.services import auth_service, jwt_service
from workhours.services.email_service import get_email_service
from workhours.services.password_service import check_password_strength
from workhours.settings import get_settings
from workhours.utils.errors import api_success
from workhours.utils.helpers import get_or_404, request_payload
from workhours.validation import validate_change_password

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _login_limit():
    return current_app.config.get("LOGIN_RATE_LIMIT", "10/minute")


@auth_bp.route("/login", methods=["POST"])
@limiter.limit(_login_limit)
def login():
    """
    Body: { "email": "...", "password": "..." }
    Returns: { accessToken, tokenType, expiresIn, user }
    """
    data = request_payload()
    email = str(data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    if not email or not isinstance(password, str) or not password:
        raise ValidationError("Email and password are required", details={
            k: "Required" for k, v in (("email", email), ("password", password)) if not v
        })

    bundle = auth_service.login(
        email,
        password,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent", "")[:500],
    )
    return api_success(bundle)


@auth_bp.route("/logout", methods=["POST"])
@require_auth
def logout():
    if g.token_jti:
        jwt_service.revoke_session(g.token_jti)
    return api_success({"loggedOut": True})


@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    user = get_or_404(User, current_caller().id, "User")
    return api_success(user.to_dict())


@auth_bp.route("/change-password", methods=["POST"])
@require_auth
def change_password():
    """Body: { "currentPassword": "...", "newPassword": "..." }"""
    data = validate_change_password(request_payload())
    auth_service.change_password(current_caller().id, data)
    return api_success({"message": "Password updated"})


@auth_bp.route("/forgot-password", methods=["POST"])
@limiter.limit(_login_limit)
def forgot_password():
    """Same response whether or not the address has an account."""
    email = str(request_payload().get("email") or "").strip().lower()
    auth_service.request_password_reset(email, get_email_service(), get_settings().app_base_url)
    return api_success({"message": "If the address has an account, a reset link has been sent"})


@auth_bp.route("/reset-password", methods=["POST"])
@limiter.limit(_login_limit)
def reset_password():
    """Body: { "token": "...", "password": "..." }"""
    data = request_payload()
    auth_service.reset_password(str(data.get("token") or ""), str(data.get("password") or ""))
    return api_success({"message": "Password has been reset"})


@auth_bp.route("/password-strength", methods=["POST"])
@require_auth
def password_strength():
    return api_success(check_password_strength(str(request_payload().get("password") or "")).to_dict())
