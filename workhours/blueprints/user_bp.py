"""
Users Blueprint.

Endpoints:
    GET    /api/users                         list (manager+, ?activeOnly=true)
    POST   /api/users                         provision with temporary password (manager+)
    PUT    /api/users/<id>                    update name / role / status (admin)
    DELETE /api/users/<id>                    deactivate (admin)
    GET    /api/users/me/team-memberships     caller's teams and roles
"""

import logging

from flask import Blueprint

from workhours.auth import current_caller, require_auth, require_role
from workhours.blueprints import arg_flag
from workhours.core.exceptions import ValidationError
from workhours.services import team_service, user_service
from workhours.services.email_service import get_email_service
from workhours.settings import get_settings
from workhours.utils.errors import api_success
from workhours.utils.helpers import request_payload
from workhours.validation import validate_user, validate_user_update

logger = logging.getLogger(__name__)

user_bp = Blueprint("users", __name__, url_prefix="/api/users")


@user_bp.route("", methods=["GET"])
@require_role("manager")
def list_users():
    return api_success(user_service.list_users(active_only=arg_flag("activeOnly")))


@user_bp.route("", methods=["POST"])
@require_role("manager")
def create_user():
    """Create a user and return the temporary password once.

    Body: name, email (required), role (admin | manager | user, default user),
          sendEmail (bool, default true).
    """
    data = validate_user(request_payload())
    caller = current_caller()
    if data.role == "admin" and not caller.is_admin:
        raise ValidationError("Only admins can create admin users", details={"role": "Not allowed"})

    user, temporary_password = user_service.create_user(
        data,
        email_service=get_email_service(),
        login_url=f"{get_settings().app_base_url}/login",
    )
    return api_success({"user": user, "temporaryPassword": temporary_password}, status=201)


@user_bp.route("/me/team-memberships", methods=["GET"])
@require_auth
def my_team_memberships():
    return api_success(team_service.memberships_for_user(current_caller().id))


@user_bp.route("/<user_id>", methods=["PUT"])
@require_role("admin")
def update_user(user_id):
    return api_success(user_service.update_user(user_id, validate_user_update(request_payload())))


@user_bp.route("/<user_id>", methods=["DELETE"])
@require_role("admin")
def deactivate_user(user_id):
    return api_success(user_service.deactivate_user(user_id))
