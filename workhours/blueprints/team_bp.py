"""
Teams Blueprint.

Endpoints:
    GET    /api/teams                          list with memberCount (?active=true)
    POST   /api/teams                          create (admin, manager)
    GET    /api/teams/<id>                     team + members
    PUT    /api/teams/<id>                     update (admin)
    DELETE /api/teams/<id>                     soft delete (admin)
    POST   /api/teams/<id>/members             add member (admin or team leader)
    DELETE /api/teams/<id>/members/<user_id>   remove member (admin)
"""

from flask import Blueprint

from workhours.auth import current_caller, require_auth, require_role
from workhours.blueprints import arg_flag
from workhours.services import team_service as svc
from workhours.utils.errors import api_success
from workhours.utils.helpers import request_payload
from workhours.validation import validate_catalog, validate_team_member

team_bp = Blueprint("teams", __name__, url_prefix="/api/teams")


@team_bp.route("", methods=["GET"])
@require_auth
def list_teams():
    return api_success(svc.list_teams(active_only=arg_flag("active")))


@team_bp.route("", methods=["POST"])
@require_role("manager")
def create_team():
    """Body: name (1..255, required), description, isActive (default true)."""
    data = validate_catalog(request_payload())
    return api_success(svc.create_team(data), status=201)


@team_bp.route("/<team_id>", methods=["GET"])
@require_auth
def get_team(team_id):
    return api_success(svc.get_team_detail(team_id))


@team_bp.route("/<team_id>", methods=["PUT"])
@require_role("admin")
def update_team(team_id):
    data = validate_catalog(request_payload(), partial=True)
    return api_success(svc.update_team(team_id, data))


@team_bp.route("/<team_id>", methods=["DELETE"])
@require_role("admin")
def delete_team(team_id):
    return api_success(svc.delete_team(team_id))


@team_bp.route("/<team_id>/members", methods=["POST"])
@require_auth
def add_member(team_id):
    """Body: userId (uuid, required), role (member | leader | viewer, default member)."""
    data = validate_team_member(request_payload())
    return api_success(svc.add_member(team_id, data, current_caller()), status=201)


@team_bp.route("/<team_id>/members/<user_id>", methods=["DELETE"])
@require_role("admin")
def remove_member(team_id, user_id):
    svc.remove_member(team_id, user_id)
    return api_success({"teamId": team_id, "userId": user_id, "removed": True})
