"""
Dashboard Blueprint.

Endpoints:
    GET /api/dashboard            per-day hours by user or by project (chart data)
    GET /api/dashboard/personal   summary cards + breakdowns for one user (or all)
    GET /api/dashboard/team       team rollup and member activity
    GET /api/dashboard/projects   per-project rollup
"""

import logging

from flask import Blueprint, request

from workhours.auth import current_caller, require_auth
from workhours.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from workhours.models import db
from workhours.models.team import Team
from workhours.services import dashboard_service as svc
from workhours.services import permission_service, team_service
from workhours.services.work_log_service import resolve_scope_user_ids
from workhours.utils.errors import api_success
from workhours.utils.helpers import is_uuid, parse_iso_date

logger = logging.getLogger(__name__)

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")

PERSONAL_SCOPES = ("own", "all", "user")
PROJECT_SCOPES = ("own", "team", "all")


def _date_args(errors: dict) -> dict:
    dates = {}
    for key in ("startDate", "endDate"):
        raw = request.args.get(key)
        dates[key] = None
        if raw:
            try:
                dates[key] = parse_iso_date(raw)
            except ValueError:
                errors[key] = "Must be a valid YYYY-MM-DD date"
    return dates


def _period_args(default_period: str):
    """Validate period/startDate/endDate. Returns (period, start, end)."""
    errors: dict[str, str] = {}
    period = request.args.get("period") or default_period
    if period not in svc.PERIODS:
        errors["period"] = f"Must be one of: {', '.join(svc.PERIODS)}"

    dates = _date_args(errors)

    if not errors and period == "custom" and not (dates["startDate"] and dates["endDate"]):
        raise ValidationError("Start and end dates are required for custom period")
    if errors:
        raise ValidationError("Invalid query parameters", details=errors)
    return period, dates["startDate"], dates["endDate"]


def _uuid_arg(name: str):
    value = request.args.get(name) or None
    if value is not None and not is_uuid(value):
        raise ValidationError("Invalid query parameters", details={name: "Must be a valid UUID"})
    return value


@dashboard_bp.route("", methods=["GET"])
@require_auth
def overview():
    """Per-day hours for charts.

    Query params:
        view (str): user (default) | project
        startDate, endDate (str): default to the last 7 days

    Admins see every user; everyone else sees only their own logs.
    """
    caller = current_caller()
    errors: dict[str, str] = {}
    view = request.args.get("view") or "user"
    if view not in svc.OVERVIEW_VIEWS:
        errors["view"] = "Must be user or project"
    dates = _date_args(errors)
    if errors:
        raise ValidationError("Invalid query parameters", details=errors)

    user_ids = None if caller.is_admin else [caller.id]
    return api_success(svc.overview_stats(user_ids, view, dates["startDate"], dates["endDate"]))


@dashboard_bp.route("/personal", methods=["GET"])
@require_auth
def personal():
    """Personal statistics.

    Query params:
        period (str): today (default) | week | month | lastWeek | lastMonth | custom
        startDate, endDate (str): required for custom
        scope (str): own (default) | all (admin) | user (admin, requires userId)
        userId (uuid): target user for scope=user
    """
    caller = current_caller()
    period, start, end = _period_args("today")
    scope = request.args.get("scope") or "own"
    if scope not in PERSONAL_SCOPES:
        raise ValidationError("Invalid query parameters", details={"scope": "Must be own, all or user"})
    user_id = _uuid_arg("userId")

    if scope in ("all", "user") and not caller.is_admin:
        raise ForbiddenError("Only admins can view other users' statistics")
    if scope == "user" and not user_id:
        raise ValidationError("userId is required when scope is 'user'")

    if scope == "all":
        user_ids = None
    elif scope == "user":
        user_ids = [user_id]
    else:
        user_ids = [caller.id]

    return api_success(svc.personal_stats(user_ids, period, start, end))


@dashboard_bp.route("/team", methods=["GET"])
@require_auth
def team():
    """Team statistics.

    Query params:
        period (str): week (default) | today | month | lastWeek | lastMonth | custom
        teamId (uuid, optional): defaults to the caller's first team
    """
    caller = current_caller()
    period, start, end = _period_args("week")
    team_id = _uuid_arg("teamId")

    if team_id:
        team_obj = db.session.get(Team, team_id)
        if team_obj is None:
            raise NotFoundError("Team", resource_id=team_id)
        if not caller.is_admin and permission_service.get_team_role(caller.id, team_id) is None:
            raise ForbiddenError("You are not a member of this team")
    else:
        team_ids = permission_service.team_ids_for_user(caller.id)
        if not team_ids:
            raise NotFoundError("Team", message="You are not a member of any team")
        team_obj = db.session.get(Team, team_ids[0])

    members = team_service.team_members(team_obj.id)
    if not members:
        raise NotFoundError("Team", message="Team has no members")

    stats = svc.team_stats(members, period, start, end)
    stats["team"] = {"teamId": team_obj.id, "teamName": team_obj.name, "memberCount": len(members)}
    return api_success(stats)


@dashboard_bp.route("/projects", methods=["GET"])
@require_auth
def projects():
    """Per-project statistics.

    Query params:
        period (str): week (default) | today | month | lastWeek | lastMonth | custom
        projectId (uuid, optional): restrict to one project
        scope (str): own (default) | team | all (admin)
    """
    caller = current_caller()
    period, start, end = _period_args("week")
    project_id = _uuid_arg("projectId")
    scope = request.args.get("scope") or "own"
    if scope not in PROJECT_SCOPES:
        raise ValidationError("Invalid query parameters", details={"scope": "Must be own, team or all"})

    user_ids = resolve_scope_user_ids(scope, caller)
    return api_success(svc.project_stats(user_ids, period, start, end, project_id=project_id))
