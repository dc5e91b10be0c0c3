"""Team administration and membership management."""

import logging

from sqlalchemy import func

from workhours.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from workhours.models import db
from workhours.models.team import Team, TeamMember
from workhours.models.user import User
from workhours.services import permission_service
from workhours.utils.errors import E
from workhours.utils.helpers import commit_or_raise, get_or_404

logger = logging.getLogger(__name__)


def _ensure_unique(name: str, exclude_id: str | None = None) -> None:
    """Team names are unique across active and inactive teams."""
    q = Team.query.filter(func.lower(Team.name) == name.lower())
    if exclude_id:
        q = q.filter(Team.id != exclude_id)
    if db.session.query(q.exists()).scalar():
        raise ConflictError("A team with this name already exists", code=E.DUPLICATE_NAME, field="name")


def list_teams(active_only: bool = False) -> list[dict]:
    q = (
        db.session.query(Team, func.count(TeamMember.id))
        .outerjoin(TeamMember, TeamMember.team_id == Team.id)
        .group_by(Team.id)
    )
    if active_only:
        q = q.filter(Team.is_active.is_(True))
    return [team.to_dict(member_count=count) for team, count in q.order_by(Team.name).all()]


def get_team_detail(team_id: str) -> dict:
    team = get_or_404(Team, team_id, "Team")
    members = (
        TeamMember.query.filter_by(team_id=team.id)
        .join(User, User.id == TeamMember.user_id)
        .order_by(User.name)
        .all()
    )
    d = team.to_dict(member_count=len(members))
    d["members"] = [m.to_dict() for m in members]
    return d


def create_team(data) -> dict:
    _ensure_unique(data.name)
    team = Team(name=data.name, description=data.description, is_active=data.is_active)
    db.session.add(team)
    commit_or_raise()
    logger.info("Team created: %s", team.name)
    return team.to_dict(member_count=0)


def update_team(team_id: str, data) -> dict:
    team = get_or_404(Team, team_id, "Team")
    changes = data.changes()
    if "name" in changes:
        _ensure_unique(changes["name"], exclude_id=team.id)
    for attr, value in changes.items():
        setattr(team, attr, value)
    commit_or_raise()
    return team.to_dict()


def delete_team(team_id: str) -> dict:
    team = get_or_404(Team, team_id, "Team")
    team.soft_delete()
    commit_or_raise()
    return team.to_dict()


def add_member(team_id: str, data, caller) -> dict:
    team = get_or_404(Team, team_id, "Team")
    if not permission_service.can_manage_team_members(caller, team.id):
        raise ForbiddenError("Only admins and team leaders can add members")
    user = get_or_404(User, data.user_id, "User")
    if TeamMember.query.filter_by(team_id=team.id, user_id=user.id).first():
        raise ConflictError("User is already a member of this team", code=E.ALREADY_MEMBER)
    member = TeamMember(team_id=team.id, user_id=user.id, role=data.role)
    db.session.add(member)
    commit_or_raise()
    logger.info("User %s added to team %s as %s", user.id, team.id, data.role)
    return member.to_dict()


def remove_member(team_id: str, user_id: str) -> None:
    get_or_404(Team, team_id, "Team")
    member = TeamMember.query.filter_by(team_id=team_id, user_id=user_id).first()
    if member is None:
        raise NotFoundError("Team member", message="User is not a member of this team")
    db.session.delete(member)
    commit_or_raise()


def memberships_for_user(user_id: str) -> list[dict]:
    rows = (
        db.session.query(TeamMember, Team)
        .join(Team, Team.id == TeamMember.team_id)
        .filter(TeamMember.user_id == user_id, Team.is_active.is_(True))
        .order_by(Team.name)
        .all()
    )
    return [
        {
            "teamId": team.id,
            "teamName": team.name,
            "role": member.role,
            "joinedAt": member.to_dict()["joinedAt"],
        }
        for member, team in rows
    ]


def team_members(team_id: str) -> list[tuple[str, str | None]]:
    """``(user_id, user_name)`` pairs for the dashboard."""
    rows = (
        db.session.query(TeamMember.user_id, User.name)
        .outerjoin(User, User.id == TeamMember.user_id)
        .filter(TeamMember.team_id == team_id)
        .order_by(User.name)
        .all()
    )
    return [(uid, name) for uid, name in rows]
