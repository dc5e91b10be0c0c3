"""
Team-based permission checks.

Global roles (admin/manager/user) live in ``workhours.auth``; this module
answers the questions that need the team_members table:

    - are two users teammates?
    - may the caller view another user's work log?
    - which users does a "team" scope cover for the caller?
    - may the caller manage a given team's members?
"""

from sqlalchemy.orm import aliased

from workhours.models import db
from workhours.models.team import Team, TeamMember


def check_if_teammates(user_id_1: str, user_id_2: str) -> bool:
    """True if both users share at least one team (a user is their own teammate)."""
    if user_id_1 == user_id_2:
        return True
    other = aliased(TeamMember)
    row = (
        db.session.query(TeamMember.team_id)
        .join(other, other.team_id == TeamMember.team_id)
        .filter(TeamMember.user_id == user_id_1, other.user_id == user_id_2)
        .first()
    )
    return row is not None


def can_view_work_log(caller, owner_id: str) -> bool:
    if caller.is_admin or caller.id == owner_id:
        return True
    return check_if_teammates(caller.id, owner_id)


def get_team_role(user_id: str, team_id: str) -> str | None:
    """The user's role in the team (leader/member/viewer) or None."""
    row = (
        db.session.query(TeamMember.role)
        .filter(TeamMember.user_id == user_id, TeamMember.team_id == team_id)
        .first()
    )
    return row[0] if row else None


def can_manage_team_members(caller, team_id: str) -> bool:
    """Admins manage every team; leaders manage their own."""
    if caller.is_admin:
        return True
    return get_team_role(caller.id, team_id) == "leader"


def team_ids_for_user(user_id: str, active_only: bool = True) -> list[str]:
    """Ids of the teams the user belongs to, ordered by team name."""
    q = (
        db.session.query(TeamMember.team_id)
        .join(Team, Team.id == TeamMember.team_id)
        .filter(TeamMember.user_id == user_id)
    )
    if active_only:
        q = q.filter(Team.is_active.is_(True))
    return [row[0] for row in q.order_by(Team.name).all()]


def team_scope_user_ids(user_id: str) -> list[str]:
    """The caller plus every member of every team they belong to, deduplicated.

    A caller without teams gets just themselves.
    """
    team_ids = team_ids_for_user(user_id)
    ids = [user_id]
    if team_ids:
        rows = (
            db.session.query(TeamMember.user_id)
            .filter(TeamMember.team_id.in_(team_ids))
            .distinct()
            .all()
        )
        ids.extend(row[0] for row in rows)
    return list(dict.fromkeys(ids))
