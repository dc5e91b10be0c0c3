"""Teams and the team-membership join table."""

from datetime import datetime, timezone

from workhours.models import db, iso, new_id
from workhours.models.soft_delete import ActiveFlagMixin

TEAM_ROLES = ("leader", "member", "viewer")


class Team(ActiveFlagMixin, db.Model):
    __tablename__ = "teams"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    members = db.relationship(
        "TeamMember", back_populates="team", lazy="dynamic", cascade="all, delete-orphan",
    )

    def to_dict(self, member_count=None):
        d = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "isActive": self.is_active,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
        if member_count is not None:
            d["memberCount"] = member_count
        return d

    def __repr__(self):
        return f"<Team {self.name}>"


class TeamMember(db.Model):
    __tablename__ = "team_members"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    team_id = db.Column(
        db.String(36), db.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False,
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    role = db.Column(db.String(20), nullable=False, default="member")  # leader, member, viewer
    joined_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.UniqueConstraint("team_id", "user_id", name="uq_team_member"),
        db.Index("ix_team_members_user_id", "user_id"),
    )

    team = db.relationship("Team", back_populates="members")
    user = db.relationship("User", back_populates="team_memberships")

    def to_dict(self):
        return {
            "teamId": self.team_id,
            "userId": self.user_id,
            "userName": self.user.name if self.user else None,
            "userEmail": self.user.email if self.user else None,
            "role": self.role,
            "joinedAt": iso(self.joined_at),
        }
