"""WorkLog: one dated, hour-valued record of work against a project/category."""

from datetime import datetime, timezone

from workhours.models import db, iso, new_id


class WorkLog(db.Model):
    __tablename__ = "work_logs"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    date = db.Column(db.Date, nullable=False)
    # Decimal string ("7.5"); summed with Decimal, never float.
    hours = db.Column(db.String(10), nullable=False)
    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False,
    )
    category_id = db.Column(
        db.String(36), db.ForeignKey("work_categories.id", ondelete="RESTRICT"), nullable=False,
    )
    details = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.Index("ix_work_logs_user_date", "user_id", "date"),
        db.Index("ix_work_logs_project_id", "project_id"),
        db.Index("ix_work_logs_category_id", "category_id"),
    )

    user = db.relationship("User")
    project = db.relationship("Project")
    category = db.relationship("WorkCategory")

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "date": iso(self.date),
            "hours": self.hours,
            "projectId": self.project_id,
            "categoryId": self.category_id,
            "details": self.details,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<WorkLog {self.id} {self.date} {self.hours}h>"
