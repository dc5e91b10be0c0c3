"""
Active-flag soft delete.

Projects, work categories and teams are never physically removed;
deactivating one keeps historic work logs pointing at a valid row.

Usage:
    class Project(ActiveFlagMixin, db.Model):
        ...

    project.soft_delete()      # idempotent
    db.session.commit()

    Project.query_active().all()
"""

from datetime import datetime, timezone

from workhours.models import db


class ActiveFlagMixin:
    """Mixin that adds an ``is_active`` flag plus query helpers."""

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    def soft_delete(self):
        """Mark this record inactive. Calling it twice is not an error."""
        if self.is_active:
            self.is_active = False
            self.updated_at = datetime.now(timezone.utc)

    def restore(self):
        self.is_active = True
        self.updated_at = datetime.now(timezone.utc)

    @classmethod
    def query_active(cls):
        """Return a query that excludes inactive records."""
        return cls.query.filter(cls.is_active.is_(True))
