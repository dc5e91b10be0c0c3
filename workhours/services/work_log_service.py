"""
Work-log service: scope resolution, filtered search, CRUD and batch update.

Blueprints validate input shape (``workhours.validation``); this module owns
every query and every commit on the work_logs table.
"""

from __future__ import annotations

import logging
import math

from sqlalchemy import func

from workhours.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from workhours.models import db
from workhours.models.catalog import Project, WorkCategory
from workhours.models.user import User
from workhours.models.work_log import WorkLog
from workhours.services import permission_service
from workhours.utils.errors import E
from workhours.utils.helpers import commit_or_raise, is_uuid

logger = logging.getLogger(__name__)

UNKNOWN_PROJECT = "Unknown project"
UNKNOWN_CATEGORY = "Unknown category"
UNKNOWN_USER = "Unknown"


# ═══════════════════════════════════════════════════════════════
# Scope
# ═══════════════════════════════════════════════════════════════
def resolve_scope_user_ids(scope: str, caller, requested_user_id: str | None = None) -> list[str] | None:
    """Translate own/team/all into the set of user ids a query may cover.

    Returns None for "no restriction" (admin, scope=all, no userId).
    ``requested_user_id`` is honoured for admins only; everyone else is
    pinned to their own logs (own) or their teams (team).
    """
    admin_user = requested_user_id if caller.is_admin else None

    if scope == "all":
        if not caller.is_admin:
            raise ForbiddenError("Only admins can view all work logs")
        return [admin_user] if admin_user else None

    if scope == "team":
        if admin_user:
            return [admin_user]
        return permission_service.team_scope_user_ids(caller.id)

    return [admin_user or caller.id]


# ═══════════════════════════════════════════════════════════════
# Query building
# ═══════════════════════════════════════════════════════════════
def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def filtered_query(
    user_ids: list[str] | None = None,
    start_date=None,
    end_date=None,
    project_ids: list[str] | None = None,
    category_ids: list[str] | None = None,
    search_text: str | None = None,
):
    """Base WorkLog query with every list/export filter applied."""
    q = WorkLog.query
    if user_ids is not None:
        q = q.filter(WorkLog.user_id.in_(user_ids))
    if start_date:
        q = q.filter(WorkLog.date >= start_date)
    if end_date:
        q = q.filter(WorkLog.date <= end_date)
    if project_ids:
        q = q.filter(WorkLog.project_id.in_(project_ids))
    if category_ids:
        q = q.filter(WorkLog.category_id.in_(category_ids))
    if search_text:
        q = q.filter(WorkLog.details.ilike(f"%{_escape_like(search_text)}%", escape="\\"))
    return q


def with_display_fields(query):
    """Outer-join project/category/user display columns onto a WorkLog query."""
    return (
        query.outerjoin(Project, Project.id == WorkLog.project_id)
        .outerjoin(WorkCategory, WorkCategory.id == WorkLog.category_id)
        .outerjoin(User, User.id == WorkLog.user_id)
        .add_columns(Project.name, WorkCategory.name, User.name, User.email)
    )


def serialize_row(log: WorkLog, project_name, category_name, user_name, user_email) -> dict:
    d = log.to_dict()
    d["project"] = {"id": log.project_id, "name": project_name or UNKNOWN_PROJECT}
    d["category"] = {"id": log.category_id, "name": category_name or UNKNOWN_CATEGORY}
    d["user"] = {"id": log.user_id, "name": user_name or UNKNOWN_USER, "email": user_email}
    return d


# ═══════════════════════════════════════════════════════════════
# Search
# ═══════════════════════════════════════════════════════════════
def search_work_logs(search, caller) -> tuple[list[dict], dict]:
    """Paginated, filtered list plus pagination metadata.

    ``total`` counts every matching row regardless of page/limit.
    """
    user_ids = resolve_scope_user_ids(search.scope, caller, search.user_id)
    base = filtered_query(
        user_ids=user_ids,
        start_date=search.start_date,
        end_date=search.end_date,
        project_ids=search.project_ids,
        category_ids=search.category_ids,
        search_text=search.search_text,
    )

    total = base.with_entities(func.count(WorkLog.id)).scalar() or 0

    rows = (
        with_display_fields(base)
        .order_by(WorkLog.date.desc(), WorkLog.created_at.desc())
        .limit(search.limit)
        .offset(search.offset)
        .all()
    )
    items = [serialize_row(*row) for row in rows]
    pagination = {
        "page": search.page,
        "limit": search.limit,
        "total": total,
        "totalPages": math.ceil(total / search.limit) if total else 0,
    }
    return items, pagination


# ═══════════════════════════════════════════════════════════════
# Single-record operations
# ═══════════════════════════════════════════════════════════════
def _check_references(project_id: str | None, category_id: str | None) -> None:
    """Referenced project/category must exist and be active."""
    errors: dict[str, str] = {}
    if project_id is not None:
        project = db.session.get(Project, project_id)
        if project is None:
            errors["projectId"] = "Project does not exist"
        elif not project.is_active:
            errors["projectId"] = "Project is inactive"
    if category_id is not None:
        category = db.session.get(WorkCategory, category_id)
        if category is None:
            errors["categoryId"] = "Work category does not exist"
        elif not category.is_active:
            errors["categoryId"] = "Work category is inactive"
    if errors:
        raise ValidationError("Invalid references", details=errors)


def _load(log_id: str) -> WorkLog:
    if not is_uuid(log_id):
        raise ValidationError("Invalid work log id", code=E.INVALID_ID)
    log = db.session.get(WorkLog, log_id)
    if log is None:
        raise NotFoundError("Work log", resource_id=log_id)
    return log


def get_work_log(log_id: str, caller) -> dict:
    log = _load(log_id)
    if not permission_service.can_view_work_log(caller, log.user_id):
        raise ForbiddenError("You do not have permission to view this work log")
    row = with_display_fields(WorkLog.query.filter(WorkLog.id == log.id)).one()
    return serialize_row(*row)


def get_editable_work_log(log_id: str, caller, action: str = "update") -> WorkLog:
    """Id format, existence, then owner-or-admin; in that order."""
    log = _load(log_id)
    if not caller.is_admin and log.user_id != caller.id:
        raise ForbiddenError(f"You can only {action} your own work logs")
    return log


def create_work_log(data, caller) -> dict:
    _check_references(data.project_id, data.category_id)
    log = WorkLog(
        user_id=caller.id,
        date=data.date,
        hours=data.hours,
        project_id=data.project_id,
        category_id=data.category_id,
        details=data.details or None,
    )
    db.session.add(log)
    commit_or_raise()
    logger.info("Work log created", extra={"user_id": caller.id})
    return log.to_dict()


def update_work_log(log: WorkLog, update) -> dict:
    _check_references(update.project_id, update.category_id)
    for attr, value in update.changes.items():
        setattr(log, attr, value)
    commit_or_raise()
    return log.to_dict()


def delete_work_log(log: WorkLog) -> None:
    db.session.delete(log)
    commit_or_raise()


# ═══════════════════════════════════════════════════════════════
# Batch update
# ═══════════════════════════════════════════════════════════════
def count_owned(log_ids: list[str], user_id: str) -> int:
    """How many of ``log_ids`` belong to ``user_id``, in a single query."""
    return (
        db.session.query(func.count(WorkLog.id))
        .filter(WorkLog.id.in_(log_ids), WorkLog.user_id == user_id)
        .scalar()
        or 0
    )


def batch_update_work_logs(entries, caller) -> list[dict]:
    """Apply every entry or none of them.

    Non-admins must own every referenced log; one foreign id rejects the
    whole batch before anything is written. Results come back in input order.
    """
    ids = [entry.id for entry in entries]
    unique_ids = set(ids)

    if not caller.is_admin and count_owned(list(unique_ids), caller.id) != len(unique_ids):
        logger.warning("Batch update rejected: caller %s does not own every log", caller.id)
        raise ForbiddenError("You can only update your own work logs")

    logs = {log.id: log for log in WorkLog.query.filter(WorkLog.id.in_(ids)).all()}
    missing = [i for i in ids if i not in logs]
    if missing:
        raise NotFoundError(
            "Work log", message="One or more work logs were not found", details={"missingIds": missing},
        )

    project_ids = {e.update.project_id for e in entries if e.update.project_id}
    category_ids = {e.update.category_id for e in entries if e.update.category_id}
    for project_id in project_ids:
        _check_references(project_id, None)
    for category_id in category_ids:
        _check_references(None, category_id)

    for entry in entries:
        log = logs[entry.id]
        for attr, value in entry.update.changes.items():
            setattr(log, attr, value)

    # Single commit: either every row changes or commit_or_raise rolls back
    commit_or_raise()
    logger.info("Batch updated %d work logs", len(ids), extra={"user_id": caller.id})
    return [logs[i].to_dict() for i in ids]
