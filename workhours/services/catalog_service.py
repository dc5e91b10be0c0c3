"""
Project and work-category administration.

Both tables share the same rules: unique name (checked case-insensitively
across active and inactive rows), soft delete via ``is_active``, and an
idempotent delete.
"""

import logging

from sqlalchemy import func

from workhours.core.exceptions import ConflictError
from workhours.models import db
from workhours.models.catalog import Project, WorkCategory
from workhours.utils.errors import E
from workhours.utils.helpers import commit_or_raise, get_or_404

logger = logging.getLogger(__name__)

_LABELS = {Project: "Project", WorkCategory: "Work category"}


def _order(model):
    if model is WorkCategory:
        return (WorkCategory.display_order, WorkCategory.name)
    return (model.name,)


def name_exists(model, name: str, exclude_id: str | None = None) -> bool:
    q = model.query.filter(func.lower(model.name) == name.lower())
    if exclude_id:
        q = q.filter(model.id != exclude_id)
    return db.session.query(q.exists()).scalar()


def _ensure_unique(model, name: str, exclude_id: str | None = None) -> None:
    if name_exists(model, name, exclude_id):
        label = _LABELS[model]
        raise ConflictError(
            f"A {label.lower()} with this name already exists", code=E.DUPLICATE_NAME, field="name",
        )


def list_items(model, active_only: bool = False) -> list[dict]:
    q = model.query_active() if active_only else model.query
    return [item.to_dict() for item in q.order_by(*_order(model)).all()]


def get_item(model, item_id: str) -> dict:
    return get_or_404(model, item_id, _LABELS[model]).to_dict()


def create_item(model, data) -> dict:
    _ensure_unique(model, data.name)
    item = model(**data.changes())
    db.session.add(item)
    commit_or_raise()
    logger.info("%s created: %s", _LABELS[model], item.name)
    return item.to_dict()


def update_item(model, item_id: str, data) -> dict:
    item = get_or_404(model, item_id, _LABELS[model])
    changes = data.changes()
    if "name" in changes:
        _ensure_unique(model, changes["name"], exclude_id=item.id)
    for attr, value in changes.items():
        setattr(item, attr, value)
    commit_or_raise()
    return item.to_dict()


def delete_item(model, item_id: str) -> dict:
    """Soft delete. Deleting an already inactive row succeeds unchanged."""
    item = get_or_404(model, item_id, _LABELS[model])
    item.soft_delete()
    commit_or_raise()
    logger.info("%s deactivated: %s", _LABELS[model], item.name)
    return item.to_dict()
