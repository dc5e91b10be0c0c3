"""
Projects & Work Categories Blueprint.

Endpoints:
    GET    /api/projects                  list (?active=true for active only)
    POST   /api/projects                  create (admin)
    GET    /api/projects/<id>             fetch one
    PUT    /api/projects/<id>             partial update (admin)
    DELETE /api/projects/<id>             soft delete, idempotent (admin)

    GET    /api/work-categories           list (?active=true), ordered by displayOrder
    POST   /api/work-categories           create (admin)
    GET    /api/work-categories/<id>      fetch one
    PUT    /api/work-categories/<id>      partial update (admin)
    DELETE /api/work-categories/<id>      soft delete, idempotent (admin)
"""

from flask import Blueprint

from workhours.auth import require_auth, require_role
from workhours.blueprints import arg_flag
from workhours.models.catalog import Project, WorkCategory
from workhours.services import catalog_service as svc
from workhours.utils.errors import api_success
from workhours.utils.helpers import request_payload
from workhours.validation import validate_catalog

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


# ── Projects ──────────────────────────────────────────────────────────────────


@catalog_bp.route("/projects", methods=["GET"])
@require_auth
def list_projects():
    return api_success(svc.list_items(Project, active_only=arg_flag("active")))


@catalog_bp.route("/projects", methods=["POST"])
@require_role("admin")
def create_project():
    """Body: name (1..255, required), description, isActive (default true)."""
    data = validate_catalog(request_payload())
    return api_success(svc.create_item(Project, data), status=201)


@catalog_bp.route("/projects/<project_id>", methods=["GET"])
@require_auth
def get_project(project_id):
    return api_success(svc.get_item(Project, project_id))


@catalog_bp.route("/projects/<project_id>", methods=["PUT"])
@require_role("admin")
def update_project(project_id):
    data = validate_catalog(request_payload(), partial=True)
    return api_success(svc.update_item(Project, project_id, data))


@catalog_bp.route("/projects/<project_id>", methods=["DELETE"])
@require_role("admin")
def delete_project(project_id):
    return api_success(svc.delete_item(Project, project_id))


# ── Work categories ───────────────────────────────────────────────────────────


@catalog_bp.route("/work-categories", methods=["GET"])
@require_auth
def list_categories():
    return api_success(svc.list_items(WorkCategory, active_only=arg_flag("active")))


@catalog_bp.route("/work-categories", methods=["POST"])
@require_role("admin")
def create_category():
    """Body: name, description, displayOrder (int >= 0, default 0), isActive."""
    data = validate_catalog(request_payload(), with_display_order=True)
    return api_success(svc.create_item(WorkCategory, data), status=201)


@catalog_bp.route("/work-categories/<category_id>", methods=["GET"])
@require_auth
def get_category(category_id):
    return api_success(svc.get_item(WorkCategory, category_id))


@catalog_bp.route("/work-categories/<category_id>", methods=["PUT"])
@require_role("admin")
def update_category(category_id):
    data = validate_catalog(request_payload(), partial=True, with_display_order=True)
    return api_success(svc.update_item(WorkCategory, category_id, data))


@catalog_bp.route("/work-categories/<category_id>", methods=["DELETE"])
@require_role("admin")
def delete_category(category_id):
    return api_success(svc.delete_item(WorkCategory, category_id))
