"""
Work Log Blueprint.

Endpoints:
    GET    /api/work-logs            filtered, paginated list
    POST   /api/work-logs            create one work log
    PUT    /api/work-logs/batch      batch update (array of {id, data})
    GET    /api/work-logs/export     CSV / XLSX download
    GET    /api/work-logs/<id>       fetch one (owner, teammate or admin)
    PUT    /api/work-logs/<id>       update one (owner or admin)
    DELETE /api/work-logs/<id>       delete one (owner or admin)

Layer contract:
    - Input shape is checked with workhours.validation.
    - All queries and commits live in work_log_service / export_service.
"""

import logging

from flask import Blueprint, Response, request

from workhours.auth import current_caller, require_auth
from workhours.services import export_service
from workhours.services import work_log_service as svc
from workhours.utils.errors import api_success
from workhours.utils.helpers import request_payload
from workhours.validation import (
    validate_batch_update,
    validate_export_params,
    validate_work_log,
    validate_work_log_search,
    validate_work_log_update,
)

logger = logging.getLogger(__name__)

work_log_bp = Blueprint("work_logs", __name__, url_prefix="/api/work-logs")


@work_log_bp.route("", methods=["GET"])
@require_auth
def list_work_logs():
    """List work logs visible to the caller.

    Query params:
        page, limit                 pagination (page >= 1, 1 <= limit <= 100)
        startDate, endDate          inclusive YYYY-MM-DD bounds
        projectId | projectIds      single id or comma-separated ids
        categoryId | categoryIds    single id or comma-separated ids
        userId                      admin only; ignored for other roles
        searchText                  case-insensitive match on details
        scope                       own (default) | team | all (admin)
    """
    search = validate_work_log_search(request.args)
    items, pagination = svc.search_work_logs(search, current_caller())
    return api_success(items, pagination=pagination)


@work_log_bp.route("", methods=["POST"])
@require_auth
def create_work_log():
    """Create a work log owned by the caller.

    Body (JSON or form):
        date (str, required): YYYY-MM-DD.
        hours (str|number, required): 0 < hours <= 168, max 2 decimals.
        projectId, categoryId (uuid, required): active project / category.
        details (str, optional): up to 1000 characters.
    """
    data = validate_work_log(request_payload())
    return api_success(svc.create_work_log(data, current_caller()), status=201)


@work_log_bp.route("/batch", methods=["PUT"])
@require_auth
def batch_update():
    """Apply several partial updates atomically; all succeed or none do."""
    entries = validate_batch_update(request.get_json(silent=True))
    return api_success(svc.batch_update_work_logs(entries, current_caller()))


@work_log_bp.route("/export", methods=["GET"])
@require_auth
def export_work_logs():
    """Download work logs for a date range of at most 31 days.

    Query params:
        from, to (required)     YYYY-MM-DD
        scope                   own | team | all
        projects, categories    comma-separated ids
        userId                  admins: anyone; others: only themselves
        format                  csv (default) | xlsx
    """
    params = validate_export_params(request.args)
    rows = export_service.collect_export_rows(params, current_caller())
    stem = f"work-logs-{params.start_date.isoformat()}_{params.end_date.isoformat()}"

    if params.format == "xlsx":
        return Response(
            export_service.generate_work_log_xlsx(rows),
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={"Content-Disposition": f'attachment; filename="{stem}.xlsx"'},
        )
    return Response(
        export_service.generate_work_log_csv(rows).encode("utf-8"),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{stem}.csv"'},
    )


@work_log_bp.route("/<log_id>", methods=["GET"])
@require_auth
def get_work_log(log_id):
    return api_success(svc.get_work_log(log_id, current_caller()))


@work_log_bp.route("/<log_id>", methods=["PUT"])
@require_auth
def update_work_log(log_id):
    """Partial update. Checks run as: id format, existence, ownership, body."""
    log = svc.get_editable_work_log(log_id, current_caller(), action="update")
    update = validate_work_log_update(request_payload())
    return api_success(svc.update_work_log(log, update))


@work_log_bp.route("/<log_id>", methods=["DELETE"])
@require_auth
def delete_work_log(log_id):
    log = svc.get_editable_work_log(log_id, current_caller(), action="delete")
    svc.delete_work_log(log)
    return api_success({"id": log_id, "deleted": True})
