"""Standard JSON response envelope.

Usage
-----
    from workhours.utils.errors import api_error, api_success, E

    return api_success(project.to_dict(), status=201)
    return api_error(E.NOT_FOUND, "Project not found")
    return api_error(E.VALIDATION, "Validation failed", details={"name": "Required"})
"""

from __future__ import annotations

from flask import jsonify


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error codes. Clients branch on these, not on messages."""

    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    VALIDATION = "VALIDATION_ERROR"
    INVALID_ID = "INVALID_ID"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    DUPLICATE_NAME = "DUPLICATE_NAME"
    ALREADY_MEMBER = "ALREADY_MEMBER"
    WEAK_PASSWORD = "WEAK_PASSWORD"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    SAME_PASSWORD = "SAME_PASSWORD"
    INVALID_TOKEN = "INVALID_TOKEN"
    EXPIRED_TOKEN = "EXPIRED_TOKEN"
    RATE_LIMITED = "RATE_LIMITED"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    INTERNAL = "INTERNAL_ERROR"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.UNAUTHORIZED: 401,
    E.FORBIDDEN: 403,
    E.VALIDATION: 400,
    E.INVALID_ID: 400,
    E.NOT_FOUND: 404,
    E.CONFLICT: 409,
    E.DUPLICATE_NAME: 409,
    E.ALREADY_MEMBER: 409,
    E.WEAK_PASSWORD: 400,
    E.INVALID_PASSWORD: 400,
    E.SAME_PASSWORD: 400,
    E.INVALID_TOKEN: 400,
    E.EXPIRED_TOKEN: 400,
    E.RATE_LIMITED: 429,
    E.METHOD_NOT_ALLOWED: 405,
    E.INTERNAL: 500,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details=None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation.
    status : int, optional
        HTTP status override. Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : optional
        Field-level errors or other structured payload.

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)``, drop-in for Flask views.
    """
    http_status = status or _DEFAULT_STATUS.get(code, 400)

    error: dict = {"code": code, "message": message}
    if details:
        error["details"] = details

    return jsonify({"success": False, "error": error}), http_status


def api_success(data=None, *, status: int = 200, pagination: dict | None = None):
    """Return a standard JSON success response."""
    body: dict = {"success": True, "data": data}
    if pagination is not None:
        body["pagination"] = pagination
    return jsonify(body), status
