"""
Application-wide exception hierarchy.

Services raise these; the app-level error handlers registered in
``workhours.create_app`` turn them into the standard error envelope:

    {"success": false, "error": {"code": ..., "message": ..., "details": ...}}

Usage:
    from workhours.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError("Work log", resource_id=log_id)
    raise ValidationError("Invalid input", details={"hours": "Must be > 0"})
"""


class ApiError(Exception):
    """Base class for errors that map onto an HTTP response.

    Args:
        message: Human-readable explanation (not guaranteed stable).
        code: Stable machine-readable code clients branch on.
        status: HTTP status code.
        details: Optional structured payload (field errors, missing ids, ...).
    """

    code = "INTERNAL_ERROR"
    status = 500

    def __init__(self, message: str, *, code: str | None = None, details=None) -> None:
        self.message = message
        if code is not None:
            self.code = code
        self.details = details
        super().__init__(message)


class UnauthorizedError(ApiError):
    """No session, or the session token is invalid/expired/revoked."""

    code = "UNAUTHORIZED"
    status = 401

    def __init__(self, message: str = "Authentication required", **kwargs) -> None:
        super().__init__(message, **kwargs)


class ForbiddenError(ApiError):
    """Authenticated, but role or ownership is insufficient."""

    code = "FORBIDDEN"
    status = 403

    def __init__(self, message: str = "Insufficient permissions", **kwargs) -> None:
        super().__init__(message, **kwargs)


class ValidationError(ApiError):
    """Malformed or out-of-range input.

    ``details`` is a field-name -> message mapping when the failure can be
    pinned to specific fields.
    """

    code = "VALIDATION_ERROR"
    status = 400

    def __init__(self, message: str = "Validation failed", details: dict | None = None, *, code: str | None = None) -> None:
        super().__init__(message, code=code, details=details or None)


class NotFoundError(ApiError):
    """Referenced resource does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Work log", "Team").
        resource_id: The id looked up. Logged, not echoed to the client.
    """

    code = "NOT_FOUND"
    status = 404

    def __init__(
        self,
        resource: str,
        resource_id: str | None = None,
        *,
        message: str | None = None,
        details=None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(message or f"{resource} not found", details=details)


class ConflictError(ApiError):
    """Write would duplicate a unique value (name, email, membership)."""

    code = "CONFLICT"
    status = 409

    def __init__(self, message: str, *, code: str | None = None, field: str | None = None) -> None:
        self.field = field
        super().__init__(message, code=code)


class ConfigurationError(RuntimeError):
    """Fatal startup misconfiguration. Never converted into a response."""
