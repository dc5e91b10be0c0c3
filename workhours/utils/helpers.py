"""Shared request/DB helpers used by services and blueprints.

get_or_404:        fetch by primary key or raise NotFoundError
is_uuid:           UUID format check for path and query ids
parse_iso_date:    strict YYYY-MM-DD parsing (raises ValueError)
parse_csv:         "a,b,,c" -> ["a", "b", "c"]
request_payload:   JSON body or form data, normalised to a plain dict
commit_or_raise:   commit, rolling back and re-raising on failure
"""
import logging
import re
import uuid
from datetime import date, datetime

from flask import request
from sqlalchemy.exc import IntegrityError, OperationalError

from workhours.core.exceptions import ConflictError, NotFoundError
from workhours.models import db

logger = logging.getLogger(__name__)

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def get_or_404(model, pk, label=None):
    """Fetch a model instance by primary key or raise NotFoundError."""
    label = label or model.__name__
    obj = db.session.get(model, pk) if pk else None
    if obj is None:
        raise NotFoundError(label, resource_id=pk)
    return obj


def is_uuid(value) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return len(value) == 36


def parse_iso_date(value):
    """Parse a YYYY-MM-DD string into a date, raising ValueError otherwise.

    Only the canonical form is accepted; "2024-2-1" and datetimes are
    rejected so that stored dates always round-trip unchanged.
    """
    if isinstance(value, datetime):
        raise ValueError("Expected a date, got a datetime")
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value):
        raise ValueError("Invalid date format. Use YYYY-MM-DD.")
    return date.fromisoformat(value)


def parse_csv(value) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in str(value).split(",") if part.strip()]


def request_payload() -> dict:
    """Return the request body as a dict, whether JSON or form encoded.

    Write endpoints accept both shapes; form values are strings and the
    validators coerce them the same way they coerce JSON strings.
    """
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    if request.form:
        return {k: v for k, v in request.form.items()}
    return {}


def commit_or_raise():
    """Commit the current session, rolling back on failure.

    IntegrityError    → ConflictError (duplicate / constraint violation)
    OperationalError  → re-raised; surfaces as INTERNAL_ERROR
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        raise ConflictError("Duplicate or constraint violation") from exc
    except OperationalError:
        db.session.rollback()
        logger.exception("Database operational error on commit")
        raise
    except Exception:
        db.session.rollback()
        logger.exception("Unexpected database error on commit")
        raise
