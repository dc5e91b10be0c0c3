"""
Work Hours Tracker
SQLAlchemy models package.

The ``db`` instance lives here so every model module and service can do
``from workhours.models import db`` without importing the app factory.
"""

import uuid

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def new_id() -> str:
    """Primary keys are UUID strings across every table."""
    return str(uuid.uuid4())


def iso(value):
    """ISO-8601 string for a date/datetime column value (None passthrough)."""
    return value.isoformat() if value else None
