"""
Health check blueprint.

    GET /api/health   database round-trip; 503 when the query fails
"""

import logging
import time

from flask import Blueprint

from workhours.models import db
from workhours.utils.errors import api_success

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/health")


@health_bp.route("", methods=["GET"])
def health():
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        latency = round((time.perf_counter() - t0) * 1000, 1)
    except Exception as exc:
        db.session.rollback()
        logger.error("Health check: database failed: %s", exc)
        return api_success({"status": "degraded", "database": "error"}, status=503)
    return api_success({"status": "ok", "database": "ok", "latencyMs": latency})
