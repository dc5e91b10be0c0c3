"""
Work Hours Tracker
Flask Application Factory.

Usage:
    from workhours import create_app
    app = create_app()           # APP_ENV, defaulting to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event
from werkzeug.exceptions import HTTPException

from workhours.config import config
from workhours.core.exceptions import ApiError
from workhours.middleware.logging_config import configure_logging, init_request_logging
from workhours.middleware.session_gate import init_session_gate
from workhours.models import db
from workhours.services.email_service import EXTENSION_KEY as EMAIL_EXTENSION_KEY
from workhours.services.email_service import EmailService
from workhours.settings import EXTENSION_KEY as SETTINGS_EXTENSION_KEY
from workhours.settings import build_settings
from workhours.utils.errors import E, api_error

logger = logging.getLogger(__name__)

DEV_USER_EMAIL = "dev@workhours.local"
DEV_USER_NAME = "Development Admin"


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # only the auth endpoints are limited
    storage_uri=os.getenv("REDIS_URL", "memory://"),
)

_HTTP_CODES = {
    401: E.UNAUTHORIZED,
    403: E.FORBIDDEN,
    404: E.NOT_FOUND,
    405: E.METHOD_NOT_ALLOWED,
    429: E.RATE_LIMITED,
}


def create_app(config_name=None, overrides=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: "development", "testing" or "production".
            Falls back to the APP_ENV environment variable.
        overrides: Optional mapping applied on top of the config class.

    Raises:
        ConfigurationError: settings validation failed (auth bypass in
            production/CI, bad DEV_USER_ID, missing production secrets).
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name])
    if overrides:
        app.config.update(overrides)

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Settings: fatal misconfiguration stops here ──────────────────────
    settings = build_settings(app.config)
    app.extensions[SETTINGS_EXTENSION_KEY] = settings
    app.extensions[EMAIL_EXTENSION_KEY] = EmailService.from_config(app.config, settings.email_provider)
    if settings.auth_disabled:
        logger.warning("Authentication is DISABLED; every request runs as %s", settings.dev_user_id)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request middleware ───────────────────────────────────────────────
    init_request_logging(app)
    init_session_gate(app)

    # ── Import all models so Alembic can detect them ─────────────────────
    from workhours.models import catalog as _catalog_models  # noqa: F401
    from workhours.models import team as _team_models  # noqa: F401
    from workhours.models import user as _user_models  # noqa: F401
    from workhours.models import work_log as _work_log_models  # noqa: F401

    with app.app_context():
        try:
            db.create_all()
        except Exception as e:
            logger.warning("db.create_all() failed: %s", e)
            db.session.rollback()
        if settings.auth_disabled:
            from workhours.services.user_service import ensure_user
            ensure_user(settings.dev_user_id, email=DEV_USER_EMAIL, name=DEV_USER_NAME, role="admin")

    # ── Blueprints ───────────────────────────────────────────────────────
    from workhours.blueprints.auth_bp import auth_bp
    from workhours.blueprints.catalog_bp import catalog_bp
    from workhours.blueprints.dashboard_bp import dashboard_bp
    from workhours.blueprints.health_bp import health_bp
    from workhours.blueprints.team_bp import team_bp
    from workhours.blueprints.user_bp import user_bp
    from workhours.blueprints.work_log_bp import work_log_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(work_log_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(team_bp)
    app.register_blueprint(user_bp)

    _register_error_handlers(app, settings)
    _register_cli(app)

    return app


def _register_error_handlers(app, settings):
    @app.errorhandler(ApiError)
    def handle_api_error(e):
        if e.status >= 500:
            logger.error("%s: %s", e.code, e.message)
        return api_error(e.code, e.message, status=e.status, details=e.details)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        code = _HTTP_CODES.get(e.code, E.VALIDATION if e.code < 500 else E.INTERNAL)
        if e.code == 404:
            message = f"No route for {request.path}"
        elif e.code == 429:
            message = "Too many requests"
        else:
            message = e.description or e.name
        return api_error(code, message, status=e.code)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        db.session.rollback()
        details = {"exception": type(e).__name__, "detail": str(e)} if settings.expose_error_details else None
        return api_error(E.INTERNAL, "Internal server error", details=details)


def _register_cli(app):
    @app.cli.command("seed-admin")
    @click.option("--email", required=True, help="Admin login email.")
    @click.option("--name", default="Administrator", show_default=True)
    @click.option("--password", required=True, help="Initial password (strength rules apply).")
    def seed_admin_cmd(email, name, password):
        """Create an admin user, or promote an existing one and reset its password."""
        from workhours.services.password_service import check_password_strength
        from workhours.services.user_service import seed_admin

        strength = check_password_strength(password)
        if not strength.is_valid:
            raise click.BadParameter("; ".join(strength.errors), param_hint="--password")
        user = seed_admin(email, name, password)
        click.echo(f"Admin ready: {user.email} ({user.id})")
