"""
Runtime settings built once per application.

``build_settings`` cross-checks configuration that must never be wrong in a
deployed environment and raises ``ConfigurationError`` at startup instead of
letting a request discover it. The result is stored on
``app.extensions`` and read through ``get_settings()``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from flask import current_app

from workhours.core.exceptions import ConfigurationError
from workhours.utils.helpers import is_uuid

EXTENSION_KEY = "workhours.settings"
EMAIL_PROVIDERS = ("smtp", "resend", "preview")
MIN_SECRET_LENGTH = 32


@dataclass(frozen=True)
class Settings:
    env: str
    auth_disabled: bool
    dev_user_id: str
    expose_error_details: bool
    app_base_url: str
    email_provider: str

    @property
    def is_production(self) -> bool:
        return self.env == "production"


def _truthy(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("1", "true", "yes", "on")


def build_settings(app_config: Mapping, environ: Mapping | None = None) -> Settings:
    """Validate configuration and return the frozen settings object.

    Raises:
        ConfigurationError: auth bypass requested in production or CI, a
            malformed DEV_USER_ID, missing production secrets, an unknown
            email provider, or the preview provider in production.
    """
    environ = os.environ if environ is None else environ
    env = app_config.get("ENV_NAME", "development")
    auth_disabled = _truthy(app_config.get("DISABLE_AUTH"))
    in_ci = str(environ.get("CI", "")).strip().lower() not in ("", "false", "0")

    if auth_disabled and env == "production":
        raise ConfigurationError("DISABLE_AUTH cannot be enabled in production")
    if auth_disabled and in_ci:
        raise ConfigurationError("DISABLE_AUTH cannot be enabled in CI")

    dev_user_id = app_config.get("DEV_USER_ID") or "00000000-0000-0000-0000-000000000000"
    if not is_uuid(dev_user_id):
        raise ConfigurationError("DEV_USER_ID must be a valid UUID")

    if env == "production":
        if not app_config.get("SQLALCHEMY_DATABASE_URI"):
            raise ConfigurationError("DATABASE_URL environment variable is required in production")
        secret = environ.get("SECRET_KEY") or ""
        if len(secret) < MIN_SECRET_LENGTH:
            raise ConfigurationError(
                f"SECRET_KEY must be set to at least {MIN_SECRET_LENGTH} characters in production"
            )

    provider = (app_config.get("EMAIL_PROVIDER") or "preview").lower()
    if provider not in EMAIL_PROVIDERS:
        raise ConfigurationError(f"EMAIL_PROVIDER must be one of: {', '.join(EMAIL_PROVIDERS)}")
    if provider == "preview" and env == "production":
        raise ConfigurationError("EMAIL_PROVIDER must be smtp or resend in production")

    expose = env == "development" or _truthy(app_config.get("EXPOSE_ERROR_DETAILS"))

    return Settings(
        env=env,
        auth_disabled=auth_disabled,
        dev_user_id=dev_user_id,
        expose_error_details=expose and env != "production",
        app_base_url=(app_config.get("APP_BASE_URL") or "").rstrip("/"),
        email_provider=provider,
    )


def get_settings() -> Settings:
    return current_app.extensions[EXTENSION_KEY]
