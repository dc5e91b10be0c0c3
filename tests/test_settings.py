"""
Startup settings validation: the auth bypass can never be switched on in
production or CI, and production refuses to start without its secrets.
"""

import pytest

from workhours import create_app
from workhours.config import ProductionConfig, TestingConfig
from workhours.core.exceptions import ConfigurationError
from workhours.settings import build_settings

STRONG_SECRET = "s" * 40


def _config(**overrides):
    base = {
        "ENV_NAME": "development",
        "DISABLE_AUTH": False,
        "DEV_USER_ID": "00000000-0000-0000-0000-000000000000",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "EMAIL_PROVIDER": "preview",
        "APP_BASE_URL": "http://localhost:5000/",
    }
    base.update(overrides)
    return base


def test_development_defaults():
    settings = build_settings(_config(), environ={})
    assert settings.auth_disabled is False
    assert settings.expose_error_details is True
    assert settings.app_base_url == "http://localhost:5000"


def test_bypass_allowed_in_development():
    assert build_settings(_config(DISABLE_AUTH=True), environ={}).auth_disabled is True


def test_bypass_fatal_in_production():
    cfg = _config(ENV_NAME="production", DISABLE_AUTH=True)
    with pytest.raises(ConfigurationError, match="production"):
        build_settings(cfg, environ={"SECRET_KEY": STRONG_SECRET})


@pytest.mark.parametrize("ci", ["true", "1", "yes"])
def test_bypass_fatal_in_ci(ci):
    with pytest.raises(ConfigurationError, match="CI"):
        build_settings(_config(DISABLE_AUTH="true"), environ={"CI": ci})


def test_ci_false_is_not_ci():
    assert build_settings(_config(DISABLE_AUTH=True), environ={"CI": "false"}).auth_disabled is True


def test_invalid_dev_user_id():
    with pytest.raises(ConfigurationError, match="DEV_USER_ID"):
        build_settings(_config(DEV_USER_ID="dev-user"), environ={})


def test_production_requires_database_and_secret():
    with pytest.raises(ConfigurationError, match="DATABASE_URL"):
        build_settings(_config(ENV_NAME="production", SQLALCHEMY_DATABASE_URI=None),
                       environ={"SECRET_KEY": STRONG_SECRET})
    with pytest.raises(ConfigurationError, match="SECRET_KEY"):
        build_settings(_config(ENV_NAME="production"), environ={"SECRET_KEY": "short"})


def test_production_hides_error_details():
    settings = build_settings(_config(ENV_NAME="production", EXPOSE_ERROR_DETAILS=True, EMAIL_PROVIDER="smtp"),
                              environ={"SECRET_KEY": STRONG_SECRET})
    assert settings.is_production
    assert settings.expose_error_details is False


def test_unknown_email_provider():
    with pytest.raises(ConfigurationError, match="EMAIL_PROVIDER"):
        build_settings(_config(EMAIL_PROVIDER="pigeon"), environ={})


def test_preview_email_fatal_in_production():
    with pytest.raises(ConfigurationError, match="EMAIL_PROVIDER"):
        build_settings(_config(ENV_NAME="production"), environ={"SECRET_KEY": STRONG_SECRET})
    settings = build_settings(_config(ENV_NAME="production", EMAIL_PROVIDER="resend"),
                              environ={"SECRET_KEY": STRONG_SECRET})
    assert settings.email_provider == "resend"


def test_create_app_refuses_bypass_in_ci(monkeypatch):
    monkeypatch.setenv("CI", "true")
    with pytest.raises(ConfigurationError):
        create_app("testing", overrides={"DISABLE_AUTH": True})


def test_create_app_refuses_bypass_in_production(monkeypatch):
    monkeypatch.delenv("CI", raising=False)
    monkeypatch.setenv("SECRET_KEY", STRONG_SECRET)
    with pytest.raises(ConfigurationError):
        create_app("production", overrides={"DISABLE_AUTH": True, "SQLALCHEMY_DATABASE_URI": "sqlite://"})


def test_config_classes():
    assert TestingConfig.DISABLE_AUTH is False
    assert ProductionConfig.ENV_NAME == "production"
