"""
EmailService providers and templates.

The resend provider is exercised against a mocked ``requests.Session``;
nothing leaves the process.
"""

from unittest.mock import MagicMock

import pytest
import requests

from workhours.services.email_service import (
    OUTBOX_LIMIT,
    RESEND_API_URL,
    EmailDeliveryError,
    EmailService,
)


def _resend(status=200):
    http = MagicMock(spec=requests.Session)
    http.post.return_value = MagicMock(status_code=status, text="nope")
    return EmailService("resend", "team@example.com", resend_api_key="re_test", http_session=http), http


def test_preview_collects_outbox():
    svc = EmailService()
    svc.send(to_email="a@example.com", subject="Hi", html_body="<p>Hi</p>", text_body="Hi")
    assert svc.outbox == [{"to": "a@example.com", "subject": "Hi", "html": "<p>Hi</p>", "text": "Hi"}]


def test_preview_outbox_keeps_only_latest_messages():
    svc = EmailService()
    for n in range(OUTBOX_LIMIT + 25):
        svc.send(to_email=f"u{n}@example.com", subject="Hi", html_body="x")
    assert len(svc.outbox) == OUTBOX_LIMIT
    assert svc.outbox[0]["to"] == "u25@example.com"
    assert svc.outbox[-1]["to"] == f"u{OUTBOX_LIMIT + 24}@example.com"


def test_resend_posts_payload():
    svc, http = _resend()
    svc.send(to_email="a@example.com", subject="Hi", html_body="<p>Hi</p>")
    args, kwargs = http.post.call_args
    assert args == (RESEND_API_URL,)
    assert kwargs["json"]["to"] == ["a@example.com"]
    assert kwargs["json"]["from"] == "team@example.com"
    assert kwargs["headers"]["Authorization"] == "Bearer re_test"
    assert kwargs["timeout"] == 10


def test_resend_error_status_raises():
    svc, _http = _resend(status=422)
    with pytest.raises(EmailDeliveryError, match="422"):
        svc.send(to_email="a@example.com", subject="Hi", html_body="x")


def test_resend_network_error_wrapped():
    svc, http = _resend()
    http.post.side_effect = requests.ConnectionError("down")
    with pytest.raises(EmailDeliveryError):
        svc.send(to_email="a@example.com", subject="Hi", html_body="x")


def test_resend_without_key():
    svc = EmailService("resend")
    with pytest.raises(EmailDeliveryError, match="RESEND_API_KEY"):
        svc.send(to_email="a@example.com", subject="Hi", html_body="x")


def test_smtp_without_server():
    with pytest.raises(EmailDeliveryError, match="MAIL_SERVER"):
        EmailService("smtp").send(to_email="a@example.com", subject="Hi", html_body="x")


def test_template_rendering_keeps_unknown_placeholders():
    svc = EmailService()
    svc.send_template("password_reset", to_email="a@example.com", context={"name": "Jo"})
    msg = svc.outbox[-1]
    assert "Hello Jo" in msg["text"]
    assert "{reset_url}" in msg["text"]


def test_template_escapes_html_values():
    svc = EmailService()
    svc.send_template(
        "welcome",
        to_email="a@example.com",
        context={"name": "<script>alert(1)</script>", "email": "a@example.com",
                 "temporary_password": "p<w>d", "login_url": "http://localhost/login"},
    )
    msg = svc.outbox[-1]
    assert "<script>" not in msg["html"]
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in msg["html"]
    assert "p&lt;w&gt;d" in msg["html"]
    # plain-text part is not HTML
    assert "Welcome, <script>alert(1)</script>" in msg["text"]


def test_unknown_template():
    with pytest.raises(KeyError):
        EmailService().send_template("newsletter", to_email="a@example.com", context={})


def test_from_config():
    svc = EmailService.from_config({"MAIL_SERVER": "smtp.example.com", "MAIL_PORT": 2525}, "smtp")
    assert (svc.provider, svc.smtp_server, svc.smtp_port) == ("smtp", "smtp.example.com", 2525)
    assert svc.sender == "noreply@workhours.local"
