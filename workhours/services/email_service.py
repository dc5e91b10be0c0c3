"""
Work Hours Tracker
Email Service.

Providers (EMAIL_PROVIDER):
    smtp     smtplib + STARTTLS using the MAIL_* settings
    resend   Resend HTTP API (RESEND_API_KEY) via requests
    preview  log only, nothing leaves the process (default; used in tests)

One ``EmailService`` is built in ``create_app`` and stored on
``app.extensions``; handlers fetch it with ``get_email_service()``.

Configuration (env vars):
    MAIL_SERVER, MAIL_PORT, MAIL_USE_TLS, MAIL_USERNAME, MAIL_PASSWORD
    MAIL_DEFAULT_SENDER   From address for every provider
    RESEND_API_KEY        Bearer key for the resend provider
"""

from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

import requests
from flask import current_app
from markupsafe import escape

logger = logging.getLogger(__name__)

EXTENSION_KEY = "workhours.email"
RESEND_API_URL = "https://api.resend.com/emails"
RESEND_TIMEOUT = 10
OUTBOX_LIMIT = 100


# ═══════════════════════════════════════════════════════════════════════════
#  Email Templates
# ═══════════════════════════════════════════════════════════════════════════

_TEMPLATES: dict[str, dict[str, str]] = {
    "welcome": {
        "subject": "Your Work Hours account",
        "html": """
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2 style="color: #1e293b;">Welcome, {name}</h2>
            <p>An account has been created for you.</p>
            <p>Email: <strong>{email}</strong><br>
               Temporary password: <code>{temporary_password}</code></p>
            <p>You will be asked to choose a new password when you first sign in:
               <a href="{login_url}">{login_url}</a></p>
        </div>
        """,
        "text": (
            "Welcome, {name}\n\n"
            "Email: {email}\nTemporary password: {temporary_password}\n\n"
            "Sign in and choose a new password: {login_url}\n"
        ),
    },
    "password_reset": {
        "subject": "Reset your Work Hours password",
        "html": """
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2 style="color: #1e293b;">Password reset</h2>
            <p>Hello {name},</p>
            <p>Use the link below to choose a new password. It expires in 1 hour.</p>
            <p><a href="{reset_url}">{reset_url}</a></p>
            <p style="color: #64748b;">If you did not request this, you can ignore this email.</p>
        </div>
        """,
        "text": (
            "Hello {name},\n\n"
            "Reset your password (link valid for 1 hour):\n{reset_url}\n\n"
            "If you did not request this, ignore this email.\n"
        ),
    },
}


class EmailDeliveryError(Exception):
    """The configured provider refused or failed to deliver a message."""


class _SafeDict(dict):
    """Dict that returns {key} for missing keys instead of raising."""

    def __missing__(self, key):
        return f"{{{key}}}"


class EmailService:
    """Provider-agnostic sender with template rendering."""

    def __init__(
        self,
        provider: str = "preview",
        sender: str = "noreply@workhours.local",
        *,
        smtp_server: str | None = None,
        smtp_port: int = 587,
        smtp_use_tls: bool = True,
        smtp_username: str | None = None,
        smtp_password: str | None = None,
        resend_api_key: str | None = None,
        http_session: requests.Session | None = None,
    ) -> None:
        self.provider = provider
        self.sender = sender
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.smtp_use_tls = smtp_use_tls
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.resend_api_key = resend_api_key
        self._http = http_session
        # Last OUTBOX_LIMIT messages sent in preview mode, newest last
        self.outbox: list[dict[str, str]] = []

    @classmethod
    def from_config(cls, config, provider: str) -> EmailService:
        return cls(
            provider=provider,
            sender=config.get("MAIL_DEFAULT_SENDER") or "noreply@workhours.local",
            smtp_server=config.get("MAIL_SERVER"),
            smtp_port=config.get("MAIL_PORT", 587),
            smtp_use_tls=config.get("MAIL_USE_TLS", True),
            smtp_username=config.get("MAIL_USERNAME"),
            smtp_password=config.get("MAIL_PASSWORD"),
            resend_api_key=config.get("RESEND_API_KEY"),
        )

    @property
    def http(self) -> requests.Session:
        if self._http is None:
            self._http = requests.Session()
        return self._http

    def send(self, *, to_email: str, subject: str, html_body: str, text_body: str = "") -> None:
        """Deliver one message or raise EmailDeliveryError."""
        if self.provider == "preview":
            self.outbox.append({"to": to_email, "subject": subject, "html": html_body, "text": text_body})
            del self.outbox[:-OUTBOX_LIMIT]
            logger.info("Email (preview): to=%s subject='%s'", to_email, subject)
            return

        try:
            if self.provider == "resend":
                self._send_resend(to_email, subject, html_body, text_body)
            else:
                self._send_smtp(to_email, subject, html_body, text_body)
        except (smtplib.SMTPException, OSError, requests.RequestException) as exc:
            logger.error("Email failed: provider=%s to=%s error=%s", self.provider, to_email, exc)
            raise EmailDeliveryError(str(exc)) from exc
        logger.info("Email sent: provider=%s to=%s subject='%s'", self.provider, to_email, subject)

    def send_template(self, template_name: str, *, to_email: str, context: dict[str, Any]) -> None:
        template = _TEMPLATES.get(template_name)
        if template is None:
            raise KeyError(f"Unknown email template: {template_name}")
        ctx = _SafeDict(context)
        # HTML body gets escaped values; subject and text stay plain
        html_ctx = _SafeDict({k: escape(v) for k, v in context.items()})
        self.send(
            to_email=to_email,
            subject=template["subject"].format_map(ctx),
            html_body=template["html"].format_map(html_ctx),
            text_body=template["text"].format_map(ctx),
        )

    def _send_smtp(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        if not self.smtp_server:
            raise EmailDeliveryError("MAIL_SERVER is not configured")
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to_email
        if text_body:
            msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=30) as smtp:
            if self.smtp_use_tls:
                smtp.starttls()
            if self.smtp_username and self.smtp_password:
                smtp.login(self.smtp_username, self.smtp_password)
            smtp.send_message(msg)

    def _send_resend(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        if not self.resend_api_key:
            raise EmailDeliveryError("RESEND_API_KEY is not configured")
        resp = self.http.post(
            RESEND_API_URL,
            json={
                "from": self.sender,
                "to": [to_email],
                "subject": subject,
                "html": html_body,
                "text": text_body,
            },
            headers={"Authorization": f"Bearer {self.resend_api_key}"},
            timeout=RESEND_TIMEOUT,
        )
        if resp.status_code >= 400:
            raise EmailDeliveryError(f"Resend API returned {resp.status_code}: {resp.text[:200]}")


def get_email_service() -> EmailService:
    return current_app.extensions[EXTENSION_KEY]
