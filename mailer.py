from __future__ import annotations

import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage

import resend

from config import Settings
from email_templates import EmailTemplate, render_html
from errors import TransportFailure

logger = logging.getLogger(__name__)


class Mailer(ABC):
    name = "base"

    @abstractmethod
    def send_email(self, to: str, subject: str, html: str) -> None:
        """Deliver one HTML email or raise TransportFailure."""


class ConsoleMailer(Mailer):
    """Development transport: logs the message instead of delivering it."""

    name = "console"

    def send_email(self, to: str, subject: str, html: str) -> None:
        logger.info("Email to %s: %s (%d bytes)", to, subject, len(html))


class SmtpMailer(Mailer):
    name = "smtp"

    def __init__(self, *, host: str, port: int, username: str | None, password: str | None,
                 from_email: str, from_name: str = "", use_tls: bool = True) -> None:
        self._host = host
        self._port = int(port)
        self._username = username
        self._password = password
        self._from_email = from_email
        self._from_name = from_name
        self._use_tls = bool(use_tls)

    def send_email(self, to: str, subject: str, html: str) -> None:
        msg = EmailMessage()
        msg["From"] = f"{self._from_name} <{self._from_email}>" if self._from_name else self._from_email
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable email client.")
        msg.add_alternative(html, subtype="html")
        try:
            with smtplib.SMTP(self._host, self._port) as server:
                if self._use_tls:
                    server.starttls()
                if self._username and self._password:
                    server.login(self._username, self._password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise TransportFailure(f"SMTP delivery to {to} failed: {exc}") from exc


class ResendMailer(Mailer):
    name = "resend"

    def __init__(self, *, api_key: str, from_email: str, from_name: str = "") -> None:
        self._api_key = api_key
        self._from = f"{from_name} <{from_email}>" if from_name else from_email

    def send_email(self, to: str, subject: str, html: str) -> None:
        resend.api_key = self._api_key
        try:
            resend.Emails.send({"from": self._from, "to": [to], "subject": subject, "html": html})
        except Exception as exc:  # resend has no common base error
            raise TransportFailure(f"Resend delivery to {to} failed: {exc}") from exc


def build_mailer(settings: Settings) -> Mailer:
    if settings.email_provider == "smtp":
        if not settings.smtp_host:
            raise ValueError("SMTP_HOST is required when EMAIL_PROVIDER=smtp")
        return SmtpMailer(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            from_email=settings.email_from,
            from_name=settings.email_from_name,
            use_tls=settings.smtp_use_tls,
        )
    if settings.email_provider == "resend":
        if not settings.resend_api_key:
            raise ValueError("RESEND_API_KEY is required when EMAIL_PROVIDER=resend")
        return ResendMailer(
            api_key=settings.resend_api_key,
            from_email=settings.email_from,
            from_name=settings.email_from_name,
        )
    return ConsoleMailer()


def send_template(mailer: Mailer, to: str, template: EmailTemplate, settings: Settings) -> None:
    mailer.send_email(to, template.subject, render_html(template, settings.store_name))
    logger.info("Sent '%s' to %s via %s", template.subject, to, mailer.name)


def send_best_effort(mailer: Mailer, to: str, template: EmailTemplate, settings: Settings) -> bool:
    """Send an email whose failure must not affect the calling operation."""
    try:
        send_template(mailer, to, template, settings)
    except TransportFailure as exc:
        logger.warning("Email '%s' to %s not sent: %s", template.subject, to, exc.message)
        return False
    return True
