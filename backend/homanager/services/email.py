"""Outbound email over SMTP.

The SMTP client is synchronous and runs in a worker thread. Email is
optional: with no SMTP settings at all, ``send`` reports "not delivered".
"""

import asyncio
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from urllib.parse import urljoin, urlsplit

import structlog

from homanager.config import Settings, get_settings
from homanager.exceptions import EmailConfigurationError, EmailDeliveryError

logger = structlog.get_logger()

DEFAULT_BASE_URL = "http://localhost:3005"


@dataclass(frozen=True)
class EmailServerConfig:
    """Validated SMTP connection settings."""

    host: str
    port: int
    sender: str
    user: str | None = None
    password: str | None = None

    @property
    def implicit_tls(self) -> bool:
        return self.port == 465


def get_email_server_config(settings: Settings | None = None) -> EmailServerConfig | None:
    """Build the SMTP config, or None when email is not configured at all."""
    settings = settings or get_settings()
    host = settings.email_server_host.strip() or None
    port = settings.email_server_port
    user = settings.email_server_user.strip() or None
    password = settings.email_server_password.get_secret_value().strip() or None

    if not host and not port and not user and not password:
        return None

    if not host or not port:
        raise EmailConfigurationError(
            "Incomplete SMTP configuration: EMAIL_SERVER_HOST and EMAIL_SERVER_PORT are required."
        )
    if port <= 0:
        raise EmailConfigurationError(f"Invalid EMAIL_SERVER_PORT: {port}")
    if bool(user) != bool(password):
        raise EmailConfigurationError(
            "Incomplete SMTP configuration: EMAIL_SERVER_USER and "
            "EMAIL_SERVER_PASSWORD must be set together."
        )

    return EmailServerConfig(
        host=host,
        port=port,
        sender=settings.email_from.strip() or "no-reply@homanager.local",
        user=user,
        password=password,
    )


def get_app_base_url(settings: Settings | None = None) -> str:
    """Origin of the web application, used to build absolute links."""
    settings = settings or get_settings()
    configured = settings.app_base_url.strip()
    parts = urlsplit(configured)
    if not parts.scheme or not parts.netloc:
        if configured:
            logger.warning("invalid_app_base_url", value=configured, fallback=DEFAULT_BASE_URL)
        return DEFAULT_BASE_URL
    return f"{parts.scheme}://{parts.netloc}"


def absolute_url(link_url: str | None, settings: Settings | None = None) -> str:
    """Resolve an in-app link against the application origin."""
    base_url = get_app_base_url(settings)
    if not link_url:
        return base_url
    return urljoin(f"{base_url}/", link_url)


class EmailService:
    """Send notification emails through the configured SMTP server."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    @property
    def is_configured(self) -> bool:
        return get_email_server_config(self.settings) is not None

    async def send(self, to: str, subject: str, text: str, html: str) -> bool:
        """
        Send one email.

        Returns:
            True when the server accepted the message, False when email is
            not configured.

        Raises:
            EmailConfigurationError: SMTP settings are only partially set.
            EmailDeliveryError: the server refused the recipient.
        """
        config = get_email_server_config(self.settings)
        if config is None:
            logger.debug("email_not_configured", to=to)
            return False

        message = EmailMessage()
        message["From"] = config.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)
        message.add_alternative(html, subtype="html")

        refused = await asyncio.to_thread(self._deliver, config, message)
        if refused:
            raise EmailDeliveryError(sorted(refused))

        logger.info("email_sent", to=to, subject=subject)
        return True

    def _deliver(self, config: EmailServerConfig, message: EmailMessage) -> dict:
        timeout = self.settings.email_timeout_seconds
        if config.implicit_tls:
            client: smtplib.SMTP = smtplib.SMTP_SSL(config.host, config.port, timeout=timeout)
        else:
            client = smtplib.SMTP(config.host, config.port, timeout=timeout)

        with client as smtp:
            if not config.implicit_tls:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls()
                    smtp.ehlo()
            if config.user and config.password:
                smtp.login(config.user, config.password)
            return smtp.send_message(message)
