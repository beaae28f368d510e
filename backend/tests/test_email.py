"""Tests for SMTP configuration rules and link building."""

from unittest.mock import MagicMock, patch

import pytest
from pydantic import SecretStr

from homanager.config import Settings
from homanager.exceptions import EmailConfigurationError, EmailDeliveryError
from homanager.services.email import (
    EmailService,
    absolute_url,
    get_app_base_url,
    get_email_server_config,
)


def make_settings(**overrides) -> Settings:
    fields = {
        "email_server_host": "",
        "email_server_port": None,
        "email_server_user": "",
        "email_server_password": SecretStr(""),
        "app_base_url": "https://home.example.com",
    }
    fields.update(overrides)
    return Settings(**fields)


class TestEmailServerConfig:
    def test_nothing_set_means_not_configured(self):
        assert get_email_server_config(make_settings()) is None

    def test_host_without_port_raises(self):
        with pytest.raises(EmailConfigurationError):
            get_email_server_config(make_settings(email_server_host="smtp.example.com"))

    def test_user_without_password_raises(self):
        with pytest.raises(EmailConfigurationError):
            get_email_server_config(
                make_settings(
                    email_server_host="smtp.example.com",
                    email_server_port=587,
                    email_server_user="mailer",
                )
            )

    def test_full_config(self):
        config = get_email_server_config(
            make_settings(
                email_server_host="smtp.example.com",
                email_server_port=465,
                email_server_user="mailer",
                email_server_password=SecretStr("secret"),
            )
        )
        assert config.host == "smtp.example.com"
        assert config.implicit_tls is True

    def test_starttls_port(self):
        config = get_email_server_config(
            make_settings(email_server_host="smtp.example.com", email_server_port=587)
        )
        assert config.implicit_tls is False
        assert config.user is None


class TestLinks:
    def test_absolute_url_joins_base(self):
        settings = make_settings()
        assert absolute_url("/app/tasks/1", settings) == "https://home.example.com/app/tasks/1"

    def test_missing_link_is_the_base(self):
        assert absolute_url(None, make_settings()) == "https://home.example.com"

    def test_base_url_drops_path(self):
        assert get_app_base_url(make_settings(app_base_url="https://home.example.com/app/")) == (
            "https://home.example.com"
        )

    def test_invalid_base_url_falls_back(self):
        assert get_app_base_url(make_settings(app_base_url="not a url")) == "http://localhost:3005"


class TestEmailService:
    async def test_not_configured_returns_false(self):
        service = EmailService(make_settings())
        assert service.is_configured is False
        assert await service.send("bob@example.com", "Hi", "text", "<p>html</p>") is False

    async def test_send_uses_smtp_with_starttls_and_login(self):
        service = EmailService(
            make_settings(
                email_server_host="smtp.example.com",
                email_server_port=587,
                email_server_user="mailer",
                email_server_password=SecretStr("secret"),
            )
        )
        smtp = MagicMock()
        smtp.has_extn.return_value = True
        smtp.send_message.return_value = {}

        with patch("homanager.services.email.smtplib.SMTP") as smtp_class:
            smtp_class.return_value.__enter__.return_value = smtp
            delivered = await service.send("bob@example.com", "Hi", "text", "<p>html</p>")

        assert delivered is True
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("mailer", "secret")
        message = smtp.send_message.call_args.args[0]
        assert message["To"] == "bob@example.com"
        assert message["Subject"] == "Hi"

    async def test_refused_recipient_raises(self):
        service = EmailService(
            make_settings(email_server_host="smtp.example.com", email_server_port=25)
        )
        smtp = MagicMock()
        smtp.has_extn.return_value = False
        smtp.send_message.return_value = {"bob@example.com": (550, b"no such user")}

        with patch("homanager.services.email.smtplib.SMTP") as smtp_class:
            smtp_class.return_value.__enter__.return_value = smtp
            with pytest.raises(EmailDeliveryError):
                await service.send("bob@example.com", "Hi", "text", "<p>html</p>")
