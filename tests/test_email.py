import smtplib
from email import message_from_string

import pytest

from education_api.services.email_service import EmailMessage, SmtpEmailSender
from education_api.services.email_templates import (
    EMAIL_VERIFICATION_SUBJECT,
    PASSWORD_RESET_SUBJECT,
    EmailTemplateBuilder,
)


class RecordingSMTP:
    """Stands in for smtplib.SMTP and records the conversation."""

    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls = []
        self.sent = []
        RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.calls.append("quit")
        return False

    def ehlo(self):
        self.calls.append("ehlo")

    def starttls(self):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(("login", username))

    def sendmail(self, sender, recipients, body):
        self.sent.append((sender, recipients, body))


class RejectingSMTP(RecordingSMTP):
    def login(self, username, password):
        raise smtplib.SMTPAuthenticationError(535, b"secret-password rejected")


@pytest.fixture(autouse=True)
def reset_instances():
    RecordingSMTP.instances = []


@pytest.fixture
def sender():
    return SmtpEmailSender(
        host="smtp.example.com",
        port=587,
        username="mailer",
        password="secret-password",
        sender_email="noreply@example.com",
        sender_name="Education",
    )


@pytest.fixture
def message():
    return EmailMessage(
        recipient_name="bob",
        recipient_email="bob@example.com",
        subject=PASSWORD_RESET_SUBJECT,
        html_body="<p>042913</p>",
    )


class TestTemplates:
    def test_password_reset_contains_code_and_branding(self, templates):
        html = templates.build_password_reset("bob", "042913")

        assert "042913" in html
        assert PASSWORD_RESET_SUBJECT in html
        assert "Hi bob," in html
        assert "The Education Team" in html
        assert "support@example.com" in html

    def test_email_verification_uses_its_own_title(self, templates):
        html = templates.build_email_verification("bob", "123456")

        assert EMAIL_VERIFICATION_SUBJECT in html
        assert PASSWORD_RESET_SUBJECT not in html

    def test_values_are_html_escaped(self):
        builder = EmailTemplateBuilder("A & B <Tutors>", "help@example.com", "https://example.com")
        html = builder.build_password_reset("<script>alert(1)</script>", "000001")

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "A &amp; B &lt;Tutors&gt;" in html

    def test_from_settings(self):
        class Config:
            COMPANY_NAME = "Acme Learning"
            COMPANY_EMAIL = "team@acme.test"
            COMPANY_WEBSITE_URL = "https://acme.test"

        builder = EmailTemplateBuilder.from_settings(Config)

        assert builder.company_name == "Acme Learning"
        assert "https://acme.test" in builder.build_email_verification("x", "000000")


class TestSmtpEmailSender:
    def test_mime_headers(self, sender, message):
        mime = sender.build_mime(message)

        assert mime["Subject"] == PASSWORD_RESET_SUBJECT
        assert mime["From"] == "Education <noreply@example.com>"
        assert mime["To"] == "bob <bob@example.com>"

    @pytest.mark.anyio
    async def test_unconfigured_sender_returns_false(self, message, monkeypatch):
        monkeypatch.setattr(smtplib, "SMTP", RecordingSMTP)
        unconfigured = SmtpEmailSender(
            host="", port=587, username="", password="", sender_email="noreply@example.com"
        )

        assert unconfigured.is_configured is False
        assert await unconfigured.send(message) is False
        assert RecordingSMTP.instances == []

    @pytest.mark.anyio
    async def test_send_uses_starttls_and_delivers(self, sender, message, monkeypatch):
        monkeypatch.setattr(smtplib, "SMTP", RecordingSMTP)

        assert await sender.send(message) is True

        server = RecordingSMTP.instances[0]
        assert (server.host, server.port) == ("smtp.example.com", 587)
        assert server.calls[:3] == ["ehlo", "starttls", "ehlo"]
        assert ("login", "mailer") in server.calls
        assert server.calls[-1] == "quit"

        sender_email, recipients, body = server.sent[0]
        assert sender_email == "noreply@example.com"
        assert recipients == ["bob@example.com"]
        assert message_from_string(body)["Subject"] == PASSWORD_RESET_SUBJECT

    @pytest.mark.anyio
    async def test_port_465_uses_implicit_tls(self, sender, message, monkeypatch):
        monkeypatch.setattr(smtplib, "SMTP_SSL", RecordingSMTP)
        sender.port = 465

        assert await sender.send(message) is True
        assert "starttls" not in RecordingSMTP.instances[0].calls

    @pytest.mark.anyio
    async def test_smtp_failure_returns_false(self, sender, message, monkeypatch):
        monkeypatch.setattr(smtplib, "SMTP", RejectingSMTP)

        assert await sender.send(message) is False

    @pytest.mark.anyio
    async def test_connection_error_returns_false(self, sender, message, monkeypatch):
        def refuse(*args, **kwargs):
            raise ConnectionRefusedError("connection refused")

        monkeypatch.setattr(smtplib, "SMTP", refuse)

        assert await sender.send(message) is False
