import smtplib

import pytest

from vivaplan.core.config import Settings
from vivaplan.services import email as email_service
from vivaplan.services.email import EmailDeliveryError, SmtpTransport
from vivaplan.services.email import send_email as real_send_email
from vivaplan.services.notifications import send_best_effort


def _settings(**overrides):
    values = {
        "smtp_host": "smtp.example.com",
        "smtp_port": 587,
        "smtp_username": "bot@example.com",
        "smtp_password": "abcd efgh ijkl",
        "smtp_from_email": "bot@example.com",
        "smtp_from_name": "VivaPlan",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeSMTP:
    instances: list["FakeSMTP"] = []
    fail_with: Exception | None = None

    def __init__(self, host, port, timeout):
        self.host, self.port, self.timeout = host, port, timeout
        self.calls: list[tuple] = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def starttls(self, context=None):
        self.calls.append(("starttls",))

    def login(self, username, password):
        self.calls.append(("login", username, password))

    def send_message(self, message):
        if FakeSMTP.fail_with is not None:
            raise FakeSMTP.fail_with
        self.calls.append(("send", message["To"], message["Subject"], message["From"]))


@pytest.fixture()
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(email_service.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_unconfigured_smtp_raises():
    with pytest.raises(EmailDeliveryError, match="SMTP is not configured"):
        SmtpTransport.from_settings(_settings(smtp_host=None))


def test_send_email_uses_starttls_and_strips_password_spaces(fake_smtp):
    real_send_email(to_email="sam@example.com", subject="Hello", text_content="Body", settings=_settings())

    smtp = fake_smtp.instances[0]
    assert (smtp.host, smtp.port, smtp.timeout) == ("smtp.example.com", 587, 15)
    assert smtp.calls == [
        ("starttls",),
        ("login", "bot@example.com", "abcdefghijkl"),
        ("send", "sam@example.com", "Hello", "VivaPlan <bot@example.com>"),
    ]


def test_smtp_failures_are_classified(fake_smtp):
    fake_smtp.fail_with = smtplib.SMTPRecipientsRefused({"sam@example.com": (550, b"no such user")})

    with pytest.raises(EmailDeliveryError, match="SMTP recipient rejected"):
        real_send_email(to_email="sam@example.com", subject="Hello", text_content="Body", settings=_settings())


def test_best_effort_send_swallows_failures(monkeypatch, caplog):
    def broken(**kwargs):
        raise EmailDeliveryError("SMTP connection failed")

    monkeypatch.setattr(email_service, "send_email", broken)

    assert send_best_effort("sam@example.com", "Hello", "Body") is False
    assert send_best_effort(None, "Hello", "Body") is False
    assert "Email delivery to sam@example.com failed" in caplog.text


def test_best_effort_send_reports_success(outbox):
    assert send_best_effort("sam@example.com", "Hello", "Body") is True
    assert outbox == [("sam@example.com", "Hello", "Body")]
