import pytest

from app.core.config import Settings, settings
from app.services import mailer


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port = host, port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self, context=None):
        pass

    def login(self, user, password):
        pass

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


class BrokenSMTP(FakeSMTP):
    def __init__(self, host, port, timeout=None):
        raise OSError("connection refused")


@pytest.fixture(autouse=True)
def _reset_sent():
    FakeSMTP.sent = []


def test_sends_html_and_text(monkeypatch):
    monkeypatch.setattr(mailer.smtplib, "SMTP", FakeSMTP)
    assert mailer.send_otp_email("a@x.com", "012345", "<Ann>") is True

    msg = FakeSMTP.sent[0]
    assert msg["To"] == "a@x.com"
    assert settings.APP_NAME in msg["Subject"]
    text = msg.get_body(preferencelist=("plain",)).get_content()
    html = msg.get_body(preferencelist=("html",)).get_content()
    assert "012345" in text and "012345" in html
    assert "&lt;Ann&gt;" in html


def test_smtp_failure_returns_false(monkeypatch):
    monkeypatch.setattr(mailer.smtplib, "SMTP", BrokenSMTP)
    assert mailer.send_otp_email("a@x.com", "012345", "Ann") is False


def test_development_mode_only_logs(monkeypatch, caplog):
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    monkeypatch.setattr(mailer.smtplib, "SMTP", BrokenSMTP)
    with caplog.at_level("INFO", logger="app.services.mailer"):
        assert mailer.send_otp_email("a@x.com", "012345", "Ann") is True
    assert "012345" in caplog.text


def test_sender_dependency():
    assert mailer.get_otp_sender() is mailer.send_otp_email


def test_default_environment_delivers_over_smtp(monkeypatch, caplog):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    defaults = Settings(JWT_SECRET="x", _env_file=None)
    monkeypatch.setattr(settings, "ENVIRONMENT", defaults.ENVIRONMENT)
    monkeypatch.setattr(mailer.smtplib, "SMTP", FakeSMTP)

    with caplog.at_level("INFO", logger="app.services.mailer"):
        assert mailer.send_otp_email("a@x.com", "123456", "Ann") is True
    assert len(FakeSMTP.sent) == 1
    assert "123456" not in caplog.text
