import os
import smtplib
import sys
from datetime import datetime
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_neurona.db"

from app.core.config import settings  # noqa: E402
from app.services import email_sender  # noqa: E402
from app.services.email_sender import (  # noqa: E402
    EmailSenderError,
    send_appointment_confirmation_email,
    send_verification_decision_email,
)


class FakeSMTP:
    sent: list = []

    def __init__(self, host: str, port: int, timeout: int) -> None:
        self.host = host
        self.port = port

    def __enter__(self) -> "FakeSMTP":
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    def starttls(self) -> None:
        return None

    def login(self, username: str, password: str) -> None:
        return None

    def send_message(self, msg) -> None:
        FakeSMTP.sent.append(msg)


class BrokenSMTP(FakeSMTP):
    def send_message(self, msg) -> None:
        raise smtplib.SMTPServerDisconnected("connection lost")


@pytest.fixture
def smtp_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    monkeypatch.setattr(settings, "smtp_from_email", "care@example.com")
    monkeypatch.setattr(settings, "smtp_use_ssl", False)
    FakeSMTP.sent = []


def test_skips_when_smtp_not_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "smtp_host", "")
    sent = send_appointment_confirmation_email(
        to_email="patient@example.com",
        doctor_name="Dr. Ana Ruiz",
        starts_at=datetime(2030, 1, 7, 10, 0),
        duration_minutes=30,
    )
    assert sent is False


def test_appointment_confirmation_is_sent(smtp_settings: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(email_sender.smtplib, "SMTP", FakeSMTP)
    sent = send_appointment_confirmation_email(
        to_email="patient@example.com",
        doctor_name="Dr. Ana Ruiz",
        starts_at=datetime(2030, 1, 7, 10, 0),
        duration_minutes=30,
    )
    assert sent is True
    msg = FakeSMTP.sent[-1]
    assert msg["To"] == "patient@example.com"
    assert "Dr. Ana Ruiz" in msg["Subject"]
    assert "Monday, January 07 2030 at 10:00" in msg.get_content()


def test_verification_decision_includes_note(smtp_settings: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(email_sender.smtplib, "SMTP", FakeSMTP)
    assert send_verification_decision_email(
        to_email="ana@example.com",
        doctor_name="Dr. Ana Ruiz",
        approved=False,
        note="License could not be verified",
    )
    msg = FakeSMTP.sent[-1]
    assert "not approved" in msg["Subject"]
    assert "Reviewer note: License could not be verified" in msg.get_content()


def test_smtp_failure_is_wrapped(smtp_settings: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(email_sender.smtplib, "SMTP", BrokenSMTP)
    with pytest.raises(EmailSenderError):
        send_verification_decision_email(
            to_email="ana@example.com",
            doctor_name="Dr. Ana Ruiz",
            approved=True,
            note=None,
        )
