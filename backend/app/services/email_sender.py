import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage

from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailSenderError(RuntimeError):
    pass


def _is_smtp_configured() -> bool:
    return bool(settings.smtp_host and settings.smtp_from_email)


def _deliver(msg: EmailMessage) -> None:
    try:
        if settings.smtp_use_ssl:
            with smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=10) as server:
                if settings.smtp_username:
                    server.login(settings.smtp_username, settings.smtp_password)
                server.send_message(msg)
        else:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as server:
                if settings.smtp_use_tls:
                    server.starttls()
                if settings.smtp_username:
                    server.login(settings.smtp_username, settings.smtp_password)
                server.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        raise EmailSenderError(f"SMTP send failed: {exc}") from exc


def send_appointment_confirmation_email(
    *,
    to_email: str,
    doctor_name: str,
    starts_at: datetime,
    duration_minutes: int,
) -> bool:
    """Return True when mail sent, False when SMTP is not configured."""
    if not _is_smtp_configured():
        logger.info("SMTP not configured; skipping appointment confirmation to %s", to_email)
        return False

    msg = EmailMessage()
    msg["Subject"] = f"[{settings.app_name}] Appointment confirmed with {doctor_name}"
    msg["From"] = settings.smtp_from_email
    msg["To"] = to_email
    msg.set_content(
        "Hello,\n\n"
        f"Your appointment with {doctor_name} is booked for {starts_at:%A, %B %d %Y at %H:%M} "
        f"({duration_minutes} minutes).\n"
        "If you need to cancel, please do so at least 24 hours in advance.\n\n"
        "This message was sent automatically."
    )

    _deliver(msg)
    logger.info("appointment confirmation sent to %s", to_email)
    return True


def send_verification_decision_email(*, to_email: str, doctor_name: str, approved: bool, note: str | None) -> bool:
    if not _is_smtp_configured():
        logger.info("SMTP not configured; skipping verification decision to %s", to_email)
        return False

    msg = EmailMessage()
    decision = "approved" if approved else "not approved"
    msg["Subject"] = f"[{settings.app_name}] Your provider application was {decision}"
    msg["From"] = settings.smtp_from_email
    msg["To"] = to_email
    body = f"Dear {doctor_name},\n\nYour application to join as a provider was {decision}.\n"
    if note:
        body += f"\nReviewer note: {note}\n"
    msg.set_content(body + "\nThis message was sent automatically.")

    _deliver(msg)
    return True
