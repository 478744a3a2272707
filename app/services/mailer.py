# app/services/mailer.py
import logging
import smtplib
import ssl
from email.message import EmailMessage
from html import escape
from typing import Callable

from app.core.config import settings

logger = logging.getLogger(__name__)

# (to_email, code, display_name) -> 발송 성공 여부
OtpSender = Callable[[str, str, str], bool]


def _render(code: str, name: str) -> tuple:
    minutes = settings.OTP_EXP_MINUTES
    text = (
        f"Hello {name},\n\n"
        f"Your verification code for {settings.APP_NAME} is {code}.\n"
        f"It expires in {minutes} minutes.\n\n"
        "If you didn't request this code, please ignore this email."
    )
    html = f"""
      <div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto">
        <h2 style="color:#2563eb">{settings.APP_NAME}</h2>
        <p>Hello {escape(name)},</p>
        <p>Your verification code is:</p>
        <div style="font-size:32px;font-weight:700;letter-spacing:4px">{code}</div>
        <p>This code expires in {minutes} minutes.</p>
        <p>If you didn't request this code, please ignore this email.</p>
      </div>
    """
    return text, html


def send_otp_email(to_email: str, code: str, name: str) -> bool:
    if settings.ENVIRONMENT.strip().lower() == "development":
        logger.info("[mail:dev] OTP for %s: %s (name=%s)", to_email, code, name)
        return True

    text, html = _render(code, name)
    msg = EmailMessage()
    msg["Subject"] = f"Your verification code for {settings.APP_NAME}"
    msg["From"] = f"{settings.APP_NAME} <{settings.FROM_EMAIL}>"
    msg["To"] = to_email
    msg.set_content(text)
    msg.add_alternative(html, subtype="html")

    try:
        ctx = ssl.create_default_context()
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as s:
            s.starttls(context=ctx)
            if settings.SMTP_USER and settings.SMTP_PASS:
                s.login(settings.SMTP_USER, settings.SMTP_PASS)
            s.send_message(msg)
    except (smtplib.SMTPException, OSError):
        logger.exception("[mail] failed to send OTP email via %s:%s", settings.SMTP_HOST, settings.SMTP_PORT)
        return False
    return True


def get_otp_sender() -> OtpSender:
    """라우터용 의존성. 테스트에서는 dependency_overrides로 교체."""
    return send_otp_email
