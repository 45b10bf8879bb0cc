# services/notify.py
from __future__ import annotations

import abc

from flask import current_app

from utils.mail import send_email, mask_email

__all__ = ["Notifier", "EmailNotifier", "otp_message"]

_SUBJECTS = {
    "signup": "Your Sign-up OTP",
    "login": "Your Login OTP",
}


def otp_message(*, app_name: str, purpose: str, code: str, ttl_minutes: int) -> tuple[str, str, str]:
    """(subject, text, html) for a one-time code email."""
    action = "sign up" if purpose == "signup" else "login"
    subject = _SUBJECTS.get(purpose, "Your verification code")
    text = (
        f"Your OTP for {app_name} {action} is: {code}\n"
        f"This code expires in {ttl_minutes} minutes."
    )
    html = f"""
      <div style="font-family:system-ui,Segoe UI,Roboto,Arial">
        <h2>Your {app_name} {action} code</h2>
        <p>Your one-time code is:</p>
        <div style="font-size:24px;font-weight:700;letter-spacing:3px">{code}</div>
        <p>This code expires in {ttl_minutes} minutes.</p>
      </div>
    """
    return subject, text, html


class Notifier(abc.ABC):
    """Out-of-band delivery of one-time codes. Returns True when handed off."""

    def __init__(self, app_name: str = "notes-app"):
        self.app_name = app_name

    @abc.abstractmethod
    def deliver(self, to: str, subject: str, text: str, html: str = "") -> bool:
        ...

    def send_otp(self, to: str, code: str, *, purpose: str, ttl_minutes: int) -> bool:
        subject, text, html = otp_message(
            app_name=self.app_name, purpose=purpose, code=code, ttl_minutes=ttl_minutes
        )
        return self.deliver(to, subject, text, html)


class EmailNotifier(Notifier):
    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        login: str | None = None,
        password: str | None = None,
        mail_from: str,
        timeout: int = 20,
        enabled: bool = True,
        app_name: str = "notes-app",
    ):
        super().__init__(app_name)
        self.host = host
        self.port = port
        self.login = login
        self.password = password
        self.mail_from = mail_from
        self.timeout = timeout
        self.enabled = enabled

    @classmethod
    def from_config(cls, config) -> "EmailNotifier":
        return cls(
            host=config["SMTP_HOST"],
            port=config["SMTP_PORT"],
            login=config.get("SMTP_USER"),
            password=config.get("SMTP_PASS"),
            mail_from=config["MAIL_FROM"],
            timeout=config.get("SMTP_TIMEOUT", 20),
            enabled=config.get("MAIL_ENABLED", True),
            app_name=config.get("APP_NAME", "notes-app"),
        )

    def deliver(self, to: str, subject: str, text: str, html: str = "") -> bool:
        log = current_app.logger
        if not self.enabled:
            log.warning("[mail] delivery disabled; dropped %r to %s", subject, mask_email(to))
            return False
        try:
            send_email(
                to=to,
                subject=subject,
                text=text,
                html=html,
                host=self.host,
                port=self.port,
                login=self.login,
                password=self.password,
                mail_from=self.mail_from,
                timeout=self.timeout,
            )
        except Exception:
            # The challenge is already stored; the user can ask for a resend
            log.exception("[mail] failed to send %r to %s", subject, mask_email(to))
            return False
        return True
